# src/spatial_captcha/models/content.py
"""Catalog of 3D models a challenge can be rendered with."""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from spatial_captcha.db.session import Base


class ContentModel(Base):
    """A selectable challenge asset; ``model_url`` is handed to the browser as-is."""

    __tablename__ = "models"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model_url: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[str | None] = mapped_column(Text, nullable=True)
