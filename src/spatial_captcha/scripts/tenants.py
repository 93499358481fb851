# src/spatial_captcha/scripts/tenants.py
"""
Operator commands for tenants and the content catalog.

Run as ``python -m spatial_captcha.scripts.tenants <command>``:

    create-tenant   register a tenant and print its freshly minted key pair
    add-content     add a 3D model URL to the challenge catalog
    reset-usage     start a new accounting period (one tenant or all)
    list-tenants    show plan and usage for every tenant
"""

from __future__ import annotations

import argparse
import secrets
import sys
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spatial_captcha.core.log import mask_key
from spatial_captcha.db.session import SessionLocal
from spatial_captcha.models import PLAN_FREE
from spatial_captcha.repositories.tenants import TenantDirectory

API_KEY_PREFIX = "pk_"
SECRET_KEY_PREFIX = "sk_"
KEY_BYTES = 24


def mint_key_pair() -> tuple[str, str]:
    """Return a new ``(api_key, secret_key)`` pair."""
    return (
        API_KEY_PREFIX + secrets.token_urlsafe(KEY_BYTES),
        SECRET_KEY_PREFIX + secrets.token_urlsafe(KEY_BYTES),
    )


def create_tenant(db: Session, plan: str, origins: Sequence[str]) -> tuple[str, str]:
    """Register a tenant and return its key pair.

    Args:
        db: Database session
        plan: Quota plan name
        origins: Browser origins allowed to present the API key
    """
    api_key, secret_key = mint_key_pair()
    TenantDirectory(db).register_tenant(
        api_key=api_key,
        secret_key=secret_key,
        allowed_origins=list(origins),
        plan=plan,
    )
    db.commit()
    return api_key, secret_key


def add_content(db: Session, model_url: str, label: str | None = None) -> int:
    """Add a catalog entry and return its id."""
    content = TenantDirectory(db).add_content(model_url, label)
    db.commit()
    return content.id


def reset_usage(db: Session, api_key: str | None = None) -> int:
    """Zero usage counters and return how many tenants were reset."""
    count = TenantDirectory(db).reset_usage(api_key)
    db.commit()
    return count


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage Spatial CAPTCHA tenants and content")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-tenant", help="Register a tenant")
    create.add_argument("--plan", default=PLAN_FREE, help="Quota plan (default: free)")
    create.add_argument(
        "--origin",
        action="append",
        required=True,
        dest="origins",
        help="Allowed browser origin; repeat for several",
    )

    content = commands.add_parser("add-content", help="Add a 3D model to the catalog")
    content.add_argument("model_url")
    content.add_argument("--label", default=None)

    reset = commands.add_parser("reset-usage", help="Start a new accounting period")
    reset.add_argument("--api-key", default=None, help="Reset one tenant (default: all)")

    commands.add_parser("list-tenants", help="Show tenants with plan and usage")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        with SessionLocal() as db:
            if args.command == "create-tenant":
                api_key, secret_key = create_tenant(db, args.plan, args.origins)
                print(f"api_key={api_key}")
                print(f"secret_key={secret_key}")
            elif args.command == "add-content":
                content_id = add_content(db, args.model_url, args.label)
                print(f"Added content #{content_id}: {args.model_url}")
            elif args.command == "reset-usage":
                count = reset_usage(db, args.api_key)
                print(f"Reset usage for {count} tenant(s)")
            elif args.command == "list-tenants":
                for tenant in TenantDirectory(db).list_tenants():
                    print(
                        f"{mask_key(tenant.api_key)}  plan={tenant.plan}  "
                        f"usage={tenant.usage_count}  origins={','.join(tenant.allowed_origins)}"
                    )
    except SQLAlchemyError as exc:
        print(f"[tenants] ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
