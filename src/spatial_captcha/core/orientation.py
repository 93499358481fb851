"""Orientation comparison helpers.

Orientations are intrinsic Euler angles in radians applied in ``XYZ`` order,
which is the default convention of the browser-side renderer. Distance is the
shortest-arc rotation angle between the two orientations.
"""
from __future__ import annotations

import math
import random
from typing import NamedTuple

DEGREES_PER_RADIAN = 180.0 / math.pi


class Euler(NamedTuple):
    """Euler angles in radians (XYZ order)."""

    x: float
    y: float
    z: float


class Quaternion(NamedTuple):
    """Unit quaternion ``(x, y, z, w)``."""

    x: float
    y: float
    z: float
    w: float


def quaternion_from_euler(angles: Euler) -> Quaternion:
    """Convert XYZ-ordered Euler angles to a unit quaternion."""
    c1, c2, c3 = (math.cos(a / 2) for a in angles)
    s1, s2, s3 = (math.sin(a / 2) for a in angles)
    return Quaternion(
        x=s1 * c2 * c3 + c1 * s2 * s3,
        y=c1 * s2 * c3 - s1 * c2 * s3,
        z=c1 * c2 * s3 + s1 * s2 * c3,
        w=c1 * c2 * c3 - s1 * s2 * s3,
    )


def quaternion_angle(a: Quaternion, b: Quaternion) -> float:
    """Return the rotation angle in radians between two unit quaternions, in [0, pi]."""
    dot = a.x * b.x + a.y * b.y + a.z * b.z + a.w * b.w
    if not math.isfinite(dot):
        # min() would clamp NaN to 1.0 and report a perfect match
        return math.pi
    # q and -q encode the same rotation
    dot = min(1.0, abs(dot))
    return 2.0 * math.acos(dot)


def angular_distance_degrees(first: Euler, second: Euler) -> float:
    """Return the shortest-arc angle in degrees between two orientations.

    Args:
        first: Orientation as Euler angles in radians.
        second: Orientation as Euler angles in radians.

    Returns:
        Angle in the closed range [0, 180].
    """
    radians = quaternion_angle(quaternion_from_euler(first), quaternion_from_euler(second))
    return radians * DEGREES_PER_RADIAN


def random_target(rng: random.Random) -> Euler:
    """Draw a target orientation: x and y within +/-90 degrees, z within +/-45 degrees."""
    return Euler(
        x=math.radians(rng.uniform(-90.0, 90.0)),
        y=math.radians(rng.uniform(-90.0, 90.0)),
        z=math.radians(rng.uniform(-45.0, 45.0)),
    )
