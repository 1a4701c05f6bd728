"""Geometry and kinematics primitives over ball positions.

All functions are pure and work in normalized image coordinates.
"""

from __future__ import annotations

import math

from balltrail.core.models import Position


def distance(a: Position, b: Position) -> float:
    """Euclidean distance between two positions."""
    return math.hypot(b.x - a.x, b.y - a.y)


def velocity(a: Position, b: Position) -> float:
    """Speed from a to b in normalized units per second.

    Returns 0 for duplicate or out-of-order timestamps.
    """
    dt = b.timestamp - a.timestamp
    if dt <= 0:
        return 0.0
    return distance(a, b) / dt


def lerp(a: Position, b: Position, t: float) -> Position:
    """Linear interpolation between two positions (timestamp included)."""
    return Position(
        timestamp=a.timestamp + (b.timestamp - a.timestamp) * t,
        x=a.x + (b.x - a.x) * t,
        y=a.y + (b.y - a.y) * t,
    )


def midpoint(a: Position, b: Position) -> Position:
    return lerp(a, b, 0.5)


def catmull_rom(
    p0: Position,
    p1: Position,
    p2: Position,
    p3: Position,
    t: float,
    tension: float = 0.5,
) -> Position:
    """Catmull-Rom interpolation between p1 and p2.

    p0 and p3 only shape the tangents. At sequence boundaries pass the
    endpoint itself as its own neighbor (p0 = p1 or p3 = p2).

    Args:
        p0: Point before the segment.
        p1: Segment start (returned at t=0).
        p2: Segment end (returned at t=1).
        p3: Point after the segment.
        t: Parameter in [0, 1].
        tension: Tangent scale (0.5 = standard Catmull-Rom).

    Returns:
        Interpolated position; timestamp is linear between p1 and p2.
    """
    s = tension
    t2 = t * t
    t3 = t2 * t

    h1 = -s * t3 + 2 * s * t2 - s * t
    h2 = (2 - s) * t3 + (s - 3) * t2 + 1
    h3 = (s - 2) * t3 + (3 - 2 * s) * t2 + s * t
    h4 = s * t3 - s * t2

    return Position(
        timestamp=p1.timestamp + (p2.timestamp - p1.timestamp) * t,
        x=h1 * p0.x + h2 * p1.x + h3 * p2.x + h4 * p3.x,
        y=h1 * p0.y + h2 * p1.y + h3 * p2.y + h4 * p3.y,
    )


def turn_angle(ax: float, ay: float, bx: float, by: float) -> float:
    """Angle in degrees between two displacement vectors.

    Zero-length vectors have no direction, so the angle is reported as 0.
    """
    mag_a = math.hypot(ax, ay)
    mag_b = math.hypot(bx, by)
    if mag_a == 0 or mag_b == 0:
        return 0.0
    cos_angle = (ax * bx + ay * by) / (mag_a * mag_b)
    cos_angle = max(-1.0, min(1.0, cos_angle))
    return math.degrees(math.acos(cos_angle))
