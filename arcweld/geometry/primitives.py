"""Geometry primitives: distances, turn direction and circle fitting."""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from scipy.optimize import least_squares

from ..core.models import Arc, Circle, Direction, Point, Primitive, PrimitiveKind

Coordinate = Tuple[float, float]


class DegenerateFitError(ValueError):
    """Raised when a circle cannot be fitted through the given points."""


@dataclass(frozen=True)
class FittedCircle:
    """Result of a least-squares circle fit."""

    center: Point
    radius: float


def distance(p: Coordinate, q: Coordinate) -> float:
    """Euclidean distance between two points."""
    return math.hypot(q[0] - p[0], q[1] - p[1])


def point_line_distance(p: Coordinate, a: Coordinate, b: Coordinate) -> float:
    """Perpendicular distance from p to the infinite line through a and b."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length = math.hypot(dx, dy)
    if length == 0.0:
        return distance(p, a)
    return abs(dx * (p[1] - a[1]) - dy * (p[0] - a[0])) / length


def point_segment_distance(p: Coordinate, a: Coordinate, b: Coordinate) -> float:
    """Distance from p to the closed segment a-b."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return distance(p, a)
    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / length_sq
    t = min(1.0, max(0.0, t))
    return distance(p, (a[0] + t * dx, a[1] + t * dy))


def max_segment_deviation(points: np.ndarray, a: Coordinate, b: Coordinate) -> float:
    """Largest distance from an array of points to the segment a-b."""
    if len(points) == 0:
        return 0.0

    start = np.asarray(a, dtype=float)
    vec = np.asarray(b, dtype=float) - start
    length_sq = float(np.dot(vec, vec))
    rel = points - start

    if length_sq == 0.0:
        return float(np.max(np.hypot(rel[:, 0], rel[:, 1])))

    t = np.clip(rel @ vec / length_sq, 0.0, 1.0)
    closest = np.outer(t, vec)
    diff = rel - closest
    return float(np.max(np.hypot(diff[:, 0], diff[:, 1])))


def polar_angle(center: Coordinate, p: Coordinate) -> float:
    """Angle of p seen from center, in radians within [0, 2*pi)."""
    angle = math.atan2(p[1] - center[1], p[0] - center[0])
    if angle < 0.0:
        angle += 2 * math.pi
    return angle


def radial_deviations(
    points: np.ndarray, center: Coordinate, radius: float
) -> np.ndarray:
    """Radial distance of each point from the circumference."""
    dist = np.hypot(points[:, 0] - center[0], points[:, 1] - center[1])
    return np.abs(dist - radius)


def signed_angle_steps(points: np.ndarray, center: Coordinate) -> np.ndarray:
    """Angular steps between consecutive points, normalised to (-pi, pi]."""
    angles = np.arctan2(points[:, 1] - center[1], points[:, 0] - center[0])
    steps = np.diff(angles)
    steps = (steps + np.pi) % (2 * np.pi) - np.pi
    # (x + pi) % 2pi - pi maps +pi to -pi
    steps[steps == -np.pi] = np.pi
    return steps


def turn_direction(a: Coordinate, b: Coordinate, c: Coordinate) -> float:
    """Signed turn at b for the path a -> b -> c.

    Positive for a counter-clockwise (left) turn, negative for clockwise, zero
    for collinear points. The magnitude is twice the triangle area.
    """
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _angle_within_arc(angle: float, arc: Arc) -> bool:
    start = math.radians(arc.start_angle)
    sweep = math.radians(arc.sweep_angle)
    if arc.direction == Direction.CCW:
        offset = (angle - start) % (2 * math.pi)
    else:
        offset = (start - angle) % (2 * math.pi)
    return offset <= sweep


def arc_endpoints(arc: Arc) -> Tuple[Point, Point]:
    """Start and end point of an arc computed from center, radius and angles."""
    ends = []
    for angle in (arc.start_angle, arc.end_angle):
        rad = math.radians(angle)
        ends.append(
            Point(
                arc.center.x + arc.radius * math.cos(rad),
                arc.center.y + arc.radius * math.sin(rad),
            )
        )
    return ends[0], ends[1]


def point_arc_distance(p: Coordinate, arc: Arc) -> float:
    """Distance from p to an arc.

    Radial distance when p lies within the arc's angular span, otherwise the
    distance to the nearer arc end.
    """
    if _angle_within_arc(polar_angle(arc.center, p), arc):
        return abs(distance(p, arc.center) - arc.radius)

    return min(distance(p, end) for end in arc_endpoints(arc))


def point_circle_distance(p: Coordinate, circle: Circle) -> float:
    """Radial distance from p to a circle."""
    return abs(distance(p, circle.center) - circle.radius)


def primitive_deviation(p: Coordinate, primitive: Primitive) -> float:
    """Distance from p to a fitted primitive."""
    if primitive.kind == PrimitiveKind.LINE:
        return point_segment_distance(p, primitive.start, primitive.end)
    if primitive.kind == PrimitiveKind.ARC:
        return point_arc_distance(p, primitive)
    return point_circle_distance(p, primitive)


def fit_circle(
    points: Sequence[Coordinate], epsilon: float = 1e-9, refine: bool = False
) -> FittedCircle:
    """Fit a circle to points using least squares.

    Solves the algebraic (Kasa) formulation with a linear least-squares solve.
    With ``refine`` the geometric residuals ``|p - c| - r`` are minimised
    afterwards, starting from the algebraic solution.

    Args:
        points: At least three (x, y) points
        epsilon: Collinearity threshold on the singular value ratio of the
            centred point cloud
        refine: Whether to run the geometric refinement

    Returns:
        Fitted center and radius

    Raises:
        DegenerateFitError: If the points are too few, collinear, or the fitted
            radius is not finite
    """
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or len(pts) < 3:
        raise DegenerateFitError("Circle fit needs at least 3 points")

    # Work relative to the centroid for conditioning
    origin = pts.mean(axis=0)
    rel = pts - origin

    singular = np.linalg.svd(rel, compute_uv=False)
    if singular[0] == 0.0 or singular[-1] <= epsilon * singular[0]:
        raise DegenerateFitError("Points are collinear")

    A = np.column_stack((2 * rel[:, 0], 2 * rel[:, 1], np.ones(len(rel))))
    b = rel[:, 0] ** 2 + rel[:, 1] ** 2
    solution, _, rank, _ = np.linalg.lstsq(A, b, rcond=None)
    if rank < 3:
        raise DegenerateFitError("Degenerate circle system")

    cx, cy, c = solution
    radius_sq = cx * cx + cy * cy + c
    if not math.isfinite(radius_sq) or radius_sq <= 0:
        raise DegenerateFitError(f"Invalid fitted radius (r^2 = {radius_sq})")
    radius = math.sqrt(radius_sq)

    if refine:

        def residuals(params: np.ndarray) -> np.ndarray:
            px, py, r = params
            return np.hypot(rel[:, 0] - px, rel[:, 1] - py) - r

        result = least_squares(residuals, [cx, cy, radius])
        if result.success:
            cx, cy, radius = result.x
            radius = abs(radius)

    if not (math.isfinite(cx) and math.isfinite(cy) and math.isfinite(radius)):
        raise DegenerateFitError("Fitted circle is not finite")
    if radius <= 0:
        raise DegenerateFitError("Fitted radius is not positive")

    return FittedCircle(
        center=Point(float(cx + origin[0]), float(cy + origin[1])),
        radius=float(radius),
    )


def fit_circle_through(
    points: Sequence[Coordinate], epsilon: float = 1e-9, refine: bool = False
) -> FittedCircle:
    """Fit a circle passing exactly through the first and last points.

    The center is restricted to the perpendicular bisector of the two end
    points, ``c = m + t * n``, so the radius is ``hypot(h, t)`` with ``h`` half
    the chord length. The algebraic residual ``|q - t*n|^2 - r^2`` of an
    interior point ``q`` (relative to the chord midpoint) is linear in ``t``,
    which gives a closed-form least-squares solution. With ``refine`` the
    geometric residuals of the interior points are minimised afterwards.

    Args:
        points: At least three (x, y) points; the end points must not coincide
        epsilon: Collinearity threshold on the singular value ratio of the
            centred point cloud
        refine: Whether to run the geometric refinement

    Returns:
        Fitted center and radius

    Raises:
        DegenerateFitError: If the points are too few, collinear, the end
            points coincide, or the fitted circle is not finite
    """
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or len(pts) < 3:
        raise DegenerateFitError("Circle fit needs at least 3 points")

    first, last = pts[0], pts[-1]
    chord = last - first
    chord_length = float(np.hypot(chord[0], chord[1]))
    if chord_length == 0.0:
        raise DegenerateFitError("End points coincide")

    singular = np.linalg.svd(pts - pts.mean(axis=0), compute_uv=False)
    if singular[0] == 0.0 or singular[-1] <= epsilon * singular[0]:
        raise DegenerateFitError("Points are collinear")

    midpoint = (first + last) / 2
    normal = np.array([-chord[1], chord[0]]) / chord_length
    half = chord_length / 2

    rel = pts[1:-1] - midpoint
    along = rel @ normal
    denom = 2 * float(np.dot(along, along))
    if denom == 0.0:
        raise DegenerateFitError("Points are collinear")
    t = float(np.dot(rel[:, 0] ** 2 + rel[:, 1] ** 2 - half * half, along)) / denom

    if refine:

        def residuals(params: np.ndarray) -> np.ndarray:
            offset = params[0]
            return np.hypot(
                rel[:, 0] - offset * normal[0], rel[:, 1] - offset * normal[1]
            ) - math.hypot(half, offset)

        result = least_squares(residuals, [t])
        if result.success:
            t = float(result.x[0])

    radius = math.hypot(half, t)
    if not (math.isfinite(t) and math.isfinite(radius)):
        raise DegenerateFitError("Fitted circle is not finite")

    center = midpoint + t * normal
    return FittedCircle(center=Point(float(center[0]), float(center[1])), radius=radius)
