"""Core data models for arc welding of line drawings."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, NamedTuple, Optional, Tuple, Union

from ..config import FIT_DEFAULTS, POINT_PRECISION


class ConfigurationError(ValueError):
    """Raised for invalid fitting settings such as a non-positive tolerance."""


class Direction(str, Enum):
    """Winding direction of an arc along the path."""

    CW = "CW"
    CCW = "CCW"


class PrimitiveKind(str, Enum):
    """Primitive types a fitted path is made of."""

    LINE = "line"
    ARC = "arc"
    CIRCLE = "circle"


class Point(NamedTuple):
    """2D coordinate pair."""

    x: float
    y: float

    def distance_to(self, other: Tuple[float, float]) -> float:
        """Euclidean distance to another point."""
        return math.hypot(other[0] - self.x, other[1] - self.y)

    def is_close(
        self, other: Tuple[float, float], precision: float = POINT_PRECISION
    ) -> bool:
        """Check whether another point coincides within precision."""
        return self.distance_to(other) <= precision


@dataclass(frozen=True)
class Segment:
    """Straight line segment; the line primitive of a fit result."""

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.LINE

    start: Point
    end: Point

    @property
    def start_point(self) -> Point:
        return self.start

    @property
    def end_point(self) -> Point:
        return self.end

    def length(self) -> float:
        """Get the length of the segment."""
        return self.start.distance_to(self.end)


@dataclass(frozen=True)
class Arc:
    """Circular arc replacing a run of polyline points.

    Angles are in degrees, measured counter-clockwise from the +X axis at the
    path's start and end point. ``start_point`` and ``end_point`` are the exact
    original points of the run, which lie within tolerance of the circumference.
    """

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.ARC

    center: Point
    radius: float
    start_angle: float
    end_angle: float
    direction: Direction
    start_point: Point
    end_point: Point

    def __post_init__(self) -> None:
        """Validate arc geometry."""
        if not math.isfinite(self.radius) or self.radius <= 0:
            raise ValueError("Arc radius must be finite and positive")

    @property
    def sweep_angle(self) -> float:
        """Angle subtended by the arc in degrees (always positive)."""
        if self.direction == Direction.CCW:
            return (self.end_angle - self.start_angle) % 360.0
        return (self.start_angle - self.end_angle) % 360.0

    def length(self) -> float:
        """Get the arc length."""
        return self.radius * math.radians(self.sweep_angle)


@dataclass(frozen=True)
class Circle:
    """Full circle replacing an entire closed polyline."""

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.CIRCLE

    center: Point
    radius: float
    start_point: Point
    end_point: Point

    def __post_init__(self) -> None:
        """Validate circle geometry."""
        if not math.isfinite(self.radius) or self.radius <= 0:
            raise ValueError("Circle radius must be finite and positive")

    def length(self) -> float:
        """Get the circumference."""
        return 2 * math.pi * self.radius


Primitive = Union[Segment, Arc, Circle]


@dataclass(frozen=True)
class Polyline:
    """Ordered chain of points extracted from one connected path."""

    points: Tuple[Point, ...]
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)
    source_handles: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Normalise points and validate the path."""
        points = tuple(Point(float(p[0]), float(p[1])) for p in self.points)
        if len(points) < 2:
            raise ValueError("Polyline must have at least 2 points")
        for point in points:
            if not (math.isfinite(point.x) and math.isfinite(point.y)):
                raise ValueError(f"Polyline has non-finite coordinate: {point}")
        object.__setattr__(self, "points", points)
        object.__setattr__(self, "source_handles", tuple(self.source_handles))

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_closed(self) -> bool:
        """Whether the path returns to its first point."""
        return len(self.points) > 2 and self.points[0].is_close(self.points[-1])

    @property
    def layer(self) -> str:
        return str(self.attributes.get("layer", "0"))

    def segments(self) -> List[Segment]:
        """Get the original line segments of the path."""
        return [Segment(a, b) for a, b in zip(self.points, self.points[1:])]

    def length(self) -> float:
        """Total length along the path."""
        return sum(a.distance_to(b) for a, b in zip(self.points, self.points[1:]))


@dataclass(frozen=True)
class FitSettings:
    """Tolerance and tunables shared by every fit of one run."""

    tolerance: float
    max_radius: float = FIT_DEFAULTS["max_radius"]
    min_arc_angle: float = FIT_DEFAULTS["min_arc_angle"]  # degrees
    max_step_angle: float = FIT_DEFAULTS["max_step_angle"]  # degrees
    collinear_epsilon: float = FIT_DEFAULTS["collinear_epsilon"]
    check_chords: bool = False

    def __post_init__(self) -> None:
        """Validate fitting settings."""
        if not math.isfinite(self.tolerance) or self.tolerance <= 0:
            raise ConfigurationError(
                f"Tolerance must be a positive number, got {self.tolerance}"
            )
        if self.max_radius <= 0:
            raise ConfigurationError("Maximum radius must be positive")
        if self.min_arc_angle < 0 or self.min_arc_angle >= 360:
            raise ConfigurationError(
                "Minimum arc angle must be between 0 and 360 degrees"
            )
        if not 0 < self.max_step_angle < 180:
            raise ConfigurationError(
                "Maximum step angle must be between 0 and 180 degrees"
            )
        if self.collinear_epsilon <= 0:
            raise ConfigurationError("Collinearity epsilon must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tolerance": self.tolerance,
            "max_radius": self.max_radius,
            "min_arc_angle": self.min_arc_angle,
            "max_step_angle": self.max_step_angle,
            "collinear_epsilon": self.collinear_epsilon,
            "check_chords": self.check_chords,
        }


@dataclass
class FitResult:
    """Primitives replacing one polyline, ordered along the original path."""

    primitives: List[Primitive]
    spans: List[Tuple[int, int]]  # (first, last) polyline index per primitive
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate result structure."""
        if len(self.primitives) != len(self.spans):
            raise ValueError("Each primitive needs exactly one span")

    def __len__(self) -> int:
        return len(self.primitives)

    @property
    def start_point(self) -> Optional[Point]:
        return self.primitives[0].start_point if self.primitives else None

    @property
    def end_point(self) -> Optional[Point]:
        return self.primitives[-1].end_point if self.primitives else None

    def count(self, kind: PrimitiveKind) -> int:
        """Count primitives of one kind."""
        return sum(1 for primitive in self.primitives if primitive.kind == kind)

    def length(self) -> float:
        """Total length of the fitted path."""
        return sum(primitive.length() for primitive in self.primitives)
