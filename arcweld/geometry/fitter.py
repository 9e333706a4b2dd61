"""Arc fitting engine: replace runs of short segments with arcs and circles."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..config import ANGLE_EPSILON, FIT_DEFAULTS, POINT_PRECISION
from ..core.models import (
    Arc,
    Circle,
    Direction,
    FitResult,
    FitSettings,
    Point,
    Polyline,
    Primitive,
    Segment,
)
from .primitives import (
    DegenerateFitError,
    FittedCircle,
    distance,
    fit_circle,
    fit_circle_through,
    max_segment_deviation,
    point_line_distance,
    polar_angle,
    radial_deviations,
    signed_angle_steps,
)

logger = logging.getLogger(__name__)

MIN_ARC_POINTS = FIT_DEFAULTS["min_arc_points"]


class FitState(Enum):
    """States of the window state machine."""

    BUILDING = "building"
    EMITTING = "emitting"


@dataclass(frozen=True)
class ArcCandidate:
    """Circle accepted for the current window, with its signed sweep.

    ``emittable`` is False while the window can still grow but cannot be
    written as a single arc yet: its sweep is below the minimum, it has
    closed a full turn, or its circle does not pass through both end points.
    """

    circle: FittedCircle
    sweep: float  # radians, positive counter-clockwise
    emittable: bool


@dataclass(frozen=True)
class Window:
    """Contiguous run of polyline points evaluated as one primitive.

    ``start`` and ``end`` are inclusive indices into the polyline. At least one
    of ``line_ok`` and ``arc`` holds for a valid window; ``arc`` is
    only computed when the line candidate fails.
    """

    start: int
    end: int
    line_ok: bool
    arc: Optional[ArcCandidate] = None

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    @property
    def emittable(self) -> bool:
        """Whether the window can be written as exactly one primitive."""
        return self.line_ok or (self.arc is not None and self.arc.emittable)


class ArcFitter:
    """Fit polylines to lines, arcs and circles within a tolerance.

    Greedy single pass: a window grows one point at a time while its points
    stay within tolerance of either the chord or a least-squares circle. The
    fitter remembers the longest prefix of the window that is a single
    primitive. When an extension is rejected that prefix is emitted and a new
    window starts at its last point, so points past it are evaluated again.
    """

    def __init__(self, settings: FitSettings) -> None:
        """Initialize arc fitter.

        Args:
            settings: Tolerance and fitting constants for this run
        """
        self.settings = settings
        self.tolerance = settings.tolerance
        self.max_step = math.radians(settings.max_step_angle)
        self.min_sweep = math.radians(settings.min_arc_angle)

    def fit(self, polyline: Polyline) -> FitResult:
        """Fit a polyline to primitives.

        Never fails for a well-formed polyline: degenerate circle fits fall
        back to line segments.

        Args:
            polyline: Path to fit

        Returns:
            FitResult covering the polyline start to end
        """
        pts = np.array(polyline.points, dtype=float)
        n = len(pts)

        primitives: List[Primitive] = []
        spans: List[Tuple[int, int]] = []

        window = committed = Window(start=0, end=1, line_ok=True)
        state = FitState.BUILDING
        cursor = 2

        while True:
            if state == FitState.BUILDING:
                if cursor < n:
                    candidate = self._evaluate(pts, window.start, cursor)
                    if candidate is not None:
                        window = candidate
                        if window.emittable:
                            committed = window
                        cursor += 1
                        continue
                elif self._is_full_circle(polyline, window, primitives):
                    circle = window.arc.circle
                    primitives.append(
                        Circle(
                            center=circle.center,
                            radius=circle.radius,
                            start_point=polyline.points[0],
                            end_point=polyline.points[-1],
                        )
                    )
                    spans.append((0, n - 1))
                    logger.debug(
                        f"Closed polyline of {n} points fitted as circle "
                        f"r={circle.radius:.6g}"
                    )
                    break
                state = FitState.EMITTING
            else:
                self._emit(polyline, committed, primitives, spans)
                if committed.end == n - 1:
                    break
                if committed.end < window.end:
                    logger.debug(
                        f"Rolled back window {window.start}-{window.end} "
                        f"to {committed.end}"
                    )
                # Next window shares the emitted window's last point
                window = committed = Window(
                    start=committed.end, end=committed.end + 1, line_ok=True
                )
                cursor = window.end + 1
                state = FitState.BUILDING

        logger.debug(
            f"Fitted {n} points into {len(primitives)} primitives "
            f"(tolerance {self.tolerance})"
        )
        return FitResult(primitives, spans, polyline.attributes)

    def _is_full_circle(
        self, polyline: Polyline, window: Window, primitives: List[Primitive]
    ) -> bool:
        """A closed polyline covered by one arc window becomes a circle."""
        return (
            not primitives
            and window.start == 0
            and window.end == len(polyline) - 1
            and polyline.is_closed
            and not window.line_ok
            and window.arc is not None
        )

    def _evaluate(self, pts: np.ndarray, start: int, end: int) -> Optional[Window]:
        """Evaluate the window [start, end]; None if no candidate fits."""
        window_pts = pts[start : end + 1]

        if self._line_fits(window_pts):
            return Window(start=start, end=end, line_ok=True)

        if len(window_pts) < MIN_ARC_POINTS:
            return None

        arc = self._arc_fits(window_pts)
        if arc is None:
            return None
        return Window(start=start, end=end, line_ok=False, arc=arc)

    def _line_fits(self, window_pts: np.ndarray) -> bool:
        """Check that all interior points are within tolerance of the chord."""
        if len(window_pts) <= 2:
            return True
        deviation = max_segment_deviation(
            window_pts[1:-1], tuple(window_pts[0]), tuple(window_pts[-1])
        )
        return deviation <= self.tolerance

    def _arc_fits(self, window_pts: np.ndarray) -> Optional[ArcCandidate]:
        """Find a circle for the window that meets the tolerance and arc rules.

        The algebraic fit is tried first, then the geometrically refined one.
        Both are computed without reference to the tolerance, so a window
        accepted at one tolerance is accepted at any larger one.
        """
        closing = (
            distance(tuple(window_pts[0]), tuple(window_pts[-1])) <= POINT_PRECISION
        )
        growable: Optional[ArcCandidate] = None

        try:
            for circle in self._circle_candidates(window_pts, closing):
                arc = self._check_arc(window_pts, circle, closing)
                if arc is None:
                    continue
                if arc.emittable:
                    return arc
                if growable is None:
                    growable = arc
        except DegenerateFitError as e:
            logger.debug(f"Circle fit rejected: {e}")

        return growable

    def _circle_candidates(
        self, window_pts: np.ndarray, closing: bool
    ) -> Iterator[FittedCircle]:
        # A window returning to its first point has no chord to pin the circle to
        fit_window = fit_circle if closing else fit_circle_through
        for refine in (False, True):
            yield fit_window(
                window_pts, epsilon=self.settings.collinear_epsilon, refine=refine
            )

    def _check_arc(
        self, window_pts: np.ndarray, circle: FittedCircle, closing: bool
    ) -> Optional[ArcCandidate]:
        """Apply tolerance, radius and angle rules to one fitted circle."""
        if not self._within_tolerance(window_pts, circle):
            return None

        if circle.radius > self.settings.max_radius:
            return None

        steps = signed_angle_steps(window_pts, circle.center)
        moving = steps[steps != 0.0]
        if len(moving) == 0:
            return None
        # Points must travel around the center in one direction
        if not (np.all(moving > 0) or np.all(moving < 0)):
            return None
        if np.max(np.abs(moving)) > self.max_step:
            return None
        sweep = float(np.sum(steps))
        # Closing points may sit up to POINT_PRECISION past the first point
        if abs(sweep) > 2 * math.pi + ANGLE_EPSILON + POINT_PRECISION / circle.radius:
            return None

        if self.settings.check_chords and not self._chords_fit(window_pts, circle):
            return None

        emittable = (
            not closing
            and self.min_sweep <= abs(sweep) < 2 * math.pi - ANGLE_EPSILON
        )
        return ArcCandidate(circle=circle, sweep=sweep, emittable=emittable)

    def _within_tolerance(self, window_pts: np.ndarray, circle: FittedCircle) -> bool:
        deviations = radial_deviations(window_pts, circle.center, circle.radius)
        return bool(np.max(deviations) <= self.tolerance)

    def _chords_fit(self, window_pts: np.ndarray, circle: FittedCircle) -> bool:
        """Check the midpoint region of each chord against the circle."""
        for a, b in zip(window_pts[:-1], window_pts[1:]):
            chord_distance = point_line_distance(circle.center, tuple(a), tuple(b))
            if abs(circle.radius - chord_distance) > self.tolerance:
                return False
        return True

    def _emit(
        self,
        polyline: Polyline,
        window: Window,
        primitives: List[Primitive],
        spans: List[Tuple[int, int]],
    ) -> None:
        """Append the primitive for a finished, emittable window."""
        points = polyline.points
        start, end = window.start, window.end
        spans.append((start, end))

        if window.line_ok:
            primitives.append(Segment(points[start], points[end]))
            return

        arc = window.arc
        primitives.append(self._make_arc(arc, points[start], points[end]))
        logger.debug(
            f"Emitted arc over points {start}-{end} "
            f"r={arc.circle.radius:.6g} sweep={math.degrees(arc.sweep):.2f}"
        )

    def _make_arc(self, candidate: ArcCandidate, start: Point, end: Point) -> Arc:
        center = candidate.circle.center
        return Arc(
            center=center,
            radius=candidate.circle.radius,
            start_angle=math.degrees(polar_angle(center, start)),
            end_angle=math.degrees(polar_angle(center, end)),
            direction=Direction.CCW if candidate.sweep > 0 else Direction.CW,
            start_point=start,
            end_point=end,
        )


def fit(polyline: Polyline, tolerance: float) -> FitResult:
    """Fit one polyline with default settings.

    Args:
        polyline: Path to fit
        tolerance: Maximum deviation of any original point from its primitive

    Returns:
        FitResult covering the polyline start to end

    Raises:
        ConfigurationError: If tolerance is not positive
    """
    return ArcFitter(FitSettings(tolerance=tolerance)).fit(polyline)
