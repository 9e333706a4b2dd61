"""Unit tests for the arc fitting engine."""

import math
from typing import List, Tuple

import numpy as np
import pytest

from arcweld.core.models import (
    ConfigurationError,
    Direction,
    FitResult,
    FitSettings,
    Point,
    Polyline,
    PrimitiveKind,
    Segment,
)
from arcweld.geometry import ArcFitter, FitValidator, fit
from arcweld.geometry.primitives import (
    arc_endpoints,
    fit_circle_through,
    radial_deviations,
)


def _random_polyline(rng: np.random.Generator) -> Polyline:
    """Smooth random walk with jitter, mixing straight and curved stretches."""
    count = int(rng.integers(2, 60))
    heading = rng.uniform(0.0, 2 * math.pi)
    turn = 0.0
    x, y = rng.uniform(-50.0, 50.0, size=2)
    points = [(x, y)]

    for _ in range(count - 1):
        if rng.random() < 0.15:
            turn = rng.choice([0.0, rng.uniform(-0.4, 0.4)])
        heading += turn
        step = rng.uniform(0.2, 2.0)
        x += step * math.cos(heading) + rng.normal(0.0, 0.01)
        y += step * math.sin(heading) + rng.normal(0.0, 0.01)
        points.append((x, y))

    return Polyline(points=tuple(points))


def _drawn_path(result: FitResult) -> List[Tuple[Point, Point]]:
    """Start and end of each primitive as it would be drawn."""
    path = []
    for primitive in result.primitives:
        if primitive.kind == PrimitiveKind.ARC:
            path.append(arc_endpoints(primitive))
        else:
            path.append((primitive.start_point, primitive.end_point))
    return path


def _assert_drawn_path_connects(polyline: Polyline, result: FitResult) -> None:
    path = _drawn_path(result)
    if result.primitives[0].kind != PrimitiveKind.CIRCLE:
        assert path[0][0].distance_to(polyline.points[0]) < 1e-9
        assert path[-1][1].distance_to(polyline.points[-1]) < 1e-9
    for (_, end), (start, _) in zip(path, path[1:]):
        assert end.distance_to(start) < 1e-9


class TestFitSpecialCases:
    """Test the canonical fitting scenarios."""

    def test_two_point_polyline(self) -> None:
        """Test that a single segment is returned unchanged."""
        polyline = Polyline(points=((0.0, 0.0), (3.0, 4.0)))
        result = fit(polyline, 0.01)

        assert result.primitives == [Segment(Point(0.0, 0.0), Point(3.0, 4.0))]
        assert result.spans == [(0, 1)]

    def test_closed_circle(self, circle_polyline) -> None:
        """Test that a closed 36-gon becomes one circle."""
        result = fit(circle_polyline, 0.01)

        assert len(result) == 1
        circle = result.primitives[0]
        assert circle.kind == PrimitiveKind.CIRCLE
        assert circle.center.x == pytest.approx(0.0, abs=1e-6)
        assert circle.center.y == pytest.approx(0.0, abs=1e-6)
        assert circle.radius == pytest.approx(10.0, abs=1e-6)
        assert result.spans == [(0, len(circle_polyline) - 1)]

    def test_closed_circle_with_rounded_closing_point(
        self, make_circle_points
    ) -> None:
        """Test a closing point that misses the first point by round-off."""
        points = make_circle_points(radius=10.0, count=36)
        points[-1] = (10.0, 5e-6)
        polyline = Polyline(points=tuple(points))
        assert polyline.is_closed

        result = fit(polyline, 0.01)

        assert [p.kind for p in result.primitives] == [PrimitiveKind.CIRCLE]
        assert result.primitives[0].radius == pytest.approx(10.0, abs=1e-6)
        assert result.spans == [(0, 36)]

    def test_collinear_points(self, collinear_polyline) -> None:
        """Test that collinear points become one line."""
        result = fit(collinear_polyline, 0.01)

        assert len(result) == 1
        assert result.primitives[0].kind == PrimitiveKind.LINE
        assert result.start_point == collinear_polyline.points[0]
        assert result.end_point == collinear_polyline.points[-1]

    def test_noisy_arc_within_tolerance(self, noisy_arc_polyline) -> None:
        """Test that noise below the tolerance still gives one arc."""
        result = fit(noisy_arc_polyline, 0.1)

        assert len(result) == 1
        arc = result.primitives[0]
        assert arc.kind == PrimitiveKind.ARC
        assert arc.direction == Direction.CCW
        assert arc.radius == pytest.approx(5.0, abs=0.1)
        assert arc.sweep_angle == pytest.approx(90.0, abs=1.0)

    def test_noisy_arc_tight_tolerance(self, noisy_arc_polyline) -> None:
        """Test that noise above the tolerance splits the arc."""
        result = fit(noisy_arc_polyline, 0.01)

        assert len(result) > 1
        assert FitValidator(0.01).validate(noisy_arc_polyline, result).is_valid

    def test_loose_tolerance_arc(self, noisy_arc_polyline) -> None:
        """Test that a large tolerance prefers the arc over a chord."""
        result = fit(noisy_arc_polyline, 1.0)

        assert len(result) == 1
        assert result.primitives[0].kind == PrimitiveKind.ARC

    def test_clockwise_arc(self, make_arc_points) -> None:
        """Test arc direction for a path travelling clockwise."""
        points = list(reversed(make_arc_points(radius=5.0, end_deg=120.0)))
        result = fit(Polyline(points=tuple(points)), 0.01)

        assert len(result) == 1
        arc = result.primitives[0]
        assert arc.direction == Direction.CW
        assert arc.start_point == Point(*points[0])
        assert arc.end_point == Point(*points[-1])
        assert arc.sweep_angle == pytest.approx(120.0)


class TestArcGeometry:
    """Test that emitted arcs are drawn through the points they replace."""

    @pytest.fixture
    def noisy_end_polyline(self) -> Polyline:
        """Quarter arc of radius 5 with every point, ends included, off by 0.05."""
        points = []
        for i in range(19):
            angle = math.radians(5.0 * i)
            r = 5.05 if i % 2 == 0 else 4.95
            points.append((r * math.cos(angle), r * math.sin(angle)))
        return Polyline(points=tuple(points))

    def test_arc_passes_through_noisy_end_points(self, noisy_end_polyline) -> None:
        """Test that center, radius and angles reproduce the stored end points."""
        result = fit(noisy_end_polyline, 0.1)
        arcs = [p for p in result.primitives if p.kind == PrimitiveKind.ARC]

        assert arcs
        for arc in arcs:
            start, end = arc_endpoints(arc)
            assert start.distance_to(arc.start_point) < 1e-9
            assert end.distance_to(arc.end_point) < 1e-9
        _assert_drawn_path_connects(noisy_end_polyline, result)

    def test_tight_tolerance_arcs_connect(self, noisy_end_polyline) -> None:
        """Test that a chain of short arcs has no gaps between them."""
        result = fit(noisy_end_polyline, 0.01)

        assert result.count(PrimitiveKind.ARC) > 1
        _assert_drawn_path_connects(noisy_end_polyline, result)
        assert FitValidator(0.01).validate(noisy_end_polyline, result).is_valid


class TestFitBoundaries:
    """Test inclusive tolerance and rejection rules."""

    @pytest.fixture
    def bumped_arc(self) -> Polyline:
        """Radius 10 arc over 30 degrees with interior points pushed out and in."""
        radii = (10.0, 10.05, 9.95, 10.0)
        angles = [math.radians(10.0 * i) for i in range(len(radii))]
        points = [(r * math.cos(a), r * math.sin(a)) for r, a in zip(radii, angles)]
        return Polyline(points=tuple(points))

    def test_point_exactly_at_tolerance(self) -> None:
        """Test that a deviation equal to the tolerance is accepted."""
        polyline = Polyline(points=((0.0, 0.0), (1.0, 0.5), (2.0, 0.0)))
        result = fit(polyline, 0.5)

        assert len(result) == 1
        assert result.primitives[0].kind == PrimitiveKind.LINE

    def test_point_just_beyond_tolerance(self) -> None:
        """Test that a slightly larger deviation splits the line."""
        polyline = Polyline(points=((0.0, 0.0), (1.0, 0.5000001), (2.0, 0.0)))
        result = fit(polyline, 0.5)

        assert [p.kind for p in result.primitives] == [
            PrimitiveKind.LINE,
            PrimitiveKind.LINE,
        ]
        assert result.spans == [(0, 1), (1, 2)]

    def test_arc_point_exactly_at_tolerance(self, bumped_arc) -> None:
        """Test that a point exactly at the tolerance from the circle is accepted."""
        pts = np.array(bumped_arc.points, dtype=float)
        circle = fit_circle_through(pts)
        tolerance = float(np.max(radial_deviations(pts, circle.center, circle.radius)))

        result = ArcFitter(FitSettings(tolerance=tolerance)).fit(bumped_arc)

        assert [p.kind for p in result.primitives] == [PrimitiveKind.ARC]
        assert result.primitives[0].center == circle.center
        assert result.primitives[0].radius == circle.radius

    def test_arc_point_beyond_tolerance(self, bumped_arc) -> None:
        """Test that the bumped points split the arc when the tolerance is smaller."""
        result = fit(bumped_arc, 0.025)

        assert [p.kind for p in result.primitives] == [
            PrimitiveKind.ARC,
            PrimitiveKind.LINE,
        ]
        assert result.spans == [(0, 2), (2, 3)]

    def test_sharp_corner_is_not_an_arc(self) -> None:
        """Test that a right-angle corner stays two lines."""
        polyline = Polyline(
            points=((0, 0), (1, 0), (2, 0), (3, 0), (3, 1), (3, 2), (3, 3))
        )
        result = fit(polyline, 0.01)

        assert result.count(PrimitiveKind.ARC) == 0
        assert result.count(PrimitiveKind.LINE) == 2
        assert result.spans == [(0, 3), (3, 6)]

    def test_closed_square_is_not_a_circle(self) -> None:
        """Test that a closed square keeps its four sides."""
        polyline = Polyline(points=((0, 0), (2, 0), (2, 2), (0, 2), (0, 0)))
        result = fit(polyline, 0.01)

        assert result.count(PrimitiveKind.CIRCLE) == 0
        assert len(result) == 4

    def test_shallow_arc_rolls_back_to_lines(self, make_arc_points) -> None:
        """Test that arcs below the minimum sweep are emitted as lines."""
        points = make_arc_points(radius=1000.0, end_deg=0.3, step_deg=0.1)
        polyline = Polyline(points=tuple(points))
        # Tolerance below the sagitta so the chord fails but the arc fits
        settings = FitSettings(tolerance=1e-5)
        result = ArcFitter(settings).fit(polyline)

        assert result.count(PrimitiveKind.ARC) == 0
        assert result.spans == [(0, 1), (1, 2), (2, 3)]
        assert FitValidator(settings.tolerance).validate(polyline, result).is_valid

    def test_open_loop_is_not_one_arc(self, make_circle_points) -> None:
        """Test that a full turn inside an open path is split before it closes."""
        points = make_circle_points(radius=10.0, count=36) + [(10.0, -5.0)]
        polyline = Polyline(points=tuple(points))

        result = fit(polyline, 0.01)

        assert result.count(PrimitiveKind.CIRCLE) == 0
        assert result.spans[0] == (0, 35)
        assert result.primitives[0].kind == PrimitiveKind.ARC
        assert FitValidator(0.01).validate(polyline, result).is_valid

    def test_large_radius_rejected(self, make_arc_points) -> None:
        """Test the maximum radius constraint."""
        points = make_arc_points(radius=50.0, end_deg=60.0, step_deg=5.0)
        polyline = Polyline(points=tuple(points))

        result = ArcFitter(FitSettings(tolerance=0.001, max_radius=10.0)).fit(polyline)

        assert result.count(PrimitiveKind.ARC) == 0

    def test_check_chords(self, make_circle_points) -> None:
        """Test that chord checking rejects coarse polygons."""
        polyline = Polyline(points=tuple(make_circle_points(radius=10.0, count=36)))

        coarse = ArcFitter(FitSettings(tolerance=0.01, check_chords=True)).fit(polyline)
        assert coarse.count(PrimitiveKind.CIRCLE) == 0
        assert coarse.count(PrimitiveKind.ARC) == 0

        loose = ArcFitter(FitSettings(tolerance=0.05, check_chords=True)).fit(polyline)
        assert loose.count(PrimitiveKind.CIRCLE) == 1

    def test_invalid_tolerance(self, collinear_polyline) -> None:
        """Test that a non-positive tolerance is a configuration error."""
        with pytest.raises(ConfigurationError):
            fit(collinear_polyline, 0.0)
        with pytest.raises(ConfigurationError):
            fit(collinear_polyline, -1.0)


class TestFitProperties:
    """Test invariants over many inputs."""

    def test_attributes_are_carried(self) -> None:
        """Test that the polyline's attribute bag reaches the result."""
        polyline = Polyline(
            points=((0, 0), (1, 0), (2, 0)), attributes={"layer": "A", "color": 2}
        )
        assert fit(polyline, 0.1).attributes == {"layer": "A", "color": 2}

    def test_deterministic(self, noisy_arc_polyline) -> None:
        """Test that repeated fits give identical results."""
        first = fit(noisy_arc_polyline, 0.02)
        second = fit(noisy_arc_polyline, 0.02)

        assert first.primitives == second.primitives
        assert first.spans == second.spans

    def test_random_polylines_stay_within_tolerance(self) -> None:
        """Test tolerance bound, coverage and endpoints on random input."""
        rng = np.random.default_rng(20240611)

        for _ in range(150):
            polyline = _random_polyline(rng)
            tolerance = float(rng.choice([0.005, 0.02, 0.1, 0.5]))
            result = fit(polyline, tolerance)

            validation = FitValidator(tolerance).validate(polyline, result)
            assert validation.is_valid, validation.issues
            assert result.start_point == polyline.points[0]
            assert result.end_point == polyline.points[-1]
            assert len(result) <= len(polyline) - 1
            _assert_drawn_path_connects(polyline, result)

    def test_random_polylines_monotonic_tolerance(self) -> None:
        """Test that loosening the tolerance never adds primitives."""
        rng = np.random.default_rng(20240611)
        tolerances = (0.005, 0.02, 0.1, 0.5)

        for _ in range(150):
            polyline = _random_polyline(rng)
            counts = [len(fit(polyline, tolerance)) for tolerance in tolerances]
            assert counts == sorted(counts, reverse=True), (polyline.points, counts)
