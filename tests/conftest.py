"""Pytest configuration and fixtures."""

import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import ezdxf
import matplotlib
import pytest

from arcweld.core.models import FitSettings, Polyline

matplotlib.use("Agg")

Coordinates = List[Tuple[float, float]]


def circle_points(
    radius: float = 10.0,
    count: int = 36,
    center: Tuple[float, float] = (0.0, 0.0),
) -> Coordinates:
    """Return count points on a circle plus the first point again."""
    points = [
        (
            center[0] + radius * math.cos(2 * math.pi * i / count),
            center[1] + radius * math.sin(2 * math.pi * i / count),
        )
        for i in range(count)
    ]
    return points + [points[0]]


def arc_points(
    radius: float = 5.0,
    start_deg: float = 0.0,
    end_deg: float = 90.0,
    step_deg: float = 5.0,
    noise: float = 0.0,
    center: Tuple[float, float] = (0.0, 0.0),
) -> Coordinates:
    """Return points along an arc.

    Interior points are alternately pushed in and out by noise; the two end
    points stay on the arc.
    """
    count = int(round((end_deg - start_deg) / step_deg))
    points = []
    for i in range(count + 1):
        angle = math.radians(start_deg + i * (end_deg - start_deg) / count)
        if i in (0, count):
            r = radius
        else:
            r = radius + (noise if i % 2 == 0 else -noise)
        points.append((center[0] + r * math.cos(angle), center[1] + r * math.sin(angle)))
    return points


def line_points(
    start: Tuple[float, float] = (0.0, 0.0),
    end: Tuple[float, float] = (19.0, 9.5),
    count: int = 20,
) -> Coordinates:
    """Return count evenly spaced collinear points."""
    return [
        (
            start[0] + (end[0] - start[0]) * i / (count - 1),
            start[1] + (end[1] - start[1]) * i / (count - 1),
        )
        for i in range(count)
    ]


@pytest.fixture
def circle_polyline() -> Polyline:
    """Closed 36-gon approximating a circle of radius 10 at the origin."""
    return Polyline(points=tuple(circle_points()))


@pytest.fixture
def noisy_arc_polyline() -> Polyline:
    """Quarter arc of radius 5 with radial noise of 0.05."""
    return Polyline(points=tuple(arc_points(noise=0.05)))


@pytest.fixture
def collinear_polyline() -> Polyline:
    """Twenty points on a straight line."""
    return Polyline(points=tuple(line_points()))


@pytest.fixture
def default_settings() -> FitSettings:
    """Return fit settings with a tolerance of 0.01."""
    return FitSettings(tolerance=0.01)


class DrawingFactory:
    """Build small DXF drawings inside a temporary directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.doc = ezdxf.new("R2010")
        self.msp = self.doc.modelspace()

    def add_lines(
        self, points: Sequence[Tuple[float, float]], dxfattribs: Optional[Dict[str, Any]] = None
    ) -> List[str]:
        """Add one LINE per consecutive pair of points and return their handles."""
        handles = []
        for start, end in zip(points, points[1:]):
            line = self.msp.add_line(start, end, dxfattribs=dict(dxfattribs or {}))
            handles.append(line.dxf.handle)
        return handles

    def add_lwpolyline(
        self,
        points: Sequence[Tuple[float, float]],
        close: bool = False,
        dxfattribs: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Add an LWPOLYLINE and return its handle."""
        polyline = self.msp.add_lwpolyline(
            points, close=close, dxfattribs=dict(dxfattribs or {})
        )
        return polyline.dxf.handle

    def save(self, name: str = "drawing.dxf") -> Path:
        """Save the drawing and return its path."""
        path = self.directory / name
        self.doc.saveas(path)
        return path


@pytest.fixture
def drawing_factory(tmp_path: Path) -> DrawingFactory:
    """Return a factory writing DXF drawings into tmp_path."""
    return DrawingFactory(tmp_path)


@pytest.fixture
def sample_dxf_path(drawing_factory: DrawingFactory) -> Path:
    """Drawing with a circle, a noisy arc, a straight run and a text entity."""
    drawing_factory.doc.layers.add("CURVES", color=1)
    drawing_factory.add_lwpolyline(
        circle_points()[:-1], close=True, dxfattribs={"layer": "CURVES"}
    )
    drawing_factory.add_lines(
        arc_points(noise=0.05, center=(30.0, 0.0)),
        dxfattribs={"layer": "CURVES", "color": 3},
    )
    drawing_factory.add_lwpolyline(line_points(start=(0.0, -20.0), end=(19.0, -20.0)))
    drawing_factory.msp.add_text("untouched", dxfattribs={"insert": (0.0, 20.0)})
    return drawing_factory.save("sample.dxf")


@pytest.fixture
def make_circle_points():
    """Return the circle point generator."""
    return circle_points


@pytest.fixture
def make_arc_points():
    """Return the arc point generator."""
    return arc_points


@pytest.fixture
def make_line_points():
    """Return the straight line point generator."""
    return line_points
