"""Arcweld - Replace line-segment paths in DXF drawings with lines, arcs and circles."""

__version__ = "0.1.0"

from .core.models import (
    Arc,
    Circle,
    ConfigurationError,
    Direction,
    FitResult,
    FitSettings,
    Point,
    Polyline,
    PrimitiveKind,
    Segment,
)
from .core.pipeline import PipelineResult, WeldPipeline, WeldReporter
from .geometry import ArcFitter, FitInvariantError, FitValidator, fit
from .io import load_polylines_from_dxf

__all__ = [
    "Point",
    "Segment",
    "Arc",
    "Circle",
    "Direction",
    "PrimitiveKind",
    "Polyline",
    "FitSettings",
    "FitResult",
    "ConfigurationError",
    "ArcFitter",
    "fit",
    "FitValidator",
    "FitInvariantError",
    "WeldPipeline",
    "WeldReporter",
    "PipelineResult",
    "load_polylines_from_dxf",
]
