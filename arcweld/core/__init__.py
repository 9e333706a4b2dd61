"""Core module for arc welding."""

from .models import (
    Arc,
    Circle,
    ConfigurationError,
    Direction,
    FitResult,
    FitSettings,
    Point,
    Polyline,
    Primitive,
    PrimitiveKind,
    Segment,
)

__all__ = [
    "Point",
    "Segment",
    "Arc",
    "Circle",
    "Primitive",
    "PrimitiveKind",
    "Direction",
    "Polyline",
    "FitResult",
    "FitSettings",
    "ConfigurationError",
]
