"""Geometry math and arc fitting for line drawings."""

from .fitter import ArcFitter, fit
from .primitives import DegenerateFitError, FittedCircle, fit_circle
from .validator import FitInvariantError, FitValidator, ValidationResult

__all__ = [
    "ArcFitter",
    "fit",
    "fit_circle",
    "FittedCircle",
    "DegenerateFitError",
    "FitValidator",
    "FitInvariantError",
    "ValidationResult",
]
