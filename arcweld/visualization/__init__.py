"""Visualization of fitted drawings."""

from .fit_plotter import FitPlotter

__all__ = ["FitPlotter"]
