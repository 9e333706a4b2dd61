"""Overlay plots of original polylines and their fitted primitives."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import matplotlib.patches as patches
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from ..core.models import Direction, FitResult, Polyline, Primitive, PrimitiveKind

logger = logging.getLogger(__name__)


class FitPlotter:
    """Plotter comparing original polylines with the welded result."""

    def __init__(self, figsize: Tuple[float, float] = (11.69, 8.27)):
        """Initialize plotter.

        Args:
            figsize: Figure size in inches (width, height)
                     Default is A4 landscape (11.69" x 8.27")
        """
        self.figsize = figsize
        self.colors = {
            "original": "#2E86AB",  # Blue
            "vertices": "#333333",  # Dark gray
            "line": "#F18F01",  # Orange
            "arc": "#C73E1D",  # Red
            "circle": "#A23B72",  # Purple
        }

    def create_figure(self) -> Tuple[Figure, Axes]:
        """Create matplotlib figure and axes."""
        fig, ax = plt.subplots(figsize=self.figsize)
        ax.set_aspect("equal")
        ax.grid(True, alpha=0.3)
        ax.set_xlabel("X", fontsize=12)
        ax.set_ylabel("Y", fontsize=12)
        return fig, ax

    def plot_polyline(self, ax: Axes, polyline: Polyline, label: Optional[str] = None) -> None:
        """Plot an original polyline faintly, with its vertices."""
        x_coords = [p.x for p in polyline.points]
        y_coords = [p.y for p in polyline.points]

        ax.plot(
            x_coords,
            y_coords,
            color=self.colors["original"],
            linewidth=1.0,
            alpha=0.4,
            label=label,
        )
        ax.scatter(x_coords, y_coords, s=6, color=self.colors["vertices"], alpha=0.4)

    def plot_primitive(self, ax: Axes, primitive: Primitive, label: Optional[str] = None) -> None:
        """Plot one fitted primitive."""
        color = self.colors[primitive.kind.value]

        if primitive.kind == PrimitiveKind.LINE:
            ax.plot(
                [primitive.start.x, primitive.end.x],
                [primitive.start.y, primitive.end.y],
                color=color,
                linewidth=2.0,
                label=label,
            )
            return

        if primitive.kind == PrimitiveKind.CIRCLE:
            patch = patches.Circle(
                primitive.center,
                primitive.radius,
                fill=False,
                color=color,
                linewidth=2.0,
                label=label,
            )
        else:
            # matplotlib draws arcs counter-clockwise from theta1 to theta2
            theta1, theta2 = primitive.start_angle, primitive.end_angle
            if primitive.direction == Direction.CW:
                theta1, theta2 = theta2, theta1
            patch = patches.Arc(
                primitive.center,
                2 * primitive.radius,
                2 * primitive.radius,
                angle=0,
                theta1=theta1,
                theta2=theta2,
                color=color,
                linewidth=2.0,
                label=label,
            )
        ax.add_patch(patch)

    def plot_fit(
        self,
        polylines: Sequence[Polyline],
        results: Sequence[FitResult],
        title: Optional[str] = None,
    ) -> Tuple[Figure, Axes]:
        """Plot original polylines overlaid with their fitted primitives.

        Args:
            polylines: Original polylines
            results: Fit results, one per polyline
            title: Plot title

        Returns:
            Tuple of (figure, axes)
        """
        if len(polylines) != len(results):
            raise ValueError("Need exactly one fit result per polyline")

        fig, ax = self.create_figure()

        for i, polyline in enumerate(polylines):
            self.plot_polyline(ax, polyline, label="Original" if i == 0 else None)

        labelled: List[PrimitiveKind] = []
        for result in results:
            for primitive in result.primitives:
                label = None
                if primitive.kind not in labelled:
                    labelled.append(primitive.kind)
                    label = primitive.kind.value.capitalize()
                self.plot_primitive(ax, primitive, label=label)

        ax.autoscale_view()

        if title is None:
            title = f"Fitted paths: {len(polylines)}"
        ax.set_title(title, fontsize=14, fontweight="bold")

        handles, _ = ax.get_legend_handles_labels()
        if handles:
            ax.legend(loc="upper right", fontsize=10)

        segments = sum(len(p) - 1 for p in polylines)
        primitives = sum(len(r) for r in results)
        ax.text(
            0.02,
            0.98,
            f"Segments: {segments}\nPrimitives: {primitives}",
            transform=ax.transAxes,
            fontsize=10,
            verticalalignment="top",
            bbox=dict(boxstyle="round,pad=0.3", facecolor="lightyellow", alpha=0.8),
        )

        fig.tight_layout()
        return fig, ax

    def save(self, fig: Figure, output_path: Path, dpi: int = 300) -> None:
        """Save plot to file; the format follows the file extension.

        Args:
            fig: Matplotlib figure
            output_path: Output file path
            dpi: Resolution for raster formats
        """
        fig.savefig(
            output_path,
            dpi=dpi,
            bbox_inches="tight",
            facecolor="white",
            edgecolor="none",
        )
        logger.info(f"Saved plot: {output_path}")
