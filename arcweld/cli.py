"""Command-line interface for arcweld."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .config import DEFAULT_TOLERANCE, FIT_DEFAULTS
from .core.models import ConfigurationError, FitSettings
from .core.pipeline import WeldPipeline, WeldReporter
from .io import DXFReader
from .reporting import JSONReporter


def _positive_tolerance(
    ctx: click.Context, param: click.Parameter, value: float
) -> float:
    if not value > 0:
        raise click.BadParameter(f"tolerance must be positive, got {value}")
    return value


def _build_settings(**kwargs: Any) -> FitSettings:
    try:
        return FitSettings(**kwargs)
    except ConfigurationError as e:
        raise click.UsageError(str(e))


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose", "-v", count=True, help="Verbose output (-vv for debug detail)"
)
def main(verbose: int) -> None:
    """Arcweld - Replace line-segment paths in DXF drawings with arcs and circles."""
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_file", type=click.Path(dir_okay=False))
@click.option(
    "--tolerance",
    type=float,
    default=DEFAULT_TOLERANCE,
    callback=_positive_tolerance,
    help="Maximum deviation of any original point (drawing units)",
)
@click.option(
    "--max-radius",
    type=float,
    default=FIT_DEFAULTS["max_radius"],
    help="Largest radius accepted for an arc",
)
@click.option(
    "--min-arc-angle",
    type=float,
    default=FIT_DEFAULTS["min_arc_angle"],
    help="Smallest arc sweep emitted as an arc (degrees)",
)
@click.option(
    "--max-step-angle",
    type=float,
    default=FIT_DEFAULTS["max_step_angle"],
    help="Largest angle between consecutive arc points (degrees)",
)
@click.option(
    "--check-chords", is_flag=True, help="Also bound chord midpoints by the tolerance"
)
@click.option("--layer", type=str, help="Only weld paths on this layer")
@click.option("--workers", type=click.IntRange(min=1), default=1, help="Worker processes")
@click.option("--report", type=click.Path(dir_okay=False), help="Write report to file")
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Report format",
)
def weld(
    input_file: str,
    output_file: str,
    tolerance: float,
    max_radius: float,
    min_arc_angle: float,
    max_step_angle: float,
    check_chords: bool,
    layer: Optional[str],
    workers: int,
    report: Optional[str],
    format: str,
) -> None:
    """Fit line-segment paths of INPUT_FILE and write OUTPUT_FILE."""
    settings = _build_settings(
        tolerance=tolerance,
        max_radius=max_radius,
        min_arc_angle=min_arc_angle,
        max_step_angle=max_step_angle,
        check_chords=check_chords,
    )

    try:
        pipeline = WeldPipeline(settings, workers=workers, layer_name=layer)
        result = pipeline.run(Path(input_file), Path(output_file))

        click.echo(WeldReporter.generate_text_report(result))
        click.echo(f"✓ Welded drawing saved to: {output_file}")

        if report:
            report_path = Path(report)
            report_path.parent.mkdir(parents=True, exist_ok=True)

            if format == "json":
                JSONReporter().generate_weld_report(result, report_path)
            else:
                report_path.write_text(
                    WeldReporter.generate_text_report(result), encoding="utf-8"
                )

            click.echo(f"✓ Report saved to: {report_path}")

    except Exception as e:
        click.echo(f"✗ Weld failed: {e}")
        raise click.ClickException("Failed to weld drawing")


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
def inspect(input_file: str) -> None:
    """Show the paths a weld run would pick up from INPUT_FILE."""
    try:
        reader = DXFReader(Path(input_file))
        reader.load()
        summary = reader.get_summary()

        click.echo(f"✓ Loaded: {summary['file_path']}")
        click.echo(f"  DXF version: {summary['dxf_version']}")
        click.echo(f"  Layers: {', '.join(summary['layers'])}")
        click.echo("  Entities:")
        for dxftype, count in sorted(summary["entity_counts"].items()):
            click.echo(f"    - {dxftype}: {count}")
        click.echo(
            f"  Polylines: {summary['polyline_count']} "
            f"({summary['closed_polylines']} closed, {summary['total_points']} points)"
        )

    except Exception as e:
        click.echo(f"✗ Inspection failed: {e}")
        raise click.ClickException("Failed to inspect DXF file")


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("image_file", type=click.Path(dir_okay=False))
@click.option(
    "--tolerance",
    type=float,
    default=DEFAULT_TOLERANCE,
    callback=_positive_tolerance,
    help="Maximum deviation of any original point (drawing units)",
)
@click.option("--layer", type=str, help="Only plot paths on this layer")
def plot(
    input_file: str, image_file: str, tolerance: float, layer: Optional[str]
) -> None:
    """Fit INPUT_FILE and save an overlay plot to IMAGE_FILE."""
    settings = _build_settings(tolerance=tolerance)

    try:
        import matplotlib.pyplot as plt

        from .visualization import FitPlotter

        reader = DXFReader(Path(input_file))
        reader.load()
        polylines = reader.extract_polylines(layer)
        results = WeldPipeline(settings).fit_polylines(polylines)

        plotter = FitPlotter()
        fig, _ = plotter.plot_fit(polylines, results, title=Path(input_file).name)
        plotter.save(fig, Path(image_file))
        plt.close(fig)

        click.echo(f"✓ Plot saved to: {image_file}")

    except Exception as e:
        click.echo(f"✗ Plot failed: {e}")
        raise click.ClickException("Failed to plot drawing")


if __name__ == "__main__":
    main()
