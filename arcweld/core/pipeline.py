"""Complete weld pipeline: read, fit, validate and re-emit a drawing."""

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..geometry import ArcFitter, FitValidator, ValidationResult
from ..io import DXFReader, DXFWriter
from .models import FitResult, FitSettings, Polyline, PrimitiveKind

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Complete result of a weld pipeline run."""

    # Input information
    input_file: str
    output_file: str
    settings: FitSettings

    # Processing results
    polylines: List[Polyline]
    fit_results: List[FitResult]
    validation_results: List[ValidationResult]

    # Overall status
    summary: Dict[str, Any]


class WeldPipeline:
    """Replace line-segment paths of a DXF drawing with lines, arcs and circles."""

    def __init__(
        self,
        settings: FitSettings,
        workers: int = 1,
        layer_name: Optional[str] = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            settings: Fitting settings shared by every polyline
            workers: Number of worker processes (1 fits serially)
            layer_name: Only weld paths on this layer (None for all layers)
        """
        if workers < 1:
            raise ValueError("Number of workers must be at least 1")

        self.settings = settings
        self.workers = workers
        self.layer_name = layer_name
        self.fitter = ArcFitter(settings)
        self.validator = FitValidator(settings.tolerance)

    def fit_polylines(self, polylines: List[Polyline]) -> List[FitResult]:
        """Fit polylines, returning results in input order.

        Args:
            polylines: Polylines to fit

        Returns:
            One FitResult per polyline
        """
        if self.workers == 1 or len(polylines) < 2:
            return [self.fitter.fit(polyline) for polyline in polylines]

        logger.info(f"Fitting {len(polylines)} polylines on {self.workers} workers")
        with ProcessPoolExecutor(max_workers=self.workers) as executor:
            return list(executor.map(self.fitter.fit, polylines))

    def validate_results(
        self, polylines: List[Polyline], results: List[FitResult]
    ) -> List[ValidationResult]:
        """Check every result against its polyline.

        Raises:
            FitInvariantError: If any result breaks its invariants
        """
        return [
            self.validator.check(polyline, result)
            for polyline, result in zip(polylines, results)
        ]

    def run(self, input_file: Path, output_file: Path) -> PipelineResult:
        """Run the complete weld pipeline.

        Args:
            input_file: Path to DXF input file
            output_file: Path of the rewritten DXF file

        Returns:
            Complete pipeline results

        Raises:
            ValueError: If the DXF file cannot be read or written
            FitInvariantError: If a fit result is invalid
        """
        started = time.perf_counter()

        # Step 1: Load DXF file and extract paths
        reader = DXFReader(Path(input_file))
        reader.load()
        polylines = reader.extract_polylines(self.layer_name)

        # Step 2: Fit
        results = self.fit_polylines(polylines)

        # Step 3: Validate before anything is written
        validations = self.validate_results(polylines, results)

        # Step 4: Replace source entities in the loaded document
        writer = DXFWriter(reader.doc)
        writer.remove_source_entities(polylines)
        writer.write_fit_results(results)
        writer.save(Path(output_file))

        elapsed = time.perf_counter() - started
        summary = self._generate_summary(polylines, results, validations, elapsed)
        logger.info(
            f"Welded {summary['input_segments']} segments into "
            f"{summary['output_primitives']} primitives in {elapsed:.2f}s"
        )

        return PipelineResult(
            input_file=str(input_file),
            output_file=str(output_file),
            settings=self.settings,
            polylines=polylines,
            fit_results=results,
            validation_results=validations,
            summary=summary,
        )

    def _generate_summary(
        self,
        polylines: List[Polyline],
        results: List[FitResult],
        validations: List[ValidationResult],
        elapsed: float,
    ) -> Dict[str, Any]:
        """Generate run summary."""
        input_segments = sum(len(polyline) - 1 for polyline in polylines)
        lines = sum(result.count(PrimitiveKind.LINE) for result in results)
        arcs = sum(result.count(PrimitiveKind.ARC) for result in results)
        circles = sum(result.count(PrimitiveKind.CIRCLE) for result in results)
        output_primitives = lines + arcs + circles

        return {
            "polyline_count": len(polylines),
            "closed_polylines": sum(1 for p in polylines if p.is_closed),
            "input_segments": input_segments,
            "output_primitives": output_primitives,
            "output_lines": lines,
            "output_arcs": arcs,
            "output_circles": circles,
            "reduction_ratio": (
                1.0 - output_primitives / input_segments if input_segments else 0.0
            ),
            "max_deviation": max(
                (validation.max_deviation for validation in validations), default=0.0
            ),
            "elapsed_seconds": elapsed,
        }


class WeldReporter:
    """Generate reports from pipeline results."""

    @staticmethod
    def generate_text_report(result: PipelineResult) -> str:
        """Generate human-readable text report."""
        summary = result.summary
        lines = []

        # Header
        lines.append("=" * 60)
        lines.append("ARC WELD REPORT")
        lines.append("=" * 60)
        lines.append(f"Input: {result.input_file}")
        lines.append(f"Output: {result.output_file}")
        lines.append(f"Tolerance: {result.settings.tolerance:g}")
        lines.append("")

        # Input
        lines.append("INPUT:")
        lines.append(f"  Polylines: {summary['polyline_count']}")
        lines.append(f"    - Closed: {summary['closed_polylines']}")
        lines.append(f"  Segments: {summary['input_segments']}")
        lines.append("")

        # Output
        lines.append("OUTPUT:")
        lines.append(f"  Primitives: {summary['output_primitives']}")
        lines.append(f"    - Lines: {summary['output_lines']}")
        lines.append(f"    - Arcs: {summary['output_arcs']}")
        lines.append(f"    - Circles: {summary['output_circles']}")
        lines.append(f"  Reduction: {summary['reduction_ratio'] * 100:.1f}%")
        lines.append(f"  Max deviation: {summary['max_deviation']:.6g}")
        lines.append("")

        # Validation
        warnings = sum(v.total_warnings for v in result.validation_results)
        lines.append(
            f"VALIDATION: ✓ {len(result.validation_results)} polylines within tolerance"
        )
        if warnings:
            lines.append(f"  Warnings: {warnings}")
        lines.append("")

        lines.append(f"Elapsed: {summary['elapsed_seconds']:.2f}s")
        lines.append("=" * 60)

        return "\n".join(lines)
