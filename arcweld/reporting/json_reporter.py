"""JSON report generation for weld runs."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from .. import __version__
from ..core.models import FitResult, Primitive, PrimitiveKind
from ..core.pipeline import PipelineResult


def _point(point: Any) -> Dict[str, float]:
    return {"x": round(point[0], 6), "y": round(point[1], 6)}


class JSONReporter:
    """Generate structured JSON reports for weld runs."""

    def __init__(self, indent: int = 2) -> None:
        """Initialize JSON reporter.

        Args:
            indent: JSON indentation for readable output
        """
        self.indent = indent

    def generate_weld_report(self, result: PipelineResult, output_path: Path) -> None:
        """Generate comprehensive JSON report.

        Args:
            result: Pipeline run to report
            output_path: Output JSON file path
        """
        report = self.build_report(result)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=self.indent, ensure_ascii=False)

    def build_report(self, result: PipelineResult) -> Dict[str, Any]:
        """Build the report as a JSON-serialisable dictionary."""
        return {
            "metadata": {
                "input_file": result.input_file,
                "output_file": result.output_file,
                "analysis_date": datetime.now().isoformat(),
                "generator": "arcweld",
                "version": __version__,
                "settings": result.settings.to_dict(),
            },
            "summary": result.summary,
            "polylines": self._build_polylines_data(result),
        }

    def _build_polylines_data(self, result: PipelineResult) -> List[Dict[str, Any]]:
        """Build one record per fitted polyline."""
        records = []

        for index, (polyline, fit_result, validation) in enumerate(
            zip(result.polylines, result.fit_results, result.validation_results)
        ):
            records.append(
                {
                    "index": index,
                    "layer": polyline.layer,
                    "source_handles": list(polyline.source_handles),
                    "point_count": len(polyline),
                    "closed": polyline.is_closed,
                    "primitive_count": {
                        kind.value: fit_result.count(kind) for kind in PrimitiveKind
                    },
                    "max_deviation": validation.max_deviation,
                    "original_length": round(polyline.length(), 6),
                    "fitted_length": round(fit_result.length(), 6),
                    "primitives": self._build_geometry_data(fit_result),
                }
            )

        return records

    def _build_geometry_data(self, fit_result: FitResult) -> List[Dict[str, Any]]:
        """Build detailed primitive geometry."""
        return [
            dict(
                self._primitive_data(primitive),
                first_point=first,
                last_point=last,
            )
            for primitive, (first, last) in zip(fit_result.primitives, fit_result.spans)
        ]

    @staticmethod
    def _primitive_data(primitive: Primitive) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": primitive.kind.value,
            "start_point": _point(primitive.start_point),
            "end_point": _point(primitive.end_point),
            "length": round(primitive.length(), 6),
        }

        if primitive.kind == PrimitiveKind.ARC:
            data.update(
                {
                    "center": _point(primitive.center),
                    "radius": round(primitive.radius, 6),
                    "start_angle_deg": round(primitive.start_angle, 4),
                    "end_angle_deg": round(primitive.end_angle, 4),
                    "sweep_angle_deg": round(primitive.sweep_angle, 4),
                    "direction": primitive.direction.value,
                }
            )
        elif primitive.kind == PrimitiveKind.CIRCLE:
            data.update(
                {
                    "center": _point(primitive.center),
                    "radius": round(primitive.radius, 6),
                }
            )

        return data


def generate_json_report(
    result: PipelineResult, output_path: Path, indent: int = 2
) -> None:
    """Convenience function to generate a JSON report.

    Args:
        result: Pipeline run to report
        output_path: Output file path
        indent: JSON indentation
    """
    JSONReporter(indent=indent).generate_weld_report(result, output_path)
