"""DXF file writing functionality."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import ezdxf
from ezdxf.document import Drawing
from ezdxf.layouts import Modelspace

from ..config import DEFAULT_DXF_VERSION
from ..core.models import Direction, FitResult, Polyline, PrimitiveKind

logger = logging.getLogger(__name__)


class DXFWriter:
    """Re-emit fitted primitives as DXF entities."""

    def __init__(
        self,
        doc: Optional[Drawing] = None,
        dxf_version: str = DEFAULT_DXF_VERSION,
    ) -> None:
        """Initialize DXF writer.

        Args:
            doc: Document to rewrite in place (a new one is created if None)
            dxf_version: DXF version for a new document
        """
        self.doc = doc if doc is not None else ezdxf.new(dxf_version)
        self.msp: Modelspace = self.doc.modelspace()
        self.entities_written = 0

    def write_fit_result(self, result: FitResult) -> int:
        """Add one entity per primitive, each carrying the polyline's attributes.

        Args:
            result: Fitted primitives of one polyline

        Returns:
            Number of entities written
        """
        for primitive in result.primitives:
            dxfattribs = self._dxfattribs(result.attributes)

            if primitive.kind == PrimitiveKind.LINE:
                self.msp.add_line(
                    primitive.start, primitive.end, dxfattribs=dxfattribs
                )
            elif primitive.kind == PrimitiveKind.ARC:
                self.msp.add_arc(
                    center=primitive.center,
                    radius=primitive.radius,
                    start_angle=primitive.start_angle,
                    end_angle=primitive.end_angle,
                    is_counter_clockwise=primitive.direction == Direction.CCW,
                    dxfattribs=dxfattribs,
                )
            else:
                self.msp.add_circle(
                    center=primitive.center,
                    radius=primitive.radius,
                    dxfattribs=dxfattribs,
                )

        self.entities_written += len(result.primitives)
        return len(result.primitives)

    def write_fit_results(self, results: Iterable[FitResult]) -> None:
        """Write fit results in order.

        Args:
            results: Fit results in document order
        """
        total = sum(self.write_fit_result(result) for result in results)
        logger.info(f"Wrote {total} fitted entities")

    def remove_source_entities(self, polylines: Sequence[Polyline]) -> int:
        """Delete the entities the polylines were built from.

        Args:
            polylines: Extracted polylines whose sources were replaced

        Returns:
            Number of entities removed
        """
        removed = 0
        for polyline in polylines:
            for handle in polyline.source_handles:
                entity = self.doc.entitydb.get(handle)
                if entity is None or not entity.is_alive:
                    continue
                self.msp.delete_entity(entity)
                removed += 1

        logger.info(f"Removed {removed} source entities")
        return removed

    def save(self, file_path: Path) -> None:
        """Save DXF file to disk.

        Args:
            file_path: Output file path
        """
        try:
            self.doc.saveas(str(file_path))
            logger.info(f"Saved DXF file: {file_path}")
        except Exception as e:
            raise ValueError(f"Failed to save DXF file {file_path}: {e}")

    @staticmethod
    def _dxfattribs(attributes: Dict[str, Any]) -> Dict[str, Any]:
        # Each entity gets its own copy of the attribute bag
        return dict(attributes)


def export_fit_results(
    results: List[FitResult],
    file_path: Path,
    doc: Optional[Drawing] = None,
    replaced: Optional[Sequence[Polyline]] = None,
) -> DXFWriter:
    """Convenience function to export fit results to a DXF file.

    Args:
        results: Fit results in document order
        file_path: Output file path
        doc: Source document to rewrite in place (new document if None)
        replaced: Polylines whose source entities should be removed

    Returns:
        The writer used
    """
    writer = DXFWriter(doc)

    if replaced:
        writer.remove_source_entities(replaced)

    writer.write_fit_results(results)
    writer.save(file_path)
    return writer
