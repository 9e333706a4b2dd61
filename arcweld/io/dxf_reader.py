"""DXF file reading functionality."""

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import ezdxf
from ezdxf.entities import DXFGraphic

from ..config import PASSTHROUGH_ATTRIBUTES, SOURCE_ENTITY_TYPES
from ..core.models import Point, Polyline
from .polyline_parser import PolylineParser, SourceSegment

logger = logging.getLogger(__name__)


def get_passthrough_attributes(entity: DXFGraphic) -> Dict[str, Any]:
    """Collect the non-geometric attributes set on an entity."""
    return {
        name: entity.dxf.get(name)
        for name in PASSTHROUGH_ATTRIBUTES
        if entity.dxf.hasattr(name)
    }


class DXFReader:
    """DXF file reader extracting line-segment paths as polylines."""

    def __init__(self, file_path: Path, parser: Optional[PolylineParser] = None) -> None:
        """Initialize DXF reader.

        Args:
            file_path: Path to DXF file
            parser: Segment chainer (default precision if None)
        """
        self.file_path = file_path
        self.parser = parser or PolylineParser()
        self.doc: Optional[ezdxf.document.Drawing] = None

    def load(self) -> None:
        """Load DXF file."""
        try:
            self.doc = ezdxf.readfile(str(self.file_path))
            logger.info(f"Loaded DXF file: {self.file_path}")
        except Exception as e:
            raise ValueError(f"Failed to load DXF file {self.file_path}: {e}")

    def extract_polylines(self, layer_name: Optional[str] = None) -> List[Polyline]:
        """Extract polylines from the modelspace in document order.

        LINE entities are chained into polylines; LWPOLYLINE and 2D POLYLINE
        entities without bulges become one polyline each.

        Args:
            layer_name: Specific layer to extract from (None for all layers)

        Returns:
            List of polylines ordered by their first entity's document position
        """
        if not self.doc:
            raise ValueError("DXF file not loaded. Call load() first.")

        segments: List[SourceSegment] = []
        ordered: List[Tuple[int, Polyline]] = []

        for order, entity in enumerate(self.doc.modelspace()):
            dxftype = entity.dxftype()
            if dxftype not in SOURCE_ENTITY_TYPES:
                continue
            if layer_name and entity.dxf.layer != layer_name:
                continue

            if dxftype == "LINE":
                segments.append(
                    SourceSegment(
                        start=Point(entity.dxf.start.x, entity.dxf.start.y),
                        end=Point(entity.dxf.end.x, entity.dxf.end.y),
                        attributes=get_passthrough_attributes(entity),
                        handle=entity.dxf.handle,
                        order=order,
                    )
                )
                continue

            points = self._polyline_points(entity)
            if points is None:
                continue
            try:
                polyline = Polyline(
                    points=tuple(points),
                    attributes=get_passthrough_attributes(entity),
                    source_handles=(entity.dxf.handle,),
                )
            except ValueError as e:
                logger.warning(f"Skipping {dxftype} {entity.dxf.handle}: {e}")
                continue
            ordered.append((order, polyline))

        ordered.extend(self.parser.build_chains(segments))
        ordered.sort(key=lambda item: item[0])

        polylines = [polyline for _, polyline in ordered]
        logger.info(f"Extracted {len(polylines)} polylines from DXF")
        return polylines

    def _polyline_points(self, entity: DXFGraphic) -> Optional[List[Point]]:
        """Get the vertices of a bulge-free 2D polyline entity."""
        if entity.dxftype() == "LWPOLYLINE":
            vertices = [(x, y, bulge) for x, y, bulge in entity.get_points("xyb")]
            closed = entity.closed
        else:
            if not entity.is_2d_polyline:
                logger.debug(f"Skipping non-2D POLYLINE {entity.dxf.handle}")
                return None
            vertices = [
                (v.dxf.location.x, v.dxf.location.y, v.dxf.bulge)
                for v in entity.vertices
            ]
            closed = entity.is_closed

        if any(bulge for _, _, bulge in vertices):
            logger.debug(f"Skipping {entity.dxftype()} {entity.dxf.handle} with bulges")
            return None

        points = [Point(x, y) for x, y, _ in vertices]
        if closed and len(points) > 2 and not points[0].is_close(points[-1]):
            points.append(points[0])
        return points

    def get_layers(self) -> List[str]:
        """Get list of layer names in the DXF file.

        Returns:
            List of layer names
        """
        if not self.doc:
            raise ValueError("DXF file not loaded. Call load() first.")

        return [layer.dxf.name for layer in self.doc.layers]

    def get_summary(self) -> Dict[str, Any]:
        """Get summary information about the DXF file.

        Returns:
            Dictionary with file summary information
        """
        if not self.doc:
            raise ValueError("DXF file not loaded. Call load() first.")

        entity_counts = Counter(entity.dxftype() for entity in self.doc.modelspace())
        polylines = self.extract_polylines()

        return {
            "file_path": str(self.file_path),
            "dxf_version": self.doc.dxfversion,
            "layers": self.get_layers(),
            "entity_counts": dict(entity_counts),
            "polyline_count": len(polylines),
            "closed_polylines": sum(1 for p in polylines if p.is_closed),
            "total_points": sum(len(p) for p in polylines),
        }


def load_polylines_from_dxf(
    file_path: Path, layer_name: Optional[str] = None
) -> List[Polyline]:
    """Convenience function to load polylines from a DXF file.

    Args:
        file_path: Path to DXF file
        layer_name: Specific layer to extract from (None for all layers)

    Returns:
        List of polylines in document order
    """
    reader = DXFReader(file_path)
    reader.load()

    return reader.extract_polylines(layer_name)
