"""Input/Output operations for DXF files."""

from .dxf_reader import DXFReader, load_polylines_from_dxf
from .dxf_writer import DXFWriter, export_fit_results
from .polyline_parser import PolylineParser, SourceSegment

__all__ = [
    "DXFReader",
    "DXFWriter",
    "PolylineParser",
    "SourceSegment",
    "load_polylines_from_dxf",
    "export_fit_results",
]
