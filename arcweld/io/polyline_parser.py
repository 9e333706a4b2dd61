"""Chaining of loose line segments into ordered polylines."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, DefaultDict, Dict, Hashable, List, Optional, Tuple

from ..config import POINT_PRECISION
from ..core.models import Point, Polyline

logger = logging.getLogger(__name__)

PointKey = Tuple[int, int]


@dataclass
class SourceSegment:
    """A LINE entity read from the drawing."""

    start: Point
    end: Point
    attributes: Dict[str, Any] = field(default_factory=dict)
    handle: str = ""
    order: int = 0  # position in the source document


class PolylineParser:
    """Parser for converting connected line segments into polylines."""

    def __init__(self, precision: float = POINT_PRECISION):
        """Initialize parser.

        Args:
            precision: Distance below which two endpoints are the same point
        """
        self.precision = precision

    def build_chains(
        self, segments: List[SourceSegment]
    ) -> List[Tuple[int, Polyline]]:
        """Chain segments that share endpoints and attributes.

        A chain grows forward from the first unused segment (in document
        order), then backward, and stops when it closes on itself. Only
        segments with equal attribute bags are joined.

        Args:
            segments: Line segments in document order

        Returns:
            List of (document order, Polyline) tuples, ordered by document order
        """
        usable = []
        for segment in segments:
            if segment.start.is_close(segment.end, self.precision):
                logger.debug(f"Dropping zero-length line {segment.handle}")
                continue
            usable.append(segment)

        by_start: DefaultDict[Tuple[Hashable, PointKey], List[int]] = defaultdict(list)
        by_end: DefaultDict[Tuple[Hashable, PointKey], List[int]] = defaultdict(list)
        for i, segment in enumerate(usable):
            attr_key = self._attribute_key(segment.attributes)
            by_start[(attr_key, self._point_key(segment.start))].append(i)
            by_end[(attr_key, self._point_key(segment.end))].append(i)

        used = [False] * len(usable)
        chains: List[Tuple[int, Polyline]] = []

        for i, segment in enumerate(usable):
            if used[i]:
                continue
            used[i] = True
            attr_key = self._attribute_key(segment.attributes)
            chain = [i]

            closed = False
            while not closed:
                tail = usable[chain[-1]]
                nxt = self._take(by_start[(attr_key, self._point_key(tail.end))], used)
                if nxt is None:
                    break
                chain.append(nxt)
                closed = self._closes(usable[chain[0]], usable[nxt])

            while not closed:
                head = usable[chain[0]]
                prev = self._take(by_end[(attr_key, self._point_key(head.start))], used)
                if prev is None:
                    break
                chain.insert(0, prev)
                closed = self._closes(usable[prev], usable[chain[-1]])

            members = [usable[j] for j in chain]
            points = [members[0].start] + [member.end for member in members]
            polyline = Polyline(
                points=tuple(points),
                attributes=dict(segment.attributes),
                source_handles=tuple(member.handle for member in members),
            )
            order = min(member.order for member in members)
            chains.append((order, polyline))
            logger.debug(
                f"Chained {len(members)} lines into polyline "
                f"({'closed' if closed else 'open'}) at document position {order}"
            )

        chains.sort(key=lambda item: item[0])
        logger.info(f"Chained {len(usable)} lines into {len(chains)} polylines")
        return chains

    def _point_key(self, point: Point) -> PointKey:
        return (round(point.x / self.precision), round(point.y / self.precision))

    def _closes(self, first: SourceSegment, last: SourceSegment) -> bool:
        return self._point_key(last.end) == self._point_key(first.start)

    @staticmethod
    def _take(candidates: List[int], used: List[bool]) -> Optional[int]:
        """Claim the first unused segment index from candidates."""
        for index in candidates:
            if not used[index]:
                used[index] = True
                return index
        return None

    @staticmethod
    def _attribute_key(attributes: Dict[str, Any]) -> Hashable:
        return tuple(sorted((key, repr(value)) for key, value in attributes.items()))
