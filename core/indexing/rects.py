"""Character span → rectangles, one per contiguous same-line glyph run."""

from __future__ import annotations

from typing import Optional, Sequence

from core.config import config
from models.schemas import BBox, PositionedChar


def rects_for(
    char_map: Sequence[PositionedChar],
    start: int,
    end: int,
    tolerance: Optional[float] = None,
) -> list[BBox]:
    """Return the rectangles covering ``char_map[start:end]``.

    A ``None`` slot closes the open rectangle.  A box joins the open
    rectangle while its vertical centre lies within ``tolerance × height``
    of the rectangle's centre; otherwise a new rectangle is started (line
    break, or a vertical jump between source runs).
    """
    if tolerance is None:
        tolerance = config.same_line_tolerance

    start = max(0, start)
    end = min(end, len(char_map))

    rects: list[BBox] = []
    current: BBox | None = None

    for i in range(start, end):
        pos = char_map[i]
        if pos is None:
            if current is not None:
                rects.append(current)
                current = None
            continue

        if current is None:
            current = pos
        elif abs(pos.center_y - current.center_y) < pos.height * tolerance:
            current = current.union(pos)
        else:
            rects.append(current)
            current = pos

    if current is not None:
        rects.append(current)
    return rects


def position_of(char_map: Sequence[PositionedChar], offset: int) -> Optional[BBox]:
    """Box of the character at *offset*, or None for separators / out of range."""
    if offset < 0 or offset >= len(char_map):
        return None
    return char_map[offset]
