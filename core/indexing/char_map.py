"""Flatten ordered glyph runs into page text plus a per-character position map.

The indexer never re-sorts: runs are consumed in the reading order the
adapters produced.  Between consecutive runs from different source runs a
single space is inserted with a ``None`` slot, so tokens from neighbouring
runs cannot fuse into one regex match.
"""

from __future__ import annotations

import logging
from typing import Iterable

from core.errors import IndexConsistencyError
from models.schemas import CharMap, GlyphRun, PositionedChar

logger = logging.getLogger(__name__)

SEPARATOR = " "


def build_char_map(runs: Iterable[GlyphRun]) -> CharMap:
    """Build ``CharMap(text, char_map)`` from *runs*.

    Every character of a run gets the run's box; for word-level OCR runs
    that repeats the word box across the word.  Runs without position data
    contribute ``None`` slots.

    Raises ``IndexConsistencyError`` if the result's lengths disagree.
    """
    parts: list[str] = []
    char_map: list[PositionedChar] = []
    prev_run_id: int | None = None

    for run in runs:
        if not run.text:
            continue
        if prev_run_id is not None and run.run_id != prev_run_id:
            parts.append(SEPARATOR)
            char_map.append(None)
        parts.append(run.text)
        char_map.extend([run.bbox] * len(run.text))
        prev_run_id = run.run_id

    text = "".join(parts)
    check_consistency(text, char_map)
    return CharMap(text=text, char_map=char_map)


def check_consistency(text: str, char_map: list[PositionedChar]) -> None:
    if len(text) != len(char_map):
        logger.error(
            f"Char map length {len(char_map)} does not match text length {len(text)}"
        )
        raise IndexConsistencyError(len(text), len(char_map))


def joined_run_text(runs: Iterable[GlyphRun]) -> str:
    """Concatenate run texts with a separator wherever the source run changes."""
    out: list[str] = []
    prev_run_id: int | None = None
    for run in runs:
        if not run.text:
            continue
        if prev_run_id is not None and run.run_id != prev_run_id:
            out.append(SEPARATOR)
        out.append(run.text)
        prev_run_id = run.run_id
    return "".join(out)
