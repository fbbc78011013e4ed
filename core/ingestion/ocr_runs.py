"""OCR results → glyph runs.

Word granularity only: each recognised word becomes one ``GlyphRun`` whose
box covers the whole word.  Sub-word character positions are not
reconstructed.
"""

from __future__ import annotations

import logging
from typing import Iterator

from core.geometry.coordinates import CoordinateTransformer
from models.schemas import (
    FlatOCRResult,
    GlyphRun,
    OCRWord,
    SourceKind,
    StructuredOCRResult,
)

logger = logging.getLogger(__name__)


def _iter_words(result: StructuredOCRResult) -> Iterator[OCRWord]:
    for block in result.blocks:
        for para in block.paragraphs:
            for line in para.lines:
                yield from line.words


def runs_from_ocr_result(
    result: StructuredOCRResult | FlatOCRResult | None,
    start_run_id: int = 0,
    min_confidence: float = 0.0,
) -> list[GlyphRun]:
    """Convert one page of OCR output to glyph runs in document points.

    Structured results yield one run per non-empty word, with its raster box
    divided by ``dpi / 72``.  A flat result yields a single run without
    position data; search still works on it, rectangles do not.
    """
    if result is None:
        return []

    if isinstance(result, FlatOCRResult):
        text = result.text.strip()
        if not text:
            return []
        return [GlyphRun(
            text=text,
            bbox=None,
            source_kind=SourceKind.OCR,
            run_id=start_run_id,
        )]

    runs: list[GlyphRun] = []
    run_id = start_run_id
    dropped = 0
    for word in _iter_words(result):
        text = word.text.strip()
        if not text:
            continue
        if word.confidence < min_confidence:
            dropped += 1
            continue
        runs.append(GlyphRun(
            text=text,
            bbox=CoordinateTransformer.raster_to_document(word.bbox, result.dpi),
            source_kind=SourceKind.OCR,
            confidence=word.confidence,
            run_id=run_id,
        ))
        run_id += 1

    if dropped:
        logger.debug(f"Dropped {dropped} OCR word(s) below confidence {min_confidence:.2f}")
    return runs
