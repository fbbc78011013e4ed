"""Native PDF text → glyph runs.

Text items come from the document renderer in PDF user space (y up, origin
on the baseline).  Each item is decomposed into one ``GlyphRun`` per
character, positioned through the item's transform and normalised to
top-left document points.
"""

from __future__ import annotations

import logging
from typing import Iterable

import pypdfium2 as pdfium

from core.geometry.coordinates import CoordinateTransformer
from models.schemas import GlyphRun, NativeTextItem, SourceKind

logger = logging.getLogger(__name__)


def _glyph_advances(item: NativeTextItem) -> list[float]:
    """Per-character advance widths in PDF units.

    Uses the true glyph widths when they line up with the text, otherwise
    spreads the item width evenly across its characters.
    """
    n = len(item.text)
    if item.glyph_widths is not None and len(item.glyph_widths) == n:
        return list(item.glyph_widths)
    avg = item.width / (n or 1)
    return [avg] * n


def runs_from_text_items(
    items: Iterable[NativeTextItem],
    page_height: float,
    scale: float = 1.0,
    start_run_id: int = 0,
) -> list[GlyphRun]:
    """Decompose native text items into per-character glyph runs.

    *scale* is the base scale the positions are computed at; every
    coordinate is divided back by it, so the result is always in document
    points.  Characters of one item share a ``run_id``; ids are assigned
    consecutively from *start_run_id*, skipping empty items.
    """
    viewport = CoordinateTransformer.viewport_matrix(page_height, scale)
    runs: list[GlyphRun] = []
    run_id = start_run_id

    for item in items:
        if not item.text:
            continue

        tx = CoordinateTransformer.multiply(viewport, item.transform)
        font_size = CoordinateTransformer.font_size(tx)
        origin_x = tx[4]
        baseline = tx[5]

        cursor = origin_x
        for ch, advance in zip(item.text, _glyph_advances(item)):
            w = advance * scale
            display_box = CoordinateTransformer.baseline_to_top(cursor, baseline, w, font_size)
            runs.append(GlyphRun(
                text=ch,
                bbox=CoordinateTransformer.display_to_document(display_box, scale),
                source_kind=SourceKind.NATIVE,
                run_id=run_id,
            ))
            cursor += w
        run_id += 1

    return runs


# ---------------------------------------------------------------------------
# pypdfium2 extraction
# ---------------------------------------------------------------------------

def _is_rotated_word(char_y_centers: list[float], char_heights: list[float]) -> bool:
    """Return True if the accumulated character positions indicate rotated text.

    For horizontal text all characters share roughly the same y-centre.
    Characters shorter than 70 % of the median height (punctuation, accents)
    are ignored so that ``B.N.`` or ``l'exercice`` are not mistaken for
    diagonal watermarks.
    """
    if len(char_y_centers) < 2:
        return False

    sorted_h = sorted(char_heights)
    n = len(sorted_h)
    median_h = sorted_h[n // 2] if n % 2 == 1 else (sorted_h[n // 2 - 1] + sorted_h[n // 2]) / 2.0
    height_threshold = median_h * 0.70

    filtered = [(yc, h) for yc, h in zip(char_y_centers, char_heights) if h >= height_threshold]
    if len(filtered) < 2:
        return False

    ys = [yc for yc, _ in filtered]
    avg_h = sum(h for _, h in filtered) / len(filtered)
    return max(ys) - min(ys) > avg_h * 0.65


Box = tuple[float, float, float, float]
Word = tuple[list[str], list[Box]]

# A horizontal gap wider than this many line heights (or the absolute
# minimum, in points) is a column boundary and starts a new segment.
_COLUMN_GAP_FACTOR = 3.0
_MIN_COLUMN_GAP = 15.0


def _continues_segment(prev: list[Box], word: list[Box]) -> bool:
    """True if *word* sits on the same line as *prev* and close enough after it."""
    p_bottom = min(b[1] for b in prev)
    p_top = max(b[3] for b in prev)
    w_bottom = min(b[1] for b in word)
    w_top = max(b[3] for b in word)
    h = max(p_top - p_bottom, w_top - w_bottom, 1e-3)

    if abs((p_bottom + p_top) / 2 - (w_bottom + w_top) / 2) >= h * 0.5:
        return False

    gap = min(b[0] for b in word) - max(b[2] for b in prev)
    if gap < -h * 0.5:
        return False
    return gap <= max(h * _COLUMN_GAP_FACTOR, _MIN_COLUMN_GAP)


def _segment_item(words: list[Word]) -> NativeTextItem:
    """Build a text item from the words of one line segment.

    Char boxes are ``(left, bottom, right, top)`` in PDF user space.  Words
    are joined by a single space whose box spans the gap between them.  The
    item's baseline is placed at the lowest glyph bottom and its size is the
    segment's full height, so that the derived glyph boxes cover the ink.
    """
    chars: list[str] = []
    boxes: list[Box] = []
    for word_chars, word_boxes in words:
        if boxes:
            gap_left = max(b[2] for b in boxes)
            gap_right = max(min(b[0] for b in word_boxes), gap_left)
            chars.append(" ")
            boxes.append((gap_left, boxes[-1][1], gap_right, boxes[-1][3]))
        chars.extend(word_chars)
        boxes.extend(word_boxes)

    left = min(b[0] for b in boxes)
    bottom = min(b[1] for b in boxes)
    right = max(b[2] for b in boxes)
    top = max(b[3] for b in boxes)
    height = max(top - bottom, 1e-3)

    # Advance = distance to the next glyph's left edge, so inter-letter
    # spacing is kept inside the glyph that precedes it.
    widths: list[float] = []
    for i, box in enumerate(boxes):
        if i + 1 < len(boxes):
            widths.append(max(boxes[i + 1][0] - box[0], 0.0))
        else:
            widths.append(max(box[2] - box[0], 0.0))

    return NativeTextItem(
        text="".join(chars),
        transform=(height, 0.0, 0.0, height, left, bottom),
        width=right - left,
        glyph_widths=widths,
    )


def extract_text_items(pdf_page: pdfium.PdfPage, page_index: int = 0) -> list[NativeTextItem]:
    """Extract line-segment text items from a PDF page in reading order.

    Characters are first grouped into whitespace-delimited words; rotated
    words (diagonal watermarks, etc.) are discarded.  Consecutive words on
    the same line are then joined into one item with their spaces kept, so
    a phrase on one line indexes as a single source run.  A line change or
    a column-sized gap starts a new item.
    """
    textpage = pdf_page.get_textpage()
    try:
        n_chars = textpage.count_chars()
        if n_chars == 0:
            return []

        words: list[Word] = []
        chars: list[str] = []
        boxes: list[Box] = []
        rotated_skipped = 0

        def _flush() -> None:
            nonlocal rotated_skipped
            if not chars:
                return
            y_centers = [(b[1] + b[3]) / 2.0 for b in boxes]
            heights = [b[3] - b[1] for b in boxes]
            if _is_rotated_word(y_centers, heights):
                rotated_skipped += 1
            else:
                words.append((list(chars), list(boxes)))
            chars.clear()
            boxes.clear()

        for i in range(n_chars):
            ch = textpage.get_text_range(index=i, count=1)
            if not ch or ch.strip() == "":
                _flush()
                continue
            chars.append(ch)
            boxes.append(tuple(textpage.get_charbox(i)))

        _flush()
    finally:
        textpage.close()

    if rotated_skipped:
        logger.info(
            f"Page {page_index + 1}: discarded {rotated_skipped} rotated "
            f"text item(s) (watermarks/diagonal text)"
        )

    segments: list[list[Word]] = []
    for word in words:
        if segments and _continues_segment(segments[-1][-1][1], word[1]):
            segments[-1].append(word)
        else:
            segments.append([word])
    return [_segment_item(seg) for seg in segments]


def native_text_length(items: Iterable[NativeTextItem]) -> int:
    """Number of non-blank characters across *items*."""
    return sum(1 for item in items for ch in item.text if not ch.isspace())
