"""OCR engine — Tesseract integration for scanned pages.

Tesseract's ``image_to_data`` output is regrouped into the block →
paragraph → line → word hierarchy.  When the output carries no structure
the page's flat text is returned instead; which of the two shapes a page
gets is decided here, once.
"""

from __future__ import annotations

import logging
import shutil
from itertools import groupby
from pathlib import Path
from typing import Any

from core.errors import OCREngineUnavailable
from models.schemas import (
    BBox,
    FlatOCRResult,
    OCRBlock,
    OCRLine,
    OCRParagraph,
    OCRWord,
    StructuredOCRResult,
)

logger = logging.getLogger(__name__)

_tesseract_available: bool | None = None

_STRUCTURE_KEYS = ("text", "left", "top", "width", "height", "conf",
                   "block_num", "par_num", "line_num")


def _check_tesseract() -> bool:
    """Check if Tesseract is available on the system."""
    global _tesseract_available
    if _tesseract_available is not None:
        return _tesseract_available

    try:
        import pytesseract
        from core.config import config

        if config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = config.tesseract_cmd
        elif shutil.which("tesseract") is None:
            # Try common Windows install path
            common_paths = [
                r"C:\Program Files\Tesseract-OCR\tesseract.exe",
                r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
            ]
            for p in common_paths:
                if Path(p).exists():
                    pytesseract.pytesseract.tesseract_cmd = p
                    break

        # Test it works
        pytesseract.get_tesseract_version()
        _tesseract_available = True
        logger.info("Tesseract OCR is available")
    except Exception as e:
        logger.warning(f"Tesseract OCR not available: {e}")
        _tesseract_available = False

    return _tesseract_available


def ensure_engine() -> None:
    """Raise ``OCREngineUnavailable`` unless Tesseract can be used."""
    if not _check_tesseract():
        raise OCREngineUnavailable("Tesseract OCR is not installed or failed to start")


def _confidence(raw: Any) -> float:
    """Tesseract reports 0–100, or -1 for non-word rows."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return min(max(value, 0.0), 100.0) / 100.0


def result_from_tesseract_data(
    data: dict[str, list[Any]] | None,
    dpi: int,
    flat_text: str = "",
) -> StructuredOCRResult | FlatOCRResult:
    """Regroup pytesseract ``image_to_data`` output into an OCR result.

    Boxes stay in raster pixels at *dpi*.  Output missing the structural
    columns becomes a ``FlatOCRResult`` carrying *flat_text* (or whatever
    words are present).
    """
    if not data or any(key not in data for key in _STRUCTURE_KEYS):
        if not flat_text and data and data.get("text"):
            flat_text = " ".join(str(t).strip() for t in data["text"] if str(t).strip())
        return FlatOCRResult(dpi=dpi, text=flat_text.strip())

    rows = []
    malformed = 0
    for i in range(len(data["text"])):
        text = str(data["text"][i]).strip()
        if not text:
            continue
        try:
            left = float(data["left"][i])
            top = float(data["top"][i])
            right = left + float(data["width"][i])
            bottom = top + float(data["height"][i])
            key = (
                int(data["block_num"][i]),
                int(data["par_num"][i]),
                int(data["line_num"][i]),
            )
        except (TypeError, ValueError, IndexError):
            malformed += 1
            continue
        rows.append((
            *key,
            OCRWord(
                text=text,
                bbox=BBox(x0=left, y0=top, x1=right, y1=bottom),
                confidence=_confidence(data["conf"][i]),
            ),
        ))

    if malformed:
        logger.warning(f"Skipped {malformed} malformed OCR row(s)")

    # Tesseract emits rows in reading order; grouping keeps that order
    blocks: list[OCRBlock] = []
    for _, block_rows in groupby(rows, key=lambda r: r[0]):
        paragraphs: list[OCRParagraph] = []
        for _, par_rows in groupby(block_rows, key=lambda r: r[1]):
            lines: list[OCRLine] = []
            for _, line_rows in groupby(par_rows, key=lambda r: r[2]):
                words = [r[3] for r in line_rows]
                bbox = words[0].bbox
                for w in words[1:]:
                    bbox = bbox.union(w.bbox)
                lines.append(OCRLine(words=words, bbox=bbox))
            paragraphs.append(OCRParagraph(lines=lines))
        blocks.append(OCRBlock(paragraphs=paragraphs))

    return StructuredOCRResult(dpi=dpi, blocks=blocks)


def recognize_image(image: Any, dpi: int) -> StructuredOCRResult | FlatOCRResult:
    """Run OCR on a page image rendered at *dpi*.

    Raises ``OCREngineUnavailable`` when Tesseract cannot run at all.  A
    recognition failure on this particular image yields an empty result.
    """
    ensure_engine()

    import pytesseract
    from core.config import config

    tess_config = f"--oem 1 --psm 3 --dpi {dpi}"
    try:
        data = pytesseract.image_to_data(
            image,
            lang=config.ocr_language,
            output_type=pytesseract.Output.DICT,
            config=tess_config,
        )
    except pytesseract.TesseractNotFoundError as e:
        raise OCREngineUnavailable(str(e)) from e
    except pytesseract.TesseractError as e:
        logger.warning(f"OCR failed on page image: {e}")
        return FlatOCRResult(dpi=dpi, text="")

    result = result_from_tesseract_data(data, dpi)
    if isinstance(result, FlatOCRResult) and not result.text:
        try:
            text = pytesseract.image_to_string(image, lang=config.ocr_language, config=tess_config)
        except pytesseract.TesseractError as e:
            logger.warning(f"Flat OCR fallback failed: {e}")
            text = ""
        result = FlatOCRResult(dpi=dpi, text=(text or "").strip())

    n_words = sum(
        len(line.words)
        for block in getattr(result, "blocks", [])
        for para in block.paragraphs
        for line in para.lines
    )
    logger.info(f"OCR extracted {n_words} words ({result.kind})")
    return result
