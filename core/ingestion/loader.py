"""Document ingestion — load a PDF, index its native text, and OCR scanned pages.

**Native pass (sequential, PDFium):** every page's text items are extracted
and indexed with a single ``PdfDocument`` handle.  PDFium's C library is not
thread-safe, so pages are never touched concurrently.

**OCR pass (sequential, Tesseract):** pages are rendered at the reference
resolution and recognised one at a time, each recognition awaited in a
worker thread.  A page's index is replaced only once its OCR has finished,
so cancelling the pass leaves completed pages valid and the remaining pages
on their previous (native) index.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Callable, Iterable, Optional

import pypdfium2 as pdfium
from PIL import Image

from core.config import config
from core.geometry.coordinates import CoordinateTransformer
from core.indexing.text_index import TextIndex
from core.ingestion.native_runs import extract_text_items, native_text_length, runs_from_text_items
from core.ingestion.ocr_runs import runs_from_ocr_result
from core.ocr.engine import ensure_engine, recognize_image
from models.schemas import BBox, DocumentInfo, GlyphRun, NativeTextItem

logger = logging.getLogger(__name__)

# (current, total, page_number, message)
ProgressCallback = Optional[Callable[[int, int, int, str], None]]

SUPPORTED_EXTENSIONS = {".pdf"}


def is_page_scanned(items: Iterable[NativeTextItem]) -> bool:
    """A page with almost no native text is assumed to be a scan."""
    return native_text_length(items) < config.min_native_chars


def render_page_image(pdf_page: pdfium.PdfPage, dpi: int) -> Image.Image:
    """Render a PDF page to a PIL image at *dpi*."""
    bitmap = pdf_page.render(scale=CoordinateTransformer.raster_scale(dpi))
    return bitmap.to_pil()


def _bbox_overlaps(b1: BBox, b2: BBox) -> bool:
    """True if the intersection covers more than half of the smaller box."""
    ix0 = max(b1.x0, b2.x0)
    iy0 = max(b1.y0, b2.y0)
    ix1 = min(b1.x1, b2.x1)
    iy1 = min(b1.y1, b2.y1)

    if ix1 <= ix0 or iy1 <= iy0:
        return False

    inter_area = (ix1 - ix0) * (iy1 - iy0)
    b1_area = max(b1.width * b1.height, 1e-6)
    b2_area = max(b2.width * b2.height, 1e-6)
    return inter_area > 0.5 * min(b1_area, b2_area)


def merge_ocr_runs(native: list[GlyphRun], ocr: list[GlyphRun]) -> list[GlyphRun]:
    """Append OCR word runs that don't duplicate native text.

    An OCR word is dropped when any native glyph substantially overlaps it.
    Native runs keep their order and come first; OCR runs follow in their
    own reading order with ids shifted past the native ones.
    OCR words are not interleaved by page position, so on a mixed page an
    OCR word above the native text still sorts after it.
    """
    if not ocr:
        return list(native)
    if not native:
        return list(ocr)

    native_boxes = [r.bbox for r in native if r.bbox is not None]
    next_id = max(r.run_id for r in native) + 1

    merged = list(native)
    for run in ocr:
        if run.bbox is not None and any(_bbox_overlaps(run.bbox, nb) for nb in native_boxes):
            continue
        merged.append(run.model_copy(update={"run_id": next_id + run.run_id}))
    return merged


def _process_pdf(pdf_path: Path, index: TextIndex) -> tuple[list[float], list[int]]:
    """Index native text for every page.

    Returns the page heights and the page numbers that look scanned.
    """
    doc = pdfium.PdfDocument(str(pdf_path))
    try:
        heights: list[float] = []
        scanned: list[int] = []
        for page_index in range(len(doc)):
            pdf_page = doc[page_index]
            try:
                height = pdf_page.get_height()
                items = extract_text_items(pdf_page, page_index)
            finally:
                pdf_page.close()

            heights.append(height)
            runs = runs_from_text_items(items, height, scale=config.base_scale)
            index.build_page(page_index + 1, runs)
            if is_page_scanned(items):
                scanned.append(page_index + 1)
    finally:
        doc.close()

    logger.info(f"Indexed native text for {len(heights)} pages ({len(scanned)} look scanned)")
    return heights, scanned


async def ingest_document(
    file_path: Path,
    original_filename: str,
    index: TextIndex,
) -> tuple[DocumentInfo, list[int]]:
    """Load a PDF and build the native index for every page.

    Any previous content of *index* is discarded first.  Returns the
    document info and the page numbers that look scanned.
    """
    if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {file_path.suffix}")

    doc_id = uuid.uuid4().hex[:12]
    logger.info(f"Ingesting '{original_filename}' (id={doc_id})")

    index.clear()
    try:
        heights, scanned = await asyncio.to_thread(_process_pdf, file_path, index)
    except Exception:
        logger.exception(f"Failed to ingest '{original_filename}'")
        raise

    doc = DocumentInfo(
        doc_id=doc_id,
        original_filename=original_filename,
        file_path=str(file_path),
        page_count=len(heights),
        page_heights=heights,
    )
    return doc, scanned


def _prepare_page(
    pdf_path: Path, page_number: int, dpi: int,
) -> tuple[list[GlyphRun], Image.Image]:
    """Native runs plus a raster image for one page."""
    doc = pdfium.PdfDocument(str(pdf_path))
    try:
        pdf_page = doc[page_number - 1]
        try:
            height = pdf_page.get_height()
            items = extract_text_items(pdf_page, page_number - 1)
            image = render_page_image(pdf_page, dpi)
        finally:
            pdf_page.close()
    finally:
        doc.close()
    return runs_from_text_items(items, height, scale=config.base_scale), image


async def run_ocr(
    pdf_path: Path,
    page_numbers: Iterable[int],
    index: TextIndex,
    progress_callback: ProgressCallback = None,
    cancel_event: Optional[asyncio.Event] = None,
    dpi: Optional[int] = None,
) -> list[int]:
    """OCR *page_numbers* one after another and re-index each page.

    Raises ``OCREngineUnavailable`` before any page is touched when
    Tesseract cannot run.  Cancellation is checked between pages; the
    pages finished so far are returned.
    """
    ensure_engine()

    dpi = dpi or config.ocr_dpi
    pages = list(page_numbers)
    total = len(pages)
    done: list[int] = []

    def _report(current: int, page_number: int, message: str) -> None:
        if progress_callback:
            try:
                progress_callback(current, total, page_number, message)
            except Exception:
                logger.debug("Progress callback failed", exc_info=True)

    for i, page_number in enumerate(pages):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"OCR cancelled after {len(done)}/{total} pages")
            break

        _report(i, page_number, f"OCR page {page_number} ({i + 1} of {total})...")

        native, image = await asyncio.to_thread(_prepare_page, pdf_path, page_number, dpi)
        try:
            result = await asyncio.to_thread(recognize_image, image, dpi)
        finally:
            image.close()

        ocr = runs_from_ocr_result(result, min_confidence=config.min_ocr_confidence)
        index.build_page(page_number, merge_ocr_runs(native, ocr))
        done.append(page_number)
        logger.info(f"Page {page_number}: OCR added {len(ocr)} runs ({result.kind})")

    _report(len(done), done[-1] if done else 0, "OCR complete")
    return done
