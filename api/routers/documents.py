"""Document upload, OCR, retrieval and deletion."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile

from core.config import config
from core.indexing.text_index import TextIndex
from models.schemas import (
    DocumentSummary,
    OCRRequest,
    OCRResponse,
    PageSummary,
    UploadResponse,
)
from api.deps import LoadedDocument, documents, get_doc

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["documents"])


@router.post("/documents/upload", response_model=UploadResponse)
async def upload_document(file: UploadFile = File(...)) -> UploadResponse:
    """Upload a PDF and index its native text."""
    from core.ingestion.loader import SUPPORTED_EXTENSIONS, ingest_document

    if not file.filename:
        raise HTTPException(400, "No filename provided")

    # Reject filenames with path separators to prevent traversal
    if any(c in file.filename for c in ("/", "\\", "..")):
        raise HTTPException(400, "Invalid filename")

    ext = Path(file.filename).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            400,
            f"Unsupported file format '{ext}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
        )

    upload_id = uuid.uuid4().hex[:8]
    upload_dir = config.temp_dir / "uploads"
    upload_dir.mkdir(parents=True, exist_ok=True)
    upload_path = upload_dir / f"{upload_id}_{Path(file.filename).name}"

    max_bytes = config.max_upload_mb * 1024 * 1024
    with open(upload_path, "wb") as f:
        total = 0
        while chunk := await file.read(256 * 1024):
            total += len(chunk)
            if total > max_bytes:
                f.close()
                upload_path.unlink(missing_ok=True)
                raise HTTPException(413, f"File too large (max {config.max_upload_mb} MB)")
            f.write(chunk)

    logger.info(f"Saved upload: {upload_path} ({total} bytes)")

    index = TextIndex()
    try:
        info, scanned = await ingest_document(upload_path, file.filename, index)
    except Exception as e:
        upload_path.unlink(missing_ok=True)
        raise HTTPException(400, f"Failed to process document: {e}")

    documents[info.doc_id] = LoadedDocument(info=info, index=index, scanned_pages=scanned)
    return UploadResponse(
        doc_id=info.doc_id,
        filename=info.original_filename,
        page_count=info.page_count,
        scanned_pages=scanned,
    )


@router.get("/documents/{doc_id}", response_model=DocumentSummary)
async def get_document(doc_id: str) -> DocumentSummary:
    doc = get_doc(doc_id)
    return DocumentSummary(
        doc_id=doc.info.doc_id,
        filename=doc.info.original_filename,
        page_count=doc.info.page_count,
        pages=[
            PageSummary(
                page_number=p.page_number,
                chars=len(p.text),
                source_kinds=sorted(p.source_kinds, key=lambda k: k.value),
            )
            for p in doc.index.pages()
        ],
    )


@router.post("/documents/{doc_id}/ocr", response_model=OCRResponse)
async def ocr_document(doc_id: str, body: OCRRequest) -> OCRResponse:
    """Run OCR on the requested pages (default: pages that look scanned).

    Pages are recognised sequentially.  Only one OCR pass runs per document
    at a time.
    """
    from core.ingestion.loader import run_ocr

    doc = get_doc(doc_id)
    pages = body.pages if body.pages is not None else doc.scanned_pages
    bad = [p for p in pages if p < 1 or p > doc.info.page_count]
    if bad:
        raise HTTPException(400, f"Pages out of range: {bad}")

    async with doc.ocr_lock:
        doc.cancel_event.clear()
        done = await run_ocr(
            Path(doc.info.file_path),
            pages,
            doc.index,
            cancel_event=doc.cancel_event,
        )
    return OCRResponse(doc_id=doc_id, pages_processed=done)


@router.post("/documents/{doc_id}/ocr/cancel")
async def cancel_ocr(doc_id: str):
    """Stop an OCR pass after the page currently being recognised."""
    doc = get_doc(doc_id)
    doc.cancel_event.set()
    return {"doc_id": doc_id, "cancelled": doc.ocr_lock.locked()}


@router.delete("/documents/{doc_id}")
async def delete_document(doc_id: str):
    doc = get_doc(doc_id)
    doc.cancel_event.set()
    doc.index.clear()
    documents.pop(doc_id, None)
    Path(doc.info.file_path).unlink(missing_ok=True)
    logger.info(f"Deleted document {doc_id}")
    return {"deleted": doc_id}
