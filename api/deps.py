"""Shared state and helpers used by all API routers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from fastapi import HTTPException

from core.indexing.text_index import TextIndex
from models.schemas import DocumentInfo, PageTextIndex

logger = logging.getLogger(__name__)


@dataclass
class LoadedDocument:
    """A document together with its text index and OCR bookkeeping."""
    info: DocumentInfo
    index: TextIndex
    scanned_pages: list[int] = field(default_factory=list)
    # Serialises OCR passes: one recognition worker per document
    ocr_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)


# ---------------------------------------------------------------------------
# Singleton state  (mutated by the documents router, read everywhere)
# ---------------------------------------------------------------------------
documents: dict[str, LoadedDocument] = {}


# ---------------------------------------------------------------------------
# Convenience accessors
# ---------------------------------------------------------------------------

def get_doc(doc_id: str) -> LoadedDocument:
    if doc_id not in documents:
        raise HTTPException(status_code=404, detail=f"Document '{doc_id}' not found")
    return documents[doc_id]


def get_page(doc: LoadedDocument, page_number: int) -> PageTextIndex:
    if page_number < 1 or page_number > doc.info.page_count:
        raise HTTPException(
            status_code=404,
            detail=f"Page {page_number} out of range (1–{doc.info.page_count})",
        )
    page = doc.index.get(page_number)
    if page is None:
        # Valid page that has not been (re)indexed yet
        return PageTextIndex(page_number=page_number)
    return page
