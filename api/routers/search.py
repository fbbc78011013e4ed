"""Page text, position lookup, find, and redaction-candidate search."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from core.errors import PatternTooLongError
from models.schemas import (
    BBox,
    CandidatesRequest,
    CandidatesResponse,
    FindRequest,
    FindResponse,
    PageTextResponse,
)
from api.deps import get_doc, get_page

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["search"])


@router.get("/documents/{doc_id}/pages/{page_number}/text", response_model=PageTextResponse)
async def page_text(doc_id: str, page_number: int) -> PageTextResponse:
    page = get_page(get_doc(doc_id), page_number)
    return PageTextResponse(page_number=page_number, text=page.text)


@router.get("/documents/{doc_id}/pages/{page_number}/position/{offset}")
async def page_position(doc_id: str, page_number: int, offset: int) -> Optional[BBox]:
    """Box of the character at *offset*; null for separators and unplaced text."""
    doc = get_doc(doc_id)
    get_page(doc, page_number)
    return doc.index.position_of(page_number, offset)


@router.post("/documents/{doc_id}/find", response_model=FindResponse)
async def find_text(doc_id: str, body: FindRequest) -> FindResponse:
    doc = get_doc(doc_id)
    matches = doc.index.find_text(body.query.strip(), body.case_sensitive)
    return FindResponse(total=len(matches), matches=matches)


@router.post("/documents/{doc_id}/redaction-candidates", response_model=CandidatesResponse)
async def redaction_candidates(doc_id: str, body: CandidatesRequest) -> CandidatesResponse:
    doc = get_doc(doc_id)
    try:
        candidates = doc.index.find_candidates(
            body.patterns,
            custom_pattern=body.custom_pattern,
            pages=body.pages,
        )
    except PatternTooLongError as e:
        raise HTTPException(400, str(e))

    logger.info(
        f"Document {doc_id}: {len(candidates)} redaction candidate(s) for "
        f"{', '.join(p.value for p in body.patterns)}"
    )
    return CandidatesResponse(total=len(candidates), candidates=candidates)
