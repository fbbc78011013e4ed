"""Pydantic data models for the glyph index."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SourceKind(str, enum.Enum):
    """Where a glyph run came from."""
    NATIVE = "NATIVE"
    OCR = "OCR"


class PatternKind(str, enum.Enum):
    """Sensitive-data pattern families the matcher knows about."""
    SSN = "SSN"
    CREDIT_CARD = "CREDIT_CARD"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    DATE = "DATE"
    CUSTOM = "CUSTOM"


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

class BBox(BaseModel):
    """Bounding box in document points (72/inch, origin top-left, y down)."""
    model_config = ConfigDict(frozen=True)

    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> BBox:
        return cls(x0=x, y0=y, x1=x + w, y1=y + h)

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def center_y(self) -> float:
        return (self.y0 + self.y1) / 2

    def union(self, other: BBox) -> BBox:
        return BBox(
            x0=min(self.x0, other.x0),
            y0=min(self.y0, other.y0),
            x1=max(self.x1, other.x1),
            y1=max(self.y1, other.y1),
        )


# One slot per character offset; None marks a run separator or a
# character without position data.
PositionedChar = Optional[BBox]


# ---------------------------------------------------------------------------
# Glyph runs
# ---------------------------------------------------------------------------

class GlyphRun(BaseModel):
    """A piece of text sharing one position, already in document points.

    ``run_id`` names the source run (native text item or OCR word) the glyph
    belongs to; the indexer separates consecutive runs with different ids.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    bbox: Optional[BBox] = None
    source_kind: SourceKind
    confidence: Optional[float] = None
    run_id: int = 0


class NativeTextItem(BaseModel):
    """A text item as delivered by the document renderer.

    ``transform`` is the item's affine matrix ``[a, b, c, d, e, f]`` in PDF
    user space (y up), with ``(e, f)`` at the baseline origin.  ``width`` is
    the advance width of the whole item in PDF units.
    """
    text: str
    transform: tuple[float, float, float, float, float, float]
    width: float
    glyph_widths: Optional[list[float]] = None


# ---------------------------------------------------------------------------
# OCR results (raster pixel space)
# ---------------------------------------------------------------------------

class OCRWord(BaseModel):
    text: str
    bbox: BBox                        # pixels at the recognition dpi
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class OCRLine(BaseModel):
    words: list[OCRWord] = []
    bbox: Optional[BBox] = None


class OCRParagraph(BaseModel):
    lines: list[OCRLine] = []


class OCRBlock(BaseModel):
    paragraphs: list[OCRParagraph] = []


class StructuredOCRResult(BaseModel):
    """OCR output with block → paragraph → line → word structure."""
    kind: Literal["structured"] = "structured"
    dpi: int = 300
    blocks: list[OCRBlock] = []


class FlatOCRResult(BaseModel):
    """OCR output reduced to plain text without any position data."""
    kind: Literal["flat"] = "flat"
    dpi: int = 300
    text: str = ""


OCRPageResult = Annotated[
    Union[StructuredOCRResult, FlatOCRResult],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

class CharMap(BaseModel):
    """Concatenated page text plus one position slot per character."""
    model_config = ConfigDict(frozen=True)

    text: str = ""
    char_map: list[PositionedChar] = []


class PageTextIndex(BaseModel):
    """Searchable, spatially addressable text of one page."""
    model_config = ConfigDict(frozen=True)

    page_number: int
    text: str = ""
    char_map: list[PositionedChar] = []
    source_kinds: frozenset[SourceKind] = frozenset()


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------

class MatchSpan(BaseModel):
    """A validated pattern hit; ``end`` is exclusive."""
    pattern_id: PatternKind
    start: int
    end: int
    text: str


class RedactionCandidate(BaseModel):
    """A detected match plus its rectangles in document points."""
    page_number: int
    pattern_id: PatternKind
    text: str
    rects: list[BBox] = []


class FindMatch(BaseModel):
    """A plain substring hit from the find bar."""
    page_number: int
    start: int
    end: int
    text: str


class MatchInfo(BaseModel):
    current: int = 0                  # 1-based; 0 when there are no matches
    total: int = 0
    page_number: Optional[int] = None


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class DocumentInfo(BaseModel):
    """Metadata for a loaded document."""
    doc_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    original_filename: str
    file_path: str
    page_count: int = 0
    page_heights: list[float] = []    # in points, index = page_number - 1
    created_at: datetime = Field(default_factory=datetime.utcnow)


# ---------------------------------------------------------------------------
# API Request / Response schemas
# ---------------------------------------------------------------------------

class UploadResponse(BaseModel):
    doc_id: str
    filename: str
    page_count: int
    scanned_pages: list[int] = []


class PageSummary(BaseModel):
    page_number: int
    chars: int
    source_kinds: list[SourceKind] = []


class DocumentSummary(BaseModel):
    doc_id: str
    filename: str
    page_count: int
    pages: list[PageSummary] = []


class OCRRequest(BaseModel):
    pages: Optional[list[int]] = None   # None = every scanned page


class OCRResponse(BaseModel):
    doc_id: str
    pages_processed: list[int] = []


class PageTextResponse(BaseModel):
    page_number: int
    text: str


class FindRequest(BaseModel):
    query: str
    case_sensitive: bool = False


class FindResponse(BaseModel):
    total: int
    matches: list[FindMatch] = []


class CandidatesRequest(BaseModel):
    patterns: list[PatternKind]
    custom_pattern: Optional[str] = None
    pages: Optional[list[int]] = None


class CandidatesResponse(BaseModel):
    total: int
    candidates: list[RedactionCandidate] = []
