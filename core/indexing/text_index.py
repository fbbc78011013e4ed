"""Page-keyed registry of text indices for one loaded document.

A ``TextIndex`` is created when a document is loaded and lives until the
document is closed.  Each page's ``PageTextIndex`` is immutable and is
rebuilt from scratch and swapped in whole whenever the page's inputs change
(document reload, re-OCR), never patched in place, so character offsets
handed out earlier can never point into a half-updated index.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Iterable, Optional

from core.detection import pattern_matcher
from core.indexing.char_map import build_char_map
from core.indexing.rects import position_of as _position_of, rects_for as _rects_for
from models.schemas import (
    BBox,
    FindMatch,
    GlyphRun,
    MatchSpan,
    PageTextIndex,
    PatternKind,
    RedactionCandidate,
)

logger = logging.getLogger(__name__)


class TextIndex:
    """Registry of ``PageTextIndex`` objects keyed by 1-based page number."""

    def __init__(self) -> None:
        self._pages: dict[int, PageTextIndex] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def build_page(self, page_number: int, runs: Iterable[GlyphRun]) -> PageTextIndex:
        """Index *runs* for a page and atomically replace its previous index."""
        runs = list(runs)
        built = build_char_map(runs)
        page_index = PageTextIndex(
            page_number=page_number,
            text=built.text,
            char_map=built.char_map,
            source_kinds=frozenset(r.source_kind for r in runs),
        )
        self.replace(page_index)
        logger.debug(
            f"Page {page_number}: indexed {len(built.text)} chars from {len(runs)} runs"
        )
        return page_index

    def replace(self, page_index: PageTextIndex) -> None:
        with self._lock:
            self._pages[page_index.page_number] = page_index

    def invalidate(self, page_number: int) -> None:
        """Drop a page's index; it stays absent until rebuilt."""
        with self._lock:
            self._pages.pop(page_number, None)

    def clear(self) -> None:
        with self._lock:
            self._pages = {}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, page_number: int) -> Optional[PageTextIndex]:
        with self._lock:
            return self._pages.get(page_number)

    def page_numbers(self) -> list[int]:
        with self._lock:
            return sorted(self._pages)

    def pages(self) -> list[PageTextIndex]:
        with self._lock:
            return [self._pages[n] for n in sorted(self._pages)]

    def __contains__(self, page_number: object) -> bool:
        with self._lock:
            return page_number in self._pages

    def __len__(self) -> int:
        with self._lock:
            return len(self._pages)

    def text_of(self, page_number: int) -> str:
        page = self.get(page_number)
        return page.text if page is not None else ""

    def position_of(self, page_number: int, offset: int) -> Optional[BBox]:
        page = self.get(page_number)
        if page is None:
            return None
        return _position_of(page.char_map, offset)

    def rects_for(self, page_number: int, start: int, end: int) -> list[BBox]:
        page = self.get(page_number)
        if page is None:
            return []
        return _rects_for(page.char_map, start, end)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(
        self,
        page_number: int,
        pattern: PatternKind | str,
        custom_pattern: Optional[str] = None,
        case_sensitive: Optional[bool] = None,
    ) -> list[MatchSpan]:
        """Pattern search on one page; unindexed pages yield no matches."""
        page = self.get(page_number)
        if page is None or not page.text:
            return []
        return pattern_matcher.search(
            page.text, pattern,
            custom_pattern=custom_pattern,
            case_sensitive=case_sensitive,
        )

    def find_candidates(
        self,
        patterns: Iterable[PatternKind | str],
        custom_pattern: Optional[str] = None,
        pages: Optional[Iterable[int]] = None,
    ) -> list[RedactionCandidate]:
        """Locate every validated match and its rectangles.

        Matches with no reconstructible rectangle (e.g. text that came from
        a flat OCR fallback) are dropped.
        """
        patterns = list(patterns)
        page_list = self.pages() if pages is None else [
            p for p in (self.get(n) for n in pages) if p is not None
        ]

        candidates: list[RedactionCandidate] = []
        # Each page snapshot is used for both spans and rects
        for page in page_list:
            unplaced = 0
            for span in pattern_matcher.search_all(page.text, patterns, custom_pattern):
                rects = _rects_for(page.char_map, span.start, span.end)
                if not rects:
                    unplaced += 1
                    continue
                candidates.append(RedactionCandidate(
                    page_number=page.page_number,
                    pattern_id=span.pattern_id,
                    text=span.text,
                    rects=rects,
                ))
            if unplaced:
                logger.info(
                    f"Page {page.page_number}: {unplaced} match(es) without position data skipped"
                )
        return candidates

    def find_text(self, query: str, case_sensitive: bool = False) -> list[FindMatch]:
        """Plain substring search across all indexed pages, in page order."""
        if not query:
            return []
        # Regex on the original text keeps offsets exact for case-folded matches
        needle = re.compile(re.escape(query), 0 if case_sensitive else re.IGNORECASE)
        matches: list[FindMatch] = []
        for page in self.pages():
            for m in needle.finditer(page.text):
                matches.append(FindMatch(
                    page_number=page.page_number,
                    start=m.start(),
                    end=m.end(),
                    text=m.group(),
                ))
        return matches
