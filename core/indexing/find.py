"""Find-bar state: plain substring matches with next / previous navigation."""

from __future__ import annotations

from typing import Optional

from core.indexing.text_index import TextIndex
from models.schemas import BBox, FindMatch, MatchInfo


class FindSession:
    """Holds the current query's matches and the active match cursor.

    Navigation wraps around at both ends.  A new ``search`` resets the
    cursor to the first match.
    """

    def __init__(self, index: TextIndex) -> None:
        self._index = index
        self.query = ""
        self.case_sensitive = False
        self.matches: list[FindMatch] = []
        self._cursor = -1

    def search(self, query: str, case_sensitive: bool = False) -> int:
        """Run a new search and return the number of matches."""
        self.query = query
        self.case_sensitive = case_sensitive
        self.matches = self._index.find_text(query, case_sensitive)
        self._cursor = 0 if self.matches else -1
        return len(self.matches)

    def has_matches(self) -> bool:
        return bool(self.matches)

    @property
    def current(self) -> Optional[FindMatch]:
        if self._cursor < 0:
            return None
        return self.matches[self._cursor]

    def next(self) -> Optional[FindMatch]:
        if not self.matches:
            return None
        self._cursor = (self._cursor + 1) % len(self.matches)
        return self.matches[self._cursor]

    def previous(self) -> Optional[FindMatch]:
        if not self.matches:
            return None
        self._cursor = (self._cursor - 1) % len(self.matches)
        return self.matches[self._cursor]

    def info(self) -> MatchInfo:
        match = self.current
        if match is None:
            return MatchInfo()
        return MatchInfo(
            current=self._cursor + 1,
            total=len(self.matches),
            page_number=match.page_number,
        )

    def highlight_rects(self, page_number: int) -> list[tuple[bool, list[BBox]]]:
        """Rectangles for every match on *page_number*, flagged when active."""
        active = self.current
        out: list[tuple[bool, list[BBox]]] = []
        for match in self.matches:
            if match.page_number != page_number:
                continue
            rects = self._index.rects_for(page_number, match.start, match.end)
            out.append((match is active, rects))
        return out
