"""Tests for core.indexing.find — find-bar navigation over the text index."""

from __future__ import annotations

import pytest

from core.indexing.find import FindSession
from core.indexing.text_index import TextIndex
from models.schemas import BBox, GlyphRun, SourceKind


def _page(words: list[str]) -> list[GlyphRun]:
    runs: list[GlyphRun] = []
    x = 0.0
    for i, word in enumerate(words):
        runs.append(GlyphRun(
            text=word,
            bbox=BBox(x0=x, y0=50, x1=x + 6 * len(word), y1=62),
            source_kind=SourceKind.NATIVE,
            run_id=i,
        ))
        x += 6 * (len(word) + 1)
    return runs


@pytest.fixture
def session() -> FindSession:
    idx = TextIndex()
    idx.build_page(1, _page(["foo", "bar", "Foo"]))
    idx.build_page(2, _page(["baz", "foo"]))
    return FindSession(idx)


class TestSearch:
    def test_count(self, session: FindSession):
        assert session.search("foo") == 3
        assert session.has_matches()

    def test_case_sensitive(self, session: FindSession):
        assert session.search("Foo", case_sensitive=True) == 1

    def test_starts_on_first_match(self, session: FindSession):
        session.search("foo")
        assert session.current.page_number == 1
        assert session.current.start == 0

    def test_no_matches(self, session: FindSession):
        assert session.search("missing") == 0
        assert session.current is None
        assert session.next() is None
        assert session.previous() is None
        assert session.info().total == 0
        assert session.info().current == 0


class TestNavigation:
    def test_next_wraps(self, session: FindSession):
        session.search("foo")
        pages = [session.next().page_number, session.next().page_number, session.next().page_number]
        assert pages == [1, 2, 1]
        assert session.info().current == 1

    def test_previous_wraps(self, session: FindSession):
        session.search("foo")
        assert session.previous().page_number == 2
        assert session.info().current == 3

    def test_info(self, session: FindSession):
        session.search("foo")
        session.next()
        info = session.info()
        assert (info.current, info.total, info.page_number) == (2, 3, 1)

    def test_new_search_resets_cursor(self, session: FindSession):
        session.search("foo")
        session.next()
        session.search("ba")
        assert session.info().current == 1


class TestHighlights:
    def test_active_flag(self, session: FindSession):
        session.search("foo")
        highlights = session.highlight_rects(1)
        assert [active for active, _ in highlights] == [True, False]
        assert all(len(rects) == 1 for _, rects in highlights)

    def test_other_page(self, session: FindSession):
        session.search("foo")
        highlights = session.highlight_rects(2)
        assert [active for active, _ in highlights] == [False]
