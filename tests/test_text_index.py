"""Tests for core.indexing.text_index — page registry, search and candidates."""

from __future__ import annotations

import pytest

from core.indexing.text_index import TextIndex
from models.schemas import BBox, GlyphRun, PatternKind, SourceKind


def _word_runs(words: list[str], y0: float = 100.0, x0: float = 72.0,
               char_w: float = 6.0, h: float = 12.0, start_id: int = 0) -> list[GlyphRun]:
    """Per-character native runs, one source run per word, words on one line."""
    runs: list[GlyphRun] = []
    x = x0
    for i, word in enumerate(words):
        for ch in word:
            runs.append(GlyphRun(
                text=ch,
                bbox=BBox(x0=x, y0=y0, x1=x + char_w, y1=y0 + h),
                source_kind=SourceKind.NATIVE,
                run_id=start_id + i,
            ))
            x += char_w
        x += char_w
    return runs


@pytest.fixture
def index() -> TextIndex:
    idx = TextIndex()
    idx.build_page(1, _word_runs(["SSN", "078-05-1120", "mail", "jane@example.com"]))
    idx.build_page(2, _word_runs(["Card", "4532015112830366"]))
    return idx


class TestLifecycle:
    def test_build_page(self, index: TextIndex):
        page = index.get(1)
        assert page.text == "SSN 078-05-1120 mail jane@example.com"
        assert len(page.text) == len(page.char_map)
        assert page.source_kinds == frozenset({SourceKind.NATIVE})

    def test_replace_is_whole_page(self, index: TextIndex):
        old = index.get(1)
        new = index.build_page(1, _word_runs(["replaced"]))
        assert index.get(1) is new
        # Previously handed-out snapshots stay intact
        assert old.text.startswith("SSN")
        assert new.text == "replaced"

    def test_invalidate(self, index: TextIndex):
        index.invalidate(1)
        assert 1 not in index
        assert index.get(1) is None
        assert index.page_numbers() == [2]

    def test_clear(self, index: TextIndex):
        index.clear()
        assert len(index) == 0
        assert index.pages() == []

    def test_pages_in_order(self):
        idx = TextIndex()
        idx.build_page(3, _word_runs(["c"]))
        idx.build_page(1, _word_runs(["a"]))
        assert [p.page_number for p in idx.pages()] == [1, 3]

    def test_mixed_sources(self):
        idx = TextIndex()
        runs = _word_runs(["native"]) + [GlyphRun(text="scan", source_kind=SourceKind.OCR, run_id=9)]
        page = idx.build_page(1, runs)
        assert page.source_kinds == frozenset({SourceKind.NATIVE, SourceKind.OCR})


class TestLookup:
    def test_text_of_unindexed(self, index: TextIndex):
        assert index.text_of(5) == ""

    def test_position_of(self, index: TextIndex):
        assert index.position_of(1, 0) == BBox(x0=72, y0=100, x1=78, y1=112)
        assert index.position_of(1, 3) is None        # separator
        assert index.position_of(9, 0) is None        # unindexed page

    def test_rects_for_unindexed(self, index: TextIndex):
        assert index.rects_for(9, 0, 5) == []


class TestSearch:
    def test_unindexed_page(self, index: TextIndex):
        assert index.search(7, PatternKind.SSN) == []

    def test_empty_page(self):
        idx = TextIndex()
        idx.build_page(1, [])
        assert idx.get(1).text == ""
        assert idx.search(1, PatternKind.EMAIL) == []
        assert idx.find_candidates([PatternKind.EMAIL]) == []

    def test_pattern_on_page(self, index: TextIndex):
        spans = index.search(1, PatternKind.SSN)
        assert [s.text for s in spans] == ["078-05-1120"]


class TestFindCandidates:
    def test_all_pages(self, index: TextIndex):
        cands = index.find_candidates([PatternKind.SSN, PatternKind.EMAIL, PatternKind.CREDIT_CARD])
        found = {(c.page_number, c.pattern_id, c.text) for c in cands}
        assert found == {
            (1, PatternKind.SSN, "078-05-1120"),
            (1, PatternKind.EMAIL, "jane@example.com"),
            (2, PatternKind.CREDIT_CARD, "4532015112830366"),
        }

    def test_single_rect_per_word(self, index: TextIndex):
        (cand,) = index.find_candidates([PatternKind.SSN])
        assert cand.rects == [BBox(x0=96, y0=100, x1=162, y1=112)]

    def test_page_filter(self, index: TextIndex):
        cands = index.find_candidates([PatternKind.SSN, PatternKind.CREDIT_CARD], pages=[2, 99])
        assert [c.page_number for c in cands] == [2]

    def test_match_over_two_lines(self):
        idx = TextIndex()
        runs = _word_runs(["Name:", "Jane"]) + _word_runs(["Doe"], y0=120, start_id=2)
        idx.build_page(1, runs)
        (cand,) = idx.find_candidates([PatternKind.CUSTOM], custom_pattern="Jane Doe")
        assert len(cand.rects) == 2

    def test_unplaced_match_dropped(self):
        idx = TextIndex()
        idx.build_page(1, [GlyphRun(text="SSN 078-05-1120", source_kind=SourceKind.OCR)])
        assert len(idx.search(1, PatternKind.SSN)) == 1
        assert idx.find_candidates([PatternKind.SSN]) == []


class TestFindText:
    def test_case_insensitive(self):
        idx = TextIndex()
        idx.build_page(1, _word_runs(["Hello", "hello", "HELLO"]))
        matches = idx.find_text("hello")
        assert [m.text for m in matches] == ["Hello", "hello", "HELLO"]
        assert [m.start for m in matches] == [0, 6, 12]

    def test_case_sensitive(self):
        idx = TextIndex()
        idx.build_page(1, _word_runs(["Hello", "hello"]))
        assert [m.start for m in idx.find_text("hello", case_sensitive=True)] == [6]

    def test_regex_characters_literal(self):
        idx = TextIndex()
        idx.build_page(1, _word_runs(["a.c", "abc"]))
        assert [m.text for m in idx.find_text("a.c")] == ["a.c"]

    def test_across_pages(self, index: TextIndex):
        matches = index.find_text("5")
        assert {m.page_number for m in matches} == {1, 2}

    def test_empty_query(self, index: TextIndex):
        assert index.find_text("") == []
