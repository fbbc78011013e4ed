"""Tests for core.indexing.rects — character spans to highlight rectangles."""

from __future__ import annotations

import pytest

from core.indexing.char_map import build_char_map
from core.indexing.rects import position_of, rects_for
from models.schemas import BBox, GlyphRun, SourceKind


def _run(text: str, x0: float, y0: float, run_id: int = 0, h: float = 12.0) -> GlyphRun:
    return GlyphRun(
        text=text,
        bbox=BBox(x0=x0, y0=y0, x1=x0 + 6 * len(text), y1=y0 + h),
        source_kind=SourceKind.NATIVE,
        run_id=run_id,
    )


class TestSameLine:
    def test_two_runs_one_line_one_rect(self):
        built = build_char_map([_run("078-05", 10, 100), _run("-1120", 46, 100)])
        rects = rects_for(built.char_map, 0, len(built.text))
        assert len(rects) == 1
        assert rects[0] == BBox(x0=10, y0=100, x1=76, y1=112)

    def test_small_baseline_wobble_stays_on_line(self):
        built = build_char_map([_run("ab", 10, 100), _run("cd", 22, 102)])
        assert len(rects_for(built.char_map, 0, 4)) == 1

    def test_partial_span(self):
        built = build_char_map([_run("abcdef", 0, 100)])
        rects = rects_for(built.char_map, 1, 3)
        # Every character carries its run's box
        assert rects == [BBox(x0=0, y0=100, x1=36, y1=112)]


class TestLineBreaks:
    def test_line_break_two_rects(self):
        built = build_char_map([_run("Jane", 10, 100), _run("Doe", 10, 120)])
        rects = rects_for(built.char_map, 0, len(built.text))
        assert len(rects) == 2
        assert rects[0].y0 == pytest.approx(100)
        assert rects[1].y0 == pytest.approx(120)

    def test_separator_closes_rect(self):
        built = build_char_map([_run("ab", 0, 100, run_id=0), _run("cd", 18, 100, run_id=1)])
        assert built.char_map[2] is None
        assert len(rects_for(built.char_map, 0, 5)) == 2

    def test_tolerance(self):
        built = build_char_map([_run("ab", 0, 100), _run("cd", 12, 104)])
        assert len(rects_for(built.char_map, 0, 4, tolerance=0.5)) == 1
        assert len(rects_for(built.char_map, 0, 4, tolerance=0.25)) == 2


class TestEdgeCases:
    def test_empty_span(self):
        built = build_char_map([_run("abc", 0, 100)])
        assert rects_for(built.char_map, 2, 2) == []

    def test_range_clamped(self):
        built = build_char_map([_run("abc", 0, 100)])
        assert len(rects_for(built.char_map, -5, 100)) == 1

    def test_unplaced_text(self):
        assert rects_for([None, None, None], 0, 3) == []


class TestPositionOf:
    def test_character(self):
        run = _run("ab", 0, 100)
        built = build_char_map([run])
        assert position_of(built.char_map, 1) == run.bbox

    def test_separator(self):
        built = build_char_map([_run("a", 0, 100, run_id=0), _run("b", 10, 100, run_id=1)])
        assert position_of(built.char_map, 1) is None

    @pytest.mark.parametrize("offset", [-1, 3, 99])
    def test_out_of_range(self, offset):
        built = build_char_map([_run("abc", 0, 100)])
        assert position_of(built.char_map, offset) is None
