"""Tests for core.ingestion.ocr_runs — OCR results to glyph runs."""

from __future__ import annotations

import pytest

from core.ingestion.ocr_runs import runs_from_ocr_result
from models.schemas import (
    BBox,
    FlatOCRResult,
    OCRBlock,
    OCRLine,
    OCRParagraph,
    OCRWord,
    SourceKind,
    StructuredOCRResult,
)


def _structured(*words: OCRWord, dpi: int = 300) -> StructuredOCRResult:
    line = OCRLine(words=list(words))
    return StructuredOCRResult(
        dpi=dpi,
        blocks=[OCRBlock(paragraphs=[OCRParagraph(lines=[line])])],
    )


def _word(text: str, x0: float, confidence: float = 0.9) -> OCRWord:
    return OCRWord(
        text=text,
        bbox=BBox(x0=x0, y0=600, x1=x0 + 300, y1=750),
        confidence=confidence,
    )


class TestStructured:
    def test_one_run_per_word(self):
        runs = runs_from_ocr_result(_structured(_word("Hello", 300), _word("World", 700)))
        assert [r.text for r in runs] == ["Hello", "World"]
        assert [r.run_id for r in runs] == [0, 1]
        assert all(r.source_kind == SourceKind.OCR for r in runs)

    def test_boxes_converted_to_points(self):
        runs = runs_from_ocr_result(_structured(_word("Hello", 300)))
        assert runs[0].bbox.x0 == pytest.approx(72.0)
        assert runs[0].bbox.y0 == pytest.approx(144.0)
        assert runs[0].bbox.width == pytest.approx(300 / (300 / 72), abs=1e-6)

    def test_confidence_kept(self):
        runs = runs_from_ocr_result(_structured(_word("Hi", 0, confidence=0.42)))
        assert runs[0].confidence == pytest.approx(0.42)

    def test_low_confidence_dropped(self):
        runs = runs_from_ocr_result(
            _structured(_word("keep", 0, 0.8), _word("drop", 400, 0.1)),
            min_confidence=0.5,
        )
        assert [r.text for r in runs] == ["keep"]

    def test_blank_words_skipped(self):
        runs = runs_from_ocr_result(_structured(_word("  ", 0), _word("x", 400)), start_run_id=3)
        assert [(r.text, r.run_id) for r in runs] == [("x", 3)]

    def test_no_blocks(self):
        assert runs_from_ocr_result(StructuredOCRResult()) == []


class TestFlat:
    def test_single_unplaced_run(self):
        runs = runs_from_ocr_result(FlatOCRResult(text="  hello world \n"))
        assert len(runs) == 1
        assert runs[0].text == "hello world"
        assert runs[0].bbox is None

    def test_blank_text(self):
        assert runs_from_ocr_result(FlatOCRResult(text="   ")) == []


class TestNone:
    def test_missing_result(self):
        assert runs_from_ocr_result(None) == []
