"""Tests for core.geometry.coordinates — raster, display and PDF-space conversions."""

from __future__ import annotations

import pytest

from core.geometry.coordinates import (
    IDENTITY,
    POINT_TOLERANCE,
    CoordinateTransformer as CT,
    approx_equal,
)
from models.schemas import BBox


# ---------------------------------------------------------------------------
# Raster ⇄ document
# ---------------------------------------------------------------------------

class TestRasterToDocument:
    def test_300_dpi_width(self):
        box = BBox(x0=123.0, y0=40.0, x1=987.0, y1=90.0)
        doc = CT.raster_to_document(box, 300)
        assert doc.width == pytest.approx((987.0 - 123.0) / (300 / 72), abs=1e-6)
        assert doc.height == pytest.approx(50.0 / (300 / 72), abs=1e-6)

    def test_one_inch_is_72_points(self):
        doc = CT.raster_to_document(BBox(x0=0, y0=0, x1=300, y1=600), 300)
        assert doc.x1 == pytest.approx(72.0)
        assert doc.y1 == pytest.approx(144.0)

    def test_at_72_dpi_is_identity(self):
        box = BBox(x0=1.5, y0=2.5, x1=30.0, y1=40.0)
        assert CT.raster_to_document(box, 72) == box

    def test_round_trip(self):
        box = BBox(x0=10, y0=20, x1=110, y1=70)
        back = CT.document_to_raster(CT.raster_to_document(box, 300), 300)
        assert approx_equal(back.x0, box.x0)
        assert approx_equal(back.y1, box.y1)

    def test_scale(self):
        assert CT.raster_scale(144) == pytest.approx(2.0)

    @pytest.mark.parametrize("dpi", [0, -300])
    def test_non_positive_dpi_rejected(self, dpi):
        with pytest.raises(ValueError):
            CT.raster_scale(dpi)


# ---------------------------------------------------------------------------
# Document ⇄ display
# ---------------------------------------------------------------------------

class TestDisplay:
    def test_zoom(self):
        box = BBox(x0=10, y0=20, x1=30, y1=40)
        shown = CT.document_to_display(box, 1.5)
        assert shown == BBox(x0=15, y0=30, x1=45, y1=60)
        assert CT.display_to_document(shown, 1.5) == box

    def test_zero_zoom_rejected(self):
        with pytest.raises(ValueError):
            CT.document_to_display(BBox(x0=0, y0=0, x1=1, y1=1), 0)


# ---------------------------------------------------------------------------
# Origin normalisation
# ---------------------------------------------------------------------------

class TestFlipY:
    def test_flip(self):
        flipped = CT.flip_y(BBox(x0=10, y0=100, x1=50, y1=120), 792)
        assert flipped == BBox(x0=10, y0=672, x1=50, y1=692)

    def test_double_flip_restores(self):
        box = BBox(x0=3, y0=4, x1=5, y1=6)
        assert CT.flip_y(CT.flip_y(box, 800), 800) == box


class TestBaselineToTop:
    def test_glyph_sits_above_baseline(self):
        box = CT.baseline_to_top(100, 92, 6, 12)
        assert box == BBox(x0=100, y0=80, x1=106, y1=92)


# ---------------------------------------------------------------------------
# Matrices
# ---------------------------------------------------------------------------

class TestMatrices:
    def test_identity(self):
        m = (2.0, 0.0, 0.0, 3.0, 5.0, 7.0)
        assert CT.multiply(IDENTITY, m) == m
        assert CT.multiply(m, IDENTITY) == m

    def test_viewport_times_text_matrix(self):
        viewport = CT.viewport_matrix(792, 1.0)
        tx = CT.multiply(viewport, (12, 0, 0, 12, 100, 700))
        assert tx == pytest.approx((12, 0, 0, -12, 100, 92))
        assert CT.font_size(tx) == pytest.approx(12)

    def test_viewport_scale(self):
        assert CT.viewport_matrix(100, 2.0) == (2.0, 0.0, 0.0, -2.0, 0.0, 200.0)

    def test_font_size_rotated(self):
        # 90° rotation keeps the size in the c/d column
        assert CT.font_size((0, 10, -10, 0, 0, 0)) == pytest.approx(10)


class TestApproxEqual:
    def test_within_tolerance(self):
        assert approx_equal(1.0, 1.0 + POINT_TOLERANCE / 2)

    def test_outside_tolerance(self):
        assert not approx_equal(1.0, 1.0 + POINT_TOLERANCE * 10)
