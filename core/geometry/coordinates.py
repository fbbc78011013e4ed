"""Conversions between raster, document and display coordinate spaces.

Document points (72 per inch, origin top-left, y growing downward) are the
only space the index stores.  Raster pixels come from OCR at some sampling
resolution; display coordinates are document points times a zoom factor.
PDF user space has its origin bottom-left with y growing upward, and text
items are positioned at their baseline; both are normalised here.
"""

from __future__ import annotations

import math
from typing import Sequence

from models.schemas import BBox

PDF_DPI = 72.0
POINT_TOLERANCE = 1e-6

Matrix = tuple[float, float, float, float, float, float]

IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


def approx_equal(a: float, b: float, tol: float = POINT_TOLERANCE) -> bool:
    return abs(a - b) <= tol


def _positive(value: float, name: str) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return float(value)


class CoordinateTransformer:
    """Stateless coordinate algebra; every method is a static function."""

    # ------------------------------------------------------------------
    # Raster ⇄ document
    # ------------------------------------------------------------------

    @staticmethod
    def raster_scale(dpi: float) -> float:
        """Pixels per document point at *dpi*."""
        return _positive(dpi, "dpi") / PDF_DPI

    @staticmethod
    def raster_to_document(bbox: BBox, dpi: float) -> BBox:
        s = CoordinateTransformer.raster_scale(dpi)
        return BBox(x0=bbox.x0 / s, y0=bbox.y0 / s, x1=bbox.x1 / s, y1=bbox.y1 / s)

    @staticmethod
    def document_to_raster(bbox: BBox, dpi: float) -> BBox:
        s = CoordinateTransformer.raster_scale(dpi)
        return BBox(x0=bbox.x0 * s, y0=bbox.y0 * s, x1=bbox.x1 * s, y1=bbox.y1 * s)

    # ------------------------------------------------------------------
    # Document ⇄ display
    # ------------------------------------------------------------------

    @staticmethod
    def document_to_display(bbox: BBox, zoom: float) -> BBox:
        z = _positive(zoom, "zoom")
        return BBox(x0=bbox.x0 * z, y0=bbox.y0 * z, x1=bbox.x1 * z, y1=bbox.y1 * z)

    @staticmethod
    def display_to_document(bbox: BBox, zoom: float) -> BBox:
        z = _positive(zoom, "zoom")
        return BBox(x0=bbox.x0 / z, y0=bbox.y0 / z, x1=bbox.x1 / z, y1=bbox.y1 / z)

    # ------------------------------------------------------------------
    # Vertical origin normalisation
    # ------------------------------------------------------------------

    @staticmethod
    def flip_y(bbox: BBox, page_height: float) -> BBox:
        """Convert a bottom-left-origin box (PDF user space) to top-left origin."""
        return BBox(
            x0=bbox.x0,
            y0=page_height - bbox.y1,
            x1=bbox.x1,
            y1=page_height - bbox.y0,
        )

    @staticmethod
    def baseline_to_top(x: float, baseline_y: float, width: float, height: float) -> BBox:
        """Box for a glyph whose origin sits on its baseline (top-left space).

        The glyph is assumed to extend *height* above the baseline.
        """
        return BBox.from_xywh(x, baseline_y - height, width, height)

    # ------------------------------------------------------------------
    # Affine matrices  [a, b, c, d, e, f]
    # ------------------------------------------------------------------

    @staticmethod
    def multiply(m1: Sequence[float], m2: Sequence[float]) -> Matrix:
        """Return ``m1 × m2``: apply *m2* first, then *m1*."""
        a, b, c, d, e, f = m1
        ta, tb, tc, td, te, tf = m2
        return (
            a * ta + c * tb,
            b * ta + d * tb,
            a * tc + c * td,
            b * tc + d * td,
            a * te + c * tf + e,
            b * te + d * tf + f,
        )

    @staticmethod
    def viewport_matrix(page_height: float, scale: float = 1.0) -> Matrix:
        """Matrix mapping PDF user space to top-left display space at *scale*."""
        s = _positive(scale, "scale")
        return (s, 0.0, 0.0, -s, 0.0, page_height * s)

    @staticmethod
    def font_size(m: Sequence[float]) -> float:
        """Vertical glyph size encoded in a text matrix."""
        return math.hypot(m[2], m[3])
