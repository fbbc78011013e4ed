"""Exception hierarchy for the glyph index.

Input-data problems (empty OCR, bad custom regex) are handled where they
occur and never reach callers as exceptions.  What remains here is split
between caller mistakes, environment failures, and internal bugs.
"""

from __future__ import annotations


class GlyphIndexError(Exception):
    """Base class for every error raised by this package."""


class InternalIndexError(GlyphIndexError):
    """An internal invariant was violated; always a bug, never bad input."""


class IndexConsistencyError(InternalIndexError):
    """The built text and its character map disagree in length."""

    def __init__(self, text_len: int, map_len: int) -> None:
        super().__init__(
            f"Index consistency violated: text has {text_len} chars "
            f"but char map has {map_len} slots"
        )
        self.text_len = text_len
        self.map_len = map_len


class OCREngineUnavailable(GlyphIndexError):
    """The OCR engine is missing or failed to initialise."""


class PatternTooLongError(GlyphIndexError, ValueError):
    """A user-supplied custom pattern exceeds the configured maximum length."""
