"""Declarative regex pattern definitions for sensitive-data search.

This module contains the pattern data only, in a purely declarative format.
The matching and validation logic lives in ``pattern_matcher.py``.
"""

from __future__ import annotations

import re

from models.schemas import PatternKind

_NOFLAGS = 0
_IC = re.IGNORECASE

_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"


# Each entry: (pattern, flags, label, description)
# Purely numeric patterns are compiled case-sensitively; everything else
# ignores case.
PATTERNS: dict[PatternKind, tuple[str, int, str, str]] = {
    PatternKind.SSN: (
        r"\b\d{3}[-\s]?\d{2}[-\s]?\d{4}\b",
        _NOFLAGS,
        "Social Security Numbers",
        "XXX-XX-XXXX format",
    ),
    PatternKind.CREDIT_CARD: (
        r"\b(?:\d{4}[-\s]?){3}\d{1,4}\b",
        _NOFLAGS,
        "Credit Card Numbers",
        "Visa, Mastercard, Amex, Discover",
    ),
    PatternKind.EMAIL: (
        r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b",
        _IC,
        "Email Addresses",
        "user@domain.com",
    ),
    PatternKind.PHONE: (
        r"(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b",
        _NOFLAGS,
        "Phone Numbers",
        "US formats: (555) 123-4567, 555-123-4567, +1 555 123 4567",
    ),
    PatternKind.DATE: (
        rf"\b(?:\d{{1,2}}[/\-]\d{{1,2}}[/\-]\d{{2,4}}|{_MONTHS}\.?\s+\d{{1,2}},?\s+\d{{4}})\b",
        _IC,
        "Dates",
        "MM/DD/YYYY, MM-DD-YYYY, Month DD, YYYY",
    ),
}

CUSTOM_LABEL = "Custom Pattern"
CUSTOM_DESCRIPTION = "Enter your own regex or text to find"

# Flags for user-supplied patterns (the original text may contain letters)
CUSTOM_FLAGS = _IC
