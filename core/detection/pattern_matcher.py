"""Regex scanning with validation gates over page text.

Every built-in pattern kind is bound at import time to a compiled regex and
a validator.  Validators are binary: a match either passes and is reported,
or fails and is silently dropped.  A validator that raises counts as a
failure.

Custom patterns are compiled per call.  Invalid regex syntax never raises:
the pattern is escaped and searched as a literal string instead.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, NamedTuple, Optional

from core.config import config
from core.detection.regex_patterns import (
    CUSTOM_DESCRIPTION,
    CUSTOM_FLAGS,
    CUSTOM_LABEL,
    PATTERNS as _PATTERNS,
)
from core.errors import PatternTooLongError
from models.schemas import MatchSpan, PatternKind

logger = logging.getLogger(__name__)

Validator = Callable[[str], bool]


class CompiledPattern(NamedTuple):
    kind: PatternKind
    regex: Optional[re.Pattern]       # None for CUSTOM, supplied per call
    validator: Optional[Validator]
    label: str
    description: str


# ═══════════════════════════════════════════════════════════════════════════
# Validation helpers
# ═══════════════════════════════════════════════════════════════════════════

_SEPARATORS_RE = re.compile(r"[-\s]")


def luhn_check(number_str: str) -> bool:
    """Luhn algorithm — validates credit card numbers.

    Every character must be a digit; anything else raises ``ValueError``.
    """
    checksum = 0
    for i, ch in enumerate(reversed(number_str)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        checksum += d
    return checksum % 10 == 0


def validate_ssn(text: str) -> bool:
    """Structural SSN rules: area not 000, 666 or 900–999; group not 00; serial not 0000."""
    digits = _SEPARATORS_RE.sub("", text)
    if len(digits) != 9 or not digits.isdigit():
        return False
    area = int(digits[:3])
    if area == 0 or area == 666 or area >= 900:
        return False
    if digits[3:5] == "00":
        return False
    if digits[5:] == "0000":
        return False
    return True


def validate_credit_card(text: str) -> bool:
    """13–19 digits once separators are stripped, passing the Luhn check."""
    digits = _SEPARATORS_RE.sub("", text)
    if len(digits) < 13 or len(digits) > 19:
        return False
    return luhn_check(digits)


def validate_phone(text: str) -> bool:
    """US phone numbers carry 10 digits, or 11 with the country code."""
    digits = re.sub(r"\D", "", text)
    return 10 <= len(digits) <= 11


_VALIDATORS: dict[PatternKind, Validator] = {
    PatternKind.SSN: validate_ssn,
    PatternKind.CREDIT_CARD: validate_credit_card,
    PatternKind.PHONE: validate_phone,
}


def _build_registry() -> dict[PatternKind, CompiledPattern]:
    registry: dict[PatternKind, CompiledPattern] = {}
    for kind, (pattern, flags, label, description) in _PATTERNS.items():
        registry[kind] = CompiledPattern(
            kind=kind,
            regex=re.compile(pattern, flags),
            validator=_VALIDATORS.get(kind),
            label=label,
            description=description,
        )
    registry[PatternKind.CUSTOM] = CompiledPattern(
        kind=PatternKind.CUSTOM,
        regex=None,
        validator=None,
        label=CUSTOM_LABEL,
        description=CUSTOM_DESCRIPTION,
    )
    return registry


# Compile once at import time
REGISTRY: dict[PatternKind, CompiledPattern] = _build_registry()


# ═══════════════════════════════════════════════════════════════════════════
# Custom patterns
# ═══════════════════════════════════════════════════════════════════════════

def compile_custom(pattern: str, case_sensitive: bool = False) -> re.Pattern:
    """Compile a user-supplied pattern, falling back to a literal search.

    Raises ``PatternTooLongError`` when the pattern exceeds
    ``config.max_custom_pattern_length``.
    """
    if len(pattern) > config.max_custom_pattern_length:
        raise PatternTooLongError(
            f"Custom pattern is {len(pattern)} chars; "
            f"maximum is {config.max_custom_pattern_length}"
        )
    flags = 0 if case_sensitive else CUSTOM_FLAGS
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        logger.debug(f"Invalid custom regex {pattern!r} ({exc}); searching literally")
        return re.compile(re.escape(pattern), flags)


# ═══════════════════════════════════════════════════════════════════════════
# Search
# ═══════════════════════════════════════════════════════════════════════════

def _passes(validator: Optional[Validator], matched_text: str, kind: PatternKind) -> bool:
    if validator is None:
        return True
    try:
        return bool(validator(matched_text))
    except Exception as exc:
        logger.debug(f"{kind.value} validator raised on {matched_text!r}: {exc}")
        return False


def search(
    text: str,
    pattern: PatternKind | str,
    custom_pattern: Optional[str] = None,
    case_sensitive: Optional[bool] = None,
) -> list[MatchSpan]:
    """Scan *text* for one pattern kind and return validated spans.

    Matches are global and non-overlapping, in text order.  Empty matches
    are skipped.  *case_sensitive* overrides the pattern's own flags; for
    built-ins the default keeps numeric patterns exact and everything else
    case-insensitive.  A CUSTOM search without *custom_pattern* finds
    nothing.
    """
    kind = PatternKind(pattern)
    entry = REGISTRY[kind]

    if kind == PatternKind.CUSTOM:
        if not custom_pattern:
            return []
        regex = compile_custom(custom_pattern, case_sensitive=bool(case_sensitive))
    else:
        regex = entry.regex
        if case_sensitive is not None:
            regex = re.compile(regex.pattern, 0 if case_sensitive else re.IGNORECASE)

    if not text:
        return []

    spans: list[MatchSpan] = []
    rejected = 0
    for m in regex.finditer(text):
        matched_text = m.group()
        if not matched_text:
            continue
        if not _passes(entry.validator, matched_text, kind):
            rejected += 1
            continue
        spans.append(MatchSpan(
            pattern_id=kind,
            start=m.start(),
            end=m.end(),
            text=matched_text,
        ))

    if rejected:
        logger.debug(f"{kind.value}: {rejected} match(es) failed validation")
    return spans


def search_all(
    text: str,
    patterns: Iterable[PatternKind | str],
    custom_pattern: Optional[str] = None,
) -> list[MatchSpan]:
    """Run :func:`search` for each kind in *patterns*; spans sorted by offset."""
    spans: list[MatchSpan] = []
    seen: set[PatternKind] = set()
    for pattern in patterns:
        kind = PatternKind(pattern)
        if kind in seen:
            continue
        seen.add(kind)
        spans.extend(search(text, kind, custom_pattern=custom_pattern))
    spans.sort(key=lambda s: (s.start, s.end))
    return spans
