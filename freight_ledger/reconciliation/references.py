"""
Freight code parsing and display formatting.

Codes are free text typed by operators ("FRETE-2026-007", "FRT 2026/81",
"1250"). Ordering only relies on the trailing numeric parts; linking never
uses anything here.
"""

import re
from datetime import date
from typing import Any, Optional

from freight_ledger.data.normalize import to_text

_YEAR_SEQUENCE = re.compile(r"(\d{4})\D*(\d+)$")
_TRAILING_DIGITS = re.compile(r"(\d+)$")
_CANONICAL_CODE = re.compile(r"^FRETE-(\d{4})-(\d+)$", re.IGNORECASE)
_NUMERIC = re.compile(r"^\d+$")


def extract_year_sequence(code: Any) -> Optional[tuple[int, int]]:
    """
    Extract ``(year, sequence)`` from a trailing ``year ... sequence`` pattern.

    Examples:
        >>> extract_year_sequence("FRETE-2026-007")
        (2026, 7)
        >>> extract_year_sequence("sem numero") is None
        True
    """
    match = _YEAR_SEQUENCE.search(to_text(code))
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def trailing_sequence(code: Any) -> Optional[int]:
    """Digits at the end of a code, as an integer."""
    match = _TRAILING_DIGITS.search(to_text(code))
    return int(match.group(1)) if match else None


def format_freight_code(
    value: Any,
    freight_date: Optional[date] = None,
    fallback_sequence: Optional[int] = None,
    today: Optional[date] = None,
) -> str:
    """
    Canonical display form of a freight code.

    ``FRETE-YYYY-N`` is zero-padded to three sequence digits; a bare number is
    prefixed with ``FRETE-<year>-`` using the freight's year (or today's);
    any other text is upper-cased. Empty values use ``fallback_sequence`` when
    given, else yield ``""``.

    Args:
        value: Raw code as stored
        freight_date: Date of the freight, used for the year of bare numbers
        fallback_sequence: Sequence to use when no code is stored
        today: Reference date when the freight date is unknown

    Returns:
        Display code
    """
    raw = to_text(value)
    year = (freight_date or today or date.today()).year

    if raw:
        canonical = _CANONICAL_CODE.match(raw)
        if canonical:
            return f"FRETE-{canonical.group(1)}-{canonical.group(2).zfill(3)}"
        if _NUMERIC.match(raw):
            return f"FRETE-{year}-{raw.zfill(3)}"
        return raw.upper()

    if fallback_sequence is not None:
        return f"FRETE-{year}-{str(fallback_sequence).zfill(3)}"

    return ""
