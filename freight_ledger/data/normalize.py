"""
Reference normalization and safe value coercion.

Everything in here is total: any input produces a value, never an exception.
Records arrive from the remote store with loosely typed fields (numbers as
Brazilian-formatted strings, ids as integers, missing keys), so every model
field passes through one of these helpers before validation.
"""

import math
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal("0")

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_CURRENCY_PREFIX = re.compile(r"^(?:R\$|US\$|\$)\s*", re.IGNORECASE)
# "1.234,56", "1234,5", "1234"
_BR_NUMBER = re.compile(r"^-?(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")
# "1,234.56"
_US_NUMBER = re.compile(r"^-?\d{1,3}(?:,\d{3})+(?:\.\d+)?$")


def normalize_reference(value: Any) -> str:
    """
    Canonicalize an identifier or code for comparison.

    Trims, lowercases, strips diacritics and drops every character that is not
    a lowercase ASCII letter or digit. ``None`` and blanks normalize to ``""``.

    Examples:
        >>> normalize_reference(" FRETE-2026-007 ")
        'frete2026007'
        >>> normalize_reference("Pedágio")
        'pedagio'
    """
    if value is None:
        return ""
    text = str(value).strip().lower()
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped)


def to_text(value: Any) -> str:
    """Convert an optional value to a trimmed string ("" for None)."""
    if value is None:
        return ""
    return str(value).strip()


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a loosely typed numeric value to a finite Decimal.

    Accepts ints, floats, Decimals and strings, including Brazilian formatted
    text such as ``"R$ 1.234,56"``. Plain numeric text is parsed as is, so
    ``"1e3"`` is 1000. Anything unparseable or ambiguous, NaN or infinite
    becomes ``Decimal("0")`` so it can never poison a running total.
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ZERO
        return Decimal(str(value))

    text = str(value).strip()
    if not text:
        return ZERO

    number = _parse_decimal(text)
    if number is None:
        number = _parse_formatted(text)
    return number if number is not None and number.is_finite() else ZERO


def _parse_decimal(text: str) -> Optional[Decimal]:
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def _parse_formatted(text: str) -> Optional[Decimal]:
    """Brazilian or US grouped amounts, optionally with a currency prefix."""
    text = _CURRENCY_PREFIX.sub("", text).replace(" ", "")
    if _BR_NUMBER.match(text):
        return _parse_decimal(text.replace(".", "").replace(",", "."))
    if _US_NUMBER.match(text):
        return _parse_decimal(text.replace(",", ""))
    return None
