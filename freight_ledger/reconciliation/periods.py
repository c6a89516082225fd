"""
Period bucketer - calendar buckets for filtering, summary cards and reports.

Period keys are fixed-width and zero-padded (``2026-02``, ``2026-T1``,
``2026-S2``, ``2026``), so lexicographic order is chronological order within
one granularity.
"""

import re
from collections.abc import Callable, Iterable
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, TypeVar

import structlog
from dateutil import parser as date_parser
from pydantic import BaseModel

logger = structlog.get_logger(component="period_bucketer")

T = TypeVar("T")

MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s].*)?$")
_BR_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_YEAR_FIRST = re.compile(r"^\d{4}\D")
_MONTH_KEY = re.compile(r"^(\d{4})-(\d{2})$")
_QUARTER_KEY = re.compile(r"^(\d{4})-T([1-4])$")
_SEMESTER_KEY = re.compile(r"^(\d{4})-S([12])$")


class Granularity(str, Enum):
    """Period granularity."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMESTRAL = "semestral"
    ANNUAL = "annual"

    @classmethod
    def parse(cls, value: Any) -> "Granularity":
        """
        Accept a Granularity, its value, or the Portuguese name.

        Raises:
            ValueError: If the name is unknown
        """
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        if name in _GRANULARITY_SYNONYMS:
            return _GRANULARITY_SYNONYMS[name]
        raise ValueError(f"Unknown period granularity: {value!r}")


_GRANULARITY_SYNONYMS = {
    "monthly": Granularity.MONTHLY,
    "mensal": Granularity.MONTHLY,
    "quarterly": Granularity.QUARTERLY,
    "trimestral": Granularity.QUARTERLY,
    "semestral": Granularity.SEMESTRAL,
    "semiannual": Granularity.SEMESTRAL,
    "annual": Granularity.ANNUAL,
    "anual": Granularity.ANNUAL,
    "yearly": Granularity.ANNUAL,
}


class Period(BaseModel):
    """A calendar bucket, derived and never stored."""

    granularity: Granularity
    key: str
    label: str


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_flexible_date(value: Any) -> Optional[date]:
    """
    Parse the date formats found in stored records.

    ``YYYY-MM-DD`` (optionally followed by a time) is read as a local calendar
    date without any timezone shift; ``DD/MM/YYYY`` is the Brazilian form;
    anything else goes through dateutil, year-first when the text starts
    with a four-digit year and day-first otherwise.

    Returns:
        The calendar date, or None when nothing matches
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or text.lower() in {"null", "undefined", "none"}:
        return None

    iso = _ISO_DATE.match(text)
    if iso:
        return _safe_date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    brazilian = _BR_DATE.match(text)
    if brazilian:
        return _safe_date(int(brazilian.group(3)), int(brazilian.group(2)), int(brazilian.group(1)))

    year_first = bool(_YEAR_FIRST.match(text))
    try:
        return date_parser.parse(text, dayfirst=not year_first, yearfirst=year_first).date()
    except (ValueError, OverflowError):
        return None


def bucket_key(value: Optional[date], granularity: Any) -> str:
    """
    Period key of a date at a granularity.

    Examples:
        >>> bucket_key(date(2026, 2, 10), "quarterly")
        '2026-T1'
        >>> bucket_key(date(2026, 7, 1), "semestral")
        '2026-S2'
    """
    granularity = Granularity.parse(granularity)
    if value is None:
        return ""

    if granularity == Granularity.MONTHLY:
        return f"{value.year:04d}-{value.month:02d}"
    if granularity == Granularity.QUARTERLY:
        return f"{value.year:04d}-T{(value.month + 2) // 3}"
    if granularity == Granularity.SEMESTRAL:
        return f"{value.year:04d}-S{1 if value.month <= 6 else 2}"
    return f"{value.year:04d}"


def record_key(record: T, granularity: Any, date_selector: Callable[[T], Any]) -> str:
    """Period key of a record, "" when its date cannot be parsed."""
    return bucket_key(parse_flexible_date(date_selector(record)), granularity)


def derive_periods(
    records: Optional[Iterable[T]],
    granularity: Any,
    date_selector: Callable[[T], Any],
) -> list[str]:
    """
    Sorted, de-duplicated period keys present in a dataset.

    Records without a parseable date contribute nothing.
    """
    granularity = Granularity.parse(granularity)
    keys = {record_key(record, granularity, date_selector) for record in records or []}
    keys.discard("")
    return sorted(keys)


def default_period(granularity: Any, now: Optional[date] = None) -> str:
    """Period key of ``now`` (today by default)."""
    if now is None:
        now = date.today()
    elif isinstance(now, datetime):
        now = now.date()
    return bucket_key(now, granularity)


def format_label(key: str, granularity: Any) -> str:
    """
    Display label of a period key.

    Examples:
        >>> format_label("2026-02", "monthly")
        'Fevereiro 2026'
        >>> format_label("2026-T3", "quarterly")
        '3º Trimestre 2026'
    """
    granularity = Granularity.parse(granularity)

    if granularity == Granularity.MONTHLY:
        match = _MONTH_KEY.match(key)
        if match and 1 <= int(match.group(2)) <= 12:
            return f"{MONTH_NAMES[int(match.group(2)) - 1]} {match.group(1)}"
    elif granularity == Granularity.QUARTERLY:
        match = _QUARTER_KEY.match(key)
        if match:
            return f"{match.group(2)}º Trimestre {match.group(1)}"
    elif granularity == Granularity.SEMESTRAL:
        match = _SEMESTER_KEY.match(key)
        if match:
            return f"{match.group(2)}º Semestre {match.group(1)}"

    # Annual keys, and keys that do not fit their granularity, are shown as is
    return key


def build_periods(keys: Iterable[str], granularity: Any) -> list[Period]:
    """Wrap period keys with their labels."""
    granularity = Granularity.parse(granularity)
    return [Period(granularity=granularity, key=key, label=format_label(key, granularity)) for key in keys]


def filter_by_period(
    records: Optional[Iterable[T]],
    key: Optional[str],
    granularity: Any,
    date_selector: Callable[[T], Any],
) -> list[T]:
    """Records whose date falls in the period ``key``."""
    if not key:
        return []
    granularity = Granularity.parse(granularity)
    return [
        record for record in records or [] if record_key(record, granularity, date_selector) == key
    ]


def filter_by_date_range(
    records: Optional[Iterable[T]],
    start: Any,
    end: Any,
    date_selector: Callable[[T], Any],
) -> list[T]:
    """
    Records dated within ``[start, end]``; either bound may be omitted.

    Records whose date cannot be parsed never match.
    """
    start_date = parse_flexible_date(start) if start is not None else None
    end_date = parse_flexible_date(end) if end is not None else None

    selected: list[T] = []
    for record in records or []:
        record_date = parse_flexible_date(date_selector(record))
        if record_date is None:
            continue
        if start_date is not None and record_date < start_date:
            continue
        if end_date is not None and record_date > end_date:
            continue
        selected.append(record)
    return selected


def summarize_date_span(values: Iterable[Any]) -> str:
    """
    Human description of the dates covered by a payment batch.

    One day gives ``10/02/2026``; several days within a month give
    ``05 a 20 de fevereiro/2026``; anything wider gives
    ``28/01/2026 a 03/02/2026``. Unparseable dates are ignored.
    """
    dates = sorted(d for d in (parse_flexible_date(value) for value in values) if d is not None)
    if not dates:
        return ""

    first, last = dates[0], dates[-1]
    if first == last:
        return first.strftime("%d/%m/%Y")
    if (first.year, first.month) == (last.year, last.month):
        month = MONTH_NAMES[first.month - 1].lower()
        return f"{first.day:02d} a {last.day:02d} de {month}/{first.year}"
    return f"{first.strftime('%d/%m/%Y')} a {last.strftime('%d/%m/%Y')}"


class PeriodSelection:
    """
    Selected period held by a screen, kept consistent with the dataset.

    Starts on the default period of its granularity. It becomes unset only
    when a granularity change finds no periods at all, and recovers on the
    next reload that brings data.
    """

    def __init__(
        self,
        granularity: Any = Granularity.MONTHLY,
        key: Optional[str] = None,
        now: Optional[date] = None,
    ) -> None:
        self.granularity = Granularity.parse(granularity)
        self.key: Optional[str] = key if key is not None else default_period(self.granularity, now)

    @property
    def is_unset(self) -> bool:
        return self.key is None

    def select(self, key: str) -> None:
        """Explicit user choice."""
        self.key = key

    def change_granularity(
        self, granularity: Any, periods: list[str], now: Optional[date] = None
    ) -> Optional[str]:
        """
        Switch granularity and pick a period for it.

        Args:
            granularity: New granularity
            periods: ``derive_periods`` of the current dataset at that granularity
            now: Reference date for the default period

        Returns:
            The selected key, or None when the dataset has no periods
        """
        self.granularity = Granularity.parse(granularity)
        if not periods:
            self.key = None
        else:
            preferred = default_period(self.granularity, now)
            self.key = preferred if preferred in periods else periods[-1]
        logger.debug("period_granularity_changed", granularity=self.granularity.value, key=self.key)
        return self.key

    def reload(self, periods: list[str], now: Optional[date] = None) -> Optional[str]:
        """
        Reconcile the selection with freshly derived periods.

        A selection missing from the new list moves to the most recent period;
        an empty list leaves the selection untouched.
        """
        if not periods:
            return self.key
        if self.key is None:
            preferred = default_period(self.granularity, now)
            self.key = preferred if preferred in periods else periods[-1]
        elif self.key not in periods:
            logger.debug("period_selection_stale", stale=self.key, replacement=periods[-1])
            self.key = periods[-1]
        return self.key

    def is_default(self, now: Optional[date] = None) -> bool:
        """Whether the selection is the current default period."""
        return self.key == default_period(self.granularity, now)

    @property
    def label(self) -> str:
        return format_label(self.key, self.granularity) if self.key else ""
