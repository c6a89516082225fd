"""
Pagination resolver - server-paged or client-paged slices.

Without filters the caller fetched exactly one page from the server and its
page count is trusted. With any filter active the server page holds
unfiltered rows, so the whole filtered collection (already loaded) is paged
locally instead. The choice is made once, when the query is planned.
"""

import math
from collections.abc import Sequence
from datetime import date
from typing import Any, Generic, Optional, TypeVar, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from freight_ledger.reconciliation.periods import Granularity, default_period

logger = structlog.get_logger(component="pagination_resolver")

T = TypeVar("T")


class ServerPaged(BaseModel, Generic[T]):
    """One page as fetched from the server, with its reported page count."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    page: int = 1
    total_pages: int = 1
    items: list[T] = Field(default_factory=list)


class ClientPaged(BaseModel, Generic[T]):
    """The full filtered collection, paged locally."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    full_set: list[T] = Field(default_factory=list)


PaginationPlan = Union[ServerPaged, ClientPaged]


class PageResult(BaseModel, Generic[T]):
    """Page count and the rows to display."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    effective_total_pages: int
    page_slice: list[T]


class FilterState(BaseModel):
    """Filters a listing screen can apply on top of server pagination."""

    search: str = ""
    categories: list[str] = Field(default_factory=list)
    granularity: Granularity = Granularity.MONTHLY
    selected_period: Optional[str] = None

    def is_active(self, now: Optional[date] = None) -> bool:
        """True when any filter differs from its default."""
        if self.search.strip():
            return True
        if any(category and category != "all" for category in self.categories):
            return True
        if self.selected_period is None:
            return False
        return self.selected_period != default_period(self.granularity, now)


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for ``count`` rows."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return math.ceil(count / page_size)


def plan_pagination(
    filtering_active: bool,
    server_page: int,
    server_total_pages: int,
    server_items: Sequence[T],
    filtered_items: Sequence[T],
) -> PaginationPlan:
    """
    Decide once how a listing is paginated.

    Args:
        filtering_active: Whether any non-default filter is applied
        server_page: Page number the server returned
        server_total_pages: Page count reported by the server
        server_items: Rows of that server page
        filtered_items: Full filtered collection loaded client-side

    Returns:
        ServerPaged when no filter is active, otherwise ClientPaged
    """
    if filtering_active:
        return ClientPaged(full_set=list(filtered_items))
    return ServerPaged(page=server_page, total_pages=server_total_pages, items=list(server_items))


def resolve_page(plan: PaginationPlan, page: int, page_size: int) -> PageResult:
    """
    Slice the rows to display for a page.

    Args:
        plan: Output of ``plan_pagination``
        page: Requested 1-based page (values below 1 clamp to 1)
        page_size: Rows per page

    Returns:
        PageResult with at most ``page_size`` rows

    Raises:
        ValueError: If page_size is not positive
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    page = max(page, 1)

    if isinstance(plan, ServerPaged):
        return PageResult(
            effective_total_pages=max(plan.total_pages, 0),
            page_slice=list(plan.items[:page_size]),
        )

    start = (page - 1) * page_size
    return PageResult(
        effective_total_pages=total_pages(len(plan.full_set), page_size),
        page_slice=list(plan.full_set[start : start + page_size]),
    )


def paginate(
    server_total_pages: int,
    items: Sequence[T],
    page: int,
    page_size: int,
    filtering_active: bool,
) -> PageResult:
    """
    One-shot form: trust the server when unfiltered, else page ``items`` locally.

    ``items`` is the server page when unfiltered and the full filtered
    collection when filtering.
    """
    plan = plan_pagination(filtering_active, page, server_total_pages, items, items)
    return resolve_page(plan, page, page_size)


class PageCursor:
    """Current page of a listing; resets to 1 when filtering toggles."""

    def __init__(self, page: int = 1) -> None:
        self.page = max(page, 1)
        self._filtering: Optional[bool] = None

    def go_to(self, page: int, total: Optional[int] = None) -> int:
        """Move to a page, clamped to ``[1, total]`` when total is known."""
        page = max(page, 1)
        if total is not None and total > 0:
            page = min(page, total)
        self.page = page
        return self.page

    def observe(self, filtering_active: bool) -> int:
        """Record the filter state; a transition into or out of filtering resets to page 1."""
        if self._filtering is not None and filtering_active != self._filtering:
            logger.debug("page_reset_on_filter_change", filtering=filtering_active)
            self.page = 1
        self._filtering = filtering_active
        return self.page

    def __repr__(self) -> str:
        return f"PageCursor(page={self.page})"


def page_window(current: int, total: int, radius: int = 1) -> list[Any]:
    """
    Page numbers to show in a pager, with ``"..."`` gaps.

    Keeps the first and last page and ``radius`` pages around the current one.
    """
    if total <= 0:
        return []
    window: list[Any] = []
    for number in range(1, total + 1):
        if number in (1, total) or abs(number - current) <= radius:
            window.append(number)
        elif window and window[-1] != "...":
            window.append("...")
    return window
