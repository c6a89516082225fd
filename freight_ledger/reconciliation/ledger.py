"""
Ledger snapshot and session - the pipeline from raw collections to pages.

The four collections (freights, costs, payments, farms) arrive independently.
A snapshot holds the latest copy of each (``None`` until loaded) and derives
every view on demand, so the final numbers do not depend on arrival order.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from freight_ledger.core.config import DEFAULT_FALLBACK_CODE_LENGTH, ConfigManager, get_config
from freight_ledger.data.models import (
    CostCategory,
    CostEntry,
    FarmStock,
    FreightRecord,
    PaymentBatch,
)
from freight_ledger.gateway import (
    COLLECTIONS,
    COSTS,
    FARMS,
    FREIGHTS,
    PAYMENTS,
    MutationCommand,
    MutationGateway,
)
from freight_ledger.reconciliation.availability import compute_available, eligible_farms
from freight_ledger.reconciliation.linker import LinkReport, build_join_keys
from freight_ledger.reconciliation.pagination import (
    FilterState,
    PageCursor,
    PageResult,
    plan_pagination,
    resolve_page,
)
from freight_ledger.reconciliation.periods import derive_periods, filter_by_period
from freight_ledger.reconciliation.rollup import (
    FreightView,
    RollupSummary,
    aggregate_costs_by_category,
    categorize,
    enrich_freights,
    sort_by_code_desc,
    summarize,
)

_MODELS = {
    FREIGHTS: FreightRecord,
    COSTS: CostEntry,
    PAYMENTS: PaymentBatch,
    FARMS: FarmStock,
}


def _freight_date(freight: FreightRecord) -> Any:
    return freight.date


def _view_date(view: FreightView) -> Any:
    return view.freight.date


def _cost_date(cost: CostEntry) -> Any:
    return cost.date


def _matches_search(text: str, values: Iterable[Any]) -> bool:
    needle = text.strip().casefold()
    if not needle:
        return True
    return any(needle in str(value or "").casefold() for value in values)


class LedgerSnapshot(BaseModel):
    """Latest copy of each input collection; ``None`` means not loaded yet."""

    model_config = ConfigDict(frozen=True)

    freights: Optional[tuple[FreightRecord, ...]] = None
    costs: Optional[tuple[CostEntry, ...]] = None
    payments: Optional[tuple[PaymentBatch, ...]] = None
    farms: Optional[tuple[FarmStock, ...]] = None

    def with_collection(self, collection: str, records: Iterable[Any]) -> "LedgerSnapshot":
        """New snapshot with one collection replaced."""
        if collection not in COLLECTIONS:
            raise KeyError(f"Unknown collection: {collection}")
        return self.model_copy(update={collection: tuple(records)})

    def with_freights(self, records: Iterable[FreightRecord]) -> "LedgerSnapshot":
        return self.with_collection(FREIGHTS, records)

    def with_costs(self, records: Iterable[CostEntry]) -> "LedgerSnapshot":
        return self.with_collection(COSTS, records)

    def with_payments(self, records: Iterable[PaymentBatch]) -> "LedgerSnapshot":
        return self.with_collection(PAYMENTS, records)

    def with_farms(self, records: Iterable[FarmStock]) -> "LedgerSnapshot":
        return self.with_collection(FARMS, records)

    def invalidate(self, *collections: str) -> "LedgerSnapshot":
        """New snapshot with the given collections marked as not loaded."""
        return self.model_copy(update={name: None for name in collections if name in COLLECTIONS})

    def is_loaded(self, collection: str) -> bool:
        return getattr(self, collection) is not None

    @property
    def is_complete(self) -> bool:
        """Whether every collection has arrived."""
        return all(self.is_loaded(name) for name in COLLECTIONS)

    # Derived views

    def freight_views(self, code_length: int = DEFAULT_FALLBACK_CODE_LENGTH) -> list[FreightView]:
        """Freights with linked costs, effective cost and result."""
        return enrich_freights(self.freights, self.costs, code_length)

    def available_freights(self) -> list[FreightRecord]:
        """Freights that can still be included in a new payment."""
        return compute_available(self.freights, self.payments)

    def active_farms(self) -> list[FarmStock]:
        return eligible_farms(self.farms)

    def summary(self, views: Optional[Sequence[FreightView]] = None) -> RollupSummary:
        return summarize(self.freight_views() if views is None else views)

    def cost_totals_by_category(
        self,
        costs: Optional[Iterable[CostEntry]] = None,
        keywords: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> dict[CostCategory, Decimal]:
        return aggregate_costs_by_category(self.costs if costs is None else costs, keywords)

    def freight_periods(self, granularity: Any) -> list[str]:
        return derive_periods(self.freights, granularity, _freight_date)

    def cost_periods(self, granularity: Any) -> list[str]:
        return derive_periods(self.costs, granularity, _cost_date)

    def link_report(self) -> LinkReport:
        """Resolve every cost entry to one freight, for key backfill."""
        return build_join_keys(self.costs, self.freights)


class LedgerSession:
    """
    Holds the current snapshot and routes mutations through the gateway.

    Receives collections as the data-access layer delivers them and answers
    listing queries with filtered, period-bucketed, paginated views.
    """

    def __init__(
        self,
        gateway: MutationGateway,
        config_manager: Optional[ConfigManager] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            gateway: Data-access boundary that applies mutation commands
            config_manager: Optional config manager (defaults to global instance)
            logger: Optional structured logger
        """
        self.gateway = gateway
        self.config_manager = config_manager or get_config()
        self.logger = logger or structlog.get_logger(component="ledger_session")
        self.snapshot = LedgerSnapshot()
        self.category_keywords = self.config_manager.get_category_keywords().as_dict()
        self.code_length = self.config_manager.get_fallback_code_length()

    def receive(self, collection: str, rows: Iterable[Any]) -> LedgerSnapshot:
        """
        Accept a freshly fetched collection.

        Args:
            collection: One of "freights", "costs", "payments", "farms"
            rows: Wire dictionaries or already parsed models

        Returns:
            The new snapshot
        """
        if collection not in _MODELS:
            raise KeyError(f"Unknown collection: {collection}")
        model = _MODELS[collection]
        records = [row if isinstance(row, model) else model.model_validate(row) for row in rows]
        self.snapshot = self.snapshot.with_collection(collection, records)
        self.logger.info("collection_received", collection=collection, count=len(records))
        return self.snapshot

    def dispatch(self, command: MutationCommand) -> LedgerSnapshot:
        """
        Send a mutation through the gateway and invalidate affected views.

        Gateway errors propagate and leave the snapshot unchanged.
        """
        self.gateway.apply(command)
        self.snapshot = self.snapshot.invalidate(*command.affects)
        self.logger.info(
            "command_dispatched",
            command=type(command).__name__,
            invalidated=list(command.affects),
        )
        return self.snapshot

    def freight_listing(
        self,
        filters: FilterState,
        cursor: PageCursor,
        server_total_pages: int = 1,
        server_items: Optional[Sequence[FreightRecord]] = None,
        page_size: Optional[int] = None,
        now: Optional[date] = None,
    ) -> PageResult:
        """
        Page of freight views for a listing screen.

        Search matches code, id, route, driver and truck; the selected period
        narrows by freight date. Without active filters the server page is
        shown as fetched.
        """
        page_size = page_size or self.config_manager.get_page_size()
        views = sort_by_code_desc(self.snapshot.freight_views(self.code_length))

        if filters.search.strip():
            views = [
                view
                for view in views
                if _matches_search(
                    filters.search,
                    (
                        view.display_code,
                        view.id,
                        view.freight.origin,
                        view.freight.destination,
                        view.freight.driver_name,
                        view.freight.truck_plate,
                    ),
                )
            ]
        if filters.selected_period:
            views = filter_by_period(views, filters.selected_period, filters.granularity, _view_date)

        # Category filters only apply to costs
        active = filters.model_copy(update={"categories": []}).is_active(now)
        cursor.observe(active)

        server_views = enrich_freights(server_items or [], self.snapshot.costs, self.code_length)
        plan = plan_pagination(active, cursor.page, server_total_pages, server_views, views)
        return resolve_page(plan, cursor.page, page_size)

    def cost_listing(
        self,
        filters: FilterState,
        cursor: PageCursor,
        server_total_pages: int = 1,
        server_items: Optional[Sequence[CostEntry]] = None,
        page_size: Optional[int] = None,
        now: Optional[date] = None,
    ) -> PageResult:
        """Page of cost entries filtered by search text, category and period."""
        page_size = page_size or self.config_manager.get_page_size()
        costs: list[CostEntry] = list(self.snapshot.costs or [])

        if filters.search.strip():
            costs = [
                cost
                for cost in costs
                if _matches_search(filters.search, (cost.description, cost.freight_ref, cost.category))
            ]
        wanted = {category for category in filters.categories if category and category != "all"}
        if wanted:
            costs = [
                cost for cost in costs if categorize(cost.category, self.category_keywords).value in wanted
            ]
        if filters.selected_period:
            costs = filter_by_period(costs, filters.selected_period, filters.granularity, _cost_date)

        active = filters.is_active(now)
        cursor.observe(active)

        plan = plan_pagination(active, cursor.page, server_total_pages, list(server_items or []), costs)
        return resolve_page(plan, cursor.page, page_size)

    def cost_totals_by_category(self) -> dict[CostCategory, Decimal]:
        """Category cost totals using configured keywords."""
        return self.snapshot.cost_totals_by_category(keywords=self.category_keywords)
