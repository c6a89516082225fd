"""
Reconciliation and aggregation components.

This module contains:
- Linker: Matching cost entries to freights
- Rollup: Revenue, cost and margin per freight and category
- Availability: Freights still eligible for payment
- Periods: Calendar bucketing and period selection
- Pagination: Server-paged vs client-paged listings
- Settlement: Driver payment drafts
- Ledger: Snapshot pipeline and session
"""

from .availability import compute_available, paid_freight_ids
from .ledger import LedgerSession, LedgerSnapshot
from .linker import build_join_keys, fallback_code, is_linked
from .pagination import ClientPaged, FilterState, PageCursor, PageResult, ServerPaged, paginate
from .periods import Granularity, PeriodSelection, bucket_key, derive_periods, parse_flexible_date
from .rollup import (
    FreightView,
    categorize,
    compare_by_code_desc,
    costs_for_freight,
    effective_cost,
    enrich_freights,
)
from .settlement import PaymentDraft, PaymentDraftBuilder

__all__ = [
    "is_linked",
    "fallback_code",
    "build_join_keys",
    "costs_for_freight",
    "effective_cost",
    "categorize",
    "compare_by_code_desc",
    "enrich_freights",
    "FreightView",
    "compute_available",
    "paid_freight_ids",
    "Granularity",
    "PeriodSelection",
    "bucket_key",
    "derive_periods",
    "parse_flexible_date",
    "ServerPaged",
    "ClientPaged",
    "FilterState",
    "PageCursor",
    "PageResult",
    "paginate",
    "PaymentDraft",
    "PaymentDraftBuilder",
    "LedgerSnapshot",
    "LedgerSession",
]
