"""
Financial rollup - revenue, cost and margin per freight and per category.

Cost authority rule: once a freight has at least one itemized cost entry, the
itemized sum replaces the stored fallback cost entirely. With none, the stored
fallback is shown instead of zero. Costs that have not loaded yet (``None``)
are treated as "no itemized costs", so views degrade to fallbacks and become
exact once costs arrive.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from decimal import Decimal
from functools import cmp_to_key
from typing import Any, Optional, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict

from freight_ledger.core.config import DEFAULT_CATEGORY_KEYWORDS, DEFAULT_FALLBACK_CODE_LENGTH
from freight_ledger.data.models import CostCategory, CostEntry, FreightRecord
from freight_ledger.data.normalize import ZERO, normalize_reference, to_text
from freight_ledger.reconciliation.linker import fallback_code, is_linked
from freight_ledger.reconciliation.references import extract_year_sequence, trailing_sequence

logger = structlog.get_logger(component="financial_rollup")

T = TypeVar("T")

HUNDRED = Decimal("100")
CENTS = Decimal("0.01")

_KEYWORD_ORDER = (CostCategory.FUEL, CostCategory.MAINTENANCE, CostCategory.TOLL)


class FreightView(BaseModel):
    """Freight enriched with derived financial fields."""

    model_config = ConfigDict(frozen=True)

    freight: FreightRecord
    display_code: str
    linked_cost_total: Decimal
    effective_cost: Decimal
    result: Decimal
    margin_pct: Decimal

    @property
    def id(self) -> str:
        return self.freight.id

    @property
    def code(self) -> Optional[str]:
        return self.freight.code

    @property
    def revenue(self) -> Decimal:
        return self.freight.gross_revenue

    @property
    def has_itemized_costs(self) -> bool:
        """Whether itemized costs replaced the stored fallback."""
        return self.linked_cost_total > 0


class RollupSummary(BaseModel):
    """Totals across a collection of freight views."""

    freight_count: int = 0
    total_weight: Decimal = ZERO
    total_sacks: Decimal = ZERO
    total_revenue: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_result: Decimal = ZERO
    margin_pct: Decimal = ZERO


# ---------------------------------------------------------------------------
# Per-freight costs
# ---------------------------------------------------------------------------


def linked_costs(
    costs: Optional[Iterable[CostEntry]], freight_id: Any, freight_code: Any = None
) -> list[CostEntry]:
    """Cost entries linked to a freight, in input order."""
    return [cost for cost in costs or [] if is_linked(cost.freight_ref, freight_id, freight_code)]


def costs_for_freight(
    costs: Optional[Iterable[CostEntry]], freight_id: Any, freight_code: Any = None
) -> Decimal:
    """Sum of linked cost amounts; 0 when none are linked or costs are not loaded."""
    return sum(
        (cost.amount for cost in linked_costs(costs, freight_id, freight_code)),
        ZERO,
    )


def effective_cost(freight: FreightRecord, linked_costs_sum: Decimal) -> Decimal:
    """Itemized cost sum when positive, otherwise the stored fallback cost."""
    if linked_costs_sum > 0:
        return linked_costs_sum
    return freight.stored_cost


def freight_result(freight: FreightRecord, linked_costs_sum: Decimal) -> Decimal:
    """Revenue minus effective cost."""
    return freight.gross_revenue - effective_cost(freight, linked_costs_sum)


def margin_pct(result: Decimal, revenue: Decimal) -> Decimal:
    """Result as a percentage of revenue, rounded to cents (0 without revenue)."""
    if revenue == 0:
        return ZERO
    return (result / revenue * HUNDRED).quantize(CENTS)


def _index_costs(costs: Optional[Iterable[CostEntry]]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for cost in costs or []:
        key = normalize_reference(cost.freight_ref)
        if key:
            totals[key] = totals.get(key, ZERO) + cost.amount
    return totals


def _indexed_total(index: Mapping[str, Decimal], freight: FreightRecord) -> Decimal:
    id_key = normalize_reference(freight.id)
    code_key = normalize_reference(freight.code)
    total = index.get(id_key, ZERO) if id_key else ZERO
    if code_key and code_key != id_key:
        total += index.get(code_key, ZERO)
    return total


def _build_view(
    freight: FreightRecord, linked_total: Decimal, code_length: int = DEFAULT_FALLBACK_CODE_LENGTH
) -> FreightView:
    cost = effective_cost(freight, linked_total)
    result = freight.gross_revenue - cost
    return FreightView(
        freight=freight,
        display_code=freight.code or fallback_code(freight.id, code_length),
        linked_cost_total=linked_total,
        effective_cost=cost,
        result=result,
        margin_pct=margin_pct(result, freight.gross_revenue),
    )


def enrich_freight(
    freight: FreightRecord,
    costs: Optional[Iterable[CostEntry]],
    code_length: int = DEFAULT_FALLBACK_CODE_LENGTH,
) -> FreightView:
    """Derive the financial view of a single freight."""
    return _build_view(freight, costs_for_freight(costs, freight.id, freight.code), code_length)


def enrich_freights(
    freights: Optional[Iterable[FreightRecord]],
    costs: Optional[Iterable[CostEntry]],
    code_length: int = DEFAULT_FALLBACK_CODE_LENGTH,
) -> list[FreightView]:
    """
    Derive financial views for a collection of freights.

    Costs are indexed once by normalized reference, so this is linear in the
    number of freights plus costs.

    Args:
        freights: Freights to enrich (None when not loaded)
        costs: All cost entries (None when not loaded)
        code_length: Identifier characters in the fallback display code

    Returns:
        One FreightView per freight, in input order
    """
    cost_list = list(costs) if costs is not None else None
    index = _index_costs(cost_list)
    views = [
        _build_view(freight, _indexed_total(index, freight), code_length) for freight in freights or []
    ]
    logger.debug("freights_enriched", count=len(views), costs_loaded=cost_list is not None)
    return views


def summarize(views: Iterable[FreightView]) -> RollupSummary:
    """Totals of revenue, cost, result, weight and sacks across views."""
    count = 0
    weight = sacks = revenue = cost = result = ZERO
    for view in views:
        count += 1
        weight += view.freight.weight_tons
        sacks += view.freight.sacks
        revenue += view.revenue
        cost += view.effective_cost
        result += view.result

    return RollupSummary(
        freight_count=count,
        total_weight=weight,
        total_sacks=sacks,
        total_revenue=revenue,
        total_cost=cost,
        total_result=result,
        margin_pct=margin_pct(result, revenue),
    )


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def categorize(raw_category: Any, keywords: Optional[Mapping[str, Sequence[str]]] = None) -> CostCategory:
    """
    Map free-text category text onto the closed category set.

    Matching is substring containment on the normalized text, so "Combustível",
    "COMBUSTIVEL" and "combustivel-diesel" all land on FUEL. Unknown text falls
    into OTHER.

    Args:
        raw_category: Category text as stored
        keywords: Optional keyword lists keyed by category value

    Returns:
        CostCategory
    """
    keywords = keywords or DEFAULT_CATEGORY_KEYWORDS
    normalized = normalize_reference(raw_category)
    if not normalized:
        return CostCategory.OTHER

    for category in _KEYWORD_ORDER:
        for keyword in keywords.get(category.value, []):
            needle = normalize_reference(keyword)
            if needle and needle in normalized:
                return category
    return CostCategory.OTHER


def aggregate_costs_by_category(
    costs: Optional[Iterable[CostEntry]],
    keywords: Optional[Mapping[str, Sequence[str]]] = None,
) -> dict[CostCategory, Decimal]:
    """Sum cost amounts per category; every category is present."""
    totals = {category: ZERO for category in CostCategory}
    for cost in costs or []:
        category = categorize(cost.category, keywords)
        totals[category] += cost.amount
    return totals


def aggregate_results_by_category(
    freights: Optional[Iterable[FreightRecord]],
    costs: Optional[Iterable[CostEntry]],
    category_of: Callable[[FreightRecord], str],
) -> dict[str, Decimal]:
    """
    Sum ``revenue - effective_cost`` per caller-defined freight category.

    Args:
        freights: Freights to aggregate
        costs: All cost entries (None when not loaded)
        category_of: Key function, e.g. farm name or driver

    Returns:
        Results keyed by category, in first-seen order
    """
    index = _index_costs(costs)
    totals: dict[str, Decimal] = {}
    for freight in freights or []:
        key = category_of(freight)
        result = freight_result(freight, _indexed_total(index, freight))
        totals[key] = totals.get(key, ZERO) + result
    return totals


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def _compare_text_desc(a: str, b: str) -> int:
    if a == b:
        return 0
    return -1 if a > b else 1


def compare_by_code_desc(a: Any, b: Any) -> int:
    """
    Order "most recent code first".

    Items with an extractable ``(year, sequence)`` code compare by year then
    sequence, both descending. An item with such a code sorts before one
    without. Otherwise identifiers compare as strings, descending.
    """
    pair_a = extract_year_sequence(getattr(a, "code", None))
    pair_b = extract_year_sequence(getattr(b, "code", None))

    if pair_a and pair_b:
        if pair_a != pair_b:
            return -1 if pair_a > pair_b else 1
        return 0
    if pair_a:
        return -1
    if pair_b:
        return 1
    return _compare_text_desc(to_text(getattr(a, "id", "")), to_text(getattr(b, "id", "")))


def compare_by_sequence_desc(a: Any, b: Any) -> int:
    """Tie-break by trailing code digits descending, then identifier descending."""
    seq_a = trailing_sequence(getattr(a, "code", None))
    seq_b = trailing_sequence(getattr(b, "code", None))

    if seq_a is not None and seq_b is not None and seq_a != seq_b:
        return -1 if seq_a > seq_b else 1
    if seq_a is not None and seq_b is None:
        return -1
    if seq_b is not None and seq_a is None:
        return 1
    return _compare_text_desc(to_text(getattr(a, "id", "")), to_text(getattr(b, "id", "")))


def sort_by_code_desc(items: Iterable[T]) -> list[T]:
    """Return a new list ordered by ``compare_by_code_desc``."""
    return sorted(items, key=cmp_to_key(compare_by_code_desc))


def sort_by_amount_desc(items: Iterable[T], amount_of: Callable[[T], Decimal]) -> list[T]:
    """
    Order items by amount, largest first.

    Equal amounts fall back to ``compare_by_sequence_desc`` so rows with the
    same total keep a stable, most-recent-first order.
    """

    def compare(a: T, b: T) -> int:
        amount_a, amount_b = amount_of(a), amount_of(b)
        if amount_a != amount_b:
            return -1 if amount_a > amount_b else 1
        return compare_by_sequence_desc(a, b)

    return sorted(items, key=cmp_to_key(compare))
