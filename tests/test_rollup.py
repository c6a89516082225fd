from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from freight_ledger.data.models import CostCategory
from freight_ledger.reconciliation.rollup import (
    aggregate_costs_by_category,
    aggregate_results_by_category,
    categorize,
    costs_for_freight,
    effective_cost,
    enrich_freight,
    enrich_freights,
    freight_result,
    sort_by_amount_desc,
    sort_by_code_desc,
    summarize,
)
from tests.conftest import make_cost, make_freight


def test_itemized_costs_replace_stored_cost(freights, costs) -> None:
    freight = freights[0]

    linked = costs_for_freight(costs, freight.id, freight.code)

    assert linked == Decimal("2000")
    assert effective_cost(freight, linked) == Decimal("2000")
    assert freight_result(freight, linked) == Decimal("13000")


def test_stored_cost_used_without_itemized_costs(freights) -> None:
    freight = freights[0]
    assert effective_cost(freight, Decimal("0")) == Decimal("3000")
    assert freight_result(freight, Decimal("0")) == Decimal("12000")


def test_costs_not_loaded_degrade_to_fallback(freights) -> None:
    assert costs_for_freight(None, "abc123", "FRETE-2026-007") == Decimal("0")

    views = enrich_freights(freights, None)

    assert [view.effective_cost for view in views] == [Decimal("3000"), Decimal("500"), Decimal("0")]


def test_enrich_freights(freights, costs) -> None:
    views = enrich_freights(freights, costs)

    first, second, third = views
    assert first.display_code == "FRETE-2026-007"
    assert first.linked_cost_total == Decimal("2000")
    assert first.has_itemized_costs
    assert first.result == Decimal("13000")
    assert first.margin_pct == Decimal("86.67")

    assert second.revenue == Decimal("3000")
    assert second.effective_cost == Decimal("500")
    assert second.result == Decimal("2500")
    assert not second.has_itemized_costs

    assert third.display_code == "GHI789"
    assert third.margin_pct == Decimal("100.00")


def test_indexed_enrichment_matches_single_freight_path(freights, costs) -> None:
    assert enrich_freights(freights, costs) == [enrich_freight(f, costs) for f in freights]


def test_freight_whose_code_equals_its_id_counts_costs_once() -> None:
    freight = make_freight("F1", codigo_frete="f-1")
    costs = [make_cost("c", "F1", 40)]
    assert enrich_freights([freight], costs)[0].linked_cost_total == Decimal("40")


def test_summarize(freights, costs) -> None:
    summary = summarize(enrich_freights(freights, costs))

    assert summary.freight_count == 3
    assert summary.total_weight == Decimal("90")
    assert summary.total_revenue == Decimal("21000")
    assert summary.total_cost == Decimal("2500")
    assert summary.total_result == Decimal("18500")


def test_summarize_empty() -> None:
    summary = summarize([])
    assert summary.freight_count == 0
    assert summary.margin_pct == Decimal("0")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Combustível", CostCategory.FUEL),
        ("COMBUSTIVEL", CostCategory.FUEL),
        ("combustivel-diesel", CostCategory.FUEL),
        ("manutenção", CostCategory.MAINTENANCE),
        ("Pedágio", CostCategory.TOLL),
        ("lavagem", CostCategory.OTHER),
        ("", CostCategory.OTHER),
        (None, CostCategory.OTHER),
    ],
)
def test_categorize(raw: object, expected: CostCategory) -> None:
    assert categorize(raw) == expected


def test_categorize_with_custom_keywords() -> None:
    keywords = {"fuel": ["arla"]}
    assert categorize("ARLA 32", keywords) == CostCategory.FUEL
    assert categorize("pedágio", keywords) == CostCategory.OTHER


def test_aggregate_costs_by_category(costs) -> None:
    totals = aggregate_costs_by_category(costs)

    assert totals == {
        CostCategory.FUEL: Decimal("1200"),
        CostCategory.MAINTENANCE: Decimal("50"),
        CostCategory.TOLL: Decimal("800"),
        CostCategory.OTHER: Decimal("0"),
    }


def test_aggregate_results_by_category(freights, costs) -> None:
    extra = make_freight("jkl000", motorista_nome="Ana", custos=100)

    totals = aggregate_results_by_category(freights + [extra], costs, lambda f: f.driver_name)

    assert totals == {"Carlos Silva": Decimal("18500"), "Ana": Decimal("2900")}


def _item(item_id: str, code: object = None) -> SimpleNamespace:
    return SimpleNamespace(id=item_id, code=code)


def test_sort_by_code_desc() -> None:
    items = [
        _item("x1", "FRETE-2025-099"),
        _item("aaa"),
        _item("x2", "FRETE-2026-001"),
        _item("zzz"),
        _item("x3", "FRETE-2026-010"),
    ]

    ordered = sort_by_code_desc(items)

    assert [item.id for item in ordered] == ["x3", "x2", "x1", "zzz", "aaa"]


def test_sort_by_code_desc_ignores_prefix_format() -> None:
    items = [_item("a", "FRETE-2026-004"), _item("b", "FRT 2026/5")]
    assert [item.id for item in sort_by_code_desc(items)] == ["b", "a"]


def test_sort_by_amount_desc_breaks_ties_by_sequence() -> None:
    items = [
        SimpleNamespace(id="a", code="FRETE-2026-002", amount=Decimal("10")),
        SimpleNamespace(id="b", code="FRETE-2026-009", amount=Decimal("10")),
        SimpleNamespace(id="c", code=None, amount=Decimal("50")),
    ]

    ordered = sort_by_amount_desc(items, lambda item: item.amount)

    assert [item.id for item in ordered] == ["c", "b", "a"]
