from __future__ import annotations

from decimal import Decimal
from itertools import permutations

import pytest

from freight_ledger.core.config import ConfigManager
from freight_ledger.data.models import CostCategory, PaymentStatus
from freight_ledger.gateway import (
    COSTS,
    FARMS,
    FREIGHTS,
    PAYMENTS,
    AssignFreightsToPayment,
    CreatePaymentBatch,
    InMemoryGateway,
    UpdatePaymentStatus,
)
from freight_ledger.reconciliation.ledger import LedgerSession, LedgerSnapshot
from freight_ledger.reconciliation.pagination import FilterState, PageCursor
from tests.conftest import TODAY, make_cost, make_freight, make_payment


@pytest.fixture
def collections(freights, costs, farms):
    return {
        FREIGHTS: freights,
        COSTS: costs,
        PAYMENTS: [make_payment("p1", "def456")],
        FARMS: farms,
    }


@pytest.fixture
def session(config_manager) -> LedgerSession:
    return LedgerSession(InMemoryGateway(), config_manager=config_manager)


def test_final_views_do_not_depend_on_arrival_order(collections) -> None:
    results = []
    for order in permutations(collections):
        snapshot = LedgerSnapshot()
        for name in order:
            snapshot = snapshot.with_collection(name, collections[name])
        assert snapshot.is_complete
        results.append(
            (
                snapshot.freight_views(),
                snapshot.summary(),
                [f.id for f in snapshot.available_freights()],
                [farm.id for farm in snapshot.active_farms()],
            )
        )

    assert all(result == results[0] for result in results)
    assert results[0][2] == ["abc123", "ghi789"]
    assert results[0][3] == ["f1"]


def test_partial_snapshot_uses_fallback_costs(freights, costs) -> None:
    snapshot = LedgerSnapshot().with_freights(freights)
    assert not snapshot.is_loaded(COSTS)
    assert snapshot.freight_views()[0].effective_cost == Decimal("3000")

    snapshot = snapshot.with_costs(costs)
    assert snapshot.freight_views()[0].effective_cost == Decimal("2000")


def test_unknown_collection_is_rejected(session) -> None:
    with pytest.raises(KeyError):
        LedgerSnapshot().with_collection("trucks", [])
    with pytest.raises(KeyError):
        session.receive("trucks", [])


def test_snapshot_periods_and_link_report(freights, costs) -> None:
    snapshot = LedgerSnapshot().with_freights(freights).with_costs(costs)

    assert snapshot.freight_periods("monthly") == ["2025-01", "2026-02", "2026-03"]
    assert snapshot.cost_periods("annual") == ["2026"]
    assert snapshot.link_report().links == {"c1": "abc123", "c2": "abc123"}


def test_receive_parses_wire_rows(session) -> None:
    snapshot = session.receive(FREIGHTS, [{"id": 1, "codigo_frete": "FRETE-2026-001", "origem": "A"}])

    assert snapshot.freights[0].id == "1"
    assert session.snapshot is snapshot


def test_dispatch_invalidates_affected_collections(session, collections) -> None:
    for name, rows in collections.items():
        session.receive(name, rows)

    session.dispatch(AssignFreightsToPayment(payment_id="p2", freight_ids=["abc123"]))

    assert not session.snapshot.is_loaded(FREIGHTS)
    assert session.snapshot.is_loaded(COSTS)
    assert session.snapshot.is_loaded(PAYMENTS)

    session.dispatch(UpdatePaymentStatus(payment_id="p1", status=PaymentStatus.CANCELLED))
    assert not session.snapshot.is_loaded(PAYMENTS)
    assert len(session.gateway.applied) == 2


def test_failed_dispatch_leaves_snapshot(session, freights) -> None:
    class FailingGateway:
        def apply(self, command):
            raise ConnectionError("store unavailable")

    session.gateway = FailingGateway()
    session.receive(FREIGHTS, freights)

    with pytest.raises(ConnectionError):
        session.dispatch(CreatePaymentBatch(payload={"fretes_incluidos": "abc123"}))

    assert session.snapshot.is_loaded(FREIGHTS)


def _month_freights(count: int):
    return [
        make_freight(f"fr-{n}", codigo_frete=f"FRETE-2026-{n:03d}", data_frete=f"2026-02-{n:02d}")
        for n in range(1, count + 1)
    ]


def test_freight_listing_trusts_server_page_without_filters(session) -> None:
    rows = _month_freights(12)
    session.receive(FREIGHTS, rows)
    cursor = PageCursor()

    result = session.freight_listing(
        FilterState(selected_period="2026-02"),
        cursor,
        server_total_pages=3,
        server_items=rows[:5],
        now=TODAY,
    )

    assert result.effective_total_pages == 3
    assert [view.id for view in result.page_slice] == ["fr-1", "fr-2", "fr-3", "fr-4", "fr-5"]


def test_freight_listing_pages_filtered_set_locally(session) -> None:
    session.receive(FREIGHTS, _month_freights(12))
    cursor = PageCursor()
    session.freight_listing(FilterState(selected_period="2026-02"), cursor, now=TODAY)
    cursor.go_to(2)

    result = session.freight_listing(
        FilterState(search="FRETE-2026-01", selected_period="2026-02"), cursor, now=TODAY
    )

    assert cursor.page == 1
    assert result.effective_total_pages == 1
    assert [view.display_code for view in result.page_slice] == [
        "FRETE-2026-012",
        "FRETE-2026-011",
        "FRETE-2026-010",
    ]


def test_freight_listing_by_other_period(session) -> None:
    rows = _month_freights(3) + [make_freight("old", data_frete="2025-06-01")]
    session.receive(FREIGHTS, rows)

    result = session.freight_listing(FilterState(selected_period="2025-06"), PageCursor(), now=TODAY)

    assert [view.id for view in result.page_slice] == ["old"]


def test_cost_listing_filters_by_category(session, costs) -> None:
    session.receive(COSTS, costs + [make_cost("c4", "abc123", 70, tipo="Pedagio")])

    result = session.cost_listing(FilterState(categories=["toll"]), PageCursor(), now=TODAY)

    assert [cost.id for cost in result.page_slice] == ["c2", "c4"]
    assert result.effective_total_pages == 1


def test_cost_totals_by_category(session, costs) -> None:
    session.receive(COSTS, costs)

    totals = session.cost_totals_by_category()

    assert totals[CostCategory.TOLL] == Decimal("800")
    assert totals[CostCategory.FUEL] == Decimal("1200")


def test_category_filter_does_not_repage_freights(session) -> None:
    rows = _month_freights(12)
    session.receive(FREIGHTS, rows)
    cursor = PageCursor()

    result = session.freight_listing(
        FilterState(categories=["fuel"], selected_period="2026-02"),
        cursor,
        server_total_pages=3,
        server_items=rows[:5],
        now=TODAY,
    )

    assert result.effective_total_pages == 3
    assert [view.id for view in result.page_slice] == ["fr-1", "fr-2", "fr-3", "fr-4", "fr-5"]


def test_listing_uses_configured_fallback_code_length(tmp_path) -> None:
    (tmp_path / "config.yaml").write_text("linking:\n  fallback_code_length: 4\n", encoding="utf-8")
    session = LedgerSession(InMemoryGateway(), config_manager=ConfigManager(config_dir=tmp_path))
    session.receive(FREIGHTS, [make_freight("abcdef12")])

    result = session.freight_listing(FilterState(search="abcd"), PageCursor(), now=TODAY)

    assert [view.display_code for view in result.page_slice] == ["ABCD"]
