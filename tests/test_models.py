from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from freight_ledger.data.models import (
    CostEntry,
    FarmStock,
    FreightRecord,
    PaymentBatch,
    PaymentStatus,
    split_included_ids,
)


def test_freight_parses_wire_names() -> None:
    freight = FreightRecord.model_validate(
        {
            "id": 17,
            "codigo_frete": " FRETE-2026-017 ",
            "origem": "Fazenda Boa Vista",
            "destino": "Porto",
            "motorista_nome": "Ana",
            "caminhao_placa": "XYZ-9A87",
            "toneladas": "30,5",
            "valor_por_tonelada": 100,
            "custos": "abc",
            "pagamento_id": None,
            "data_frete": "2026-02-10",
        }
    )

    assert freight.id == "17"
    assert freight.code == "FRETE-2026-017"
    assert freight.weight_tons == Decimal("30.5")
    assert freight.stored_cost == Decimal("0")
    assert freight.revenue is None
    assert freight.gross_revenue == Decimal("3050")
    assert freight.route == "Fazenda Boa Vista → Porto"


def test_stored_revenue_takes_precedence() -> None:
    freight = FreightRecord(id="x", weight_tons=10, unit_price=100, revenue=0)
    assert freight.gross_revenue == Decimal("0")

    derived = FreightRecord(id="y", weight_tons=10, unit_price=100, revenue="")
    assert derived.gross_revenue == Decimal("1000")


@pytest.mark.parametrize(
    ("payment_id", "unpaid"),
    [(None, True), ("", True), (0, True), ("0", True), ("pay-1", False)],
)
def test_freight_is_unpaid(payment_id: object, unpaid: bool) -> None:
    freight = FreightRecord.model_validate({"id": "f", "pagamento_id": payment_id})
    assert freight.is_unpaid is unpaid


def test_freight_is_frozen() -> None:
    freight = FreightRecord(id="f")
    with pytest.raises(ValidationError):
        freight.id = "other"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("pago", PaymentStatus.PAID),
        ("PAID", PaymentStatus.PAID),
        ("Cancelado", PaymentStatus.CANCELLED),
        ("canceled", PaymentStatus.CANCELLED),
        ("processing", PaymentStatus.PROCESSING),
        ("whatever", PaymentStatus.PENDING),
        (None, PaymentStatus.PENDING),
    ],
)
def test_payment_status_synonyms(raw: object, expected: PaymentStatus) -> None:
    assert PaymentStatus.parse(raw) == expected


def test_payment_included_ids_are_trimmed() -> None:
    batch = PaymentBatch.model_validate(
        {"id": "p1", "fretes_incluidos": " 1, 2 ,,3, ", "status": "pago", "quantidade_fretes": "3"}
    )
    assert batch.included_ids == ["1", "2", "3"]
    assert batch.is_paid
    assert batch.freight_count == 3


def test_payment_accepts_list_of_ids() -> None:
    batch = PaymentBatch.model_validate({"id": "p1", "fretes_incluidos": ["a", "b"]})
    assert batch.included_freights == "a,b"
    assert batch.status == PaymentStatus.PENDING


def test_split_included_ids_handles_empty() -> None:
    assert split_included_ids(None) == []
    assert split_included_ids(",,") == []


def test_cost_entry_coercion() -> None:
    cost = CostEntry.model_validate(
        {
            "id": "c1",
            "frete_id": 99,
            "tipo": "Combustível",
            "valor": "1.500,25",
            "comprovante": "sim",
            "litros": "",
            "tipo_combustivel": "diesel",
        }
    )
    assert cost.freight_ref == "99"
    assert cost.amount == Decimal("1500.25")
    assert cost.has_receipt is True
    assert cost.liters is None
    assert cost.fuel_type == "diesel"


def test_farm_stock_flags() -> None:
    farm = FarmStock.model_validate(
        {"id": 3, "fazenda": "Santa Rita", "colheita_finalizada": "true", "peso_medio_saca": "60"}
    )
    assert farm.id == "3"
    assert farm.harvest_finished is True
    assert farm.avg_sack_weight_kg == Decimal("60")
