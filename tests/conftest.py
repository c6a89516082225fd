from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from freight_ledger.core.config import ConfigManager
from freight_ledger.data.models import CostEntry, FarmStock, FreightRecord, PaymentBatch

TODAY = date(2026, 2, 15)


def make_freight(freight_id: str, **overrides: object) -> FreightRecord:
    data: dict[str, object] = {
        "id": freight_id,
        "origem": "Fazenda Santa Rita",
        "destino": "Armazém Central",
        "motorista_id": "drv-1",
        "motorista_nome": "Carlos Silva",
        "caminhao_placa": "ABC-1234",
        "toneladas": 30,
        "valor_por_tonelada": 100,
        "custos": 0,
        "data_frete": "2026-02-10",
    }
    data.update(overrides)
    return FreightRecord.model_validate(data)


def make_cost(cost_id: str, freight_ref: str, amount: object, **overrides: object) -> CostEntry:
    data: dict[str, object] = {
        "id": cost_id,
        "frete_id": freight_ref,
        "tipo": "combustivel",
        "descricao": "Diesel",
        "valor": amount,
        "data": "2026-02-11",
    }
    data.update(overrides)
    return CostEntry.model_validate(data)


def make_payment(payment_id: str, included: str, status: str = "pago", **overrides: object) -> PaymentBatch:
    data: dict[str, object] = {
        "id": payment_id,
        "motorista_id": "drv-1",
        "fretes_incluidos": included,
        "status": status,
        "data_pagamento": "2026-02-20",
    }
    data.update(overrides)
    return PaymentBatch.model_validate(data)


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "config.yaml").write_text(
        "pagination:\n  page_size: 5\nlinking:\n  fallback_code_length: 8\n",
        encoding="utf-8",
    )
    return ConfigManager(config_dir=config_dir)


@pytest.fixture
def freights() -> list[FreightRecord]:
    return [
        make_freight("abc123", codigo_frete="FRETE-2026-007", receita=15000, custos=3000),
        make_freight("def456", codigo_frete="FRETE-2026-008", custos=500, data_frete="2026-03-20"),
        make_freight("ghi789", data_frete="05/01/2025"),
    ]


@pytest.fixture
def costs() -> list[CostEntry]:
    return [
        make_cost("c1", "FRETE-2026-007", 1200),
        make_cost("c2", "abc123", "800,00", tipo="Pedágio"),
        make_cost("c3", "unrelated", 50, tipo="manutenção"),
    ]


@pytest.fixture
def farms() -> list[FarmStock]:
    return [
        FarmStock.model_validate({"id": "f1", "fazenda": "Santa Rita", "colheita_finalizada": False}),
        FarmStock.model_validate({"id": "f2", "fazenda": "Boa Vista", "colheita_finalizada": True}),
    ]
