"""
Payment batch data model - a driver payment covering several freights.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from freight_ledger.data.normalize import normalize_reference, to_decimal, to_text


class PaymentStatus(str, Enum):
    """Payment batch status enumeration."""

    PENDING = "pendente"
    PROCESSING = "processando"
    PAID = "pago"
    CANCELLED = "cancelado"

    @classmethod
    def parse(cls, value: Any) -> "PaymentStatus":
        """Map status text (Portuguese or English, any case) to a status."""
        if isinstance(value, cls):
            return value
        return _STATUS_SYNONYMS.get(normalize_reference(value), cls.PENDING)


_STATUS_SYNONYMS = {
    "pendente": PaymentStatus.PENDING,
    "pending": PaymentStatus.PENDING,
    "processando": PaymentStatus.PROCESSING,
    "processing": PaymentStatus.PROCESSING,
    "pago": PaymentStatus.PAID,
    "paid": PaymentStatus.PAID,
    "cancelado": PaymentStatus.CANCELLED,
    "cancelled": PaymentStatus.CANCELLED,
    "canceled": PaymentStatus.CANCELLED,
}


def split_included_ids(raw: Optional[str]) -> list[str]:
    """Split a comma-delimited id list, trimming entries and dropping empties."""
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


class PaymentBatch(BaseModel):
    """
    A payment to one driver covering a set of freights.

    The included freights are persisted as one comma-delimited string.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field("", description="Payment identifier")
    code: Optional[str] = Field(None, alias="codigo_pagamento")
    driver_id: str = Field("", alias="motorista_id")
    driver_name: str = Field("", alias="motorista_nome")

    included_freights: str = Field("", alias="fretes_incluidos", description="Comma-delimited ids")
    freight_count: int = Field(0, alias="quantidade_fretes")
    freight_period: str = Field("", alias="periodo_fretes")

    total_weight: Decimal = Field(Decimal("0"), alias="total_toneladas")
    unit_value: Decimal = Field(Decimal("0"), alias="valor_por_tonelada")
    total_amount: Decimal = Field(Decimal("0"), alias="valor_total")

    status: PaymentStatus = Field(PaymentStatus.PENDING)
    payment_date: Optional[str] = Field(None, alias="data_pagamento")

    @field_validator("id", "driver_id", "driver_name", "freight_period", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return to_text(value)

    @field_validator("code", "payment_date", mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: Any) -> Optional[str]:
        return to_text(value) or None

    @field_validator("included_freights", mode="before")
    @classmethod
    def _coerce_included(cls, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            return ",".join(to_text(item) for item in value)
        return to_text(value)

    @field_validator("freight_count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        return int(to_decimal(value))

    @field_validator("total_weight", "unit_value", "total_amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return to_decimal(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> PaymentStatus:
        return PaymentStatus.parse(value)

    @computed_field
    @property
    def included_ids(self) -> list[str]:
        """Included freight ids in stored order."""
        return split_included_ids(self.included_freights)

    @property
    def is_paid(self) -> bool:
        """Whether the batch status is paid."""
        return self.status == PaymentStatus.PAID
