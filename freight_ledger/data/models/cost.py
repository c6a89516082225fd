"""
Cost entry data model - incidental expenses tied to a freight.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from freight_ledger.data.normalize import to_decimal, to_text


class CostCategory(str, Enum):
    """Closed set of cost categories."""

    FUEL = "fuel"
    MAINTENANCE = "maintenance"
    TOLL = "toll"
    OTHER = "other"

    @property
    def label(self) -> str:
        """Display label."""
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    CostCategory.FUEL: "Combustível",
    CostCategory.MAINTENANCE: "Manutenção",
    CostCategory.TOLL: "Pedágio",
    CostCategory.OTHER: "Outros",
}


class CostEntry(BaseModel):
    """
    An incidental expense (fuel, maintenance, toll, other).

    ``freight_ref`` may hold either the freight id or its display code and is
    not guaranteed to be a valid foreign key; linking happens at read time.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field("", description="Cost identifier")
    freight_ref: str = Field("", alias="frete_id", description="Freight id or code")
    freight_code: Optional[str] = Field(None, alias="codigo_frete")

    category: str = Field("", alias="tipo", description="Free-text category")
    description: str = Field("", alias="descricao")
    amount: Decimal = Field(Decimal("0"), alias="valor")
    date: Optional[str] = Field(None, alias="data")
    has_receipt: bool = Field(False, alias="comprovante")

    # Fuel details
    liters: Optional[Decimal] = Field(None, alias="litros")
    fuel_type: Optional[str] = Field(None, alias="tipo_combustivel")

    @field_validator("id", "freight_ref", "category", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return to_text(value)

    @field_validator("freight_code", "date", "fuel_type", mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: Any) -> Optional[str]:
        return to_text(value) or None

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return to_decimal(value)

    @field_validator("liters", mode="before")
    @classmethod
    def _coerce_liters(cls, value: Any) -> Optional[Decimal]:
        if value is None or value == "":
            return None
        return to_decimal(value)

    @field_validator("has_receipt", mode="before")
    @classmethod
    def _coerce_receipt(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "sim", "yes"}
        return bool(value)
