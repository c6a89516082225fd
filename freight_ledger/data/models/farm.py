"""
Farm stock data model - origin inventory feeding freights.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from freight_ledger.data.normalize import to_decimal, to_text


class FarmStock(BaseModel):
    """A farm harvest stock that freights draw down."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = ""
    code: Optional[str] = Field(None, alias="codigo_fazenda")
    name: str = Field("", alias="fazenda")
    state: Optional[str] = Field(None, alias="estado")
    commodity: str = Field("", alias="mercadoria")
    price_per_ton: Decimal = Field(Decimal("0"), alias="preco_por_tonelada")
    avg_sack_weight_kg: Decimal = Field(Decimal("0"), alias="peso_medio_saca")
    harvest_finished: bool = Field(False, alias="colheita_finalizada")

    @field_validator("id", "name", "commodity", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return to_text(value)

    @field_validator("code", "state", mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: Any) -> Optional[str]:
        return to_text(value) or None

    @field_validator("price_per_ton", "avg_sack_weight_kg", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return to_decimal(value)

    @field_validator("harvest_finished", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "sim", "yes"}
        return bool(value)
