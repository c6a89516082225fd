"""
Freight data model - represents a shipment event.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from freight_ledger.data.normalize import to_decimal, to_text


class FreightRecord(BaseModel):
    """
    Represents a freight shipment as delivered by the remote store.

    Field aliases are the store's wire names; Python names are accepted too.
    Revenue may be stored independently of ``weight_tons * unit_price``, and
    ``stored_cost`` is only a fallback: itemized cost entries replace it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # Identification
    id: str = Field("", description="Internal freight identifier")
    code: Optional[str] = Field(None, alias="codigo_frete", description="Human display code")

    # Route
    origin: str = Field("", alias="origem", description="Pickup location")
    destination: str = Field("", alias="destino", description="Delivery location")

    # Driver, truck and source
    driver_id: str = Field("", alias="motorista_id")
    driver_name: str = Field("", alias="motorista_nome")
    truck_id: str = Field("", alias="caminhao_id")
    truck_plate: str = Field("", alias="caminhao_placa")
    farm_id: str = Field("", alias="fazenda_id")
    farm_name: str = Field("", alias="fazenda_nome")
    commodity: str = Field("", alias="mercadoria")

    # Cargo
    weight_tons: Decimal = Field(Decimal("0"), alias="toneladas", description="Shipped weight (t)")
    sacks: Decimal = Field(Decimal("0"), alias="quantidade_sacas", description="Sack count")

    # Financial
    unit_price: Decimal = Field(Decimal("0"), alias="valor_por_tonelada", description="Price per ton")
    revenue: Optional[Decimal] = Field(None, alias="receita", description="Stored revenue")
    stored_cost: Decimal = Field(Decimal("0"), alias="custos", description="Fallback cost")

    # Payment and timing
    payment_id: Optional[str] = Field(None, alias="pagamento_id")
    date: Optional[str] = Field(None, alias="data_frete", description="Freight date (raw)")

    @field_validator(
        "id",
        "origin",
        "destination",
        "driver_id",
        "driver_name",
        "truck_id",
        "truck_plate",
        "farm_id",
        "farm_name",
        "commodity",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return to_text(value)

    @field_validator("code", "payment_id", "date", mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: Any) -> Optional[str]:
        return to_text(value) or None

    @field_validator("weight_tons", "sacks", "unit_price", "stored_cost", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return to_decimal(value)

    @field_validator("revenue", mode="before")
    @classmethod
    def _coerce_revenue(cls, value: Any) -> Optional[Decimal]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return to_decimal(value)

    @computed_field
    @property
    def gross_revenue(self) -> Decimal:
        """Stored revenue, or weight times unit price when none is stored."""
        if self.revenue is not None:
            return self.revenue
        return self.weight_tons * self.unit_price

    @computed_field
    @property
    def is_unpaid(self) -> bool:
        """True when no payment batch reference is set."""
        return self.payment_id is None or self.payment_id == "0"

    @property
    def route(self) -> str:
        """Route description."""
        return f"{self.origin} → {self.destination}"
