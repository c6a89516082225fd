"""
Payment draft builder - driver payment batch calculations.

This module:
- Resolves the freights an operator selected (by id or code)
- Totals weight, gross revenue and itemized costs
- Derives the net amount and value per ton
- Describes the period the freights cover
- Produces the payload the data-access layer persists
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from time import time
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from freight_ledger.core.config import ConfigManager, get_config
from freight_ledger.core.errors import FreightAlreadyPaidError
from freight_ledger.data.models import CostEntry, FreightRecord, PaymentStatus
from freight_ledger.data.normalize import ZERO, normalize_reference
from freight_ledger.reconciliation.linker import fallback_code
from freight_ledger.reconciliation.periods import parse_flexible_date, summarize_date_span
from freight_ledger.reconciliation.rollup import linked_costs

CENTS = Decimal("0.01")


class CostLine(BaseModel):
    """Itemized cost shown under a freight in the payment statement."""

    description: str
    amount: Decimal


class FreightSettlementLine(BaseModel):
    """Settlement calculation for a single freight."""

    freight_id: str
    code: str
    date: str
    route: str
    weight_tons: Decimal
    gross_amount: Decimal
    costs_total: Decimal
    net_amount: Decimal
    costs: list[CostLine] = Field(default_factory=list)


class PaymentDraft(BaseModel):
    """Complete payment batch draft for one driver."""

    driver_id: str
    driver_name: str

    lines: list[FreightSettlementLine]
    freight_ids: list[str]
    freight_count: int

    total_weight: Decimal
    gross_amount: Decimal
    costs_total: Decimal
    net_amount: Decimal
    unit_value: Decimal

    freight_period: str
    status: PaymentStatus = PaymentStatus.PENDING

    generated_at: datetime
    notes: list[str] = Field(default_factory=list)

    @property
    def included_freights(self) -> str:
        """Included freight ids as persisted (comma-delimited)."""
        return ",".join(self.freight_ids)

    def to_payload(self) -> dict[str, Any]:
        """Payment batch fields under the remote store's wire names."""
        return {
            "motorista_id": self.driver_id,
            "motorista_nome": self.driver_name.upper(),
            "periodo_fretes": self.freight_period,
            "quantidade_fretes": self.freight_count,
            "fretes_incluidos": self.included_freights,
            "total_toneladas": str(self.total_weight),
            "valor_por_tonelada": str(self.unit_value),
            "valor_total": str(self.net_amount),
            "status": self.status.value,
        }


def resolve_freight(reference: Any, freights: Iterable[FreightRecord]) -> Optional[FreightRecord]:
    """First freight whose normalized id or code equals the reference."""
    key = normalize_reference(reference)
    if not key:
        return None
    for freight in freights:
        if key in (normalize_reference(freight.id), normalize_reference(freight.code)):
            return freight
    return None


class PaymentDraftBuilder:
    """
    Builds payment batch drafts from selected freights.

    Costs deducted from the gross amount are the itemized cost entries only;
    stored fallback costs are estimates and never deducted from a driver.
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the builder.

        Args:
            config_manager: Optional config manager (defaults to global instance)
            logger: Optional structured logger
        """
        self.config_manager = config_manager or get_config()
        self.logger = logger or structlog.get_logger(component="payment_draft")
        self.code_length = self.config_manager.get_fallback_code_length()

    def build(
        self,
        driver_id: str,
        driver_name: str,
        selected_refs: Sequence[str],
        freights: Sequence[FreightRecord],
        costs: Optional[Sequence[CostEntry]] = None,
        editing_payment_id: Optional[str] = None,
        status: PaymentStatus = PaymentStatus.PENDING,
    ) -> PaymentDraft:
        """
        Calculate a payment draft.

        Args:
            driver_id: Driver being paid
            driver_name: Driver display name
            selected_refs: Freight ids or codes chosen by the operator
            freights: All known freights
            costs: All cost entries (None when not loaded)
            editing_payment_id: Payment being edited, whose freights stay selectable
            status: Initial status of the batch

        Returns:
            PaymentDraft with totals, lines and notes

        Raises:
            FreightAlreadyPaidError: If a selected freight belongs to another payment
        """
        start_time = time()

        selected = self._resolve_selection(selected_refs, freights)
        for freight in selected:
            if not freight.is_unpaid and freight.payment_id != editing_payment_id:
                raise FreightAlreadyPaidError(freight.id, freight.payment_id or "")

        self.logger.info(
            "building_payment_draft",
            driver_id=driver_id,
            selected=len(selected_refs),
            resolved=len(selected),
        )

        lines = [self._build_line(freight, costs) for freight in selected]

        total_weight = sum((line.weight_tons for line in lines), ZERO)
        gross_amount = sum((line.gross_amount for line in lines), ZERO)
        costs_total = sum((line.costs_total for line in lines), ZERO)
        net_amount = gross_amount - costs_total

        if total_weight > 0:
            unit_value = (net_amount / total_weight).quantize(CENTS, rounding=ROUND_HALF_UP)
        else:
            unit_value = ZERO

        draft = PaymentDraft(
            driver_id=driver_id,
            driver_name=driver_name,
            lines=lines,
            freight_ids=[freight.id for freight in selected],
            freight_count=len(selected),
            total_weight=total_weight,
            gross_amount=gross_amount,
            costs_total=costs_total,
            net_amount=net_amount,
            unit_value=unit_value,
            freight_period=summarize_date_span(f.date for f in selected).upper(),
            status=status,
            generated_at=datetime.now(),
            notes=self._generate_notes(len(selected_refs), lines, costs_total, net_amount),
        )

        self.logger.info(
            "payment_draft_built",
            driver_id=driver_id,
            freights=draft.freight_count,
            net_amount=str(net_amount),
            execution_time=time() - start_time,
        )
        return draft

    def _resolve_selection(
        self, selected_refs: Sequence[str], freights: Sequence[FreightRecord]
    ) -> list[FreightRecord]:
        """Resolve references to freights, dropping unknowns and duplicates."""
        resolved: list[FreightRecord] = []
        seen: set[str] = set()
        for reference in selected_refs:
            freight = resolve_freight(reference, freights)
            if freight is None:
                self.logger.warning("unknown_freight_reference", reference=reference)
                continue
            if freight.id in seen:
                continue
            seen.add(freight.id)
            resolved.append(freight)
        return resolved

    def _build_line(
        self, freight: FreightRecord, costs: Optional[Sequence[CostEntry]]
    ) -> FreightSettlementLine:
        """Calculate the settlement line of a single freight."""
        entries = linked_costs(costs, freight.id, freight.code)
        costs_total = sum((entry.amount for entry in entries), ZERO)
        freight_date = parse_flexible_date(freight.date)

        return FreightSettlementLine(
            freight_id=freight.id,
            code=freight.code or fallback_code(freight.id, self.code_length),
            date=freight_date.strftime("%d/%m/%Y") if freight_date else "",
            route=freight.route,
            weight_tons=freight.weight_tons,
            gross_amount=freight.gross_revenue,
            costs_total=costs_total,
            net_amount=freight.gross_revenue - costs_total,
            costs=[CostLine(description=e.description, amount=e.amount) for e in entries],
        )

    def _generate_notes(
        self,
        requested: int,
        lines: list[FreightSettlementLine],
        costs_total: Decimal,
        net_amount: Decimal,
    ) -> list[str]:
        """Generate helpful notes for the draft."""
        notes = []

        if requested > len(lines):
            notes.append(f"{requested - len(lines)} selected reference(s) ignored (unknown or repeated)")

        if costs_total > 0:
            with_costs = sum(1 for line in lines if line.costs_total > 0)
            notes.append(f"Costs deducted from {with_costs} freight(s): {costs_total:.2f}")

        if net_amount < 0:
            notes.append(f"Costs exceed revenue by {abs(net_amount):.2f}")
        elif not lines:
            notes.append("No freights selected")

        return notes
