"""
Availability filter - which freights can still go into a new payment batch.

A freight is paid when its id appears in the included list of any batch with
status "pago". Everything here is evaluated fresh from the full collections;
inputs are never mutated.
"""

from collections.abc import Iterable
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import structlog

from freight_ledger.data.models import FarmStock, FreightRecord, PaymentBatch
from freight_ledger.data.normalize import to_text

logger = structlog.get_logger(component="availability_filter")

KG_PER_TON = Decimal("1000")


def paid_freight_ids(batches: Optional[Iterable[PaymentBatch]]) -> set[str]:
    """
    Ids of freights included in any paid batch.

    A freight listed by more than one paid batch is still just "paid", but the
    overlap is logged since nothing upstream prevents double payment.
    """
    paid: set[str] = set()
    for batch in batches or []:
        if not batch.is_paid:
            continue
        for freight_id in batch.included_ids:
            if freight_id in paid:
                logger.warning(
                    "freight_in_multiple_paid_batches",
                    freight_id=freight_id,
                    payment_id=batch.id,
                )
            paid.add(freight_id)
    return paid


def is_valid_freight(freight: FreightRecord) -> bool:
    """
    Guard against partially synced records.

    Valid freights have an id and at least one of origin, destination, truck
    plate or driver name.
    """
    if not to_text(freight.id):
        return False
    return any(
        to_text(value)
        for value in (freight.origin, freight.destination, freight.truck_plate, freight.driver_name)
    )


def compute_available(
    all_freights: Optional[Iterable[FreightRecord]],
    all_batches: Optional[Iterable[PaymentBatch]],
) -> list[FreightRecord]:
    """
    Freights eligible for inclusion in a new payment batch.

    Args:
        all_freights: Every known freight (None when not loaded)
        all_batches: Every payment batch (None when not loaded)

    Returns:
        Valid, unpaid freights, deduplicated by id (first occurrence wins),
        in input order
    """
    paid = paid_freight_ids(all_batches)
    seen: set[str] = set()
    available: list[FreightRecord] = []

    for freight in all_freights or []:
        if not is_valid_freight(freight):
            continue
        if freight.id in seen:
            continue
        seen.add(freight.id)
        if freight.id in paid:
            continue
        available.append(freight)

    logger.debug("availability_computed", available=len(available), paid=len(paid))
    return available


def pending_for_driver(
    freights: Optional[Iterable[FreightRecord]], driver_id: str
) -> list[FreightRecord]:
    """Unpaid freights of one driver (no payment reference set), deduplicated."""
    if not driver_id:
        return []
    seen: set[str] = set()
    pending: list[FreightRecord] = []
    for freight in freights or []:
        if freight.driver_id != driver_id or not freight.is_unpaid:
            continue
        if not is_valid_freight(freight) or freight.id in seen:
            continue
        seen.add(freight.id)
        pending.append(freight)
    return pending


def eligible_farms(farms: Optional[Iterable[FarmStock]]) -> list[FarmStock]:
    """Farms still being harvested, which can source new freights."""
    return [farm for farm in farms or [] if not farm.harvest_finished]


def estimate_sacks(weight_tons: Decimal, avg_sack_weight_kg: Decimal) -> int:
    """Approximate sack count for a weight given the farm's average sack weight."""
    if avg_sack_weight_kg <= 0:
        return 0
    sacks = weight_tons * KG_PER_TON / avg_sack_weight_kg
    return int(sacks.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
