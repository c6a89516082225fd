"""
Pydantic data models for the freight ledger.

Core models:
- FreightRecord: Freight shipment details
- CostEntry: Incidental expense tied to a freight
- PaymentBatch: Driver payment covering several freights
- FarmStock: Origin inventory feeding freights
"""

from .cost import CostCategory, CostEntry
from .farm import FarmStock
from .freight import FreightRecord
from .payment import PaymentBatch, PaymentStatus, split_included_ids

__all__ = [
    "FreightRecord",
    "CostEntry",
    "CostCategory",
    "PaymentBatch",
    "PaymentStatus",
    "FarmStock",
    "split_included_ids",
]
