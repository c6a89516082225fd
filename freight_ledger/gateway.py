"""
Mutation commands sent to the data-access layer.

Screens never call into each other. A screen that changes data sends a command
through the shared gateway; the command names the collections it affects so
every derived view built on them is invalidated and recomputed.
"""

from typing import Any, ClassVar, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field

from freight_ledger.data.models import PaymentStatus

logger = structlog.get_logger(component="gateway")

FREIGHTS = "freights"
COSTS = "costs"
PAYMENTS = "payments"
FARMS = "farms"

COLLECTIONS = (FREIGHTS, COSTS, PAYMENTS, FARMS)


class MutationCommand(BaseModel):
    """Base class for commands; ``affects`` lists invalidated collections."""

    model_config = ConfigDict(frozen=True)

    affects: ClassVar[tuple[str, ...]] = ()


class CreatePaymentBatch(MutationCommand):
    """Persist a new payment batch and mark its freights as paid."""

    affects: ClassVar[tuple[str, ...]] = (PAYMENTS, FREIGHTS)

    payload: dict[str, Any]


class AssignFreightsToPayment(MutationCommand):
    """Set the payment reference on a set of freights."""

    affects: ClassVar[tuple[str, ...]] = (FREIGHTS,)

    payment_id: str
    freight_ids: list[str] = Field(default_factory=list)


class UpdatePaymentStatus(MutationCommand):
    """Move a payment batch to another status."""

    affects: ClassVar[tuple[str, ...]] = (PAYMENTS,)

    payment_id: str
    status: PaymentStatus


class RecordCost(MutationCommand):
    """Create or update a cost entry."""

    affects: ClassVar[tuple[str, ...]] = (COSTS,)

    payload: dict[str, Any]


class SetHarvestFinished(MutationCommand):
    """Open or close a farm's harvest, which changes freight sourcing."""

    affects: ClassVar[tuple[str, ...]] = (FARMS,)

    farm_id: str
    finished: bool


class MutationGateway(Protocol):
    """Boundary to the data-access collaborator."""

    def apply(self, command: MutationCommand) -> None:
        ...


class InMemoryGateway:
    """Gateway that records commands instead of calling the remote store."""

    def __init__(self) -> None:
        self.applied: list[MutationCommand] = []

    def apply(self, command: MutationCommand) -> None:
        self.applied.append(command)
        logger.info("command_applied", command=type(command).__name__)
