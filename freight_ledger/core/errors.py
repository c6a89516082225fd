"""Domain exceptions raised by the ledger core."""


class LedgerError(Exception):
    """Base class for ledger domain errors."""


class FreightAlreadyPaidError(LedgerError):
    """Raised when a freight linked to another payment is added to a draft."""

    def __init__(self, freight_id: str, payment_id: str) -> None:
        self.freight_id = freight_id
        self.payment_id = payment_id
        super().__init__(
            f"Freight {freight_id} is already linked to payment {payment_id}"
        )
