"""Order and tranche lifecycle exceptions."""

from .base import DomainException


class OrderNotFoundException(DomainException):
    """Raised when an order cannot be found for the caller."""

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Order not found: {order_id}",
            code="ORDER_NOT_FOUND",
        )
        self.order_id = order_id


class TrancheNotFoundException(DomainException):
    """Raised when a schedule index does not exist."""

    def __init__(self, index: int):
        super().__init__(
            message=f"Tranche not found at index {index}",
            code="TRANCHE_NOT_FOUND",
        )
        self.index = index


class InvalidStateTransitionException(DomainException):
    """Raised when the order or tranche is not in a state allowing the operation."""

    def __init__(self, message: str, current: str | None = None, target: str | None = None):
        super().__init__(
            message=message,
            code="INVALID_STATE_TRANSITION",
        )
        self.current = current
        self.target = target

    @property
    def details(self) -> dict:
        return {"current": self.current, "target": self.target}


class SequentialGateException(DomainException):
    """Raised when an earlier tranche is still unresolved."""

    def __init__(self, index: int, blocking_index: int):
        super().__init__(
            message=(
                f"Tranche {blocking_index} must be paid before submitting "
                f"a proof for tranche {index}"
            ),
            code="PREVIOUS_TRANCHE_UNRESOLVED",
        )
        self.index = index
        self.blocking_index = blocking_index

    @property
    def details(self) -> dict:
        return {"index": self.index, "blocking_index": self.blocking_index}


class AmountMismatchException(DomainException):
    """Raised when a proof amount differs from the tranche's fixed amount."""

    def __init__(self, expected_cents: int, submitted_cents: int):
        super().__init__(
            message=(
                f"Proof amount must be exactly {expected_cents} cents, "
                f"got {submitted_cents}"
            ),
            code="TRANCHE_AMOUNT_MISMATCH",
        )
        self.expected_cents = expected_cents
        self.submitted_cents = submitted_cents

    @property
    def details(self) -> dict:
        return {
            "expected_cents": self.expected_cents,
            "submitted_cents": self.submitted_cents,
        }


class ConcurrentModificationException(DomainException):
    """Raised when the order changed since it was read."""

    def __init__(self, order_id: str, expected_version: int):
        super().__init__(
            message=(
                f"Order {order_id} was modified concurrently "
                f"(expected version {expected_version})"
            ),
            code="CONCURRENT_MODIFICATION",
        )
        self.order_id = order_id
        self.expected_version = expected_version
