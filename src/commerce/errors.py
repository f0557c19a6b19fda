"""Business errors raised by the commerce domain.

Field and format violations surface as Protean's ``ValidationError`` and
missing aggregates as ``ObjectNotFoundError``. The kinds below cover rules
that span more than one aggregate.
"""

from protean.exceptions import InvalidOperationError


class ConstraintViolation(InvalidOperationError):
    """A uniqueness or referential rule would be broken."""


class InvalidTransition(InvalidOperationError):
    """An order status change outside the allowed transition table."""

    def __init__(self, current_status, new_status):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(f"Cannot transition order from {current_status} to {new_status}")


class ConcurrencyConflict(InvalidOperationError):
    """A contended record (stock or coupon usage) changed underneath the transaction.

    Safe to retry.
    """


class RejectionReason:
    INSUFFICIENT_STOCK = "insufficient_stock"
    PRODUCT_INACTIVE = "product_inactive"
    ADDRESS_NOT_OWNED = "address_not_owned"
    COUPON_INVALID = "coupon_invalid"
    COUPON_INACTIVE = "coupon_inactive"
    COUPON_EXPIRED = "coupon_expired"
    COUPON_EXHAUSTED = "coupon_exhausted"
    MINIMUM_ORDER_NOT_MET = "minimum_order_not_met"
    EMPTY_ORDER = "empty_order"
    ORDER_CLOSED = "order_closed"
    ORDER_FULLY_PAID = "order_fully_paid"


class OrderRejected(InvalidOperationError):
    """A business precondition of an order operation failed.

    ``reason`` is one of the `RejectionReason` codes; ``detail`` is the
    human-readable explanation.
    """

    def __init__(self, reason, detail=None):
        self.reason = reason
        self.detail = detail or reason
        super().__init__(f"Order rejected ({reason}): {self.detail}")
