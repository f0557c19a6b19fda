"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from commerce.domain import commerce


@commerce.event(part_of="Payment")
class PaymentRecorded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    payment_method = String(required=True)
    amount = Float(required=True)
    recorded_at = DateTime(required=True)


@commerce.event(part_of="Payment")
class PaymentCompleted:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String()
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@commerce.event(part_of="Payment")
class PaymentFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String()
    failed_at = DateTime(required=True)


@commerce.event(part_of="Payment")
class PaymentRefunded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)
