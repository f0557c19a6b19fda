"""Payment aggregate — one attempt to pay (part of) an order.

A payment starts pending and is settled by a separate confirmation, either
completed or failed. Failed payments stay on record; the order can be paid
again with a new payment. Completed payments are marked refunded when their
order is refunded.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from commerce.domain import commerce
from commerce.payment.events import PaymentCompleted, PaymentFailed, PaymentRecorded, PaymentRefunded
from commerce.shared.money import to_money


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@commerce.aggregate
class Payment:
    order_id = Identifier(required=True)
    payment_method = String(required=True, max_length=50)
    amount = Float(required=True, min_value=0.0)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_id = String(max_length=255)
    payment_date = DateTime()
    created_at = DateTime()

    @classmethod
    def record(cls, order_id, payment_method, amount):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            payment_method=payment_method,
            amount=to_money(amount) if amount is not None else None,
            created_at=now,
        )
        payment.raise_(
            PaymentRecorded(
                payment_id=str(payment.id),
                order_id=str(order_id),
                payment_method=payment_method,
                amount=payment.amount,
                recorded_at=now,
            )
        )
        return payment

    def _assert_pending(self):
        if self.status != PaymentStatus.PENDING.value:
            raise ValidationError({"status": [f"Payment is already {self.status}"]})

    def complete(self, transaction_id):
        self._assert_pending()

        now = datetime.now(UTC)
        self.status = PaymentStatus.COMPLETED.value
        self.transaction_id = transaction_id
        self.payment_date = now
        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=transaction_id,
                amount=self.amount,
                paid_at=now,
            )
        )

    def fail(self, transaction_id=None):
        self._assert_pending()

        self.status = PaymentStatus.FAILED.value
        self.transaction_id = transaction_id
        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=transaction_id,
                failed_at=datetime.now(UTC),
            )
        )

    def refund(self):
        if self.status != PaymentStatus.COMPLETED.value:
            raise ValidationError({"status": [f"Only completed payments can be refunded, payment is {self.status}"]})

        self.status = PaymentStatus.REFUNDED.value
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount,
                refunded_at=datetime.now(UTC),
            )
        )
