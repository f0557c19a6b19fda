"""Payment recording and confirmation — commands and handler.

Recording a payment never moves the order; a successful confirmation moves a
pending order on to processing. Closed orders accept neither new payments nor
successful confirmations.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.errors import ConstraintViolation, OrderRejected, RejectionReason
from commerce.order.order import Order, OrderStatus
from commerce.payment.payment import Payment, PaymentStatus
from commerce.shared.queries import all_records


@commerce.command(part_of="Payment")
class RecordPayment:
    order_id = Identifier(required=True)
    payment_method = String(required=True, max_length=50)
    amount = Float(required=True, min_value=0.0)


@commerce.command(part_of="Payment")
class ConfirmPayment:
    payment_id = Identifier(required=True)
    success = Boolean(required=True)
    transaction_id = String(max_length=255)


def payments_for(order_id):
    return list(all_records(current_domain.repository_for(Payment), order_id=str(order_id)))


def amount_paid(order_id):
    return sum(p.amount for p in payments_for(order_id) if p.status == PaymentStatus.COMPLETED.value)


@commerce.command_handler(part_of=Payment)
class PaymentHandler:
    @handle(RecordPayment)
    def record_payment(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)

        if order.is_closed:
            raise OrderRejected(RejectionReason.ORDER_CLOSED, f"Order {order.id} is {order.order_status}")
        if amount_paid(order.id) >= order.total_amount:
            raise OrderRejected(RejectionReason.ORDER_FULLY_PAID, f"Order {order.id} is already paid")

        payment = Payment.record(
            order_id=str(order.id),
            payment_method=command.payment_method,
            amount=command.amount,
        )
        current_domain.repository_for(Payment).add(payment)
        logger.info("payment_recorded", payment_id=str(payment.id), order_id=str(order.id), amount=payment.amount)
        return str(payment.id)

    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)

        if command.transaction_id:
            clashes = [
                p
                for p in all_records(repo, transaction_id=command.transaction_id)
                if str(p.id) != str(payment.id)
            ]
            if clashes:
                raise ConstraintViolation(f"Transaction {command.transaction_id} is already recorded")

        if not command.success:
            payment.fail(command.transaction_id)
            repo.add(payment)
            logger.info("payment_failed", payment_id=str(payment.id), order_id=str(payment.order_id))
            return payment.status

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(payment.order_id)
        if order.is_closed:
            raise OrderRejected(RejectionReason.ORDER_CLOSED, f"Order {order.id} is {order.order_status}")

        payment.complete(command.transaction_id)
        repo.add(payment)

        if order.status == OrderStatus.PENDING:
            order.transition_to(OrderStatus.PROCESSING.value, reason=f"payment {payment.id} completed")
            order_repo.add(order)

        logger.info("payment_completed", payment_id=str(payment.id), order_id=str(order.id))
        return payment.status
