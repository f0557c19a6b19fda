"""Order status transitions — command and handler.

Cancelling or refunding an order that never shipped puts its stock back:
each line's quantity is returned to the product and a ``return`` entry is
appended to the inventory ledger, all in the transition's unit of work.
Refunding an order also marks its completed payments refunded.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.inventory.ledger import ChangeType, InventoryLog, move_stock
from commerce.order.order import Order, OrderStatus
from commerce.payment.payment import Payment, PaymentStatus
from commerce.product.product import Product
from commerce.shared.queries import all_records


@commerce.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=20)
    reason = String(max_length=255)


def cancel_order(order_id, reason=None):
    """Shorthand for transitioning an order to cancelled."""
    return current_domain.process(
        TransitionOrderStatus(order_id=order_id, new_status=OrderStatus.CANCELLED.value, reason=reason),
        asynchronous=False,
    )


@commerce.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(TransitionOrderStatus)
    def transition_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous_status = order.order_status

        restock = order.transition_to(command.new_status, reason=command.reason)

        if restock:
            product_repo = current_domain.repository_for(Product)
            log_repo = current_domain.repository_for(InventoryLog)
            for item in order.items:
                product = product_repo.get(item.product_id)
                entry = move_stock(
                    product,
                    change_type=ChangeType.RETURN.value,
                    quantity_change=item.quantity,
                    reason=f"order {order.order_status}",
                    reference_id=order.id,
                )
                product_repo.add(product)
                log_repo.add(entry)

        refunded_payments = []
        if order.order_status == OrderStatus.REFUNDED.value:
            payment_repo = current_domain.repository_for(Payment)
            completed = list(all_records(payment_repo, order_id=str(order.id), status=PaymentStatus.COMPLETED.value))
            for payment in completed:
                payment.refund()
                payment_repo.add(payment)
                refunded_payments.append(str(payment.id))

        repo.add(order)
        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            previous_status=previous_status,
            new_status=order.order_status,
            restocked=restock,
            refunded_payments=refunded_payments,
        )
        return order.order_status
