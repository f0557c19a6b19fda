"""OrderSummary — one row per order for customer and back-office listings."""

from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from commerce.customer.customer import Customer
from commerce.domain import commerce
from commerce.order.order import Order
from commerce.payment.payment import Payment
from commerce.shared.queries import all_records


@commerce.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    order_status = String(required=True)
    total_amount = Float(required=True)
    item_count = Integer(default=0)
    payment_status = String()
    created_at = DateTime()


def latest_payment_status(order_id):
    payments = list(all_records(current_domain.repository_for(Payment), order_id=str(order_id)))
    if not payments:
        return None
    return max(payments, key=lambda p: p.created_at).status


def order_summaries(customer_id=None):
    """Summaries of every order, or of one customer's orders, newest first."""
    filters = {"customer_id": str(customer_id)} if customer_id is not None else {}
    orders = all_records(current_domain.repository_for(Order), **filters)

    customer_repo = current_domain.repository_for(Customer)
    names = {}
    summaries = []
    for order in orders:
        key = str(order.customer_id)
        if key not in names:
            names[key] = customer_repo.get(key).full_name

        summaries.append(
            OrderSummary(
                order_id=str(order.id),
                customer_id=key,
                customer_name=names[key],
                order_status=order.order_status,
                total_amount=order.total_amount,
                item_count=order.item_count,
                payment_status=latest_payment_status(order.id),
                created_at=order.created_at,
            )
        )

    return sorted(summaries, key=lambda s: s.created_at, reverse=True)
