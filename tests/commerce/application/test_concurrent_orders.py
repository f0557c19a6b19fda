"""Racing PlaceOrder calls from several threads against the same stock and coupon."""

import json
import threading

from commerce.coupon.management import coupon_by_code
from commerce.domain import commerce
from commerce.errors import OrderRejected, RejectionReason
from commerce.inventory.ledger import ledger_for
from commerce.order.checkout import place_order
from commerce.order.order import Order
from commerce.order.placement import PlaceOrder
from commerce.product.product import Product
from protean import current_domain


def _race(workers, build_command):
    """Run ``workers`` place_order calls released together; return their outcomes."""
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def worker(n):
        with commerce.domain_context():
            command = build_command(n)
            barrier.wait()
            try:
                outcome = ("ok", place_order(command))
            except OrderRejected as exc:
                outcome = ("rejected", exc.reason)
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert len(outcomes) == workers
    return outcomes


def _order_for(customer, items, coupon_codes=None):
    customer_id, address_id = customer

    def build(n):
        return PlaceOrder(
            customer_id=customer_id,
            shipping_address_id=address_id,
            billing_address_id=address_id,
            items=json.dumps(items),
            coupon_codes=json.dumps(coupon_codes or []),
            idempotency_key=f"race-{n}",
        )

    return build


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


class TestStockRace:
    def test_only_one_of_two_widget_orders_wins(self, customer, widget_id):
        outcomes = _race(2, _order_for(customer, [{"product_id": widget_id, "quantity": 3}]))

        assert [kind for kind, _ in outcomes].count("ok") == 1
        assert ("rejected", RejectionReason.INSUFFICIENT_STOCK) in outcomes

        assert current_domain.repository_for(Product).get(widget_id).stock_quantity == 2
        assert len(_orders()) == 1
        out = [e.quantity_change for e in ledger_for(widget_id) if e.change_type == "out"]
        assert out == [-3]


class TestCouponRace:
    def test_last_coupon_use_has_one_winner(self, store, customer, widget_id):
        store.create_coupon(code="LASTONE", max_uses=1)

        outcomes = _race(
            4,
            _order_for(customer, [{"product_id": widget_id, "quantity": 1}], coupon_codes=["LASTONE"]),
        )

        assert [kind for kind, _ in outcomes].count("ok") == 1
        assert outcomes.count(("rejected", RejectionReason.COUPON_EXHAUSTED)) == 3

        coupon = coupon_by_code("LASTONE")
        assert coupon.uses_count == 1
        assert len(_orders()) == 1
        assert current_domain.repository_for(Product).get(widget_id).stock_quantity == 4
