"""Application tests for order status transitions and restocking."""

import pytest
from commerce.errors import InvalidTransition
from commerce.inventory.ledger import ledger_for
from commerce.order.order import Order
from commerce.order.status import TransitionOrderStatus, cancel_order
from commerce.product.product import Product
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


@pytest.fixture
def order_id(store, customer, widget_id):
    return store.place_order(customer, items=[{"product_id": widget_id, "quantity": 3}])


def _transition(store, order_id, new_status):
    return store.process(TransitionOrderStatus(order_id=order_id, new_status=new_status))


class TestTransitions:
    def test_happy_path_to_delivered(self, store, order_id):
        for status in ("processing", "shipped", "delivered"):
            assert _transition(store, order_id, status) == status

        assert current_domain.repository_for(Order).get(order_id).order_status == "delivered"

    def test_invalid_transition_leaves_order_unchanged(self, store, order_id):
        with pytest.raises(InvalidTransition):
            _transition(store, order_id, "delivered")

        assert current_domain.repository_for(Order).get(order_id).order_status == "pending"

    def test_unknown_order(self, store):
        with pytest.raises(ObjectNotFoundError):
            _transition(store, "no-such-order", "processing")


class TestRestock:
    def test_cancelling_restores_stock_with_return_entry(self, store, order_id, widget_id):
        assert _stock(widget_id) == 2

        cancel_order(order_id, reason="customer request")

        assert _stock(widget_id) == 5
        returns = [e for e in ledger_for(widget_id) if e.change_type == "return"]
        assert len(returns) == 1
        assert returns[0].quantity_change == 3
        assert returns[0].new_stock_level == 5
        assert str(returns[0].reference_id) == order_id

    def test_refund_before_shipping_restores_stock(self, store, order_id, widget_id):
        _transition(store, order_id, "processing")
        _transition(store, order_id, "refunded")
        assert _stock(widget_id) == 5

    def test_refund_after_delivery_keeps_stock(self, store, order_id, widget_id):
        for status in ("processing", "shipped", "delivered", "refunded"):
            _transition(store, order_id, status)

        assert _stock(widget_id) == 2
        assert not [e for e in ledger_for(widget_id) if e.change_type == "return"]

    def test_ledger_replays_to_current_stock(self, store, order_id, widget_id):
        cancel_order(order_id)

        entries = ledger_for(widget_id)
        assert 5 + sum(e.quantity_change for e in entries) == _stock(widget_id)
        assert entries[-1].new_stock_level == _stock(widget_id)
