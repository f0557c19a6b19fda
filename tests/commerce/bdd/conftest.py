"""Shared BDD fixtures and step definitions for order placement."""

import pytest
from commerce.inventory.ledger import ledger_for
from commerce.order.order import Order
from commerce.product.product import Product
from protean import current_domain
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def ctx():
    """Holds the ids created by the scenario and the outcome of the last order."""
    return {"products": {}, "order_id": None, "error": None}


def order_items(ctx, quantity, sku):
    return [{"product_id": ctx["products"][sku], "quantity": quantity}]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a registered customer with an address")
def registered_customer(store, ctx):
    ctx["customer"] = store.register_customer()


@given(parsers.cfparse('a product "{sku}" priced {price:f} with {stock:d} in stock'))
def product_in_stock(store, ctx, sku, price, stock):
    category_id = store.create_category()
    ctx["products"][sku] = store.add_product(category_id, sku=sku, price=price, stock_quantity=stock)


@given(parsers.cfparse('a percentage coupon "{code}" worth {value:d}'))
def percentage_coupon(store, code, value):
    store.create_coupon(code=code, discount_type="percentage", discount_value=float(value))


@given(parsers.cfparse('a fixed coupon "{code}" worth {value:d} usable {uses:d} time'))
def limited_fixed_coupon(store, code, value, uses):
    store.create_coupon(code=code, discount_type="fixed", discount_value=float(value), max_uses=uses)


@given(parsers.cfparse('the customer has ordered {quantity:d} of "{sku}"'))
def existing_order(store, ctx, quantity, sku):
    ctx["order_id"] = store.place_order(ctx["customer"], items=order_items(ctx, quantity, sku))


@given(parsers.cfparse('the customer has redeemed "{code}" ordering {quantity:d} of "{sku}"'))
def existing_order_with_coupon(store, ctx, quantity, sku, code):
    store.place_order(ctx["customer"], items=order_items(ctx, quantity, sku), coupon_codes=[code])


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is placed with status "{status}"'))
def order_placed(ctx, status):
    assert ctx["error"] is None
    assert current_domain.repository_for(Order).get(ctx["order_id"]).order_status == status


@then(parsers.cfparse("the order total is {total:f}"))
def order_total(ctx, total):
    assert current_domain.repository_for(Order).get(ctx["order_id"]).total_amount == pytest.approx(total)


@then(parsers.cfparse('the order is rejected with reason "{reason}"'))
def order_rejected(ctx, reason):
    assert ctx["error"] is not None
    assert ctx["error"].reason == reason


@then(parsers.cfparse('the stock of "{sku}" is {stock:d}'))
def stock_level(ctx, sku, stock):
    assert current_domain.repository_for(Product).get(ctx["products"][sku]).stock_quantity == stock


@then(parsers.cfparse('the ledger of "{sku}" ends at {stock:d}'))
def ledger_level(ctx, sku, stock):
    assert ledger_for(ctx["products"][sku])[-1].new_stock_level == stock
