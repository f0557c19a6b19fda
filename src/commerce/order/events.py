"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String, Text

from commerce.domain import commerce


@commerce.event(part_of="Order")
class OrderPlaced:
    """A customer's order was accepted, with stock taken and coupons redeemed."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, sku, quantity, unit_price}
    coupon_codes = Text()  # JSON: list of codes
    subtotal = Float(required=True)
    tax_amount = Float()
    shipping_amount = Float()
    discount_amount = Float()
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    reason = String()
    changed_at = DateTime(required=True)
