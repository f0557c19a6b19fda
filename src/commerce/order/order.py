"""Order aggregate — a placed order with its line items and redeemed coupons.

Prices are snapshotted onto the line items when the order is placed, and
coupon discounts are frozen onto the order at redemption, so later catalogue
or coupon edits never change a historical order's totals. The totals
themselves are an invariant of the aggregate:

    total_amount = sum(item subtotals) + tax_amount + shipping_amount - discount_amount

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED → REFUNDED
    PENDING → CANCELLED
    PROCESSING → CANCELLED | REFUNDED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from commerce.domain import commerce
from commerce.errors import InvalidTransition
from commerce.order.events import OrderPlaced, OrderStatusChanged
from commerce.shared.money import money_equal, to_money


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

TERMINAL_STATUSES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}

# Stock is still "taken" by the order in these states; leaving them for
# CANCELLED or REFUNDED hands it back.
_UNSHIPPED_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}


@commerce.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    sku = String(required=True, max_length=50)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def subtotal(self):
        return to_money(self.quantity * self.unit_price)


@commerce.entity(part_of="Order")
class OrderCoupon:
    coupon_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)
    discount_amount = Float(required=True, min_value=0.0)


@commerce.aggregate
class Order:
    customer_id = Identifier(required=True)
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    coupons = HasMany(OrderCoupon)
    subtotal = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    idempotency_key = String(max_length=100)
    from_cart = Boolean(default=False)
    stock_restored = Boolean(default=False)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def totals_must_balance(self):
        expected_subtotal = to_money(sum(item.subtotal for item in self.items))
        if not money_equal(self.subtotal, expected_subtotal):
            raise ValidationError({"subtotal": [f"Subtotal {self.subtotal} does not match items ({expected_subtotal})"]})

        expected_discount = to_money(sum(c.discount_amount for c in self.coupons))
        if not money_equal(self.discount_amount, expected_discount):
            raise ValidationError({"discount_amount": ["Discount does not match applied coupons"]})

        expected_total = self.subtotal + (self.tax_amount or 0.0) + (self.shipping_amount or 0.0) - self.discount_amount
        if not money_equal(self.total_amount, expected_total):
            raise ValidationError({"total_amount": [f"Total {self.total_amount} does not balance ({expected_total:.2f})"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        shipping_address_id,
        billing_address_id,
        lines,
        coupons=None,
        tax_amount=0.0,
        shipping_amount=0.0,
        idempotency_key=None,
        from_cart=False,
        notes=None,
    ):
        """Build a pending order from priced lines and redeemed coupons.

        Args:
            lines: List of dicts with product_id, sku, product_name, quantity
                and unit_price (the product's price at placement time).
            coupons: List of dicts with coupon_id, coupon_code and the
                discount_amount granted to this order.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        coupons = coupons or []
        items = [OrderItem(**line) for line in lines]
        order_coupons = [OrderCoupon(**coupon) for coupon in coupons]

        subtotal = to_money(sum(item.subtotal for item in items))
        discount = to_money(sum(c.discount_amount for c in order_coupons))
        tax_amount = to_money(tax_amount)
        shipping_amount = to_money(shipping_amount)
        now = datetime.now(UTC)

        order = cls(
            customer_id=customer_id,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            items=items,
            coupons=order_coupons,
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_amount=shipping_amount,
            discount_amount=discount,
            total_amount=to_money(subtotal + tax_amount + shipping_amount - discount),
            idempotency_key=idempotency_key,
            from_cart=from_cart,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "sku": item.sku,
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                        }
                        for item in items
                    ]
                ),
                coupon_codes=json.dumps([c.coupon_code for c in order_coupons]),
                subtotal=subtotal,
                tax_amount=tax_amount,
                shipping_amount=shipping_amount,
                discount_amount=discount,
                total_amount=order.total_amount,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def status(self):
        return OrderStatus(self.order_status)

    @property
    def is_closed(self):
        return self.status in TERMINAL_STATUSES

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    def can_transition_to(self, target):
        return OrderStatus(target) in _VALID_TRANSITIONS[self.status]

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def transition_to(self, new_status, reason=None):
        """Move to ``new_status``.

        Returns True when the order's stock must go back on the shelf, that
        is when an order that never shipped is cancelled or refunded. The
        caller performs the restock in the same unit of work.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise InvalidTransition(self.order_status, new_status) from None

        current = self.status
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(current.value, target.value)

        restock = target in TERMINAL_STATUSES and current in _UNSHIPPED_STATUSES and not self.stock_restored

        now = datetime.now(UTC)
        self.order_status = target.value
        if restock:
            self.stock_restored = True
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                reason=reason,
                changed_at=now,
            )
        )
        return restock
