"""Shopping Cart aggregate — each customer's staging area for a future order.

A customer owns exactly one cart (created at registration). A cart holds at
most one line per product: adding a product that is already in the cart
grows the existing line instead of adding a second one.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from commerce.cart.events import (
    CartCheckedOut,
    CartCreated,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from commerce.domain import commerce


@commerce.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@commerce.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(item.product_id) for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A cart can hold only one line per product"]})

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        cart = cls(customer_id=customer_id, created_at=now, updated_at=now)
        cart.raise_(CartCreated(cart_id=str(cart.id), customer_id=str(customer_id)))
        return cart

    def find_item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    def line_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def add_item(self, product_id, quantity):
        """Add a product to the cart, or grow its existing line."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.line_for(product_id)
        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(product_id=product_id, quantity=quantity, added_at=now)
            self.add_items(item)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                quantity=quantity,
                line_quantity=item.quantity,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity):
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        if new_quantity is None or new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id), product_id=str(item.product_id)))

    def remove_product(self, product_id):
        """Drop the line for a product, if any. Used when the product is deleted."""
        item = self.line_for(product_id)
        if item is not None:
            self.remove_item(item.id)

    def check_out(self, order_id, product_ids):
        """Remove the lines that were turned into an order."""
        ordered = {str(pid) for pid in product_ids}
        for item in [i for i in self.items if str(i.product_id) in ordered]:
            self.remove_items(item)

        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                order_id=str(order_id),
                product_ids=json.dumps(sorted(ordered)),
            )
        )
