"""Cart item management — commands and handler.

Carts are addressed by their owner: every customer has exactly one.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from commerce.cart.cart import ShoppingCart
from commerce.domain import commerce


def cart_for_customer(customer_id):
    carts = current_domain.repository_for(ShoppingCart)._dao.query.filter(customer_id=str(customer_id)).all().items
    if not carts:
        raise ObjectNotFoundError({"_entity": f"No shopping cart for customer {customer_id}"})
    return carts[0]


@commerce.command(part_of="ShoppingCart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@commerce.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@commerce.command(part_of="ShoppingCart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@commerce.command_handler(part_of=ShoppingCart)
class CartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        from commerce.product.product import Product

        # Raises ObjectNotFoundError for unknown products
        current_domain.repository_for(Product).get(command.product_id)

        cart = cart_for_customer(command.customer_id)
        item = cart.add_item(product_id=command.product_id, quantity=command.quantity)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(item.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        cart = cart_for_customer(command.customer_id)
        cart.update_item_quantity(item_id=command.item_id, new_quantity=command.new_quantity)
        current_domain.repository_for(ShoppingCart).add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = cart_for_customer(command.customer_id)
        cart.remove_item(item_id=command.item_id)
        current_domain.repository_for(ShoppingCart).add(cart)
