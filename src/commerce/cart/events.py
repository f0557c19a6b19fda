"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, Text

from commerce.domain import commerce


@commerce.event(part_of="ShoppingCart")
class CartCreated:
    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@commerce.event(part_of="ShoppingCart")
class CartItemAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@commerce.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@commerce.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)


@commerce.event(part_of="ShoppingCart")
class CartCheckedOut:
    """Cart lines were consumed by an order placed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_ids = Text(required=True)  # JSON: list of product ids
