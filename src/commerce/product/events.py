"""Domain events for the Product aggregate."""

from protean.fields import Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Product")
class ProductAdded:
    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    name = String(required=True)
    category_id = Identifier(required=True)
    price = Float(required=True)
    stock_quantity = Integer(required=True)


@commerce.event(part_of="Product")
class ProductPriceChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)


@commerce.event(part_of="Product")
class ProductActivated:
    __version__ = 1

    product_id = Identifier(required=True)


@commerce.event(part_of="Product")
class ProductDeactivated:
    __version__ = 1

    product_id = Identifier(required=True)


@commerce.event(part_of="Product")
class ProductAttributeSet:
    __version__ = 1

    product_id = Identifier(required=True)
    attribute_name = String(required=True)
    attribute_value = String(required=True)


@commerce.event(part_of="Product")
class ProductImageAdded:
    __version__ = 1

    product_id = Identifier(required=True)
    image_id = Identifier(required=True)
    image_url = String(required=True)
    is_primary = String(required=True)  # serialized bool


@commerce.event(part_of="Product")
class StockLevelChanged:
    """Stock on hand moved; mirrors the inventory ledger entry written alongside."""

    __version__ = 1

    product_id = Identifier(required=True)
    change_type = String(required=True)
    quantity_change = Integer(required=True)
    previous_stock_level = Integer(required=True)
    new_stock_level = Integer(required=True)
