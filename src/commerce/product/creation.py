"""Product creation — command and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.category.category import Category
from commerce.domain import commerce, logger
from commerce.errors import ConstraintViolation
from commerce.product.product import Product


@commerce.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    sku = String(required=True, max_length=50)
    category_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)
    cost = Float(default=0.0)
    weight = Float(default=0.0)
    stock_quantity = Integer(default=0)
    description = Text()


def product_by_sku(sku):
    matches = current_domain.repository_for(Product)._dao.query.filter(sku=sku.strip().upper()).all().items
    return matches[0] if matches else None


@commerce.command_handler(part_of=Product)
class AddProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        current_domain.repository_for(Category).get(command.category_id)

        if product_by_sku(command.sku) is not None:
            raise ConstraintViolation(f"SKU {command.sku.strip().upper()} is already in use")

        product = Product.add(
            name=command.name,
            sku=command.sku,
            category_id=command.category_id,
            price=command.price,
            cost=command.cost,
            weight=command.weight,
            stock_quantity=command.stock_quantity,
            description=command.description,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("product_added", product_id=str(product.id), sku=product.sku)
        return str(product.id)
