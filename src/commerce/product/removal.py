"""Product deletion — command and handler.

A product that appears on any order line cannot be deleted. Otherwise its
attributes and images go with the aggregate, and reviews, cart lines and
inventory ledger entries that point at it are removed in the same unit of
work.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.cart.cart import ShoppingCart
from commerce.domain import commerce, logger
from commerce.errors import ConstraintViolation
from commerce.inventory.ledger import InventoryLog
from commerce.product.product import Product
from commerce.shared.queries import all_records


@commerce.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)


def is_ordered(product_id):
    from commerce.order.order import Order

    return any(
        str(item.product_id) == product_id
        for order in all_records(current_domain.repository_for(Order))
        for item in order.items
    )


@commerce.command_handler(part_of=Product)
class DeleteProductHandler:
    @handle(DeleteProduct)
    def delete_product(self, command):
        from commerce.review.review import Review

        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product_id = str(product.id)

        if is_ordered(product_id):
            raise ConstraintViolation(f"Product {product_id} is referenced by orders and cannot be deleted")

        cart_repo = current_domain.repository_for(ShoppingCart)
        for cart in list(all_records(cart_repo)):
            if cart.line_for(product_id) is not None:
                cart.remove_product(product_id)
                cart_repo.add(cart)

        review_repo = current_domain.repository_for(Review)
        for review in list(all_records(review_repo, product_id=product_id)):
            review_repo.remove(review)

        ledger_repo = current_domain.repository_for(InventoryLog)
        for entry in list(all_records(ledger_repo, product_id=product_id)):
            ledger_repo.remove(entry)

        repo.remove(product)
        logger.info("product_deleted", product_id=product_id, sku=product.sku)
