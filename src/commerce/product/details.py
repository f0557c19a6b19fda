"""Product details and lifecycle — commands and handler."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.product.product import Product


@commerce.command(part_of="Product")
class UpdateProductPrice:
    product_id = Identifier(required=True)
    new_price = Float(required=True)


@commerce.command(part_of="Product")
class SetProductAttribute:
    product_id = Identifier(required=True)
    attribute_name = String(required=True, max_length=100)
    attribute_value = String(required=True, max_length=255)


@commerce.command(part_of="Product")
class AddProductImage:
    product_id = Identifier(required=True)
    image_url = String(required=True, max_length=500)
    alt_text = String(max_length=255)
    is_primary = Boolean(default=False)


@commerce.command(part_of="Product")
class ActivateProduct:
    product_id = Identifier(required=True)


@commerce.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


@commerce.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(UpdateProductPrice)
    def update_price(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_price(command.new_price)
        repo.add(product)

    @handle(SetProductAttribute)
    def set_attribute(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_attribute(command.attribute_name, command.attribute_value)
        repo.add(product)

    @handle(AddProductImage)
    def add_image(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        image = product.add_image(
            image_url=command.image_url,
            alt_text=command.alt_text,
            is_primary=command.is_primary,
        )
        repo.add(product)
        return str(image.id)

    @handle(ActivateProduct)
    def activate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.activate()
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)
