"""Product aggregate root with attribute and image entities.

``stock_quantity`` is one of the two contended counters of the store (the
other is a coupon's ``uses_count``). Every change goes through
`change_stock`, which refuses to go below zero and bumps ``revision`` so a
writer holding a stale copy can be detected before it commits.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from commerce.domain import commerce
from commerce.product.events import (
    ProductActivated,
    ProductAdded,
    ProductAttributeSet,
    ProductDeactivated,
    ProductImageAdded,
    ProductPriceChanged,
    StockLevelChanged,
)
from commerce.shared.money import to_money


@commerce.entity(part_of="Product")
class ProductAttribute:
    attribute_name = String(required=True, max_length=100)
    attribute_value = String(required=True, max_length=255)


@commerce.entity(part_of="Product")
class ProductImage:
    image_url = String(required=True, max_length=500)
    alt_text = String(max_length=255)
    is_primary = Boolean(default=False)
    display_order = Integer(default=0)


@commerce.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    sku = String(required=True, max_length=50)
    category_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)
    cost = Float(default=0.0, min_value=0.0)
    weight = Float(default=0.0, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    attributes = HasMany(ProductAttribute)
    images = HasMany(ProductImage)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def attribute_names_are_unique(self):
        names = [a.attribute_name for a in self.attributes]
        if len(names) != len(set(names)):
            raise ValidationError({"attributes": ["Attribute names must be unique per product"]})

    @classmethod
    def add(cls, name, sku, category_id, price, cost=0.0, weight=0.0, stock_quantity=0, description=None):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            sku=sku.strip().upper(),
            category_id=category_id,
            price=to_money(price) if price is not None else None,
            cost=to_money(cost),
            weight=weight,
            stock_quantity=stock_quantity,
            description=description,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                sku=product.sku,
                name=name,
                category_id=str(category_id),
                price=product.price,
                stock_quantity=stock_quantity,
            )
        )
        return product

    @property
    def primary_image(self):
        return next((img for img in self.images if img.is_primary), None)

    # -------------------------------------------------------------------
    # Catalogue details
    # -------------------------------------------------------------------
    def change_price(self, new_price):
        if new_price is None or new_price < 0:
            raise ValidationError({"price": ["Price must be zero or more"]})

        previous_price = self.price
        self.price = to_money(new_price)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=previous_price,
                new_price=self.price,
            )
        )

    def set_attribute(self, name, value):
        """Set an attribute, replacing the value if the name is already present."""
        existing = next((a for a in self.attributes if a.attribute_name == name), None)
        if existing:
            existing.attribute_value = value
        else:
            self.add_attributes(ProductAttribute(attribute_name=name, attribute_value=value))

        self.updated_at = datetime.now(UTC)
        self.raise_(ProductAttributeSet(product_id=str(self.id), attribute_name=name, attribute_value=value))

    def add_image(self, image_url, alt_text=None, is_primary=False):
        image = ProductImage(
            image_url=image_url,
            alt_text=alt_text,
            is_primary=is_primary,
            display_order=len(self.images),
        )
        self.add_images(image)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductImageAdded(
                product_id=str(self.id),
                image_id=str(image.id),
                image_url=image_url,
                is_primary=str(is_primary),
            )
        )
        return image

    def activate(self):
        if self.is_active:
            raise ValidationError({"is_active": ["Product is already active"]})
        self.is_active = True
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductActivated(product_id=str(self.id)))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Product is already inactive"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductDeactivated(product_id=str(self.id)))

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def has_stock_for(self, quantity):
        return (self.stock_quantity or 0) >= quantity

    def change_stock(self, quantity_change, change_type):
        """Apply a signed stock movement and return the resulting level."""
        previous = self.stock_quantity or 0
        new_level = previous + quantity_change
        if new_level < 0:
            raise ValidationError(
                {"stock_quantity": [f"Stock for {self.sku} cannot go below zero ({previous} on hand, {quantity_change})"]}
            )

        self.stock_quantity = new_level
        self.revision = (self.revision or 0) + 1
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockLevelChanged(
                product_id=str(self.id),
                change_type=change_type,
                quantity_change=quantity_change,
                previous_stock_level=previous,
                new_stock_level=new_level,
            )
        )
        return new_level
