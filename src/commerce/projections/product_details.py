"""ProductDetails — catalogue view of a product with its rating.

Built on read from the Product, Category and Review aggregates; nothing is
stored, so the view never lags behind the aggregates.
"""

from protean.fields import Boolean, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from commerce.category.category import Category
from commerce.domain import commerce
from commerce.product.product import Product
from commerce.review.review import Review
from commerce.shared.queries import all_records


@commerce.projection
class ProductDetails:
    product_id = Identifier(identifier=True, required=True)
    name = String(required=True)
    sku = String(required=True)
    price = Float(required=True)
    stock_quantity = Integer(default=0)
    is_active = Boolean(default=True)
    category_id = Identifier()
    category_name = String()
    primary_image_url = String()
    average_rating = Float()
    review_count = Integer(default=0)


def _average(ratings):
    if not ratings:
        return None
    return round(sum(ratings) / len(ratings), 2)


def _details_for(product, category_names):
    ratings = [
        review.rating
        for review in all_records(current_domain.repository_for(Review), product_id=str(product.id))
        if review.is_approved
    ]
    image = product.primary_image

    return ProductDetails(
        product_id=str(product.id),
        name=product.name,
        sku=product.sku,
        price=product.price,
        stock_quantity=product.stock_quantity,
        is_active=product.is_active,
        category_id=str(product.category_id),
        category_name=category_names.get(str(product.category_id)),
        primary_image_url=image.image_url if image else None,
        average_rating=_average(ratings),
        review_count=len(ratings),
    )


def product_details(product_id=None):
    """Details for one product, or for every product when no id is given."""
    category_names = {str(c.id): c.name for c in all_records(current_domain.repository_for(Category))}

    product_repo = current_domain.repository_for(Product)
    if product_id is not None:
        return _details_for(product_repo.get(product_id), category_names)

    return [_details_for(product, category_names) for product in all_records(product_repo)]
