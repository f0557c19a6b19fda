"""CreateReview — a customer reviews a product.

One review per customer per product, enforced here with a repository query.
"""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.customer.customer import Customer
from commerce.domain import commerce, logger
from commerce.errors import ConstraintViolation
from commerce.product.product import Product
from commerce.review.review import Review


@commerce.command(part_of="Review")
class CreateReview:
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String(max_length=255)
    comment = Text()


@commerce.command_handler(part_of=Review)
class CreateReviewHandler:
    @handle(CreateReview)
    def create_review(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        customer = current_domain.repository_for(Customer).get(command.customer_id)

        repo = current_domain.repository_for(Review)
        existing = repo._dao.query.filter(
            product_id=str(product.id),
            customer_id=str(customer.id),
        ).all()
        if existing.items:
            raise ConstraintViolation(f"Customer {customer.id} has already reviewed product {product.id}")

        review = Review.submit(
            product_id=str(product.id),
            customer_id=str(customer.id),
            rating=command.rating,
            title=command.title,
            comment=command.comment,
        )
        repo.add(review)
        logger.info("review_submitted", review_id=str(review.id), product_id=str(product.id), rating=review.rating)
        return str(review.id)
