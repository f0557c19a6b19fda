"""Review aggregate.

A review counts towards a product's rating only once approved. A customer
reviews a given product at most once; that rule spans aggregates and is
checked by the submission handler.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from commerce.domain import commerce
from commerce.review.events import ReviewApproved, ReviewSubmitted

MIN_RATING = 1
MAX_RATING = 5


@commerce.aggregate
class Review:
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True, min_value=MIN_RATING, max_value=MAX_RATING)
    title = String(max_length=255)
    comment = Text()
    is_approved = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def submit(cls, product_id, customer_id, rating, title=None, comment=None):
        now = datetime.now(UTC)
        review = cls(
            product_id=product_id,
            customer_id=customer_id,
            rating=rating,
            title=title,
            comment=comment,
            created_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                product_id=str(product_id),
                customer_id=str(customer_id),
                rating=rating,
                submitted_at=now,
            )
        )
        return review

    def approve(self):
        if self.is_approved:
            raise ValidationError({"is_approved": ["Review is already approved"]})

        self.is_approved = True
        self.raise_(
            ReviewApproved(
                review_id=str(self.id),
                product_id=str(self.product_id),
                approved_at=datetime.now(UTC),
            )
        )
