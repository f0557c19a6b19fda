"""ApproveReview — publish a review into the product's rating."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.review.review import Review


@commerce.command(part_of="Review")
class ApproveReview:
    review_id = Identifier(required=True)


@commerce.command_handler(part_of=Review)
class ApproveReviewHandler:
    @handle(ApproveReview)
    def approve_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)
        review.approve()
        repo.add(review)
