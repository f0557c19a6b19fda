import pytest
from commerce.payment.events import PaymentCompleted, PaymentFailed, PaymentRefunded
from commerce.payment.payment import Payment
from commerce.review.review import Review
from protean.exceptions import ValidationError


def _payment():
    payment = Payment.record(order_id="ord-1", payment_method="card", amount=19.999)
    payment._events.clear()
    return payment


class TestPayment:
    def test_recorded_payment_is_pending(self):
        payment = _payment()
        assert payment.status == "pending"
        assert payment.amount == 20.0

    def test_negative_amount_is_rejected(self):
        with pytest.raises(ValidationError):
            Payment.record(order_id="ord-1", payment_method="card", amount=-5.0)

    def test_complete(self):
        payment = _payment()
        payment.complete("txn-1")

        assert payment.status == "completed"
        assert payment.transaction_id == "txn-1"
        assert payment.payment_date is not None
        assert isinstance(payment._events[-1], PaymentCompleted)

    def test_fail(self):
        payment = _payment()
        payment.fail("txn-1")

        assert payment.status == "failed"
        assert isinstance(payment._events[-1], PaymentFailed)

    def test_settled_payment_cannot_be_settled_again(self):
        payment = _payment()
        payment.complete("txn-1")

        with pytest.raises(ValidationError):
            payment.fail("txn-2")

    def test_refund_completed_payment(self):
        payment = _payment()
        payment.complete("txn-1")
        payment.refund()

        assert payment.status == "refunded"
        assert isinstance(payment._events[-1], PaymentRefunded)

    def test_pending_payment_cannot_be_refunded(self):
        with pytest.raises(ValidationError):
            _payment().refund()


class TestReview:
    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, rating):
        with pytest.raises(ValidationError):
            Review.submit(product_id="prod-1", customer_id="cust-1", rating=rating)

    def test_new_review_awaits_approval(self):
        review = Review.submit(product_id="prod-1", customer_id="cust-1", rating=4, title="Good")
        assert review.is_approved is False

    def test_approve_once(self):
        review = Review.submit(product_id="prod-1", customer_id="cust-1", rating=4)
        review.approve()
        assert review.is_approved is True

        with pytest.raises(ValidationError):
            review.approve()
