"""Coupon aggregate — a discount code with a validity window and a usage cap.

``uses_count`` is contended between concurrent orders. `redeem` is the only
way to increase it; it re-checks the cap and bumps ``revision`` so the
order placement can detect a stale read.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from commerce.coupon.events import CouponCreated, CouponDeactivated, CouponRedeemed
from commerce.domain import commerce
from commerce.errors import OrderRejected, RejectionReason
from commerce.shared.money import to_money


def _as_utc(moment):
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@commerce.aggregate
class Coupon:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    minimum_order = Float(default=0.0, min_value=0.0)
    max_uses = Integer(min_value=0)  # empty means unlimited
    uses_count = Integer(default=0, min_value=0)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    is_active = Boolean(default=True)
    revision = Integer(default=0)
    created_at = DateTime()

    @invariant.post
    def window_must_not_end_before_it_starts(self):
        if self.start_date and self.end_date and _as_utc(self.end_date) < _as_utc(self.start_date):
            raise ValidationError({"end_date": ["End date must not be before start date"]})

    @invariant.post
    def uses_must_not_exceed_cap(self):
        if self.max_uses is not None and (self.uses_count or 0) > self.max_uses:
            raise ValidationError({"uses_count": ["Coupon used more often than allowed"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discounts cannot exceed 100"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        start_date,
        end_date,
        minimum_order=0.0,
        max_uses=None,
        description=None,
    ):
        coupon = cls(
            code=code.strip().upper(),
            discount_type=discount_type,
            discount_value=discount_value,
            minimum_order=minimum_order or 0.0,
            max_uses=max_uses,
            start_date=start_date,
            end_date=end_date,
            description=description,
            created_at=datetime.now(UTC),
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_type=discount_type,
                discount_value=discount_value,
                max_uses=max_uses,
                start_date=start_date,
                end_date=end_date,
            )
        )
        return coupon

    @property
    def is_exhausted(self):
        return self.max_uses is not None and (self.uses_count or 0) >= self.max_uses

    def check_redeemable(self, subtotal, at=None):
        """Raise `OrderRejected` unless the coupon can discount an order of ``subtotal`` now."""
        at = _as_utc(at or datetime.now(UTC))

        if not self.is_active:
            raise OrderRejected(RejectionReason.COUPON_INACTIVE, f"Coupon {self.code} is not active")
        if at < _as_utc(self.start_date) or at > _as_utc(self.end_date):
            raise OrderRejected(RejectionReason.COUPON_EXPIRED, f"Coupon {self.code} is outside its validity window")
        if self.is_exhausted:
            raise OrderRejected(RejectionReason.COUPON_EXHAUSTED, f"Coupon {self.code} has no uses left")
        if subtotal < (self.minimum_order or 0.0):
            raise OrderRejected(
                RejectionReason.MINIMUM_ORDER_NOT_MET,
                f"Coupon {self.code} needs an order of at least {self.minimum_order:.2f}",
            )

    def discount_for(self, subtotal, cap=None):
        """Discount this coupon grants on ``subtotal``, never more than ``cap`` (the subtotal by default)."""
        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = subtotal * self.discount_value / 100
        else:
            discount = self.discount_value
        return to_money(min(discount, subtotal if cap is None else cap))

    def redeem(self, order_id, discount_amount):
        if self.is_exhausted:
            raise OrderRejected(RejectionReason.COUPON_EXHAUSTED, f"Coupon {self.code} has no uses left")

        self.uses_count = (self.uses_count or 0) + 1
        self.revision = (self.revision or 0) + 1
        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                order_id=str(order_id),
                discount_amount=discount_amount,
                uses_count=self.uses_count,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})
        self.is_active = False
        self.raise_(CouponDeactivated(coupon_id=str(self.id)))
