"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Coupon")
class CouponCreated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)
    max_uses = Integer()
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)


@commerce.event(part_of="Coupon")
class CouponRedeemed:
    __version__ = 1

    coupon_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount = Float(required=True)
    uses_count = Integer(required=True)


@commerce.event(part_of="Coupon")
class CouponDeactivated:
    __version__ = 1

    coupon_id = Identifier(required=True)
