"""Coupon management — commands and handler."""

from protean import handle
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.coupon.coupon import Coupon, DiscountType
from commerce.domain import commerce
from commerce.errors import ConstraintViolation


def coupon_by_code(code):
    """Return the coupon with ``code`` (case-insensitive), or None."""
    matches = (
        current_domain.repository_for(Coupon)._dao.query.filter(code=code.strip().upper()).all().items
    )
    return matches[0] if matches else None


@commerce.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    minimum_order = Float(default=0.0)
    max_uses = Integer()
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)


@commerce.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id = Identifier(required=True)


@commerce.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        coupon = Coupon.create(
            code=command.code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            minimum_order=command.minimum_order,
            max_uses=command.max_uses,
            start_date=command.start_date,
            end_date=command.end_date,
        )
        if coupon_by_code(coupon.code) is not None:
            raise ConstraintViolation(f"Coupon code {coupon.code} already exists")

        current_domain.repository_for(Coupon).add(coupon)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.deactivate()
        repo.add(coupon)
