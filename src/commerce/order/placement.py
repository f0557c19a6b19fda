"""PlaceOrder — turn a cart or an explicit item list into a placed order.

Every precondition is checked before anything is written:

1. the customer exists and owns both addresses,
2. each product exists, is active and has enough stock,
3. each coupon is active, inside its window, not exhausted, and its
   minimum order is met by the subtotal.

Only then are the order, the stock decrements with their ``out`` ledger
entries, and the coupon redemptions written. All writes share the command's
unit of work, so a failure leaves no trace.

Stock and coupon usage are the contended records. Their ``revision`` as seen
during validation is compared with the stored one right before writing; a
mismatch raises `ConcurrencyConflict` and the whole command is retried by
`commerce.order.checkout.place_order`.
"""

import json

from protean import handle
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.cart.cart import ShoppingCart
from commerce.cart.items import cart_for_customer
from commerce.coupon.coupon import Coupon
from commerce.coupon.management import coupon_by_code
from commerce.customer.customer import Customer
from commerce.domain import commerce, logger
from commerce.errors import ConcurrencyConflict, OrderRejected, RejectionReason
from commerce.inventory.ledger import ChangeType, InventoryLog, move_stock
from commerce.order.order import Order
from commerce.product.product import Product
from commerce.shared.money import to_money
from commerce.utils.logging import log_context


@commerce.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    items = Text()  # JSON: list of {product_id, quantity}; empty means "order the cart"
    coupon_codes = Text()  # JSON: list of coupon codes
    tax_amount = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    idempotency_key = String(max_length=100)
    notes = Text()


def _requested_quantities(raw_items):
    """Parse item lines into {product_id: quantity}, merging repeated products."""
    items = json.loads(raw_items) if isinstance(raw_items, str) else raw_items
    requested = {}
    for line in items or []:
        quantity = line.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError({"items": [f"Quantity must be a positive whole number, got {quantity!r}"]})
        product_id = str(line["product_id"])
        requested[product_id] = requested.get(product_id, 0) + quantity
    return requested


def _coupon_codes(raw_codes):
    codes = json.loads(raw_codes) if isinstance(raw_codes, str) else (raw_codes or [])
    unique = []
    for code in codes:
        normalized = code.strip().upper()
        if normalized not in unique:
            unique.append(normalized)
    return unique


def ensure_unchanged(repo, aggregates):
    """Compare-and-set guard: every aggregate must still carry the revision we validated against."""
    for aggregate in aggregates:
        stored = repo.get(aggregate.id)
        if (stored.revision or 0) != (aggregate.revision or 0):
            raise ConcurrencyConflict(
                f"{type(aggregate).__name__} {aggregate.id} changed concurrently "
                f"(read revision {aggregate.revision}, stored {stored.revision})"
            )


@commerce.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        with log_context(customer_id=command.customer_id, idempotency_key=command.idempotency_key):
            order_repo = current_domain.repository_for(Order)

            if command.idempotency_key:
                previous = order_repo._dao.query.filter(
                    customer_id=str(command.customer_id),
                    idempotency_key=command.idempotency_key,
                ).all()
                if previous.items:
                    order_id = str(previous.items[0].id)
                    logger.info("order_replayed", order_id=order_id)
                    return order_id

            try:
                return self._place(command, order_repo)
            except OrderRejected as exc:
                logger.info("order_rejected", reason=exc.reason, detail=exc.detail)
                raise

    def _place(self, command, order_repo):
        product_repo = current_domain.repository_for(Product)
        coupon_repo = current_domain.repository_for(Coupon)

        # -------------------------------------------------------------------
        # Customer and addresses
        # -------------------------------------------------------------------
        customer = current_domain.repository_for(Customer).get(command.customer_id)
        for address_id in (command.shipping_address_id, command.billing_address_id):
            if not customer.owns_address(address_id):
                raise OrderRejected(
                    RejectionReason.ADDRESS_NOT_OWNED,
                    f"Address {address_id} does not belong to customer {customer.id}",
                )

        cart = None
        if command.items:
            requested = _requested_quantities(command.items)
        else:
            cart = cart_for_customer(customer.id)
            requested = {str(item.product_id): item.quantity for item in cart.items}
        if not requested:
            raise OrderRejected(RejectionReason.EMPTY_ORDER, "Nothing to order")

        # -------------------------------------------------------------------
        # Products, prices and stock
        # -------------------------------------------------------------------
        products = {}
        lines = []
        for product_id, quantity in requested.items():
            product = product_repo.get(product_id)
            if not product.is_active:
                raise OrderRejected(RejectionReason.PRODUCT_INACTIVE, f"Product {product.sku} is not available")
            if not product.has_stock_for(quantity):
                raise OrderRejected(
                    RejectionReason.INSUFFICIENT_STOCK,
                    f"Only {product.stock_quantity} of {product.sku} in stock, {quantity} requested",
                )
            products[product_id] = product
            lines.append(
                {
                    "product_id": product_id,
                    "sku": product.sku,
                    "product_name": product.name,
                    "quantity": quantity,
                    "unit_price": product.price,
                }
            )
        subtotal = to_money(sum(line["quantity"] * line["unit_price"] for line in lines))

        # -------------------------------------------------------------------
        # Coupons
        # -------------------------------------------------------------------
        redemptions = []
        remaining = subtotal
        for code in _coupon_codes(command.coupon_codes):
            coupon = coupon_by_code(code)
            if coupon is None:
                raise OrderRejected(RejectionReason.COUPON_INVALID, f"Unknown coupon {code}")
            coupon.check_redeemable(subtotal)
            discount = coupon.discount_for(subtotal, cap=remaining)
            remaining = to_money(remaining - discount)
            redemptions.append((coupon, discount))

        order = Order.place(
            customer_id=str(customer.id),
            shipping_address_id=command.shipping_address_id,
            billing_address_id=command.billing_address_id,
            lines=lines,
            coupons=[
                {"coupon_id": str(coupon.id), "coupon_code": coupon.code, "discount_amount": discount}
                for coupon, discount in redemptions
            ],
            tax_amount=command.tax_amount or 0.0,
            shipping_amount=command.shipping_amount or 0.0,
            idempotency_key=command.idempotency_key,
            from_cart=cart is not None,
            notes=command.notes,
        )

        # -------------------------------------------------------------------
        # Writes
        # -------------------------------------------------------------------
        ensure_unchanged(product_repo, products.values())
        ensure_unchanged(coupon_repo, [coupon for coupon, _ in redemptions])

        entries = [
            move_stock(
                products[str(item.product_id)],
                change_type=ChangeType.OUT.value,
                quantity_change=-item.quantity,
                reason="order placed",
                reference_id=order.id,
            )
            for item in order.items
        ]
        for coupon, discount in redemptions:
            coupon.redeem(order.id, discount)

        try:
            order_repo.add(order)
            for product in products.values():
                product_repo.add(product)
            log_repo = current_domain.repository_for(InventoryLog)
            for entry in entries:
                log_repo.add(entry)
            for coupon, _ in redemptions:
                coupon_repo.add(coupon)
        except ExpectedVersionError as exc:
            raise ConcurrencyConflict(str(exc)) from exc

        if cart is not None:
            cart.check_out(order.id, products.keys())
            current_domain.repository_for(ShoppingCart).add(cart)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            item_count=order.item_count,
            total_amount=order.total_amount,
        )
        return str(order.id)
