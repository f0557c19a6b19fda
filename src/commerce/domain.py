"""Commerce bounded context — the store's order-fulfillment transaction core.

Customers, catalogue, cart, coupons, orders, payments, reviews and the
inventory ledger live in one domain so that placing an order can change
stock, coupon usage and the ledger inside a single unit of work.
"""

from protean.domain import Domain

from commerce.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

commerce = Domain(name="commerce")
