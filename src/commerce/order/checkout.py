"""Checkout entry point — `place_order` with bounded retry on concurrency conflicts.

A lost race on stock or coupon usage is the only failure that is retried;
every other error goes straight back to the caller. Each attempt is a fresh
command with its own unit of work, and the idempotency key makes a retry of
an attempt that did commit return the same order instead of a second one.
"""

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from commerce.domain import logger
from commerce.errors import ConcurrencyConflict

DEFAULT_ATTEMPTS = 3


def configured_attempts():
    custom = current_domain.config.get("custom") or {}
    return int(custom.get("place_order_attempts", DEFAULT_ATTEMPTS))


def place_order(command, attempts=None):
    """Process a `PlaceOrder` command, retrying up to ``attempts`` times on conflict."""
    attempts = attempts or configured_attempts()

    for attempt in range(1, attempts + 1):
        try:
            return current_domain.process(command, asynchronous=False)
        except (ConcurrencyConflict, ExpectedVersionError) as exc:
            logger.warning(
                "place_order_conflict",
                customer_id=str(command.customer_id),
                attempt=attempt,
                attempts=attempts,
                error=str(exc),
            )
            if attempt == attempts:
                if isinstance(exc, ConcurrencyConflict):
                    raise
                raise ConcurrencyConflict(str(exc)) from exc
