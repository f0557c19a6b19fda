"""InventoryLog aggregate — the append-only inventory ledger.

One entry is written per stock movement of a product, recording the signed
change and the stock level that resulted from it. Entries expose no mutator
methods: once written they are never edited, so the ledger can be replayed
to audit any product's stock history.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.inventory.events import InventoryLogged
from commerce.shared.queries import all_records


class ChangeType(Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    RETURN = "return"


@commerce.aggregate
class InventoryLog:
    product_id = Identifier(required=True)
    change_type = String(required=True, choices=ChangeType)
    quantity_change = Integer(required=True)
    new_stock_level = Integer(required=True, min_value=0)
    reason = String(max_length=255)
    reference_id = Identifier()  # order id for out/return movements
    created_at = DateTime()

    @invariant.post
    def direction_matches_change_type(self):
        if self.change_type == ChangeType.OUT.value and self.quantity_change >= 0:
            raise ValidationError({"quantity_change": ["Outbound movements must be negative"]})
        if self.change_type in (ChangeType.IN.value, ChangeType.RETURN.value) and self.quantity_change <= 0:
            raise ValidationError({"quantity_change": ["Inbound movements must be positive"]})

    @classmethod
    def record(cls, product_id, change_type, quantity_change, new_stock_level, reason=None, reference_id=None):
        now = datetime.now(UTC)
        entry = cls(
            product_id=str(product_id),
            change_type=change_type,
            quantity_change=quantity_change,
            new_stock_level=new_stock_level,
            reason=reason,
            reference_id=str(reference_id) if reference_id else None,
            created_at=now,
        )
        entry.raise_(
            InventoryLogged(
                log_id=str(entry.id),
                product_id=str(product_id),
                change_type=change_type,
                quantity_change=quantity_change,
                new_stock_level=new_stock_level,
                reference_id=entry.reference_id,
                logged_at=now,
            )
        )
        return entry


def move_stock(product, change_type, quantity_change, reason=None, reference_id=None):
    """Apply a stock movement to ``product`` and return its ledger entry.

    The caller persists both the product and the entry in the same unit of
    work.
    """
    new_level = product.change_stock(quantity_change, change_type)
    return InventoryLog.record(
        product_id=product.id,
        change_type=change_type,
        quantity_change=quantity_change,
        new_stock_level=new_level,
        reason=reason,
        reference_id=reference_id,
    )


def ledger_for(product_id):
    """Ledger entries of a product, oldest first."""
    entries = all_records(current_domain.repository_for(InventoryLog), product_id=str(product_id))
    return sorted(entries, key=lambda e: e.created_at)
