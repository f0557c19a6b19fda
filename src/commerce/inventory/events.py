"""Domain events for the InventoryLog aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="InventoryLog")
class InventoryLogged:
    __version__ = 1

    log_id = Identifier(required=True)
    product_id = Identifier(required=True)
    change_type = String(required=True)
    quantity_change = Integer(required=True)
    new_stock_level = Integer(required=True)
    reference_id = Identifier()
    logged_at = DateTime(required=True)
