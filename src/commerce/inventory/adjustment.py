"""Manual stock movements — adjustments and receipts.

Orders move stock themselves (see ``commerce.order.placement``); these
commands cover everything else that changes stock on hand.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.inventory.ledger import ChangeType, InventoryLog, move_stock
from commerce.product.product import Product


@commerce.command(part_of="InventoryLog")
class AdjustInventory:
    product_id = Identifier(required=True)
    delta = Integer(required=True)
    reason = String(required=True, max_length=255)


@commerce.command(part_of="InventoryLog")
class ReceiveStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    reason = String(max_length=255)


@commerce.command_handler(part_of=InventoryLog)
class InventoryMovementHandler:
    @handle(AdjustInventory)
    def adjust_inventory(self, command):
        if command.delta == 0:
            raise ValidationError({"delta": ["Adjustment must change the stock level"]})

        product_repo = current_domain.repository_for(Product)
        product = product_repo.get(command.product_id)

        entry = move_stock(
            product,
            change_type=ChangeType.ADJUSTMENT.value,
            quantity_change=command.delta,
            reason=command.reason,
        )
        product_repo.add(product)
        current_domain.repository_for(InventoryLog).add(entry)

        logger.info(
            "stock_adjusted",
            product_id=str(product.id),
            delta=command.delta,
            new_stock_level=entry.new_stock_level,
        )
        return str(entry.id)

    @handle(ReceiveStock)
    def receive_stock(self, command):
        product_repo = current_domain.repository_for(Product)
        product = product_repo.get(command.product_id)

        entry = move_stock(
            product,
            change_type=ChangeType.IN.value,
            quantity_change=command.quantity,
            reason=command.reason or "stock received",
        )
        product_repo.add(product)
        current_domain.repository_for(InventoryLog).add(entry)

        logger.info("stock_received", product_id=str(product.id), quantity=command.quantity)
        return str(entry.id)
