"""
Pending delivery tracker.

Keeps at most one open order per stock item. Marking an item ordered
replaces the open order's quantity; receiving stock reduces it and
closes the order once everything has arrived.
"""

from datetime import date, datetime

from stockledger.config import get_audit_logger
from stockledger.core.entities.purchasing import PendingDelivery, PendingDeliveryStatus
from stockledger.core.exceptions import PendingDeliveryNotFoundError, ValidationError
from stockledger.core.interfaces.purchasing_store import IPendingDeliveryStore
from stockledger.core.services.item_locks import ItemLockRegistry

audit = get_audit_logger()


class PendingDeliveryTracker:
    """Order bookkeeping between a purchase list and physical receipt."""

    def __init__(
        self,
        store: IPendingDeliveryStore,
        locks: ItemLockRegistry,
        epsilon: float = 1e-6,
    ) -> None:
        self._store = store
        self._locks = locks
        self._epsilon = epsilon

    async def mark_ordered(
        self,
        item_id: str,
        ordered_quantity: float,
        suggested_quantity: float = 0.0,
        supplier_id: str | None = None,
        expected_delivery_date: date | None = None,
        today: date | None = None,
    ) -> PendingDelivery:
        """Create the open order for an item, or update it in place."""
        if ordered_quantity <= 0:
            raise ValidationError(
                "ordered_quantity", "must be greater than zero", ordered_quantity
            )
        today = today or date.today()

        async with self._locks.hold(item_id):
            existing = await self._store.get_open_for_item(item_id)
            if existing is not None:
                existing.ordered_quantity = ordered_quantity
                existing.suggested_quantity = max(suggested_quantity, 0.0)
                existing.supplier_id = supplier_id or existing.supplier_id
                existing.order_date = today
                existing.expected_delivery_date = expected_delivery_date
                existing.updated_at = datetime.utcnow()
                pending = await self._store.update(existing)
                action = "updated"
            else:
                pending = await self._store.create(
                    PendingDelivery(
                        stock_item_id=item_id,
                        ordered_quantity=ordered_quantity,
                        suggested_quantity=max(suggested_quantity, 0.0),
                        supplier_id=supplier_id,
                        order_date=today,
                        expected_delivery_date=expected_delivery_date,
                    )
                )
                action = "created"

        audit.info(
            "pending_delivery_marked",
            item_id=item_id,
            pending_id=pending.id,
            ordered_quantity=ordered_quantity,
            action=action,
        )
        return pending

    async def resolve_on_receipt(
        self,
        item_id: str,
        received_quantity: float,
        today: date | None = None,
    ) -> PendingDelivery | None:
        """
        Apply a receipt to the item's open order.

        Returns the updated record, or None when nothing was on order.
        """
        async with self._locks.hold(item_id):
            return await self.apply_receipt(item_id, received_quantity, today=today)

    async def apply_receipt(
        self,
        item_id: str,
        received_quantity: float,
        today: date | None = None,
    ) -> PendingDelivery | None:
        """Same as resolve_on_receipt for a caller already holding the item's lock."""
        if received_quantity <= 0:
            return None

        pending = await self._store.get_open_for_item(item_id)
        if pending is None:
            return None

        remaining = pending.ordered_quantity - received_quantity
        if remaining <= self._epsilon:
            pending.status = PendingDeliveryStatus.DELIVERED
            pending.delivered_date = today or date.today()
        else:
            pending.ordered_quantity = remaining
        pending.updated_at = datetime.utcnow()
        pending = await self._store.update(pending)

        audit.info(
            "pending_delivery_received",
            item_id=item_id,
            pending_id=pending.id,
            received=received_quantity,
            status=pending.status.value,
            remaining=pending.ordered_quantity if pending.is_open else 0.0,
        )
        return pending

    async def cancel(self, pending_id: int) -> PendingDelivery:
        """Cancel an open order."""
        pending = await self._store.get(pending_id)
        if pending is None:
            raise PendingDeliveryNotFoundError(pending_id)

        async with self._locks.hold(pending.stock_item_id):
            pending = await self._store.get(pending_id)
            if pending is None:
                raise PendingDeliveryNotFoundError(pending_id)
            if not pending.is_open:
                raise ValidationError(
                    "status", "only open orders can be cancelled", pending.status.value
                )
            pending.status = PendingDeliveryStatus.CANCELLED
            pending.updated_at = datetime.utcnow()
            pending = await self._store.update(pending)

        audit.info("pending_delivery_cancelled", pending_id=pending_id)
        return pending

    async def list_open(self) -> list[PendingDelivery]:
        return await self._store.list_by_status(PendingDeliveryStatus.ORDERED)
