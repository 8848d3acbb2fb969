"""Caller-maintained shopping list, independent of computed need."""

from stockledger.config import get_logger
from stockledger.core.entities.purchasing import ManualPurchaseEntry
from stockledger.core.exceptions import ManualEntryNotFoundError, ValidationError
from stockledger.core.interfaces.purchasing_store import IManualPurchaseListStore

logger = get_logger(__name__)


class ManualPurchaseList:
    """One entry per stock item; adding an item again replaces its entry."""

    def __init__(self, store: IManualPurchaseListStore) -> None:
        self._store = store

    async def add(
        self,
        item_id: str,
        suggested_quantity: float,
        supplier_id: str | None = None,
        notes: str | None = None,
    ) -> ManualPurchaseEntry:
        if suggested_quantity <= 0:
            raise ValidationError(
                "suggested_quantity", "must be greater than zero", suggested_quantity
            )
        entry = await self._store.upsert(
            ManualPurchaseEntry(
                stock_item_id=item_id,
                suggested_quantity=suggested_quantity,
                supplier_id=supplier_id,
                notes=notes,
            )
        )
        logger.info(
            "manual_entry_added",
            entry_id=entry.id,
            item_id=item_id,
            quantity=suggested_quantity,
        )
        return entry

    async def update(
        self,
        entry_id: int,
        suggested_quantity: float | None = None,
        supplier_id: str | None = None,
        notes: str | None = None,
    ) -> ManualPurchaseEntry:
        entry = await self._store.get(entry_id)
        if entry is None:
            raise ManualEntryNotFoundError(entry_id)

        if suggested_quantity is not None:
            if suggested_quantity <= 0:
                raise ValidationError(
                    "suggested_quantity", "must be greater than zero", suggested_quantity
                )
            entry.suggested_quantity = suggested_quantity
        if supplier_id is not None:
            entry.supplier_id = supplier_id
        if notes is not None:
            entry.notes = notes

        return await self._store.upsert(entry)

    async def remove(self, entry_id: int) -> None:
        if not await self._store.delete(entry_id):
            raise ManualEntryNotFoundError(entry_id)
        logger.info("manual_entry_removed", entry_id=entry_id)

    async def remove_for_item(self, item_id: str) -> int:
        """Drop the item's entry once it has been ordered."""
        removed = await self._store.delete_for_item(item_id)
        if removed:
            logger.info("manual_entry_purchased", item_id=item_id)
        return removed

    async def list_entries(self) -> list[ManualPurchaseEntry]:
        return await self._store.list_entries()
