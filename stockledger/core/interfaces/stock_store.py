"""Abstract interface for stock ledger storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.stock import Batch, Movement, MovementPlan, StockItem


class IStockStore(ABC):
    """Interface for stock item, batch and movement persistence."""

    # Items

    @abstractmethod
    async def create_item(self, item: StockItem) -> StockItem:
        """Create a new stock item (catalog collaborator)."""
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> StockItem | None:
        """Get stock item by ID."""
        pass

    @abstractmethod
    async def list_items(
        self, limit: int = 500, offset: int = 0
    ) -> list[StockItem]:
        """List stock items ordered by name."""
        pass

    @abstractmethod
    async def update_item_details(self, item: StockItem) -> StockItem:
        """Update catalog fields (name, minimum, price...). Never the quantity."""
        pass

    # Batches

    @abstractmethod
    async def list_batches(
        self, item_id: str, include_empty: bool = False
    ) -> list[Batch]:
        """List batches of an item, expiry ascending."""
        pass

    @abstractmethod
    async def list_all_batches(self) -> list[Batch]:
        """List every batch with quantity > 0, expiry ascending."""
        pass

    @abstractmethod
    async def get_batch(self, batch_id: int) -> Batch | None:
        """Get batch by ID."""
        pass

    @abstractmethod
    async def upsert_batch(self, batch: Batch) -> Batch:
        """Create the (item, expiry, lot) batch or add to its quantity."""
        pass

    @abstractmethod
    async def delete_batch(self, batch_id: int) -> bool:
        """Delete a batch. Returns False when it did not exist."""
        pass

    @abstractmethod
    async def remove_if_empty(self, batch_id: int) -> bool:
        """Delete the batch when its quantity is zero."""
        pass

    # Movements

    @abstractmethod
    async def apply_movement(self, plan: MovementPlan) -> Movement:
        """
        Apply a movement plan in one transaction.

        Raises ConflictError when the item version no longer matches.
        """
        pass

    @abstractmethod
    async def get_movements(
        self, item_id: str, limit: int = 100
    ) -> list[Movement]:
        """Get movements for an item, newest first."""
        pass
