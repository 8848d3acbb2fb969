"""Abstract interfaces for purchasing storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.purchasing import (
    ManualPurchaseEntry,
    PendingDelivery,
    PendingDeliveryStatus,
    PurchaseSchedule,
)


class IPendingDeliveryStore(ABC):
    """Interface for pending delivery persistence."""

    @abstractmethod
    async def create(self, pending: PendingDelivery) -> PendingDelivery:
        """Create a pending delivery."""
        pass

    @abstractmethod
    async def update(self, pending: PendingDelivery) -> PendingDelivery:
        """Update a pending delivery."""
        pass

    @abstractmethod
    async def get(self, pending_id: int) -> PendingDelivery | None:
        """Get pending delivery by ID."""
        pass

    @abstractmethod
    async def get_open_for_item(self, item_id: str) -> PendingDelivery | None:
        """Get the open (ordered) delivery for an item, if any."""
        pass

    @abstractmethod
    async def list_by_status(
        self,
        status: PendingDeliveryStatus = PendingDeliveryStatus.ORDERED,
        limit: int = 500,
    ) -> list[PendingDelivery]:
        """List deliveries with the given status, newest order first."""
        pass


class IManualPurchaseListStore(ABC):
    """Interface for manual shopping-list persistence."""

    @abstractmethod
    async def upsert(self, entry: ManualPurchaseEntry) -> ManualPurchaseEntry:
        """Create the entry for its item, replacing an existing one."""
        pass

    @abstractmethod
    async def get(self, entry_id: int) -> ManualPurchaseEntry | None:
        """Get entry by ID."""
        pass

    @abstractmethod
    async def list_entries(self) -> list[ManualPurchaseEntry]:
        """List all entries, newest first."""
        pass

    @abstractmethod
    async def delete(self, entry_id: int) -> bool:
        """Delete entry by ID."""
        pass

    @abstractmethod
    async def delete_for_item(self, item_id: str) -> int:
        """Delete entries for an item. Returns number removed."""
        pass


class IPurchaseScheduleStore(ABC):
    """Interface for purchase schedule persistence."""

    @abstractmethod
    async def create(self, schedule: PurchaseSchedule) -> PurchaseSchedule:
        """Create a schedule entry."""
        pass

    @abstractmethod
    async def update(self, schedule: PurchaseSchedule) -> PurchaseSchedule:
        """Update a schedule entry."""
        pass

    @abstractmethod
    async def get(self, schedule_id: int) -> PurchaseSchedule | None:
        """Get schedule entry by ID."""
        pass

    @abstractmethod
    async def list_schedules(self) -> list[PurchaseSchedule]:
        """List schedule entries ordered by weekday."""
        pass

    @abstractmethod
    async def delete(self, schedule_id: int) -> bool:
        """Delete schedule entry."""
        pass
