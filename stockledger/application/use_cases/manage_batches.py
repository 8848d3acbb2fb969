"""
Batch management use cases.

Registering a batch for stock already on hand does not move the ledger
quantity; any resulting divergence is reported, not corrected.
"""

from dataclasses import dataclass
from datetime import date

from stockledger.application.dto.requests import AddExpiryBatchRequest
from stockledger.application.dto.responses import (
    AddBatchResponse,
    ExpiryAlertListResponse,
    batch_response,
    expiry_alert_response,
    integrity_fault_response,
)
from stockledger.config import get_audit_logger, get_logger, get_settings
from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.stock import Batch, ExpiryAlert
from stockledger.core.exceptions import (
    BatchNotFoundError,
    LedgerIntegrityFault,
    StockItemNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.core.services.batch_allocation import check_integrity, expiry_alerts
from stockledger.core.services.item_locks import ItemLockRegistry, get_item_locks

logger = get_logger(__name__)
audit = get_audit_logger()


@dataclass
class AddBatchResult:
    batch: Batch
    integrity_fault: LedgerIntegrityFault | None = None


@dataclass
class ExpiryAlertsResult:
    alerts: list[ExpiryAlert]
    item_names: dict[str, str]
    days: int


class AddExpiryBatchUseCase:
    """Register, or grow, the (expiry date, lot) batch of an item."""

    def __init__(
        self,
        stock_store: IStockStore | None = None,
        locks: ItemLockRegistry | None = None,
    ):
        self._stock_store = stock_store
        self._locks = locks if locks is not None else get_item_locks()

    async def _get_stock_store(self) -> IStockStore:
        if self._stock_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_store

            self._stock_store = await get_stock_store()
        return self._stock_store

    async def execute(
        self,
        item_id: str,
        request: AddExpiryBatchRequest,
        actor: Actor | None = None,
    ) -> AddBatchResult:
        if actor is not None:
            actor.require(Capability.STOCK)
        if request.quantity <= 0:
            raise ValidationError("quantity", "must be greater than zero", request.quantity)

        store = await self._get_stock_store()
        epsilon = get_settings().ledger.quantity_epsilon

        async with self._locks.hold(item_id):
            item = await store.get_item(item_id)
            if item is None:
                raise StockItemNotFoundError(item_id)

            batch = await store.upsert_batch(
                Batch(
                    stock_item_id=item_id,
                    expiry_date=request.expiry_date,
                    lot=request.lot,
                    quantity=request.quantity,
                    notes=request.notes,
                )
            )
            batches = await store.list_batches(item_id)

        fault = check_integrity(item, batches, epsilon)
        if fault is not None:
            audit.warning("ledger_integrity_fault", **fault.details)

        audit.info(
            "expiry_batch_added",
            item_id=item_id,
            batch_id=batch.id,
            expiry_date=batch.expiry_date.isoformat(),
            quantity=request.quantity,
        )
        return AddBatchResult(batch=batch, integrity_fault=fault)

    async def delete(self, batch_id: int, actor: Actor | None = None) -> None:
        """Delete a batch explicitly (e.g. discarded stock already exited)."""
        if actor is not None:
            actor.require(Capability.STOCK)

        store = await self._get_stock_store()
        batch = await store.get_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)

        async with self._locks.hold(batch.stock_item_id):
            if not await store.delete_batch(batch_id):
                raise BatchNotFoundError(batch_id, batch.stock_item_id)

        audit.info(
            "expiry_batch_deleted",
            item_id=batch.stock_item_id,
            batch_id=batch_id,
            quantity=batch.quantity,
            actor_id=actor.id if actor else None,
        )

    def to_response(self, result: AddBatchResult) -> AddBatchResponse:
        return AddBatchResponse(
            batch=batch_response(result.batch),
            integrity_fault=integrity_fault_response(result.integrity_fault),
        )


class CheckExpiringBatchesUseCase:
    """Batches with stock that expire within a window, soonest first."""

    def __init__(self, stock_store: IStockStore | None = None):
        self._stock_store = stock_store

    async def _get_stock_store(self) -> IStockStore:
        if self._stock_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_store

            self._stock_store = await get_stock_store()
        return self._stock_store

    async def execute(
        self, today: date | None = None, days: int | None = None
    ) -> ExpiryAlertsResult:
        settings = get_settings()
        days = settings.ledger.expiry_alert_days if days is None else days
        today = today or date.today()

        store = await self._get_stock_store()
        batches = await store.list_all_batches()
        alerts = expiry_alerts(batches, today, days, settings.ledger.quantity_epsilon)

        item_names: dict[str, str] = {}
        for alert in alerts:
            item_id = alert.batch.stock_item_id
            if item_id not in item_names:
                item = await store.get_item(item_id)
                item_names[item_id] = item.name if item else item_id

        logger.info(
            "expiry_check_complete",
            batches=len(batches),
            alerts=len(alerts),
            expired=sum(1 for a in alerts if a.is_expired),
        )
        return ExpiryAlertsResult(alerts=alerts, item_names=item_names, days=days)

    def to_response(self, result: ExpiryAlertsResult) -> ExpiryAlertListResponse:
        return ExpiryAlertListResponse(
            alerts=[
                expiry_alert_response(a, result.item_names.get(a.batch.stock_item_id))
                for a in result.alerts
            ],
            total=len(result.alerts),
            days=result.days,
        )
