"""SQLite implementations of pending delivery, manual list and schedule storage."""

from datetime import date, datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.purchasing import (
    ManualPurchaseEntry,
    PendingDelivery,
    PendingDeliveryStatus,
    PurchaseSchedule,
    Weekday,
)
from stockledger.core.exceptions import PendingDeliveryNotFoundError, ScheduleNotFoundError
from stockledger.core.interfaces.purchasing_store import (
    IManualPurchaseListStore,
    IPendingDeliveryStore,
    IPurchaseScheduleStore,
)
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def _parse_datetime(value: str | None) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            pass
    return datetime.utcnow()


class SQLitePendingDeliveryStore(IPendingDeliveryStore):
    """SQLite implementation of pending delivery storage."""

    async def create(self, pending: PendingDelivery) -> PendingDelivery:
        now = datetime.utcnow()
        pending.created_at = now
        pending.updated_at = now
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO pending_deliveries (
                    stock_item_id, ordered_quantity, suggested_quantity,
                    supplier_id, status, order_date, expected_delivery_date,
                    delivered_date, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    pending.stock_item_id,
                    pending.ordered_quantity,
                    pending.suggested_quantity,
                    pending.supplier_id,
                    pending.status.value,
                    pending.order_date.isoformat(),
                    pending.expected_delivery_date.isoformat()
                    if pending.expected_delivery_date
                    else None,
                    pending.delivered_date.isoformat() if pending.delivered_date else None,
                    pending.created_at.isoformat(),
                    pending.updated_at.isoformat(),
                ),
            )
            pending.id = cursor.lastrowid
        logger.info(
            "pending_delivery_created",
            pending_id=pending.id,
            item_id=pending.stock_item_id,
        )
        return pending

    async def update(self, pending: PendingDelivery) -> PendingDelivery:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE pending_deliveries SET
                    ordered_quantity = ?,
                    suggested_quantity = ?,
                    supplier_id = ?,
                    status = ?,
                    order_date = ?,
                    expected_delivery_date = ?,
                    delivered_date = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    pending.ordered_quantity,
                    pending.suggested_quantity,
                    pending.supplier_id,
                    pending.status.value,
                    pending.order_date.isoformat(),
                    pending.expected_delivery_date.isoformat()
                    if pending.expected_delivery_date
                    else None,
                    pending.delivered_date.isoformat() if pending.delivered_date else None,
                    pending.updated_at.isoformat(),
                    pending.id,
                ),
            )
            if cursor.rowcount == 0:
                raise PendingDeliveryNotFoundError(pending.id)  # type: ignore[arg-type]
        return pending

    async def get(self, pending_id: int) -> PendingDelivery | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM pending_deliveries WHERE id = ?", (pending_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_pending(row) if row else None

    async def get_open_for_item(self, item_id: str) -> PendingDelivery | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM pending_deliveries
                WHERE stock_item_id = ? AND status = ?
                ORDER BY id DESC LIMIT 1
                """,
                (item_id, PendingDeliveryStatus.ORDERED.value),
            )
            row = await cursor.fetchone()
            return self._row_to_pending(row) if row else None

    async def list_by_status(
        self,
        status: PendingDeliveryStatus = PendingDeliveryStatus.ORDERED,
        limit: int = 500,
    ) -> list[PendingDelivery]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM pending_deliveries
                WHERE status = ?
                ORDER BY order_date DESC, id DESC
                LIMIT ?
                """,
                (status.value, limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_pending(row) for row in rows]

    @staticmethod
    def _row_to_pending(row: aiosqlite.Row) -> PendingDelivery:
        return PendingDelivery(
            id=row["id"],
            stock_item_id=row["stock_item_id"],
            ordered_quantity=float(row["ordered_quantity"]),
            suggested_quantity=float(row["suggested_quantity"]),
            supplier_id=row["supplier_id"],
            status=PendingDeliveryStatus(row["status"]),
            order_date=_parse_date(row["order_date"]) or date.today(),
            expected_delivery_date=_parse_date(row["expected_delivery_date"]),
            delivered_date=_parse_date(row["delivered_date"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )


class SQLiteManualPurchaseListStore(IManualPurchaseListStore):
    """SQLite implementation of the manual shopping list."""

    async def upsert(self, entry: ManualPurchaseEntry) -> ManualPurchaseEntry:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO manual_purchase_entries (
                    stock_item_id, suggested_quantity, supplier_id, notes, created_at
                ) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (stock_item_id) DO UPDATE SET
                    suggested_quantity = excluded.suggested_quantity,
                    supplier_id = excluded.supplier_id,
                    notes = excluded.notes
                """,
                (
                    entry.stock_item_id,
                    entry.suggested_quantity,
                    entry.supplier_id,
                    entry.notes,
                    entry.created_at.isoformat(),
                ),
            )
            cursor = await conn.execute(
                "SELECT * FROM manual_purchase_entries WHERE stock_item_id = ?",
                (entry.stock_item_id,),
            )
            row = await cursor.fetchone()
        return self._row_to_entry(row)

    async def get(self, entry_id: int) -> ManualPurchaseEntry | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM manual_purchase_entries WHERE id = ?", (entry_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_entry(row) if row else None

    async def list_entries(self) -> list[ManualPurchaseEntry]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM manual_purchase_entries ORDER BY created_at DESC, id DESC"
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    async def delete(self, entry_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM manual_purchase_entries WHERE id = ?", (entry_id,)
            )
            return cursor.rowcount > 0

    async def delete_for_item(self, item_id: str) -> int:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM manual_purchase_entries WHERE stock_item_id = ?", (item_id,)
            )
            return cursor.rowcount

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> ManualPurchaseEntry:
        return ManualPurchaseEntry(
            id=row["id"],
            stock_item_id=row["stock_item_id"],
            suggested_quantity=float(row["suggested_quantity"]),
            supplier_id=row["supplier_id"],
            notes=row["notes"],
            created_at=_parse_datetime(row["created_at"]),
        )


class SQLitePurchaseScheduleStore(IPurchaseScheduleStore):
    """SQLite implementation of the weekly purchase schedule."""

    async def create(self, schedule: PurchaseSchedule) -> PurchaseSchedule:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO purchase_schedules (
                    weekday, order_day, delivery_day, supplier_id, notes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    int(schedule.weekday),
                    int(schedule.order_day),
                    int(schedule.delivery_day),
                    schedule.supplier_id,
                    schedule.notes,
                    schedule.created_at.isoformat(),
                ),
            )
            schedule.id = cursor.lastrowid
        logger.info(
            "purchase_schedule_created",
            schedule_id=schedule.id,
            weekday=schedule.weekday.name,
        )
        return schedule

    async def update(self, schedule: PurchaseSchedule) -> PurchaseSchedule:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE purchase_schedules SET
                    weekday = ?,
                    order_day = ?,
                    delivery_day = ?,
                    supplier_id = ?,
                    notes = ?
                WHERE id = ?
                """,
                (
                    int(schedule.weekday),
                    int(schedule.order_day),
                    int(schedule.delivery_day),
                    schedule.supplier_id,
                    schedule.notes,
                    schedule.id,
                ),
            )
            if cursor.rowcount == 0:
                raise ScheduleNotFoundError(schedule.id)  # type: ignore[arg-type]
        return schedule

    async def get(self, schedule_id: int) -> PurchaseSchedule | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM purchase_schedules WHERE id = ?", (schedule_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_schedule(row) if row else None

    async def list_schedules(self) -> list[PurchaseSchedule]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM purchase_schedules ORDER BY weekday, id"
            )
            rows = await cursor.fetchall()
            return [self._row_to_schedule(row) for row in rows]

    async def delete(self, schedule_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM purchase_schedules WHERE id = ?", (schedule_id,)
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_schedule(row: aiosqlite.Row) -> PurchaseSchedule:
        return PurchaseSchedule(
            id=row["id"],
            weekday=Weekday(row["weekday"]),
            order_day=bool(row["order_day"]),
            delivery_day=bool(row["delivery_day"]),
            supplier_id=row["supplier_id"],
            notes=row["notes"],
            created_at=_parse_datetime(row["created_at"]),
        )
