"""SQLite implementation of stock item, batch and movement storage."""

import json
from datetime import date, datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.stock import (
    Batch,
    BatchDeduction,
    BatchTarget,
    Movement,
    MovementKind,
    MovementPlan,
    MovementSource,
    StockCategory,
    StockItem,
    StockUnit,
)
from stockledger.core.exceptions import (
    ConflictError,
    DuplicateStockItemError,
    StockItemNotFoundError,
)
from stockledger.core.interfaces.stock_store import IStockStore
from stockledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

# Batches at or below this quantity count as empty
EMPTY_BATCH_QUANTITY = 1e-9


def _parse_datetime(value: str | None) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            pass
    return datetime.utcnow()


class SQLiteStockStore(IStockStore):
    """SQLite implementation of the stock ledger store."""

    # Items

    async def create_item(self, item: StockItem) -> StockItem:
        now = datetime.utcnow()
        item.created_at = now
        item.updated_at = now
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO stock_items (
                        id, name, category, unit, current_quantity,
                        minimum_quantity, unit_price, supplier_id,
                        waste_factor, version, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        item.id,
                        item.name,
                        item.category.value,
                        item.unit.value,
                        item.current_quantity,
                        item.minimum_quantity,
                        item.unit_price,
                        item.supplier_id,
                        item.waste_factor,
                        item.version,
                        item.created_at.isoformat(),
                        item.updated_at.isoformat(),
                    ),
                )
        except aiosqlite.IntegrityError as e:
            raise DuplicateStockItemError(item.id) from e

        logger.info("stock_item_created", item_id=item.id, name=item.name)
        return item

    async def get_item(self, item_id: str) -> StockItem | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_items WHERE id = ?", (item_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_item(row)

    async def list_items(
        self, limit: int = 500, offset: int = 0
    ) -> list[StockItem]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_items
                ORDER BY name COLLATE NOCASE, id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_item(row) for row in rows]

    async def update_item_details(self, item: StockItem) -> StockItem:
        item.updated_at = datetime.utcnow()
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE stock_items SET
                    name = ?,
                    category = ?,
                    unit = ?,
                    minimum_quantity = ?,
                    unit_price = ?,
                    supplier_id = ?,
                    waste_factor = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    item.name,
                    item.category.value,
                    item.unit.value,
                    item.minimum_quantity,
                    item.unit_price,
                    item.supplier_id,
                    item.waste_factor,
                    item.updated_at.isoformat(),
                    item.id,
                ),
            )
            if cursor.rowcount == 0:
                raise StockItemNotFoundError(item.id)
        logger.info("stock_item_updated", item_id=item.id)
        return item

    # Batches

    async def list_batches(
        self, item_id: str, include_empty: bool = False
    ) -> list[Batch]:
        query = "SELECT * FROM stock_batches WHERE stock_item_id = ?"
        if not include_empty:
            query += f" AND quantity > {EMPTY_BATCH_QUANTITY}"
        query += " ORDER BY expiry_date, id"

        async with get_connection() as conn:
            cursor = await conn.execute(query, (item_id,))
            rows = await cursor.fetchall()
            return [self._row_to_batch(row) for row in rows]

    async def list_all_batches(self) -> list[Batch]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_batches
                WHERE quantity > ?
                ORDER BY expiry_date, id
                """,
                (EMPTY_BATCH_QUANTITY,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_batch(row) for row in rows]

    async def get_batch(self, batch_id: int) -> Batch | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_batches WHERE id = ?", (batch_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_batch(row)

    async def upsert_batch(self, batch: Batch) -> Batch:
        """
        Create the (expiry, lot) batch or grow it by ``batch.quantity``.

        Bumps the item's version so a movement planned against the old
        batches fails with ConflictError instead of overwriting them.
        """
        async with get_transaction(immediate=True) as conn:
            await conn.execute(
                """
                INSERT INTO stock_batches (
                    stock_item_id, expiry_date, lot, quantity, notes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (stock_item_id, expiry_date, lot) DO UPDATE SET
                    quantity = quantity + excluded.quantity,
                    notes = COALESCE(excluded.notes, notes)
                """,
                (
                    batch.stock_item_id,
                    batch.expiry_date.isoformat(),
                    batch.lot or "",
                    batch.quantity,
                    batch.notes,
                    batch.created_at.isoformat(),
                ),
            )
            cursor = await conn.execute(
                """
                SELECT * FROM stock_batches
                WHERE stock_item_id = ? AND expiry_date = ? AND lot = ?
                """,
                (batch.stock_item_id, batch.expiry_date.isoformat(), batch.lot or ""),
            )
            row = await cursor.fetchone()
            await self._bump_version(conn, batch.stock_item_id)

        stored = self._row_to_batch(row)
        logger.info(
            "stock_batch_upserted",
            batch_id=stored.id,
            item_id=stored.stock_item_id,
            quantity=stored.quantity,
        )
        return stored

    async def delete_batch(self, batch_id: int) -> bool:
        async with get_transaction(immediate=True) as conn:
            item_id = await self._batch_owner(conn, batch_id)
            if item_id is None:
                return False
            await conn.execute("DELETE FROM stock_batches WHERE id = ?", (batch_id,))
            await self._bump_version(conn, item_id)
        logger.info("stock_batch_deleted", batch_id=batch_id, item_id=item_id)
        return True

    async def remove_if_empty(self, batch_id: int) -> bool:
        async with get_transaction(immediate=True) as conn:
            item_id = await self._batch_owner(conn, batch_id)
            if item_id is None or not await self._delete_if_empty(conn, batch_id):
                return False
            await self._bump_version(conn, item_id)
            return True

    @staticmethod
    async def _batch_owner(conn: aiosqlite.Connection, batch_id: int) -> str | None:
        cursor = await conn.execute(
            "SELECT stock_item_id FROM stock_batches WHERE id = ?", (batch_id,)
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    @staticmethod
    async def _bump_version(conn: aiosqlite.Connection, item_id: str) -> None:
        await conn.execute(
            "UPDATE stock_items SET version = version + 1, updated_at = ? WHERE id = ?",
            (datetime.utcnow().isoformat(), item_id),
        )

    @staticmethod
    async def _delete_if_empty(conn: aiosqlite.Connection, batch_id: int) -> bool:
        cursor = await conn.execute(
            "DELETE FROM stock_batches WHERE id = ? AND quantity <= ?",
            (batch_id, EMPTY_BATCH_QUANTITY),
        )
        removed = cursor.rowcount > 0
        if removed:
            logger.debug("stock_batch_emptied", batch_id=batch_id)
        return removed

    # Movements

    async def apply_movement(self, plan: MovementPlan) -> Movement:
        """
        Write item quantity, batch changes and the movement record together.

        The item row is only updated when its version still matches the
        one the plan was built from.
        """
        movement = plan.movement
        now = datetime.utcnow()

        async with get_transaction(immediate=True) as conn:
            cursor = await conn.execute(
                """
                UPDATE stock_items SET
                    current_quantity = ?,
                    version = version + 1,
                    updated_at = ?
                WHERE id = ? AND version = ?
                """,
                (plan.new_quantity, now.isoformat(), plan.stock_item_id, plan.expected_version),
            )
            if cursor.rowcount == 0:
                cursor = await conn.execute(
                    "SELECT 1 FROM stock_items WHERE id = ?", (plan.stock_item_id,)
                )
                if await cursor.fetchone() is None:
                    raise StockItemNotFoundError(plan.stock_item_id)
                raise ConflictError(plan.stock_item_id, plan.expected_version)

            for change in plan.batch_changes:
                if change.batch_id is None:
                    await conn.execute(
                        """
                        INSERT INTO stock_batches (
                            stock_item_id, expiry_date, lot, quantity, created_at
                        ) VALUES (?, ?, ?, ?, ?)
                        ON CONFLICT (stock_item_id, expiry_date, lot) DO UPDATE SET
                            quantity = quantity + excluded.quantity
                        """,
                        (
                            plan.stock_item_id,
                            change.expiry_date.isoformat(),
                            change.lot or "",
                            change.new_quantity,
                            now.isoformat(),
                        ),
                    )
                elif change.remove:
                    await conn.execute(
                        "UPDATE stock_batches SET quantity = 0 WHERE id = ? AND stock_item_id = ?",
                        (change.batch_id, plan.stock_item_id),
                    )
                    await self._delete_if_empty(conn, change.batch_id)
                else:
                    await conn.execute(
                        """
                        UPDATE stock_batches SET quantity = ?
                        WHERE id = ? AND stock_item_id = ?
                        """,
                        (change.new_quantity, change.batch_id, plan.stock_item_id),
                    )

            cursor = await conn.execute(
                """
                INSERT INTO stock_movements (
                    stock_item_id, kind, quantity, previous_quantity,
                    new_quantity, deductions_json, batch_expiry_date,
                    batch_lot, source, notes, actor_id, movement_key,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    movement.stock_item_id,
                    movement.kind.value,
                    movement.quantity,
                    movement.previous_quantity,
                    movement.new_quantity,
                    json.dumps([d.model_dump() for d in movement.deductions]),
                    movement.batch.expiry_date.isoformat() if movement.batch else None,
                    movement.batch.lot if movement.batch else None,
                    movement.source.value,
                    movement.notes,
                    movement.actor_id,
                    movement.movement_key,
                    movement.created_at.isoformat(),
                ),
            )
            movement_id = cursor.lastrowid

        logger.info(
            "stock_movement_applied",
            movement_id=movement_id,
            item_id=plan.stock_item_id,
            kind=movement.kind.value,
            quantity=movement.quantity,
            new_quantity=plan.new_quantity,
        )
        return movement.model_copy(update={"id": movement_id})

    async def get_movements(
        self, item_id: str, limit: int = 100
    ) -> list[Movement]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_movements
                WHERE stock_item_id = ?
                ORDER BY id DESC
                LIMIT ?
                """,
                (item_id, limit),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> StockItem:
        return StockItem(
            id=row["id"],
            name=row["name"],
            category=StockCategory(row["category"]),
            unit=StockUnit(row["unit"]),
            current_quantity=float(row["current_quantity"]),
            minimum_quantity=float(row["minimum_quantity"]),
            unit_price=float(row["unit_price"]),
            supplier_id=row["supplier_id"],
            waste_factor=float(row["waste_factor"]),
            version=int(row["version"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )

    @staticmethod
    def _row_to_batch(row: aiosqlite.Row) -> Batch:
        return Batch(
            id=row["id"],
            stock_item_id=row["stock_item_id"],
            expiry_date=date.fromisoformat(row["expiry_date"]),
            lot=row["lot"] or None,
            quantity=float(row["quantity"]),
            notes=row["notes"],
            created_at=_parse_datetime(row["created_at"]),
        )

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> Movement:
        deductions = tuple(
            BatchDeduction(**d) for d in json.loads(row["deductions_json"] or "[]")
        )
        batch = None
        if row["batch_expiry_date"]:
            batch = BatchTarget(
                expiry_date=date.fromisoformat(row["batch_expiry_date"]),
                lot=row["batch_lot"],
            )
        return Movement(
            id=row["id"],
            stock_item_id=row["stock_item_id"],
            kind=MovementKind(row["kind"]),
            quantity=float(row["quantity"]),
            previous_quantity=float(row["previous_quantity"]),
            new_quantity=float(row["new_quantity"]),
            deductions=deductions,
            batch=batch,
            source=MovementSource(row["source"]),
            notes=row["notes"],
            actor_id=row["actor_id"],
            movement_key=row["movement_key"],
            created_at=_parse_datetime(row["created_at"]),
        )
