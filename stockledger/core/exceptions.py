"""
Domain exceptions for the stock ledger.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all stock ledger errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class StockItemNotFoundError(StorageError):
    """Stock item not found in storage."""

    def __init__(self, item_id: str):
        super().__init__(
            f"Stock item not found: {item_id}",
            code="STOCK_ITEM_NOT_FOUND",
            details={"item_id": item_id},
        )


class BatchNotFoundError(StorageError):
    """Batch not found, or not owned by the given item."""

    def __init__(self, batch_id: int, item_id: str | None = None):
        super().__init__(
            f"Batch not found: {batch_id}",
            code="BATCH_NOT_FOUND",
            details={"batch_id": batch_id, "item_id": item_id},
        )


class PendingDeliveryNotFoundError(StorageError):
    """Pending delivery not found."""

    def __init__(self, pending_id: int):
        super().__init__(
            f"Pending delivery not found: {pending_id}",
            code="PENDING_DELIVERY_NOT_FOUND",
            details={"pending_id": pending_id},
        )


class ManualEntryNotFoundError(StorageError):
    """Manual purchase list entry not found."""

    def __init__(self, entry_id: int):
        super().__init__(
            f"Manual purchase entry not found: {entry_id}",
            code="MANUAL_ENTRY_NOT_FOUND",
            details={"entry_id": entry_id},
        )


class ScheduleNotFoundError(StorageError):
    """Purchase schedule entry not found."""

    def __init__(self, schedule_id: int):
        super().__init__(
            f"Purchase schedule not found: {schedule_id}",
            code="SCHEDULE_NOT_FOUND",
            details={"schedule_id": schedule_id},
        )


class DuplicateStockItemError(StorageError):
    """Stock item with the same id already exists."""

    def __init__(self, item_id: str):
        super().__init__(
            f"Stock item already exists: {item_id}",
            code="DUPLICATE_STOCK_ITEM",
            details={"item_id": item_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConflictError(StorageError):
    """Concurrent update on the same stock item; safe to retry."""

    retryable = True

    def __init__(self, item_id: str, expected_version: int):
        super().__init__(
            f"Stock item {item_id} was modified concurrently",
            code="CONFLICT",
            details={"item_id": item_id, "expected_version": expected_version},
        )


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Movement Exceptions
class MovementError(LedgerError):
    """Base exception for rejected stock movements."""

    pass


class DeductionMismatchError(MovementError):
    """Exit deductions do not add up to the exit quantity."""

    def __init__(self, item_id: str, quantity: float, deducted: float):
        super().__init__(
            f"Deductions for {item_id} sum to {deducted}, expected {quantity}",
            code="DEDUCTION_MISMATCH",
            details={"item_id": item_id, "quantity": quantity, "deducted": deducted},
        )


class InsufficientBatchQuantityError(MovementError):
    """A batch (or all batches together) cannot cover the requested quantity."""

    def __init__(
        self,
        item_id: str,
        requested: float,
        available: float,
        batch_id: int | None = None,
    ):
        target = f"batch {batch_id}" if batch_id is not None else "batches"
        super().__init__(
            f"Insufficient quantity in {target} of {item_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_BATCH_QUANTITY",
            details={
                "item_id": item_id,
                "batch_id": batch_id,
                "requested": requested,
                "available": available,
            },
        )


class InsufficientStockError(MovementError):
    """Exit would drive the item's quantity negative."""

    def __init__(self, item_id: str, requested: float, available: float):
        super().__init__(
            f"Insufficient stock for {item_id}: requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={"item_id": item_id, "requested": requested, "available": available},
        )


class LedgerIntegrityFault(LedgerError):
    """
    Batch quantities diverge from the item's ledger quantity.

    Reported and logged, never raised by the movement path.
    """

    def __init__(self, item_id: str, ledger_quantity: float, batch_total: float):
        super().__init__(
            f"Batch total {batch_total} differs from ledger quantity "
            f"{ledger_quantity} for {item_id}",
            code="LEDGER_INTEGRITY_FAULT",
            details={
                "item_id": item_id,
                "ledger_quantity": ledger_quantity,
                "batch_total": batch_total,
                "difference": round(ledger_quantity - batch_total, 9),
            },
        )


# Projection Exceptions
class InvalidRecipeYieldError(LedgerError):
    """Recipe yield quantity is not positive."""

    def __init__(self, recipe_id: str, yield_quantity: float):
        super().__init__(
            f"Recipe {recipe_id} has invalid yield quantity {yield_quantity}",
            code="INVALID_RECIPE_YIELD",
            details={"recipe_id": recipe_id, "yield_quantity": yield_quantity},
        )


class PermissionDeniedError(LedgerError):
    """Caller lacks the capability required for the operation."""

    def __init__(self, actor_id: str, capability: str):
        super().__init__(
            f"Actor {actor_id} lacks capability '{capability}'",
            code="PERMISSION_DENIED",
            details={"actor_id": actor_id, "capability": capability},
        )


class ConfigurationError(LedgerError):
    """Configuration error."""

    pass
