"""
Health check endpoints.
"""

import time
from collections import defaultdict

from fastapi import APIRouter, Depends

from stockledger import __version__
from stockledger.api.dependencies import get_app_settings, get_stock_item_store
from stockledger.application.dto.responses import (
    DatabaseHealthResponse,
    HealthResponse,
    LedgerHealthResponse,
)
from stockledger.config import Settings, get_logger
from stockledger.core.entities.stock import Batch
from stockledger.core.interfaces import IStockStore
from stockledger.core.services.batch_allocation import check_integrity

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()

# Items read per page by the ledger check
LEDGER_PAGE_SIZE = 500


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and reports pool usage, journal mode and
    the applied schema version.
    """
    from stockledger.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        start = time.time()
        pool_status = await pool.ping()
        latency = (time.time() - start) * 1000

        db_status = DatabaseHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=latency,
            journal_mode=pool_status.journal_mode,
            schema_version=pool_status.schema_version,
            pool_size=pool_status.size,
            pool_available=pool_status.available,
        )

    except Exception as e:
        db_status = DatabaseHealthResponse(
            name="sqlite",
            available=False,
            error=str(e),
        )

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )


@router.get("/ledger", response_model=HealthResponse)
async def ledger_health(
    store: IStockStore = Depends(get_stock_item_store),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """
    Ledger consistency check.

    Compares each batch-tracked item's batch total with its ledger
    quantity. Mismatches are listed and mark the service degraded; an
    adjustment can leave an item in that state until its batches are
    corrected.
    """
    by_item: dict[str, list[Batch]] = defaultdict(list)
    for batch in await store.list_all_batches():
        by_item[batch.stock_item_id].append(batch)

    checked = 0
    faulty: list[str] = []
    while True:
        page = await store.list_items(limit=LEDGER_PAGE_SIZE, offset=checked)
        for item in page:
            fault = check_integrity(item, by_item.get(item.id, []), settings.ledger.quantity_epsilon)
            if fault is not None:
                faulty.append(item.id)
        checked += len(page)
        if len(page) < LEDGER_PAGE_SIZE:
            break

    if faulty:
        logger.warning("ledger_health_degraded", faulty_items=faulty)

    return HealthResponse(
        status="degraded" if faulty else "healthy",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        ledger=LedgerHealthResponse(items_checked=checked, faulty_items=faulty),
    )
