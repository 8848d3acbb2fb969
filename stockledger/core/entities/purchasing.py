"""Purchasing domain entities."""

from datetime import date, datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, Field


class Weekday(IntEnum):
    """Day of week, numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class PeriodType(str, Enum):
    """Planning period granularity."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class PendingDeliveryStatus(str, Enum):
    """Status of an order awaiting receipt."""

    ORDERED = "ordered"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PendingDelivery(BaseModel):
    """An order placed with a supplier, awaiting physical receipt."""

    id: int | None = None
    stock_item_id: str
    ordered_quantity: float = Field(..., ge=0)
    suggested_quantity: float = Field(default=0.0, ge=0)
    supplier_id: str | None = None
    status: PendingDeliveryStatus = PendingDeliveryStatus.ORDERED
    order_date: date = Field(default_factory=date.today)
    expected_delivery_date: date | None = None
    delivered_date: date | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_open(self) -> bool:
        return self.status == PendingDeliveryStatus.ORDERED


class ManualPurchaseEntry(BaseModel):
    """Ad hoc shopping-list entry, independent of computed need."""

    id: int | None = None
    stock_item_id: str
    suggested_quantity: float = Field(..., ge=0)
    supplier_id: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class PurchaseSchedule(BaseModel):
    """Weekly purchasing cadence entry."""

    id: int | None = None
    weekday: Weekday
    order_day: bool = True
    delivery_day: bool = False
    supplier_id: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class PlanningWindow(BaseModel):
    """Inclusive date range used for demand projection."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class PurchaseLineItem(BaseModel):
    """One row of the computed purchase list (derived, never persisted)."""

    stock_item_id: str
    name: str = ""
    category: str | None = None
    unit: str | None = None
    current_quantity: float = 0.0
    minimum_quantity: float = 0.0
    production_need: float = 0.0
    waste_factor: float = 0.0
    suggested_quantity: float = 0.0
    unit_price: float = 0.0
    estimated_cost: float = 0.0
    supplier_id: str | None = None
    ordered_quantity: float = 0.0
    earliest_expiry: date | None = None
    is_urgent: bool = False
    is_purchased: bool = False
    is_manual: bool = False
    in_catalog: bool = True


class PurchaseList(BaseModel):
    """Computed purchase list with its summary counters."""

    items: list[PurchaseLineItem] = Field(default_factory=list)
    urgent_count: int = 0
    pending_count: int = 0
    purchased_count: int = 0
    total_estimated_cost: float = 0.0
