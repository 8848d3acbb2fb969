"""Stock ledger domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Items at or below minimum * LOW_STOCK_RATIO are flagged as low
LOW_STOCK_RATIO = 1.2


class StockCategory(str, Enum):
    """Catalog categories for raw-material items."""

    DAIRY = "dairy"
    DRY_GOODS = "dry_goods"
    PRODUCE = "produce"
    MEAT_AND_FISH = "meat_and_fish"
    PACKAGING = "packaging"
    CLEANING = "cleaning"
    OTHER = "other"


class UnitDimension(str, Enum):
    """Physical dimension measured by a unit."""

    MASS = "mass"
    VOLUME = "volume"
    COUNT = "count"


class StockUnit(str, Enum):
    """Units of measure."""

    KG = "kg"
    G = "g"
    L = "l"
    ML = "ml"
    UNIT = "unit"
    BOX = "box"
    DOZEN = "dozen"

    @property
    def dimension(self) -> UnitDimension:
        if self in (StockUnit.KG, StockUnit.G):
            return UnitDimension.MASS
        if self in (StockUnit.L, StockUnit.ML):
            return UnitDimension.VOLUME
        return UnitDimension.COUNT


class StockStatus(str, Enum):
    """Traffic-light status of an item against its minimum."""

    OK = "ok"
    LOW = "low"
    CRITICAL = "critical"


class StockItem(BaseModel):
    """A raw-material item with its ledger quantity and minimum threshold."""

    id: str
    name: str
    category: StockCategory = StockCategory.OTHER
    unit: StockUnit = StockUnit.UNIT
    current_quantity: float = Field(default=0.0, ge=0)
    minimum_quantity: float = Field(default=0.0, ge=0)
    unit_price: float = Field(default=0.0, ge=0)
    supplier_id: str | None = None
    waste_factor: float = Field(default=0.0, ge=0, le=100)  # percent
    version: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def stock_status(self) -> StockStatus:
        """Critical at or below the minimum, low within 20% above it."""
        if self.current_quantity <= self.minimum_quantity:
            return StockStatus.CRITICAL
        if self.current_quantity <= self.minimum_quantity * LOW_STOCK_RATIO:
            return StockStatus.LOW
        return StockStatus.OK

    @property
    def total_value(self) -> float:
        """Stock value at the catalog unit price."""
        return self.current_quantity * self.unit_price


class Batch(BaseModel):
    """A dated sub-quantity of a stock item."""

    id: int | None = None
    stock_item_id: str
    expiry_date: date
    lot: str | None = None
    quantity: float = Field(default=0.0, ge=0)
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def days_until_expiry(self, today: date) -> int:
        return (self.expiry_date - today).days


class ExpiryAlert(BaseModel):
    """A batch expiring within the alert window (or already expired)."""

    batch: Batch
    days_until: int
    is_expired: bool
    is_near_expiry: bool


class MovementKind(str, Enum):
    """Kinds of ledger movements."""

    ENTRY = "entry"
    EXIT = "exit"
    ADJUSTMENT = "adjustment"


class MovementSource(str, Enum):
    """Where a movement originated."""

    MANUAL = "manual"
    PRODUCTION = "production"
    PURCHASE = "purchase"
    STOCK_COUNT = "stock_count"


class BatchDeduction(BaseModel):
    """Quantity taken from one batch by an exit."""

    model_config = ConfigDict(frozen=True)

    batch_id: int
    quantity: float = Field(..., gt=0)


class BatchTarget(BaseModel):
    """Batch an entry should create or grow, keyed by (expiry date, lot)."""

    model_config = ConfigDict(frozen=True)

    expiry_date: date
    lot: str | None = None


class Movement(BaseModel):
    """Immutable record of one ledger change."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    stock_item_id: str
    kind: MovementKind
    quantity: float
    previous_quantity: float
    new_quantity: float
    deductions: tuple[BatchDeduction, ...] = ()
    batch: BatchTarget | None = None
    source: MovementSource = MovementSource.MANUAL
    notes: str | None = None
    actor_id: str | None = None
    movement_key: str | None = None  # caller-side idempotency hint
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def delta(self) -> float:
        """Signed change applied to the ledger quantity."""
        return self.new_quantity - self.previous_quantity


class BatchChange(BaseModel):
    """New state of one batch produced by a movement plan."""

    model_config = ConfigDict(frozen=True)

    batch_id: int | None  # None creates a new batch
    expiry_date: date
    lot: str | None = None
    new_quantity: float
    remove: bool = False  # batch emptied, delete the row


class MovementPlan(BaseModel):
    """Fully validated set of writes for one movement, applied atomically."""

    model_config = ConfigDict(frozen=True)

    stock_item_id: str
    expected_version: int
    new_quantity: float
    batch_changes: tuple[BatchChange, ...] = ()
    movement: Movement
