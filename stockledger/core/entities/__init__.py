"""Core domain entities."""

from stockledger.core.entities.identity import Actor, Capability
from stockledger.core.entities.production import (
    Production,
    ProductionStatus,
    Recipe,
    RecipeIngredient,
)
from stockledger.core.entities.purchasing import (
    ManualPurchaseEntry,
    PendingDelivery,
    PendingDeliveryStatus,
    PeriodType,
    PlanningWindow,
    PurchaseLineItem,
    PurchaseList,
    PurchaseSchedule,
    Weekday,
)
from stockledger.core.entities.stock import (
    Batch,
    BatchChange,
    BatchDeduction,
    BatchTarget,
    ExpiryAlert,
    Movement,
    MovementKind,
    MovementPlan,
    MovementSource,
    StockCategory,
    StockItem,
    StockStatus,
    StockUnit,
    UnitDimension,
)

__all__ = [
    # Stock entities
    "StockItem",
    "StockCategory",
    "StockUnit",
    "StockStatus",
    "UnitDimension",
    "Batch",
    "BatchChange",
    "BatchDeduction",
    "BatchTarget",
    "ExpiryAlert",
    "Movement",
    "MovementKind",
    "MovementPlan",
    "MovementSource",
    # Production entities
    "Production",
    "ProductionStatus",
    "Recipe",
    "RecipeIngredient",
    # Purchasing entities
    "PendingDelivery",
    "PendingDeliveryStatus",
    "ManualPurchaseEntry",
    "PurchaseSchedule",
    "PurchaseLineItem",
    "PurchaseList",
    "PlanningWindow",
    "PeriodType",
    "Weekday",
    # Identity
    "Actor",
    "Capability",
]
