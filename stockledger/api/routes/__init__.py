"""
API route modules.
"""

from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.productions import router as productions_router
from stockledger.api.routes.purchases import router as purchases_router
from stockledger.api.routes.stock import router as stock_router

__all__ = [
    "health_router",
    "productions_router",
    "purchases_router",
    "stock_router",
]
