"""Kitchen stock ledger and purchase-need engine."""

__version__ = "1.0.0"
