"""Infrastructure layer implementations."""

from stockledger.infrastructure import storage

__all__ = ["storage"]
