"""Caller identity as handed over by the permission layer."""

from enum import Flag

from pydantic import BaseModel

from stockledger.core.exceptions import PermissionDeniedError


class Capability(Flag):
    """Typed capability set replacing per-area access booleans."""

    NONE = 0
    STOCK = 1
    PURCHASING = 2
    PRODUCTION = 4
    CATALOG = 8
    ALL = 15

    @classmethod
    def parse(cls, raw: str | None) -> "Capability":
        """Parse a comma separated list such as ``"stock,purchasing"``."""
        caps = cls.NONE
        if not raw:
            return caps
        for token in raw.split(","):
            name = token.strip().upper()
            if not name:
                continue
            try:
                caps |= cls[name]
            except KeyError:
                continue  # unknown capabilities grant nothing
        return caps


class Actor(BaseModel):
    """Authenticated caller recorded on audit fields."""

    id: str
    capabilities: Capability = Capability.NONE

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        if not self.can(capability):
            raise PermissionDeniedError(self.id, (capability.name or "").lower())
