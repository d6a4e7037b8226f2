"""Expiry resolver protocol."""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class ExpiryResolver(Protocol):
    """Looks up when a name expires.

    Returns None when the name is unknown or the lookup fails.
    """

    async def resolve_expiry(self, name: str) -> datetime | None: ...
