"""Resolver backed by a fixed mapping, for development and tests."""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime

from lapse.resolver.names import normalize_name

logger = logging.getLogger(__name__)


class StaticExpiryResolver:
    """Resolver backed by a fixed mapping of name -> expiry."""

    def __init__(self, expiries: Mapping[str, datetime] | None = None) -> None:
        self._expiries: dict[str, datetime] = {}
        for name, expiry in (expiries or {}).items():
            self.set_expiry(name, expiry)

    def set_expiry(self, name: str, expiry: datetime) -> None:
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        self._expiries[normalize_name(name)] = expiry

    async def resolve_expiry(self, name: str) -> datetime | None:
        expiry = self._expiries.get(normalize_name(name))
        if expiry is None:
            logger.debug("expiry_not_found", extra={"resource.name": name})
        return expiry
