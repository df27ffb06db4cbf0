# catalog/services/catalog_cache.py

"""
CATALOG CACHE (ADAPTER LAYER)

Purpose:
- Avoid re-reading services + tiers on every POS action.
- Explicit object with injected clock + TTL.

The order/job cores never reach into this cache; views fetch definitions here
and pass them in.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Generic, Optional, TypeVar

from shared.clock import Clock, system_clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogCache(Generic[T]):
    def __init__(
        self,
        *,
        loader: Callable[[], T],
        ttl_seconds: int,
        clock: Clock = system_clock,
        name: str = "catalog",
    ):
        self._loader = loader
        self._ttl = timedelta(seconds=max(0, int(ttl_seconds)))
        self._clock = clock
        self._name = name
        self._value: Optional[T] = None
        self._loaded_at = None

    @property
    def is_fresh(self) -> bool:
        if self._loaded_at is None:
            return False
        return self._clock.now() - self._loaded_at < self._ttl

    def get(self) -> T:
        if not self.is_fresh:
            self._value = self._loader()
            self._loaded_at = self._clock.now()
            logger.debug("Catalog cache reloaded", extra={"cache": self._name})
        return self._value

    def invalidate(self) -> None:
        self._value = None
        self._loaded_at = None
