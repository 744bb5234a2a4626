"""Tiny memoizing string cache used by the performance_schema collectors.

Mapping a raw file name to its logical ``schema.table`` name takes a handful of
regular expressions, and the collectors do it for every row on every tick.
The set of distinct file names on a server is small, so the cache never
evicts.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

LOG = logging.getLogger(__name__)


class NotFound(KeyError):
    """Raised by :meth:`LookupCache.get` when the key has not been stored."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key


class CacheStatistics(NamedTuple):
    """Point-in-time snapshot of the cache counters."""

    read_requests: int
    served_from_cache: int
    write_requests: int

    @property
    def hit_ratio(self) -> float:
        if not self.read_requests:
            return 0.0
        return self.served_from_cache / self.read_requests


class LookupCache:
    """String key to string value cache with read/hit/write counters."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._read_requests = 0
        self._served_from_cache = 0
        self._write_requests = 0
        LOG.debug("Created lookup cache")

    def get(self, key: str) -> str:
        """Return the cached value for ``key`` or raise :class:`NotFound`."""

        self._read_requests += 1
        try:
            value = self._entries[key]
        except KeyError:
            raise NotFound(key) from None
        self._served_from_cache += 1
        return value

    def put(self, key: str, value: str) -> str:
        """Store ``value`` under ``key`` and hand it back to the caller."""

        self._write_requests += 1
        self._entries[key] = value
        return value

    def statistics(self) -> CacheStatistics:
        return CacheStatistics(
            read_requests=self._read_requests,
            served_from_cache=self._served_from_cache,
            write_requests=self._write_requests,
        )

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["CacheStatistics", "LookupCache", "NotFound"]
