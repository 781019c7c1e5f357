"""In-memory caching of the OpenAPI document for specdex.

This package provides :class:`SpecCache`, which keeps the most recently
fetched document together with its endpoint and schema indexes, refreshes it
lazily once its TTL has passed, coalesces concurrent refreshes into a single
fetch, and serves the stale document when a refresh fails.

The cache is consumed by :class:`~specdex.query.QueryEngine` and is
configured through ``cache_ttl_seconds`` on
:class:`~specdex.models.SpecdexConfig`.
"""

from specdex.cache.cache import CacheEntry, SpecCache

__all__ = ["CacheEntry", "SpecCache"]
