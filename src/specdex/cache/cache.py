"""In-memory cache for the parsed OpenAPI document and its search indexes.

The cache owns exactly one slot.  A slot holds a :class:`CacheEntry` -- the
document, the time it was fetched, and the two indexes built from it -- and
is always replaced wholesale, never patched.  Readers that already hold an
entry keep a consistent snapshot even while a refresh installs a new one.

Freshness is evaluated lazily on every :meth:`SpecCache.get_entry` call; there
is no background timer.  When the entry is missing or older than the TTL the
cache starts a refresh, and every caller arriving while it runs awaits the
same :class:`asyncio.Task` (single-flight), so N concurrent callers cause one
fetch.  A failed refresh falls back to the previous entry, however old; only
a failure with nothing cached reaches the caller.

The fetcher and the clock are injected so tests can script fetch outcomes and
move time without sleeping.

See Also:
    :class:`~specdex.models.SpecdexConfig` -- ``cache_ttl_seconds`` sets the TTL.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from specdex.exceptions import FetchError, SpecdexError
from specdex.models import EndpointInfo, SchemaInfo
from specdex.parser.indexer import build_endpoint_index, build_schema_index
from specdex.parser.loader import Fetcher, parse_document

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A fetched document together with the indexes derived from it."""

    document: dict[str, Any]
    fetched_at: float
    endpoint_index: tuple[EndpointInfo, ...]
    schema_index: tuple[SchemaInfo, ...]


class SpecCache:
    """Single-slot, single-flight cache of the OpenAPI document.

    Args:
        fetcher: Coroutine function returning the raw document body, usually
            from :func:`~specdex.parser.loader.create_fetcher`.
        ttl_seconds: How long a fetched document counts as fresh.
        clock: Monotonic time source in seconds.

    Example::

        cache = SpecCache(create_fetcher(config), ttl_seconds=300)
        entry = await cache.get_entry()
        print(len(entry.endpoint_index))
    """

    def __init__(
        self,
        fetcher: Fetcher,
        ttl_seconds: float = 300.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._ttl = ttl_seconds
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._refresh_task: Optional[asyncio.Task[CacheEntry]] = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def has_entry(self) -> bool:
        """Whether any document, fresh or stale, is cached."""
        return self._entry is not None

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None

    def age(self) -> Optional[float]:
        """Seconds since the cached document was fetched, or ``None`` when empty."""
        if self._entry is None:
            return None
        return self._clock() - self._entry.fetched_at

    def is_fresh(self) -> bool:
        """Whether a cached document exists and is younger than the TTL."""
        return self._entry is not None and self._is_fresh(self._entry)

    async def get_entry(self) -> CacheEntry:
        """Return a fresh entry, refreshing (or joining a refresh) when needed.

        Returns:
            The fresh entry, or the previous entry if the refresh failed.

        Raises:
            FetchError: If the refresh failed and nothing was cached before.
        """
        entry = self._entry
        if entry is not None and self._is_fresh(entry):
            return entry

        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh())
            self._refresh_task.add_done_callback(_retrieve_exception)
        else:
            logger.debug("Joining in-flight spec refresh")

        # A cancelled caller must not cancel the fetch other callers share.
        return await asyncio.shield(self._refresh_task)

    async def get_document(self) -> dict[str, Any]:
        """Return the cached document (see :meth:`get_entry`)."""
        entry = await self.get_entry()
        return entry.document

    def clear(self) -> None:
        """Drop the cached entry.

        An in-flight refresh is left running and installs its result when it
        completes.
        """
        self._entry = None
        logger.debug("Spec cache cleared")

    def stats(self) -> dict[str, Any]:
        """Return cache statistics for display."""
        entry = self._entry
        return {
            "cached": entry is not None,
            "fresh": self.is_fresh(),
            "age_seconds": self.age(),
            "ttl_seconds": self._ttl,
            "refreshing": self.is_refreshing,
            "endpoints": len(entry.endpoint_index) if entry else 0,
            "schemas": len(entry.schema_index) if entry else 0,
        }

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self._ttl

    async def _refresh(self) -> CacheEntry:
        try:
            try:
                entry = await self._load()
            except Exception as exc:
                stale = self._entry
                if stale is None:
                    if isinstance(exc, SpecdexError):
                        raise
                    raise FetchError(f"Failed to fetch OpenAPI spec: {exc}") from exc
                logger.warning("Fetch failed, using stale cache: %s", exc)
                return stale

            self._entry = entry
            logger.debug(
                "Spec cached: %d endpoints, %d schemas",
                len(entry.endpoint_index),
                len(entry.schema_index),
            )
            return entry
        finally:
            self._refresh_task = None

    async def _load(self) -> CacheEntry:
        raw = await self._fetcher()
        document = parse_document(raw.content, raw.content_type)
        return CacheEntry(
            document=document,
            fetched_at=self._clock(),
            endpoint_index=tuple(build_endpoint_index(document)),
            schema_index=tuple(build_schema_index(document)),
        )


def _retrieve_exception(task: asyncio.Task[Any]) -> None:
    # Every caller may have been cancelled before the task failed.
    if not task.cancelled():
        task.exception()
