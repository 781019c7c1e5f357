"""Search and detail queries over the cached OpenAPI document.

:class:`QueryEngine` implements the five read operations exposed as tools
and CLI commands.  Every operation first obtains a
:class:`~specdex.cache.CacheEntry` from the :class:`~specdex.cache.SpecCache`
and then works only on that snapshot, so a refresh that lands mid-query
cannot mix two documents.

* Searches filter the pre-built indexes and never touch ``$ref`` pointers.
* Detail lookups read the raw document and expand ``$ref`` pointers with a
  fresh :class:`~specdex.parser.resolver.RefResolver` when asked to.

Pattern arguments are Python regular expressions matched case-insensitively
anywhere in the target string (``re.search``).
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional, Sequence, TypeVar

from specdex.cache import SpecCache
from specdex.exceptions import InvalidArgumentError, NotFoundError
from specdex.models import (
    EndpointInfo,
    EndpointSearchResult,
    HTTPMethod,
    Pagination,
    SchemaSearchResult,
)
from specdex.parser.resolver import DEFAULT_MAX_DEPTH, RefResolver

DEFAULT_LIMIT = 20

SPEC_SECTIONS = ("info", "paths", "components", "tags", "servers", "full")

_T = TypeVar("_T")


class QueryEngine:
    """Read-only query operations backed by a :class:`~specdex.cache.SpecCache`.

    Args:
        cache: The cache supplying the document and its indexes.
    """

    def __init__(self, cache: SpecCache) -> None:
        self._cache = cache

    @property
    def cache(self) -> SpecCache:
        return self._cache

    async def search_endpoints(
        self,
        path_pattern: Optional[str] = None,
        method: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        description: Optional[str] = None,
        limit: Optional[int] = DEFAULT_LIMIT,
        offset: Optional[int] = 0,
    ) -> EndpointSearchResult:
        """Filter the endpoint index and return one page of matches.

        All given filters must match.  Within ``tags`` any single shared tag
        is enough.

        Args:
            path_pattern: Regex searched in the endpoint path.
            method: HTTP verb, compared case-insensitively.
            tags: Tags to match; an empty list disables the filter.
            description: Regex searched in the summary or the description.
            limit: Page size; ``None`` or ``0`` means the default of 20.
            offset: Number of matches to skip.

        Raises:
            InvalidArgumentError: On a malformed regex or negative paging values.
        """
        limit, offset = _paging(limit, offset)
        path_re = _compile(path_pattern, "pathPattern") if path_pattern else None
        text_re = _compile(description, "description") if description else None

        entry = await self._cache.get_entry()
        results: Iterable[EndpointInfo] = entry.endpoint_index

        if path_re:
            results = [e for e in results if path_re.search(e.path)]

        if method:
            wanted = method.upper()
            results = [e for e in results if e.method == wanted]

        if tags:
            wanted_tags = set(tags)
            results = [e for e in results if _shares_tag(e.tags, wanted_tags)]

        if text_re:
            results = [e for e in results if _text_matches(text_re, e.summary, e.description)]

        page, pagination = _paginate(list(results), limit, offset)
        return EndpointSearchResult(endpoints=page, pagination=pagination)

    async def search_schemas(
        self,
        name_pattern: Optional[str] = None,
        property_name: Optional[str] = None,
        limit: Optional[int] = DEFAULT_LIMIT,
        offset: Optional[int] = 0,
    ) -> SchemaSearchResult:
        """Filter the schema index and return one page of matches.

        Args:
            name_pattern: Regex searched in the schema name.
            property_name: Case-insensitive substring of any property name.
            limit: Page size; ``None`` or ``0`` means the default of 20.
            offset: Number of matches to skip.

        Raises:
            InvalidArgumentError: On a malformed regex or negative paging values.
        """
        limit, offset = _paging(limit, offset)
        name_re = _compile(name_pattern, "namePattern") if name_pattern else None

        entry = await self._cache.get_entry()
        results = list(entry.schema_index)

        if name_re:
            results = [s for s in results if name_re.search(str(s.name))]

        if property_name:
            needle = property_name.lower()
            results = [
                s
                for s in results
                if s.property_names and any(needle in str(p).lower() for p in s.property_names)
            ]

        page, pagination = _paginate(results, limit, offset)
        return SchemaSearchResult(schemas=page, pagination=pagination)

    async def get_endpoint_details(
        self,
        path: str,
        method: str,
        resolve_refs: bool = True,
    ) -> dict[str, Any]:
        """Return one operation merged with its path-level parameters.

        The result starts with ``path`` and the uppercase ``method``, followed
        by every field of the operation object.  ``parameters`` holds the
        path-level parameters followed by the operation's own, without
        de-duplication, and is omitted when both are empty.

        Raises:
            NotFoundError: If the path or the method does not exist.
        """
        document = await self._cache.get_document()

        paths = document.get("paths") or {}
        path_item = paths.get(path) if isinstance(paths, dict) else None
        if not path_item or not isinstance(path_item, dict):
            raise NotFoundError(f"Path not found: {path}")

        verb = method.lower()
        operation = path_item.get(verb) if verb in _VERBS else None
        if not isinstance(operation, dict):
            raise NotFoundError(f"Method {method} not found for path {path}")

        parameters = [*(path_item.get("parameters") or []), *(operation.get("parameters") or [])]

        result: dict[str, Any] = {"path": path, "method": method.upper(), **operation}
        if parameters:
            result["parameters"] = parameters
        else:
            result.pop("parameters", None)

        if resolve_refs:
            return RefResolver(document).resolve_all(result)
        return result

    async def get_schema_details(
        self,
        schema_name: str,
        resolve_refs: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> dict[str, Any]:
        """Return ``{"name": ..., "schema": ...}`` for one named schema.

        Args:
            schema_name: Exact key in ``components.schemas``.
            resolve_refs: Expand ``$ref`` pointers inside the schema.
            max_depth: Maximum number of nested ``$ref`` hops to expand.

        Raises:
            NotFoundError: If no schema has that name.
            InvalidArgumentError: If ``max_depth`` is negative.
        """
        if max_depth < 0:
            raise InvalidArgumentError(f"maxDepth must be >= 0 (got {max_depth})")

        document = await self._cache.get_document()
        components = document.get("components") or {}
        schemas = components.get("schemas") if isinstance(components, dict) else None
        schema = schemas.get(schema_name) if isinstance(schemas, dict) else None
        if schema is None:
            raise NotFoundError(f"Schema not found: {schema_name}")

        if resolve_refs:
            schema = RefResolver(document).resolve_all(schema, max_depth)
        return {"name": schema_name, "schema": schema}

    async def get_spec_section(
        self,
        section: Optional[str] = None,
        path_filter: Optional[str] = None,
    ) -> Any:
        """Return one top-level section of the document, or all of it.

        Args:
            section: One of ``info``, ``paths``, ``components``, ``tags``,
                ``servers`` or ``full`` (the default).
            path_filter: Regex on path keys, applied to ``paths`` and
                ``full`` only.

        Raises:
            InvalidArgumentError: On an unknown section or a malformed regex.
        """
        section = section or "full"
        if section not in SPEC_SECTIONS:
            raise InvalidArgumentError(
                f"Unknown section: {section}. Valid sections: {', '.join(SPEC_SECTIONS)}"
            )

        path_re = None
        if path_filter and section in ("full", "paths"):
            path_re = _compile(path_filter, "pathFilter")
        document = await self._cache.get_document()

        if section == "full":
            if path_re:
                return {**document, "paths": _filter_paths(document.get("paths"), path_re)}
            return document

        if section == "paths" and path_re:
            return _filter_paths(document.get("paths"), path_re)

        return document.get(section)


_VERBS = frozenset(m.value for m in HTTPMethod)


def _compile(pattern: str, argument: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise InvalidArgumentError(f"Invalid {argument} regex {pattern!r}: {exc}") from exc


def _paging(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    if limit is not None and limit < 0:
        raise InvalidArgumentError(f"limit must be >= 0 (got {limit})")
    if offset is not None and offset < 0:
        raise InvalidArgumentError(f"offset must be >= 0 (got {offset})")
    return limit or DEFAULT_LIMIT, offset or 0


def _paginate(items: list[_T], limit: int, offset: int) -> tuple[list[_T], Pagination]:
    total = len(items)
    page = items[offset : offset + limit]
    return page, Pagination(
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(page) < total,
    )


def _filter_paths(paths: Any, regex: re.Pattern[str]) -> dict[str, Any]:
    if not isinstance(paths, dict):
        return {}
    return {path: item for path, item in paths.items() if regex.search(path)}


def _shares_tag(tags: Any, wanted: set[str]) -> bool:
    # ``tags`` is the literal document value.
    return isinstance(tags, list) and any(isinstance(t, str) and t in wanted for t in tags)


def _text_matches(pattern: re.Pattern[str], *values: Any) -> bool:
    return any(isinstance(v, str) and pattern.search(v) for v in values)
