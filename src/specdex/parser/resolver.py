"""Resolve ``$ref`` JSON Reference pointers in OpenAPI documents.

OpenAPI documents commonly use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition.  This module
expands them on demand: query results are rebuilt with every reachable
``$ref`` replaced by its target, while the cached document itself is never
touched.

Only **internal** references (those starting with ``#/``) are followed.
Anything the resolver cannot follow -- external files, URLs, missing targets
-- is never an error.  It is embedded in the output as an
:class:`UnresolvableRef` marker so that one bad pointer does not hide the
rest of a schema.  References that loop back onto the pointer currently being
expanded become :class:`CircularRef` markers.

Expansion depth counts ``$ref`` hops only.  Plain container nesting is walked
in full regardless of ``max_depth``; once the hop budget is spent the value is
returned as-is, which may still contain raw ``$ref`` dicts.

The public entry points are :class:`RefResolver` and the two convenience
wrappers :func:`resolve_pointer` and :func:`resolve_refs`.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import unquote

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5


class ReferenceMarker(dict):
    """Placeholder embedded in resolved output where a ``$ref`` was not expanded.

    Markers are plain ``dict`` subclasses so they serialise to JSON without
    special handling, while ``isinstance`` still tells them apart from
    document content.
    """

    key: str = ""

    def __init__(self, ref: str) -> None:
        super().__init__({self.key: ref})

    @property
    def ref(self) -> str:
        """The pointer string that could not be expanded."""
        return self[self.key]


class UnresolvableRef(ReferenceMarker):
    """The pointer is external, malformed, or its target does not exist."""

    key = "$unresolvableRef"


class CircularRef(ReferenceMarker):
    """The pointer is already being expanded further up the same branch."""

    key = "$circularRef"


def decode_segment(segment: str) -> str:
    """Decode one pointer segment.

    The segment is percent-decoded first, then ``~1`` becomes ``/`` and
    finally ``~0`` becomes ``~``.  Replacing ``~1`` before ``~0`` keeps an
    escaped tilde followed by ``1`` (``~01``) decoding to ``~1``.
    """
    return unquote(segment).replace("~1", "/").replace("~0", "~")


class RefResolver:
    """Expands ``$ref`` pointers against a single root document.

    The resolver keeps the set of pointers currently being expanded on the
    active branch, so one instance must not be used by two interleaved
    :meth:`resolve_all` calls.  Sequential reuse is fine: the set is empty
    again whenever a top-level call returns, and :meth:`reset` clears it
    explicitly.

    Args:
        document: The root OpenAPI document all pointers are resolved against.

    Example::

        resolver = RefResolver(document)
        schema = resolver.resolve_all(document["components"]["schemas"]["Pet"])
    """

    def __init__(self, document: dict[str, Any]) -> None:
        self._document = document
        self._active: set[str] = set()

    def resolve_pointer(self, ref: str) -> Any:
        """Return the value *ref* points to, or an :class:`UnresolvableRef`.

        Mappings are walked by key and sequences by non-negative decimal
        index.  The walk stops at the first segment that cannot be followed.
        """
        if not ref.startswith("#/"):
            return UnresolvableRef(ref)

        current: Any = self._document
        for raw_segment in ref[2:].split("/"):
            segment = decode_segment(raw_segment)
            if isinstance(current, dict):
                if segment not in current:
                    return UnresolvableRef(ref)
                current = current[segment]
            elif isinstance(current, list):
                if not segment.isdecimal() or int(segment) >= len(current):
                    return UnresolvableRef(ref)
                current = current[int(segment)]
            else:
                return UnresolvableRef(ref)

        return current

    def resolve_all(
        self,
        value: Any,
        max_depth: int = DEFAULT_MAX_DEPTH,
        depth: int = 0,
    ) -> Any:
        """Return a copy of *value* with ``$ref`` pointers expanded.

        Args:
            value: Any node of the document (or a value built from one).
            max_depth: Maximum number of nested ``$ref`` hops to follow.
            depth: Hops already taken on this branch.  Callers leave it at 0.

        Returns:
            A new structure for dicts and lists, or *value* itself for
            scalars, ``None``, and anything reached once the hop budget is
            exhausted.
        """
        if depth >= max_depth:
            return value

        if value is None:
            return None

        if isinstance(value, list):
            return [self.resolve_all(item, max_depth, depth) for item in value]

        if not isinstance(value, dict):
            return value

        ref = value.get("$ref")
        if isinstance(ref, str):
            return self._expand(ref, max_depth, depth)

        return {key: self.resolve_all(item, max_depth, depth) for key, item in value.items()}

    def reset(self) -> None:
        """Forget every pointer marked as in progress."""
        self._active.clear()

    def _expand(self, ref: str, max_depth: int, depth: int) -> Any:
        if ref in self._active:
            logger.debug("Circular $ref %s", ref)
            return CircularRef(ref)

        self._active.add(ref)
        try:
            target = self.resolve_pointer(ref)
            if isinstance(target, ReferenceMarker):
                logger.debug("Unresolvable $ref %s", ref)
                return target
            return self.resolve_all(target, max_depth, depth + 1)
        finally:
            self._active.discard(ref)


def resolve_pointer(document: dict[str, Any], ref: str) -> Any:
    """Resolve a single pointer against *document* (see :meth:`RefResolver.resolve_pointer`)."""
    return RefResolver(document).resolve_pointer(ref)


def resolve_refs(
    document: dict[str, Any],
    value: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Expand every ``$ref`` inside *value* using a throwaway resolver.

    Args:
        document: Root document the pointers refer to.
        value: The node to expand, typically a schema or an operation.
        max_depth: Maximum number of nested ``$ref`` hops to follow.

    Returns:
        The expanded copy of *value*.
    """
    return RefResolver(document).resolve_all(value, max_depth)
