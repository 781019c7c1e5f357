"""OpenAPI document handling -- load, index, and resolve ``$ref`` pointers.

This sub-package turns a raw OpenAPI 3.x body into the pieces the query
engine works with:

* :mod:`~specdex.parser.loader` -- I/O layer (HTTP URL or local file) plus
  JSON/YAML format detection.
* :mod:`~specdex.parser.indexer` -- one-pass scan producing the endpoint and
  schema search indexes.
* :mod:`~specdex.parser.resolver` -- on-demand ``$ref`` expansion with cycle
  detection and a hop limit.

Typical usage::

    from specdex.parser import build_endpoint_index, parse_document, resolve_refs

    document = parse_document(raw_bytes, "application/json")
    endpoints = build_endpoint_index(document)
    pet = resolve_refs(document, document["components"]["schemas"]["Pet"])
"""

from specdex.parser.indexer import build_endpoint_index, build_schema_index
from specdex.parser.loader import create_fetcher, parse_document
from specdex.parser.resolver import (
    CircularRef,
    RefResolver,
    UnresolvableRef,
    resolve_pointer,
    resolve_refs,
)

__all__ = [
    "build_endpoint_index",
    "build_schema_index",
    "create_fetcher",
    "parse_document",
    "CircularRef",
    "RefResolver",
    "UnresolvableRef",
    "resolve_pointer",
    "resolve_refs",
]
