"""Build flat search indexes from a parsed OpenAPI document.

Two indexes are produced, each exactly once per fetched document:

* :func:`build_endpoint_index` -- one :class:`~specdex.models.EndpointInfo`
  per (path, HTTP verb) operation, paths in document order and verbs in
  :class:`~specdex.models.HTTPMethod` declaration order.
* :func:`build_schema_index` -- one :class:`~specdex.models.SchemaInfo` per
  entry of ``components.schemas``.

Index entries mirror the literal document content.  ``$ref`` pointers are
never followed here; expansion only happens when a single endpoint or schema
is requested in detail.  Top-level ``$ref`` schemas are therefore left out of
the schema index and are only reachable through a detail lookup.
"""

from __future__ import annotations

from typing import Any

from specdex.models import EndpointInfo, HTTPMethod, SchemaInfo


def build_endpoint_index(document: dict[str, Any]) -> list[EndpointInfo]:
    """Return every operation in ``document["paths"]``.

    Null path items, non-string path keys and missing verbs are skipped
    silently.

    Args:
        document: The parsed OpenAPI document.

    Returns:
        Index entries in document order.
    """
    endpoints: list[EndpointInfo] = []
    paths = document.get("paths") or {}
    if not isinstance(paths, dict):
        return endpoints

    for path, path_item in paths.items():
        if not isinstance(path, str) or not isinstance(path_item, dict):
            continue
        for method in HTTPMethod:
            operation = path_item.get(method.value)
            if not isinstance(operation, dict):
                continue
            endpoints.append(
                EndpointInfo(
                    path=path,
                    method=method.value.upper(),
                    summary=operation.get("summary"),
                    description=operation.get("description"),
                    tags=operation.get("tags"),
                    operation_id=operation.get("operationId"),
                )
            )

    return endpoints


def build_schema_index(document: dict[str, Any]) -> list[SchemaInfo]:
    """Return every non-reference schema in ``components.schemas``.

    Args:
        document: The parsed OpenAPI document.

    Returns:
        Index entries in document order.
    """
    schemas: list[SchemaInfo] = []
    components = document.get("components") or {}
    named = components.get("schemas") if isinstance(components, dict) else None
    if not isinstance(named, dict):
        return schemas

    for name, schema in named.items():
        if not isinstance(schema, dict) or "$ref" in schema:
            continue
        properties = schema.get("properties")
        schemas.append(
            SchemaInfo(
                name=name,
                type=schema.get("type"),
                property_names=list(properties) if isinstance(properties, dict) else None,
                description=schema.get("description"),
            )
        )

    return schemas
