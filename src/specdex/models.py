"""Canonical Pydantic models shared across all specdex modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration** -- resolved by :func:`specdex.config.resolve_config`:
    :class:`SpecdexConfig`.

**Index and query results** -- produced by the index builder and the query
engine and serialised verbatim by the tool layer:
    :class:`HTTPMethod`, :class:`RawSpec`, :class:`EndpointInfo`,
    :class:`SchemaInfo`, :class:`Pagination`, :class:`EndpointSearchResult`,
    and :class:`SchemaSearchResult`.

**Tool arguments** -- validated input for each tool exposed by
:mod:`specdex.server.tools`:
    :class:`SearchEndpointsArgs`, :class:`GetEndpointDetailsArgs`,
    :class:`SearchSchemasArgs`, :class:`GetSchemaDetailsArgs`, and
    :class:`GetOpenAPISpecArgs`.

Result and argument models use camelCase aliases on the wire (``operationId``,
``hasMore``, ``pathPattern`` ...) and accept the snake_case field names as
well (``populate_by_name``).
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class SpecdexConfig(BaseModel):
    """Effective runtime configuration.

    ``spec_url`` may be an ``http(s)://`` URL or a local file path; the
    fetcher is chosen accordingly by
    :func:`~specdex.parser.loader.create_fetcher`.
    """

    spec_url: str = Field(description="URL or file path of the OpenAPI document")
    api_key: Optional[str] = Field(
        default=None, description="Sent as X-API-Key when fetching the document"
    )
    cache_ttl_seconds: float = Field(
        default=300, ge=0, description="Freshness window of the cached document"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP timeout for fetching the document"
    )


# --- Index models ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs recognised on an OpenAPI path item.

    Declaration order is the order in which verbs are indexed for each path.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    TRACE = "trace"


class RawSpec(BaseModel):
    """Undecoded document body as returned by a fetcher."""

    content: bytes
    content_type: str = ""


class EndpointInfo(BaseModel):
    """One searchable (path, method) operation from the document's ``paths``.

    Fields are copied verbatim from the operation object; nothing is
    defaulted, coerced or validated, and no ``$ref`` is followed.  YAML
    documents routinely carry numbers where strings are expected
    (``tags: [2024]``, ``operationId: 17``), so the copied fields are
    typed ``Any``.
    """

    model_config = ConfigDict(populate_by_name=True)

    path: str
    method: str = Field(description="Uppercase HTTP verb")
    summary: Any = None
    description: Any = None
    tags: Any = None
    operation_id: Any = Field(default=None, alias="operationId")


class SchemaInfo(BaseModel):
    """One searchable entry from ``components.schemas``.

    Like :class:`EndpointInfo`, every field except the property-name list is
    the literal document value.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Any
    type: Any = Field(
        default=None, description="JSON Schema type (a list of types in OpenAPI 3.1)"
    )
    property_names: Optional[list[Any]] = Field(default=None, alias="properties")
    description: Any = None


class Pagination(BaseModel):
    """Paging metadata attached to every search result."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(description="Number of matches before slicing")
    limit: int
    offset: int
    has_more: bool = Field(alias="hasMore")


class EndpointSearchResult(BaseModel):
    """A page of :class:`EndpointInfo` matches."""

    endpoints: list[EndpointInfo] = Field(default_factory=list)
    pagination: Pagination


class SchemaSearchResult(BaseModel):
    """A page of :class:`SchemaInfo` matches."""

    schemas: list[SchemaInfo] = Field(default_factory=list)
    pagination: Pagination


# --- Tool arguments ---


class _ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SearchEndpointsArgs(_ToolArgs):
    path_pattern: Optional[str] = Field(
        default=None,
        alias="pathPattern",
        description="Regex pattern to match endpoint paths (e.g., 'user' to find all user-related endpoints)",
    )
    method: Optional[str] = Field(
        default=None, description="HTTP method to filter by (GET, POST, PUT, PATCH, DELETE)"
    )
    tags: Optional[list[str]] = Field(
        default=None,
        description="Array of tags to filter by (endpoints matching any tag will be included)",
    )
    description: Optional[str] = Field(
        default=None, description="Regex pattern to search in endpoint summary/description"
    )
    limit: Optional[int] = Field(
        default=None, ge=0, description="Maximum number of results to return (default: 20)"
    )
    offset: Optional[int] = Field(
        default=None, ge=0, description="Number of results to skip for pagination (default: 0)"
    )


class GetEndpointDetailsArgs(_ToolArgs):
    path: str = Field(description="The endpoint path (e.g., '/api/v2/users/{id}')")
    method: str = Field(description="HTTP method (GET, POST, PUT, PATCH, DELETE)")
    resolve_refs: bool = Field(
        default=True,
        alias="resolveRefs",
        description="Whether to resolve $ref references inline (default: true)",
    )


class SearchSchemasArgs(_ToolArgs):
    name_pattern: Optional[str] = Field(
        default=None,
        alias="namePattern",
        description="Regex pattern to match schema names (e.g., 'User' to find User, UserResponse, etc.)",
    )
    property_name: Optional[str] = Field(
        default=None,
        alias="propertyName",
        description="Find schemas that contain a property with this name (partial match)",
    )
    limit: Optional[int] = Field(
        default=None, ge=0, description="Maximum number of results to return (default: 20)"
    )
    offset: Optional[int] = Field(
        default=None, ge=0, description="Number of results to skip for pagination (default: 0)"
    )


class GetSchemaDetailsArgs(_ToolArgs):
    schema_name: str = Field(
        alias="schemaName",
        description="The name of the schema to retrieve (e.g., 'User', 'OrderResponse')",
    )
    resolve_refs: bool = Field(
        default=True,
        alias="resolveRefs",
        description="Whether to resolve $ref references inline (default: true)",
    )
    max_depth: Optional[int] = Field(
        default=None,
        ge=0,
        alias="maxDepth",
        description="Maximum depth for resolving nested references (default: 5). "
        "Use lower values for deeply nested schemas.",
    )


class GetOpenAPISpecArgs(_ToolArgs):
    section: Optional[str] = Field(
        default=None,
        description="Section to retrieve: info, paths, components, tags, servers, or full (default: full)",
    )
    path_filter: Optional[str] = Field(
        default=None,
        alias="pathFilter",
        description="Regex pattern to filter paths (e.g., '/users' to get all user-related endpoints)",
    )


def dump_model(model: BaseModel) -> dict[str, Any]:
    """Serialise *model* with wire aliases, omitting unset optional fields."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
