"""Tool definitions and dispatch for the query operations.

Each tool pairs a name and description with a Pydantic argument model from
:mod:`specdex.models`; the model's JSON schema is the tool's
``inputSchema``.  :class:`ToolDispatcher` validates raw arguments, calls the
matching :class:`~specdex.query.QueryEngine` operation, and wraps the outcome
in a :class:`ToolResult`.

Failures never escape as exceptions.  Validation errors, unknown tool names
and :class:`~specdex.exceptions.SpecdexError` subclasses become
``{"success": false, "error": "<message>"}`` payloads with
``is_error=True``; anything unexpected is logged with its traceback and
reported the same way.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ValidationError

from specdex.exceptions import SpecdexError
from specdex.models import (
    GetEndpointDetailsArgs,
    GetOpenAPISpecArgs,
    GetSchemaDetailsArgs,
    SearchEndpointsArgs,
    SearchSchemasArgs,
    dump_model,
)
from specdex.parser.resolver import DEFAULT_MAX_DEPTH
from specdex.query import QueryEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    """Name, description and argument model of one tool."""

    name: str
    description: str
    args_model: type[BaseModel]

    def input_schema(self) -> dict[str, Any]:
        schema = self.args_model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return schema


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="search_endpoints",
        description="Search API endpoints by path pattern, HTTP method, tags, or description. "
        "Returns a paginated list of matching endpoints.",
        args_model=SearchEndpointsArgs,
    ),
    ToolSpec(
        name="get_endpoint_details",
        description="Get detailed information about a specific API endpoint including "
        "parameters, request body schema, and response schemas.",
        args_model=GetEndpointDetailsArgs,
    ),
    ToolSpec(
        name="search_schemas",
        description="Search for schemas/models in the OpenAPI spec by name pattern or "
        "property name. Returns a paginated list of matching schemas.",
        args_model=SearchSchemasArgs,
    ),
    ToolSpec(
        name="get_schema_details",
        description="Get detailed information about a specific schema/model including all "
        "properties and nested schemas with resolved $ref references.",
        args_model=GetSchemaDetailsArgs,
    ),
    ToolSpec(
        name="get_openapi_spec",
        description="Return the full OpenAPI spec or a filtered section. Use section to get "
        "specific parts (info, paths, components, tags, servers, full). Use pathFilter to "
        "filter paths by regex pattern.",
        args_model=GetOpenAPISpecArgs,
    ),
)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call, ready to be serialised by the transport."""

    payload: dict[str, Any]
    is_error: bool = False

    def to_json(self) -> str:
        return json.dumps(self.payload, indent=2, ensure_ascii=False, default=str)

    @classmethod
    def failure(cls, message: str) -> ToolResult:
        return cls({"success": False, "error": message}, is_error=True)


class ToolDispatcher:
    """Route tool calls to a :class:`~specdex.query.QueryEngine`.

    Args:
        engine: The engine serving every call.

    Example::

        dispatcher = ToolDispatcher(QueryEngine(cache))
        result = await dispatcher.call("search_endpoints", {"method": "get"})
        print(result.to_json())
    """

    def __init__(self, engine: QueryEngine) -> None:
        self._engine = engine
        self._specs = {spec.name: spec for spec in TOOL_SPECS}
        self._handlers: dict[str, Callable[[Any], Awaitable[dict[str, Any]]]] = {
            "search_endpoints": self._search_endpoints,
            "get_endpoint_details": self._get_endpoint_details,
            "search_schemas": self._search_schemas,
            "get_schema_details": self._get_schema_details,
            "get_openapi_spec": self._get_openapi_spec,
        }

    @property
    def engine(self) -> QueryEngine:
        return self._engine

    @property
    def specs(self) -> tuple[ToolSpec, ...]:
        return TOOL_SPECS

    async def call(self, name: str, arguments: Optional[dict[str, Any]] = None) -> ToolResult:
        """Validate *arguments*, run tool *name*, and wrap the outcome."""
        spec = self._specs.get(name)
        if spec is None:
            return ToolResult.failure(f"Unknown tool: {name}")

        try:
            args = spec.args_model.model_validate(arguments or {})
        except ValidationError as exc:
            return ToolResult.failure(_format_validation_error(exc))

        logger.debug("Tool called: %s", name)
        try:
            payload = await self._handlers[name](args)
        except SpecdexError as exc:
            logger.info("Tool %s failed: %s", name, exc)
            return ToolResult.failure(str(exc))
        except Exception as exc:
            logger.error("Error executing tool %s: %s", name, exc, exc_info=True)
            return ToolResult.failure(str(exc) or type(exc).__name__)

        return ToolResult({"success": True, **payload})

    # ------------------------------------------------------------------ #
    # Handlers
    # ------------------------------------------------------------------ #

    async def _search_endpoints(self, args: SearchEndpointsArgs) -> dict[str, Any]:
        result = await self._engine.search_endpoints(
            path_pattern=args.path_pattern,
            method=args.method,
            tags=args.tags,
            description=args.description,
            limit=args.limit,
            offset=args.offset,
        )
        return dump_model(result)

    async def _get_endpoint_details(self, args: GetEndpointDetailsArgs) -> dict[str, Any]:
        endpoint = await self._engine.get_endpoint_details(
            args.path, args.method, resolve_refs=args.resolve_refs
        )
        return {"endpoint": endpoint}

    async def _search_schemas(self, args: SearchSchemasArgs) -> dict[str, Any]:
        result = await self._engine.search_schemas(
            name_pattern=args.name_pattern,
            property_name=args.property_name,
            limit=args.limit,
            offset=args.offset,
        )
        return dump_model(result)

    async def _get_schema_details(self, args: GetSchemaDetailsArgs) -> dict[str, Any]:
        max_depth = DEFAULT_MAX_DEPTH if args.max_depth is None else args.max_depth
        details = await self._engine.get_schema_details(
            args.schema_name, resolve_refs=args.resolve_refs, max_depth=max_depth
        )
        return {"data": details}

    async def _get_openapi_spec(self, args: GetOpenAPISpecArgs) -> dict[str, Any]:
        data = await self._engine.get_spec_section(args.section, args.path_filter)
        return {"data": data}


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "arguments"
        problems.append(f"{location}: {err['msg']}")
    return "Invalid arguments: " + "; ".join(problems)
