"""Fetch OpenAPI documents from a URL or local file and decode them.

This module handles all I/O for retrieving the raw OpenAPI document and
converting it into a Python dictionary.  Retrieval and decoding are split so
that :class:`~specdex.cache.SpecCache` can take any coroutine returning a
:class:`~specdex.models.RawSpec` as its fetcher (tests inject fakes):

* :class:`HttpSpecFetcher` -- ``GET`` over :mod:`httpx`, optional ``X-API-Key``.
* :class:`FileSpecFetcher` -- read a local ``.json`` / ``.yaml`` / ``.yml`` file.
* :func:`create_fetcher` -- pick one of the above from a
  :class:`~specdex.models.SpecdexConfig`.
* :func:`parse_document` -- decode a body as JSON or YAML, using the
  content type as a hint.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import httpx
import yaml

from specdex.exceptions import FetchError, SpecParseError
from specdex.models import RawSpec, SpecdexConfig

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[RawSpec]]
"""Zero-argument coroutine function returning the raw document body."""

ACCEPT_HEADER = "application/json, application/x-yaml, text/yaml, */*"

_SUFFIX_CONTENT_TYPES = {
    ".json": "application/json",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
}


class HttpSpecFetcher:
    """Fetch the document over HTTP(S).

    Args:
        url: Absolute URL of the OpenAPI document.
        api_key: Optional key sent in the ``X-API-Key`` header.
        timeout: Request timeout in seconds.
        transport: Optional :class:`httpx.AsyncBaseTransport`, used by tests
            to substitute :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def __call__(self) -> RawSpec:
        logger.info("Fetching spec from %s", self.url)
        headers = {"Accept": ACCEPT_HEADER}
        if self._api_key:
            headers["X-API-Key"] = self._api_key

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(self.url, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Failed to fetch OpenAPI spec: {exc.response.status_code} "
                f"{exc.response.reason_phrase}"
            ) from exc
        except httpx.RequestError as exc:
            raise FetchError(f"Failed to fetch spec from {self.url}: {exc}") from exc

        logger.info("Spec fetched successfully (%d bytes)", len(response.content))
        return RawSpec(
            content=response.content,
            content_type=response.headers.get("content-type", ""),
        )


class FileSpecFetcher:
    """Read the document from a local file.

    The file suffix stands in for the HTTP content type: ``.json`` selects
    JSON, ``.yaml``/``.yml`` select YAML, anything else is sniffed.

    Args:
        path: Path to the local file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    async def __call__(self) -> RawSpec:
        logger.info("Reading spec from %s", self.path)
        if not self.path.is_file():
            raise FetchError(f"Spec file not found: {self.path}")
        try:
            content = await asyncio.to_thread(self.path.read_bytes)
        except OSError as exc:
            raise FetchError(f"Failed to read spec file {self.path}: {exc}") from exc

        return RawSpec(
            content=content,
            content_type=_SUFFIX_CONTENT_TYPES.get(self.path.suffix.lower(), ""),
        )


def create_fetcher(config: SpecdexConfig) -> Fetcher:
    """Return the fetcher matching ``config.spec_url``.

    ``http://`` and ``https://`` sources use :class:`HttpSpecFetcher`; every
    other value is treated as a local file path.
    """
    if config.spec_url.startswith(("http://", "https://")):
        return HttpSpecFetcher(
            config.spec_url,
            api_key=config.api_key,
            timeout=config.request_timeout,
        )
    return FileSpecFetcher(config.spec_url)


def content_type_hint(content_type: str) -> str:
    """Map a content type onto ``"json"``, ``"yaml"`` or ``""`` (unknown)."""
    lowered = content_type.lower()
    if "json" in lowered:
        return "json"
    if "yaml" in lowered or "yml" in lowered:
        return "yaml"
    return ""


def parse_document(content: bytes | str, content_type: str = "") -> dict[str, Any]:
    """Decode a raw document body into a dictionary.

    A ``json`` content type is parsed as JSON only and a ``yaml``/``yml``
    content type as YAML only.  Without a usable hint, JSON is tried first
    (it is stricter and faster) and YAML second.

    Args:
        content: The raw body.  Bytes are decoded as UTF-8.
        content_type: The HTTP content type or an equivalent hint.

    Returns:
        The parsed document.

    Raises:
        SpecParseError: If the body cannot be decoded, parses in neither
            format, or its root is not a mapping.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SpecParseError(f"Spec is not valid UTF-8: {exc}") from exc
    else:
        text = content

    hint = content_type_hint(content_type)
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            return _require_mapping(json.loads(text))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            json_error = exc

    try:
        return _require_mapping(yaml.safe_load(text))
    except yaml.YAMLError as exc:
        if hint == "yaml":
            raise SpecParseError(f"Invalid YAML: {exc}") from exc
        msg = "Failed to parse spec as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return result
