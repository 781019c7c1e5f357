"""Shared test fixtures for specdex.

Provides reusable fixtures for loading the petstore document, driving the
cache with a fake clock and a scripted fetcher, creating isolated config
environments, managing output state, and running CLI commands.  These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Optional, Union

import pytest

from specdex.cache import SpecCache
from specdex.models import RawSpec
from specdex.output import OutputFormat, OutputManager, reset_output, set_output
from specdex.query import QueryEngine


FIXTURES_DIR = Path(__file__).parent / "fixtures"
PETSTORE_PATH = FIXTURES_DIR / "petstore.json"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_bytes() -> bytes:
    """Raw bytes of the petstore fixture."""
    return PETSTORE_PATH.read_bytes()


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Parsed petstore fixture as a plain dict."""
    with open(PETSTORE_PATH) as f:
        return json.load(f)


NUMERIC_YAML = """\
openapi: 3.0.3
info: {title: Reports, version: 2024}
paths:
  /reports:
    get:
      summary: 404
      description: Yearly reports
      operationId: 17
      tags: [2024, reports, {name: nested}]
  /reports/{year}:
    get:
      summary: Report for one year
      tags: reports
components:
  schemas:
    200:
      type: object
      properties:
        200: {type: string}
        status: {type: integer}
    Report:
      type: 5
      description: 12
"""


@pytest.fixture
def numeric_yaml() -> str:
    """YAML document whose operation and schema fields are numbers, not strings."""
    return NUMERIC_YAML


# ---------------------------------------------------------------------------
# Cache fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Outcome = Union[bytes, str, dict, Exception]


class ScriptedFetcher:
    """Fetcher returning queued outcomes, then repeating the last one.

    Each outcome is a body (``bytes``/``str``), a dict serialised as JSON, or
    an exception instance to raise.  When ``gate`` is set, every call waits
    on it before answering, so tests can hold a fetch in flight.
    """

    def __init__(self, *outcomes: Outcome, content_type: str = "application/json") -> None:
        self.outcomes = list(outcomes)
        self.content_type = content_type
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None

    def push(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    async def __call__(self) -> RawSpec:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

        if len(self.outcomes) > 1:
            outcome = self.outcomes.pop(0)
        else:
            outcome = self.outcomes[0]

        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, dict):
            outcome = json.dumps(outcome)
        if isinstance(outcome, str):
            outcome = outcome.encode("utf-8")
        return RawSpec(content=outcome, content_type=self.content_type)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_cache(clock: FakeClock) -> Callable[..., SpecCache]:
    """Factory building a :class:`SpecCache` on the shared fake clock."""

    def _make(fetcher: Any, ttl_seconds: float = 300.0) -> SpecCache:
        return SpecCache(fetcher, ttl_seconds=ttl_seconds, clock=clock)

    return _make


@pytest.fixture
def make_fetcher() -> type[ScriptedFetcher]:
    """The :class:`ScriptedFetcher` class, for tests that script their own outcomes."""
    return ScriptedFetcher


@pytest.fixture
def petstore_fetcher(petstore_bytes: bytes) -> ScriptedFetcher:
    return ScriptedFetcher(petstore_bytes)


@pytest.fixture
def engine(petstore_fetcher: ScriptedFetcher, make_cache: Callable[..., SpecCache]) -> QueryEngine:
    """Query engine over the petstore fixture."""
    return QueryEngine(make_cache(petstore_fetcher))


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_DATA_HOME into tmp_path, clears every environment variable
    the config layer reads, and changes the working directory to tmp_path
    so no ``specdex.json`` from the real project is picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "OPENAPI_SPEC_URL",
        "OPENAPI_API_KEY",
        "SPEC_CACHE_TTL",
        "SPECDEX_REQUEST_TIMEOUT",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
