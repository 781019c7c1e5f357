"""End-to-end tests for the specdex CLI via Typer's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specdex import __version__
from specdex import app as app_module
from specdex.app import app, main
from specdex.exceptions import NotFoundError
from specdex.exit_codes import (
    EXIT_FETCH_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_SUCCESS,
)


PETSTORE_PATH = Path(__file__).parent.parent / "fixtures" / "petstore.json"


@pytest.fixture
def spec_args(isolated_config: Path) -> list[str]:
    """Root options pointing at the petstore fixture with quiet JSON output."""
    return ["--no-color", "--spec", str(PETSTORE_PATH), "--json", "--quiet"]


def _json(result: Any) -> Any:
    return json.loads(result.stdout)


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == EXIT_SUCCESS
        assert f"specdex {__version__}" in result.output

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "endpoints" in result.output
        assert "schemas" in result.output

    def test_missing_spec_source(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "--json", "endpoints", "search"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "OPENAPI_SPEC_URL" in result.output

    def test_spec_from_environment(
        self, cli_runner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OPENAPI_SPEC_URL", str(PETSTORE_PATH))
        result = cli_runner.invoke(app, ["--no-color", "--json", "spec", "--section", "servers"])
        assert result.exit_code == EXIT_SUCCESS
        assert _json(result) == [{"url": "https://petstore.example.com/v1"}]

    def test_missing_spec_file(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", str(isolated_config / "nope.json"), "endpoints", "search"]
        )
        assert result.exit_code == EXIT_FETCH_ERROR
        assert "Spec file not found" in result.output

    def test_unparseable_spec_file(self, cli_runner, isolated_config: Path) -> None:
        broken = isolated_config / "broken.json"
        broken.write_text("{not json")
        result = cli_runner.invoke(app, ["--no-color", "--spec", str(broken), "endpoints", "search"])
        assert result.exit_code == EXIT_SPEC_PARSE_ERROR
        assert "Invalid JSON" in result.output


class TestEndpointsCommands:
    def test_search_plain_table(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", str(PETSTORE_PATH), "--plain", "endpoints", "search", "--tag", "users"]
        )
        assert result.exit_code == EXIT_SUCCESS
        assert "Method\tPath\tSummary\tTags" in result.output
        assert "GET\t/users\tList users\tusers" in result.output
        assert "Showing 1-2 of 2 endpoints" in result.output

    def test_search_json(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "endpoints", "search", "--path", "^/users"])
        assert result.exit_code == EXIT_SUCCESS
        data = _json(result)
        assert [e["path"] for e in data["endpoints"]] == ["/users", "/users/{userId}"]
        assert data["pagination"] == {"total": 2, "limit": 20, "offset": 0, "hasMore": False}

    def test_search_paging_hint(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", str(PETSTORE_PATH), "--plain", "endpoints", "search", "--limit", "2"]
        )
        assert result.exit_code == EXIT_SUCCESS
        assert "Showing 1-2 of 7 endpoints" in result.output
        assert "--offset 2" in result.output

    def test_search_no_matches(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", str(PETSTORE_PATH), "--plain", "endpoints", "search", "-m", "patch"]
        )
        assert result.exit_code == EXIT_SUCCESS
        assert "No endpoints match." in result.output

    def test_verbose_reports_index_size(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "--verbose", "--spec", str(PETSTORE_PATH), "--plain", "endpoints", "search"]
        )
        assert result.exit_code == EXIT_SUCCESS
        assert "[debug] Indexed 7 endpoints and 7 schemas" in result.output

    def test_search_table_with_numeric_fields(
        self, cli_runner, isolated_config: Path, numeric_yaml: str
    ) -> None:
        spec_file = isolated_config / "reports.yaml"
        spec_file.write_text(numeric_yaml)
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", str(spec_file), "--plain", "endpoints", "search"]
        )
        assert result.exit_code == EXIT_SUCCESS
        assert "GET\t/reports\t404\t2024, reports, {'name': 'nested'}" in result.output
        assert "GET\t/reports/{year}\tReport for one year\treports" in result.output

    def test_search_invalid_regex(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "endpoints", "search", "--path", "(("])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "pathPattern" in result.output

    def test_show(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "endpoints", "show", "/pets/{petId}", "delete"])
        assert result.exit_code == EXIT_SUCCESS
        data = _json(result)
        assert data["method"] == "DELETE"
        assert [p["name"] for p in data["parameters"]] == ["petId", "force"]

    def test_show_without_resolution(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(
            app, [*spec_args, "endpoints", "show", "/pets/{petId}", "get", "--no-resolve"]
        )
        schema = _json(result)["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema == {"$ref": "#/components/schemas/Pet"}

    def test_show_unknown_path(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "endpoints", "show", "/Missing", "get"])
        assert result.exit_code == EXIT_NOT_FOUND
        assert "Path not found: /Missing" in result.output


class TestSchemasCommands:
    def test_search_json(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "schemas", "search", "--name", "pet$"])
        assert result.exit_code == EXIT_SUCCESS
        assert [s["name"] for s in _json(result)["schemas"]] == ["Pet", "NewPet"]

    def test_search_plain_table(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app,
            ["--no-color", "--spec", str(PETSTORE_PATH), "--plain", "schemas", "search", "-p", "email"],
        )
        assert result.exit_code == EXIT_SUCCESS
        assert "User\tobject\tid, email, pets" in result.output

    def test_search_table_with_numeric_fields(
        self, cli_runner, isolated_config: Path, numeric_yaml: str
    ) -> None:
        spec_file = isolated_config / "reports.yaml"
        spec_file.write_text(numeric_yaml)
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", str(spec_file), "--plain", "schemas", "search"]
        )
        assert result.exit_code == EXIT_SUCCESS
        assert "200\tobject\t200, status" in result.output
        assert "Report\t5\t-" in result.output

    def test_search_type_list(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", str(PETSTORE_PATH), "--plain", "schemas", "search", "-n", "^Node$"]
        )
        assert "Node\tobject | null\tvalue, children" in result.output

    def test_show_max_depth(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "schemas", "show", "Pet", "--max-depth", "0"])
        assert result.exit_code == EXIT_SUCCESS
        data = _json(result)
        assert data["name"] == "Pet"
        assert data["schema"]["properties"]["owner"] == {"$ref": "#/components/schemas/User"}

    def test_show_circular(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "schemas", "show", "Node"])
        children = _json(result)["schema"]["properties"]["children"]
        assert children["items"] == {"$circularRef": "#/components/schemas/Node"}

    def test_show_missing(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "schemas", "show", "Missing"])
        assert result.exit_code == EXIT_NOT_FOUND
        assert "Schema not found: Missing" in result.output


class TestSpecCommand:
    def test_section(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "spec", "--section", "info"])
        assert result.exit_code == EXIT_SUCCESS
        assert _json(result)["title"] == "Petstore"

    def test_paths_with_filter(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(
            app, [*spec_args, "spec", "--section", "paths", "--path-filter", "^/store"]
        )
        assert list(_json(result)) == ["/store/inventory"]

    def test_unknown_section(self, cli_runner, spec_args: list[str]) -> None:
        result = cli_runner.invoke(app, [*spec_args, "spec", "--section", "webhooks"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Valid sections: info, paths, components, tags, servers, full" in result.output

    def test_output_file(self, cli_runner, spec_args: list[str], isolated_config: Path) -> None:
        target = isolated_config / "full.json"
        result = cli_runner.invoke(app, [*spec_args, "-o", str(target), "spec"])
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(target.read_text())["openapi"] == "3.0.3"


class TestServeCommand:
    def test_runs_server_with_resolved_config(
        self, cli_runner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen: list[Any] = []

        async def fake_serve(config: Any) -> None:
            seen.append(config)

        monkeypatch.setattr("specdex.server.mcp.serve_stdio", fake_serve)
        result = cli_runner.invoke(
            app, ["--no-color", "--spec", "https://api.example.com/openapi.json", "--ttl", "15", "serve"]
        )

        assert result.exit_code == EXIT_SUCCESS
        assert seen[0].spec_url == "https://api.example.com/openapi.json"
        assert seen[0].cache_ttl_seconds == 15

    def test_requires_spec(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "serve"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "OPENAPI_SPEC_URL" in result.output


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(app_module, "_setup_signal_handlers", lambda: None)

    def test_specdex_error_exit_code(self, monkeypatch: pytest.MonkeyPatch, capfd) -> None:
        def raise_not_found() -> None:
            raise NotFoundError("Schema not found: Ghost")

        monkeypatch.setattr(app_module, "app", raise_not_found)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == EXIT_NOT_FOUND
        assert "Schema not found: Ghost" in capfd.readouterr().err

    def test_unexpected_error_writes_crash_log(
        self, monkeypatch: pytest.MonkeyPatch, isolated_config: Path, capfd
    ) -> None:
        def crash() -> None:
            raise RuntimeError("kaboom")

        monkeypatch.setattr(app_module, "app", crash)
        monkeypatch.setattr("specdex.config._is_xdg_platform", lambda: True)
        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == EXIT_GENERIC_FAILURE
        logs = list((isolated_config / "data" / "specdex" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: kaboom" in logs[0].read_text()
        assert "Debug log:" in capfd.readouterr().err

    def test_keyboard_interrupt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def interrupt() -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(app_module, "app", interrupt)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 130
