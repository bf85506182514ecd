"""Shared test fixtures for specdash.

Provides reusable fixtures for loading spec fixtures, creating isolated
config environments, managing output state, and mocking HTTP.  These
fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from specdash.models import GlobalConfig
from specdash.output import OutputFormat, OutputManager, reset_output, set_output
from specdash.parser.fetcher import SpecFetcher
from specdash.storage import SpecStore


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec text fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def petstore_yaml_text() -> str:
    """OpenAPI 3.0 petstore with Pet, NewPet, Order, Error, Category."""
    return (FIXTURES_DIR / "petstore_3.0.yaml").read_text(encoding="utf-8")


@pytest.fixture
def petstore_json_text() -> str:
    """Small OpenAPI 3.0 JSON document: Pet used by GET /pets/{id} and by Order."""
    return (FIXTURES_DIR / "petstore_3.0.json").read_text(encoding="utf-8")


@pytest.fixture
def swagger_yaml_text() -> str:
    """Swagger 2.0 document with body parameters and shared responses."""
    return (FIXTURES_DIR / "swagger_2.0.yaml").read_text(encoding="utf-8")


@pytest.fixture
def external_api_path() -> Path:
    """Root document whose schemas live in ``schemas/*.yaml`` next to it."""
    return FIXTURES_DIR / "external" / "api.yaml"


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all SPECDASH_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("specdash.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SPECDASH_TIMEOUT", "SPECDASH_STORE_DIR", "SPECDASH_NO_CACHE", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def store(tmp_path: Path) -> SpecStore:
    """A spec store in a fresh temporary directory."""
    return SpecStore(directory=tmp_path / "specs")


# ---------------------------------------------------------------------------
# HTTP mocking
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_fetcher() -> Callable[..., SpecFetcher]:
    """Factory building a SpecFetcher backed by an httpx.MockTransport.

    Takes either a handler ``(httpx.Request) -> httpx.Response`` or a dict
    mapping URLs to ``(status, body)`` / ``(status, body, content_type)``
    tuples.  Unknown URLs answer 404 with an empty body.  Every requested
    URL is appended to ``fetcher.requested``.
    """
    fetchers: list[SpecFetcher] = []

    def _factory(routes: Any, **kwargs: Any) -> SpecFetcher:
        requested: list[str] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            requested.append(url)
            if callable(routes):
                return routes(request)
            if url not in routes:
                return httpx.Response(404)
            status, body, *rest = routes[url]
            content_type = rest[0] if rest else "application/yaml"
            return httpx.Response(status, text=body, headers={"content-type": content_type})

        client = httpx.Client(transport=httpx.MockTransport(_handler), follow_redirects=True)
        fetcher = SpecFetcher(GlobalConfig().fetch, client=client, **kwargs)
        fetcher.requested = requested  # type: ignore[attr-defined]
        fetchers.append(fetcher)
        return fetcher

    yield _factory
    for fetcher in fetchers:
        fetcher._client.close()


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


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a PLAIN-format OutputManager with debug lines enabled."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()
