"""Tests for specdash.parser.fetcher -- URL and file retrieval, error messages."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from specdash.cache import RefCache
from specdash.exceptions import FetchError
from specdash.models import CacheConfig
from specdash.parser.fetcher import is_url, normalize_location

URL = "https://api.example.com/openapi.yaml"


# ---------------------------------------------------------------------------
# Successful fetches
# ---------------------------------------------------------------------------


class TestFetchURL:
    def test_returns_body_and_content_type(self, mock_fetcher) -> None:
        fetcher = mock_fetcher({URL: (200, "openapi: 3.0.0\n", "application/yaml")})
        fetched = fetcher.fetch(URL)
        assert fetched.location == URL
        assert fetched.text == "openapi: 3.0.0\n"
        assert fetched.content_type == "application/yaml"

    def test_fetch_dispatches_files(self, mock_fetcher, tmp_path: Path) -> None:
        spec = tmp_path / "spec.yaml"
        spec.write_text("openapi: 3.0.0\n", encoding="utf-8")
        fetcher = mock_fetcher({})
        fetched = fetcher.fetch(str(spec))
        assert fetched.text == "openapi: 3.0.0\n"
        assert fetched.location == str(spec.resolve())
        assert fetcher.requested == []

    def test_location_is_final_url_after_redirect(self, mock_fetcher) -> None:
        moved = "https://cdn.example.com/v2/openapi.yaml"

        def _handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == URL:
                return httpx.Response(301, headers={"location": moved})
            return httpx.Response(200, text="openapi: 3.0.0\n")

        fetcher = mock_fetcher(_handler)
        fetched = fetcher.fetch(URL)
        assert fetched.location == moved
        assert fetcher.requested == [URL, moved]


# ---------------------------------------------------------------------------
# HTTP failure classification
# ---------------------------------------------------------------------------


class TestHTTPFailures:
    def test_json_message_field(self, mock_fetcher) -> None:
        fetcher = mock_fetcher({URL: (403, '{"message": "Token expired"}', "application/json")})
        with pytest.raises(FetchError, match="^Token expired$") as exc_info:
            fetcher.fetch(URL)
        assert exc_info.value.status_code == 403

    def test_json_error_field(self, mock_fetcher) -> None:
        fetcher = mock_fetcher({URL: (500, '{"error": "Internal boom"}', "application/json")})
        with pytest.raises(FetchError, match="^Internal boom$"):
            fetcher.fetch(URL)

    def test_json_without_known_fields(self, mock_fetcher) -> None:
        fetcher = mock_fetcher({URL: (502, '{"code": 17}', "application/json")})
        with pytest.raises(FetchError, match="status 502 with non-standard JSON error"):
            fetcher.fetch(URL)

    def test_claimed_json_that_does_not_parse(self, mock_fetcher) -> None:
        fetcher = mock_fetcher({URL: (500, "not json", "application/json")})
        with pytest.raises(FetchError, match="claimed JSON response for error 500"):
            fetcher.fetch(URL)

    def test_html_page(self, mock_fetcher) -> None:
        body = "<!DOCTYPE html><html><body>Please log in</body></html>"
        fetcher = mock_fetcher({URL: (401, body, "text/html")})
        with pytest.raises(FetchError, match="HTML page for status 401"):
            fetcher.fetch(URL)

    def test_plain_text_preview_is_truncated(self, mock_fetcher) -> None:
        body = "x" * 250
        fetcher = mock_fetcher({URL: (503, body, "text/plain")})
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(URL)
        message = str(exc_info.value)
        assert "status 503" in message
        assert message.endswith("x" * 100)
        assert "x" * 101 not in message

    def test_empty_body_uses_status_line(self, mock_fetcher) -> None:
        fetcher = mock_fetcher({})
        with pytest.raises(FetchError, match="Failed to fetch spec from URL: 404 Not Found"):
            fetcher.fetch(URL)


class TestNetworkFailures:
    def test_connection_error(self, mock_fetcher) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Name or service not known", request=request)

        fetcher = mock_fetcher(_handler)
        with pytest.raises(FetchError, match="^Network error: Could not resolve") as exc_info:
            fetcher.fetch(URL)
        assert "Name or service not known" in str(exc_info.value)
        assert exc_info.value.status_code is None

    def test_timeout(self, mock_fetcher) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        fetcher = mock_fetcher(_handler)
        with pytest.raises(FetchError, match="^Network error: Timed out after"):
            fetcher.fetch(URL)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestReadFile:
    def test_missing_file(self, mock_fetcher, tmp_path: Path) -> None:
        fetcher = mock_fetcher({})
        with pytest.raises(FetchError, match="Spec file not found"):
            fetcher.read_file(str(tmp_path / "nope.yaml"))

    def test_directory_is_not_a_file(self, mock_fetcher, tmp_path: Path) -> None:
        fetcher = mock_fetcher({})
        with pytest.raises(FetchError, match="Spec file not found"):
            fetcher.read_file(str(tmp_path))

    def test_undecodable_file(self, mock_fetcher, tmp_path: Path) -> None:
        spec = tmp_path / "spec.yaml"
        spec.write_bytes(b"\xff\xfe\x00garbage")
        fetcher = mock_fetcher({})
        with pytest.raises(FetchError, match="Failed to read spec file"):
            fetcher.read_file(str(spec))


# ---------------------------------------------------------------------------
# Ref cache
# ---------------------------------------------------------------------------


class TestCachedFetch:
    @pytest.fixture()
    def cache(self, tmp_path: Path):
        c = RefCache(tmp_path / "cache", CacheConfig(enabled=True, ttl_seconds=60))
        yield c
        c.close()

    def test_second_fetch_served_from_cache(self, mock_fetcher, cache: RefCache) -> None:
        fetcher = mock_fetcher({URL: (200, "Pet: {}\n")}, cache=cache)
        first = fetcher.fetch(URL, use_cache=True)
        second = fetcher.fetch(URL, use_cache=True)
        assert first.text == second.text == "Pet: {}\n"
        assert fetcher.requested == [URL]

    def test_cache_hit_keeps_redirect_target(self, mock_fetcher, cache: RefCache) -> None:
        moved = "https://cdn.example.com/schemas/pet.yaml"

        def _handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == URL:
                return httpx.Response(302, headers={"location": moved})
            return httpx.Response(200, text="Pet: {}\n")

        fetcher = mock_fetcher(_handler, cache=cache)
        fetcher.fetch(URL, use_cache=True)
        assert fetcher.fetch(URL, use_cache=True).location == moved
        assert fetcher.requested == [URL, moved]

    def test_cache_not_used_unless_asked(self, mock_fetcher, cache: RefCache) -> None:
        fetcher = mock_fetcher({URL: (200, "Pet: {}\n")}, cache=cache)
        fetcher.fetch(URL)
        fetcher.fetch(URL)
        assert fetcher.requested == [URL, URL]
        assert cache.get(URL) is None

    def test_failures_not_cached(self, mock_fetcher, cache: RefCache) -> None:
        fetcher = mock_fetcher({URL: (500, "boom", "text/plain")}, cache=cache)
        with pytest.raises(FetchError):
            fetcher.fetch(URL, use_cache=True)
        assert cache.get(URL) is None


# ---------------------------------------------------------------------------
# Location helpers
# ---------------------------------------------------------------------------


class TestLocations:
    @pytest.mark.parametrize(
        "location,expected",
        [
            ("https://x.test/a.yaml", True),
            ("http://x.test/a.yaml", True),
            ("ftp://x.test/a.yaml", False),
            ("./a.yaml", False),
        ],
    )
    def test_is_url(self, location: str, expected: bool) -> None:
        assert is_url(location) is expected

    def test_normalize_url_drops_fragment(self) -> None:
        assert normalize_location("https://x.test/a.yaml#/Pet") == "https://x.test/a.yaml"

    def test_normalize_file_is_absolute(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert normalize_location("a.yaml") == str((tmp_path / "a.yaml").resolve())
