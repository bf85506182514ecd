"""Retrieve document text from an HTTP(S) URL or a local file.

:class:`SpecFetcher` is the single I/O boundary of the ingestion pipeline.
It is used for the primary document and for every external ``$ref``
document met during bundling.  Every HTTP request carries the configured
timeout, so an unresponsive server cannot hang an import.

Failures raise :class:`~specdash.exceptions.FetchError` with a message that
says which kind of failure happened:

* network failures (DNS, refused connection, timeout) are prefixed with
  ``Network error:``;
* non-2xx responses use the server's own ``message`` / ``error`` field for
  JSON bodies, call out HTML pages (usually a login wall or a wrong URL),
  show a short preview of other text, and fall back to the status line for
  empty bodies.

External ``$ref`` fetches may be served from a
:class:`~specdash.cache.RefCache`; the primary document never is.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional
from urllib.parse import urldefrag

import httpx

from specdash.exceptions import FetchError
from specdash.models import FetchConfig
from specdash.output import debug

if TYPE_CHECKING:
    from specdash.cache import RefCache

_PREVIEW_CHARS = 100


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def normalize_location(location: str) -> str:
    """Canonical form of a document location: no fragment, absolute file paths."""
    if is_url(location):
        return urldefrag(location)[0]
    return str(Path(location).expanduser().resolve())


@dataclass
class FetchedText:
    """Text of a retrieved document plus the hints it came with."""

    location: str
    text: str
    content_type: str = ""


class SpecFetcher:
    """Blocking fetcher for URLs and local files.

    Wraps an :class:`httpx.Client`. Use it as a context manager, or call
    :meth:`close`, so the connection pool is released.

    Args:
        config: Timeout, redirect, and TLS settings.
        cache: Optional cache consulted for external ``$ref`` fetches.
        client: Pre-built client (tests inject one with an
            :class:`httpx.MockTransport`). The fetcher does not close a
            client it did not create.

    Example::

        with SpecFetcher(FetchConfig(timeout_seconds=10)) as fetcher:
            fetched = fetcher.fetch("https://example.com/openapi.yaml")
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        cache: Optional[RefCache] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or FetchConfig()
        self._cache = cache
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self._config.timeout_seconds,
            follow_redirects=self._config.follow_redirects,
            verify=self._config.verify_ssl,
            headers={"User-Agent": self._config.user_agent},
        )

    def __enter__(self) -> SpecFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def fetch(self, location: str, use_cache: bool = False) -> FetchedText:
        """Retrieve *location* (URL or file path).

        Args:
            location: An ``http(s)://`` URL or a file path.
            use_cache: Consult and fill the ref cache (URLs only).

        Raises:
            FetchError: If the document cannot be retrieved.
        """
        if is_url(location):
            return self.fetch_url(location, use_cache=use_cache)
        return self.read_file(location)

    def fetch_url(self, url: str, use_cache: bool = False) -> FetchedText:
        """GET *url* and return its body text.

        Raises:
            FetchError: On network failure or a non-2xx status.
        """
        if use_cache and self._cache is not None:
            hit = self._cache.get(url)
            if hit is not None:
                debug(f"Cache hit for {url}")
                return FetchedText(
                    hit.get("location", url), hit["body"], hit.get("content_type", "")
                )

        debug(f"GET {url}")
        try:
            response = self._client.get(url)
        except httpx.InvalidURL as exc:
            raise FetchError(f"Invalid URL {url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise FetchError(
                f"Network error: Timed out after {self._config.timeout_seconds}s "
                f"fetching {url}. Original detail: {exc}"
            ) from exc
        except httpx.RequestError as exc:
            raise FetchError(
                "Network error: Could not resolve or connect to the host. "
                "Please check the URL and your network connection. "
                f"Original detail: {exc}"
            ) from exc

        body = response.text
        content_type = response.headers.get("content-type", "")
        if not response.is_success:
            raise FetchError(
                _describe_http_failure(response, body), status_code=response.status_code
            )

        location = str(response.url)
        if location != url:
            debug(f"Redirected from {url} to {location}")
        debug(f"Fetched {len(body)} characters from {location} ({response.status_code})")
        if use_cache and self._cache is not None:
            self._cache.set(
                url,
                {
                    "status_code": response.status_code,
                    "content_type": content_type,
                    "body": body,
                    "location": location,
                },
            )
        return FetchedText(location, body, content_type)

    def discard_cached(self, url: str) -> None:
        """Drop *url* from the ref cache so the next fetch goes to the network."""
        if self._cache is not None:
            debug(f"Dropping cached copy of {url}")
            self._cache.invalidate(url)

    def read_file(self, path: str) -> FetchedText:
        """Read a local file as UTF-8 text.

        Raises:
            FetchError: If the file is missing or unreadable.
        """
        file_path = Path(path).expanduser()
        if not file_path.is_file():
            raise FetchError(f"Spec file not found: {path}")
        debug(f"Reading {file_path}")
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FetchError(f"Failed to read spec file {path}: {exc}") from exc
        return FetchedText(str(file_path.resolve()), text)


def _describe_http_failure(response: httpx.Response, body: str) -> str:
    """Build the user-facing message for a non-2xx response."""
    status = response.status_code
    content_type = response.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            payload = json.loads(body)
        except ValueError:
            return (
                f"External server claimed JSON response for error {status}, "
                "but parsing failed."
            )
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return f"Received status {status} with non-standard JSON error from external server."

    if "<!doctype html>" in body.lower():
        return (
            "Failed to fetch. External server returned an HTML page for status "
            f"{status}. This often indicates an authentication issue or a "
            "misconfigured URL."
        )

    if body:
        return (
            "Failed to fetch. External server returned unexpected non-JSON, "
            f"non-HTML content for status {status}. Preview (first "
            f"{_PREVIEW_CHARS} chars): {body[:_PREVIEW_CHARS]}"
        )

    return f"Failed to fetch spec from URL: {status} {response.reason_phrase}"
