"""Import pipeline: fetch or read, parse, bundle, validate, serialize, persist.

:class:`SpecImporter` runs every stage in order and stops at the first
failure, so a document is either fully imported or not at all.  The store is
written exactly once, after all stages have succeeded.

Entry points:

* :meth:`SpecImporter.fetch_url` -- fetch and normalise a remote document
  without storing it.  :func:`fetch_spec_envelope` wraps it in the
  ``{"specObject", "rawSpecText"}`` / ``{"error"}`` envelope.
* :meth:`SpecImporter.import_url`, :meth:`SpecImporter.import_file`,
  :meth:`SpecImporter.import_text` -- the same pipeline followed by a store
  write.

Remote documents are always parsed YAML-first.  Files and uploaded text are
parsed YAML-first for ``.yaml``/``.yml`` names and JSON-first otherwise.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urlsplit

from specdash.cache import RefCache
from specdash.config import get_cache_dir
from specdash.exceptions import SpecdashError, SpecParseError
from specdash.models import GlobalConfig, ImportResult, RawSpecInput, SpecFormat
from specdash.output import debug
from specdash.parser.detector import infer_preference, parse_document, parse_fragment
from specdash.parser.fetcher import SpecFetcher, is_url
from specdash.parser.resolver import bundle
from specdash.parser.serializer import serialize
from specdash.parser.validator import validate_document
from specdash.storage import SpecStore

DEFAULT_URL_SPEC_NAME = "openapi-spec-from-url"


def name_from_url(url: str) -> str:
    """Record name for a URL import: its last path segment."""
    segment = urlsplit(url).path.rsplit("/", 1)[-1]
    return unquote(segment) or DEFAULT_URL_SPEC_NAME


class SpecImporter:
    """Runs the import pipeline against one configuration.

    Args:
        config: Effective configuration. Defaults to built-in values.
        fetcher: Fetcher to use; built from ``config.fetch`` (with a ref
            cache when ``config.cache.enabled``) when omitted.
        store: Store to persist into; created from *config* on first save
            when omitted.

    Example::

        with SpecImporter(resolve_config()) as importer:
            result = importer.import_file("openapi.yaml")
            print(result.stored.id)
    """

    def __init__(
        self,
        config: Optional[GlobalConfig] = None,
        fetcher: Optional[SpecFetcher] = None,
        store: Optional[SpecStore] = None,
    ) -> None:
        self._config = config or GlobalConfig()
        self._cache: Optional[RefCache] = None
        self._owns_fetcher = fetcher is None
        if fetcher is None:
            if self._config.cache.enabled:
                self._cache = RefCache(get_cache_dir(), self._config.cache)
            fetcher = SpecFetcher(self._config.fetch, cache=self._cache)
        self._fetcher = fetcher
        self._store = store

    def __enter__(self) -> SpecImporter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_fetcher:
            self._fetcher.close()
        if self._cache is not None:
            self._cache.close()

    @property
    def store(self) -> SpecStore:
        if self._store is None:
            self._store = SpecStore(config=self._config)
        return self._store

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def fetch_url(self, url: str) -> ImportResult:
        """Fetch *url* and run the pipeline up to serialization (no store write).

        Raises:
            FetchError, SpecParseError, BrokenReferenceError,
            SpecValidationError: From the failing stage.
        """
        source = RawSpecInput(kind="url", source=url)
        fetched = self._fetcher.fetch_url(source.source)
        source.text = fetched.text
        return self._process(source, SpecFormat.YAML.value, fetched.location, name_from_url(url))

    def import_url(self, url: str, name: Optional[str] = None, save: bool = True) -> ImportResult:
        """Import a remote document, storing it under *name* (default: last URL segment)."""
        result = self.fetch_url(url)
        if name:
            result = result.model_copy(update={"name": name})
        return self._persist(result) if save else result

    def import_file(
        self, path: str | Path, save: bool = True, name: Optional[str] = None
    ) -> ImportResult:
        """Import a local file, stored under *name* (default: the file name)."""
        fetched = self._fetcher.read_file(str(path))
        result = self.import_text(
            fetched.text, Path(fetched.location).name, origin=fetched.location, save=False
        )
        if name:
            result = result.model_copy(update={"name": name})
        return self._persist(result) if save else result

    def import_text(
        self,
        text: str,
        filename: str,
        origin: Optional[str] = None,
        save: bool = True,
    ) -> ImportResult:
        """Import uploaded text whose format is inferred from *filename*.

        Args:
            text: Document text.
            filename: Original file name, used for format inference and as
                the record name.
            origin: Location relative external ``$ref`` values resolve
                against (the working directory when ``None``).
            save: Persist the result.
        """
        source = RawSpecInput(kind="file", source=filename, text=text)
        result = self._process(source, infer_preference(filename), origin, filename)
        return self._persist(result) if save else result

    def load_external(self, location: str) -> Any:
        """Load and parse an external ``$ref`` document (ref cache enabled)."""
        fetched = self._fetcher.fetch(location, use_cache=True)
        prefer = SpecFormat.JSON.value if location.lower().endswith(".json") else SpecFormat.YAML.value
        try:
            return parse_fragment(fetched.text, prefer=prefer)
        except SpecParseError:
            if is_url(location):
                self._fetcher.discard_cached(location)
            raise

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _process(
        self,
        source: RawSpecInput,
        prefer: str,
        origin: Optional[str],
        name: str,
    ) -> ImportResult:
        debug(f"Parsing {source.source} ({prefer} first)")
        document = parse_document(source.text or "", prefer=prefer, origin=origin)
        debug(f"Detected {document.format.value.upper()} {document.version.value} {document.version_string}")

        document = bundle(document, self.load_external)
        document = validate_document(document)
        rendered = serialize(document)
        return ImportResult(
            name=name,
            document=document,
            raw_spec_text=rendered.yaml,
            content=rendered.json,
        )

    def _persist(self, result: ImportResult) -> ImportResult:
        stored = self.store.save(result.name, result.content, result.raw_spec_text)
        return result.model_copy(update={"stored": stored})


def fetch_spec_envelope(importer: SpecImporter, url: str) -> dict[str, Any]:
    """Fetch *url* and wrap the outcome for a remote caller.

    Returns:
        ``{"specObject": <tree>, "rawSpecText": <canonical YAML>}`` on
        success, ``{"error": <message>}`` when any stage fails.
    """
    try:
        result = importer.fetch_url(url)
    except SpecdashError as exc:
        debug(f"Fetch of {url} failed: {exc}")
        return {"error": str(exc)}
    return {"specObject": result.document.tree, "rawSpecText": result.raw_spec_text}
