"""Canonical Pydantic models shared across all specdash modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`FetchConfig`, :class:`CacheConfig`, :class:`OutputConfig`,
    :class:`StorageConfig`, and :class:`GlobalConfig`.

**Domain models** -- produced and consumed by the ingestion pipeline:
    :class:`SpecFormat`, :class:`SpecVersion`, :class:`HTTPMethod`,
    :class:`UsageKind`, :class:`RawSpecInput`, :class:`ParsedDocument`,
    :class:`OperationUsage`, :class:`SchemaUsage`, :class:`StoredSpec`, and
    :class:`ImportResult`.

The document tree itself stays a plain ``dict``: OpenAPI documents are
recursive and differ between v2 and v3, so only the wrapper is typed and the
walkers in :mod:`specdash.parser.resolver` and
:mod:`specdash.graph.dependencies` operate on generic nodes.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class FetchConfig(BaseModel):
    """HTTP settings for retrieving documents and external ``$ref`` targets."""

    timeout_seconds: float = Field(
        default=30.0, description="Per-request timeout in seconds"
    )
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    user_agent: str = Field(default="specdash", description="User-Agent header value")


class CacheConfig(BaseModel):
    """Disk cache settings for external ``$ref`` fetches."""

    enabled: bool = Field(default=True, description="Cache external $ref documents")
    ttl_seconds: int = Field(default=300, description="Cache TTL in seconds")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class StorageConfig(BaseModel):
    """Where stored specifications live.

    ``directory`` defaults to ``<data dir>/specs`` when unset.
    """

    directory: Optional[str] = Field(
        default=None, description="Directory holding stored specs"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/specdash/config.json``.

    Loaded and saved by :func:`~specdash.config.load_global_config` and
    :func:`~specdash.config.save_global_config`. See
    :func:`~specdash.config.resolve_config` for the precedence chain.
    """

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


# --- Document model ---


class SpecFormat(str, enum.Enum):
    """Serialisation format a document was parsed from."""

    JSON = "json"
    YAML = "yaml"


class SpecVersion(str, enum.Enum):
    """Major OpenAPI family, selected by the top-level discriminator key.

    The family decides which schema container and which ``$ref`` prefix are
    valid for a document.
    """

    SWAGGER_2 = "swagger"
    OPENAPI_3 = "openapi"

    @property
    def ref_prefix(self) -> str:
        """The ``$ref`` prefix addressing the schema container."""
        if self is SpecVersion.SWAGGER_2:
            return "#/definitions/"
        return "#/components/schemas/"

    @property
    def schema_container_path(self) -> tuple[str, ...]:
        """Key path from the document root to the schema container."""
        if self is SpecVersion.SWAGGER_2:
            return ("definitions",)
        return ("components", "schemas")


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised as operations inside an OpenAPI path item."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class UsageKind(str, enum.Enum):
    """Where an operation uses a schema."""

    REQUEST_BODY = "requestBody"
    RESPONSE = "response"


class RawSpecInput(BaseModel):
    """One import request: a URL, or file text plus its name.

    Created per import and discarded once the text is parsed.
    """

    kind: str = Field(description="'url' or 'file'")
    source: str = Field(description="URL, or the file name / path")
    text: Optional[str] = None


class ParsedDocument(BaseModel):
    """An OpenAPI document tree tagged with its format and version family.

    ``tree`` mirrors the JSON/YAML structure. Exactly one of ``swagger`` and
    ``openapi`` is present at its root; :attr:`version` records which.
    """

    tree: dict[str, Any]
    format: SpecFormat
    version: SpecVersion
    version_string: str
    origin: Optional[str] = Field(
        default=None, description="URL or absolute path the document came from"
    )

    @property
    def ref_prefix(self) -> str:
        return self.version.ref_prefix

    @property
    def schemas(self) -> dict[str, Any]:
        """The schema container mapping (empty if the document has none)."""
        node: Any = self.tree
        for key in self.version.schema_container_path:
            if not isinstance(node, dict):
                return {}
            node = node.get(key)
        return node if isinstance(node, dict) else {}

    @property
    def title(self) -> str:
        info = self.tree.get("info")
        if isinstance(info, dict) and info.get("title"):
            return str(info["title"])
        return ""

    def with_tree(self, tree: dict[str, Any]) -> ParsedDocument:
        """Return a copy of this document wrapping *tree*."""
        return self.model_copy(update={"tree": tree})


# --- Dependency graph ---


class OperationUsage(BaseModel):
    """One operation (path + method) that uses a schema in a body or response."""

    path: str
    method: str
    type: UsageKind


class SchemaUsage(BaseModel):
    """Usage of one named schema across operations and other schemas.

    Entries exist for every schema in the container, so empty lists mean
    "defined but not used".
    """

    model_config = ConfigDict(populate_by_name=True)

    operations: list[OperationUsage] = Field(default_factory=list)
    referenced_by_schemas: list[str] = Field(
        default_factory=list, alias="referencedBySchemas"
    )

    @property
    def is_used(self) -> bool:
        return bool(self.operations or self.referenced_by_schemas)


# --- Persistence ---


class StoredSpec(BaseModel):
    """A persisted specification record.

    ``content`` is the JSON rendition of the bundled document and
    ``raw_content`` its canonical YAML text. Records are never updated in
    place; re-importing creates a new one.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    content: str
    raw_content: str = Field(alias="rawContent")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ImportResult(BaseModel):
    """Outcome of a successful import run."""

    name: str
    document: ParsedDocument
    raw_spec_text: str = Field(description="Canonical YAML rendition")
    content: str = Field(description="JSON rendition")
    stored: Optional[StoredSpec] = None
