"""The "current document" of one caller, passed explicitly.

A :class:`SpecSession` holds the document a user is working with, its
canonical YAML, its record name and id, the last import error, and a
loading flag.  Callers own their session and hand it to whatever needs the
document; there is no module-level current document, so several sessions
can coexist in one process.

Setting a document clears any error, and setting an error clears the
document, so a session never holds both.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from specdash.exceptions import InvalidUsageError, StorageError
from specdash.graph import build_dependency_graph
from specdash.models import ImportResult, ParsedDocument, SchemaUsage, SpecFormat, StoredSpec
from specdash.parser.detector import detect_version


@dataclass
class SpecSession:
    document: Optional[ParsedDocument] = None
    raw_spec: Optional[str] = None
    file_name: Optional[str] = None
    spec_id: Optional[str] = None
    error: Optional[str] = None
    is_loading: bool = False

    def set_spec(
        self,
        document: ParsedDocument,
        raw_spec: str,
        file_name: str,
        spec_id: Optional[str] = None,
    ) -> None:
        self.document = document
        self.raw_spec = raw_spec
        self.file_name = file_name
        self.spec_id = spec_id
        self.error = None
        self.is_loading = False

    def set_result(self, result: ImportResult) -> None:
        """Make a finished import the current document."""
        spec_id = result.stored.id if result.stored is not None else None
        self.set_spec(result.document, result.raw_spec_text, result.name, spec_id)

    def set_error(self, error: Optional[str]) -> None:
        self.document = None
        self.raw_spec = None
        self.file_name = None
        self.spec_id = None
        self.error = error
        self.is_loading = False

    def set_loading(self, loading: bool) -> None:
        self.is_loading = loading

    def clear(self) -> None:
        self.set_error(None)

    @classmethod
    def from_stored(cls, record: StoredSpec) -> SpecSession:
        """Open a stored record.

        The record's JSON content is parsed as-is; it was validated when it
        was imported and is not validated again.

        Raises:
            StorageError: If the stored content is not a JSON object.
            SpecParseError: If it lacks a usable version discriminator.
        """
        try:
            tree = json.loads(record.content)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored specification '{record.id}' has corrupt content: {exc}") from exc
        if not isinstance(tree, dict):
            raise StorageError(f"Stored specification '{record.id}' is not a JSON object")

        version, version_string = detect_version(tree)
        document = ParsedDocument(
            tree=tree,
            format=SpecFormat.JSON,
            version=version,
            version_string=version_string,
        )
        session = cls()
        session.set_spec(document, record.raw_content, record.name, record.id)
        return session

    def require_document(self) -> ParsedDocument:
        """Return the current document.

        Raises:
            InvalidUsageError: If no document is loaded, naming the last
                error when there is one.
        """
        if self.document is None:
            if self.error:
                raise InvalidUsageError(f"Error loading specification: {self.error}")
            raise InvalidUsageError(
                "No API specification loaded. Import one first with 'specdash import'."
            )
        return self.document

    def dependency_graph(self) -> dict[str, SchemaUsage]:
        """Build the schema usage map of the current document."""
        return build_dependency_graph(self.require_document().tree)
