"""OpenAPI document ingestion -- fetch, parse, bundle, validate, serialize.

This sub-package turns raw text (a URL, a local file, or an uploaded blob)
into a bundled, validated :class:`~specdash.models.ParsedDocument` plus its
canonical YAML and JSON renditions.

Typical usage::

    from specdash.parser import bundle, parse_document, serialize, validate_document

    document = parse_document(text, prefer="yaml", origin="/specs/petstore.yaml")
    document = validate_document(bundle(document, loader))
    rendered = serialize(document)

Sub-modules:

* :mod:`~specdash.parser.fetcher` -- HTTP and file retrieval with error
  classification.
* :mod:`~specdash.parser.detector` -- YAML/JSON detection and version
  discrimination.
* :mod:`~specdash.parser.resolver` -- ``$ref`` bundling, dereferencing and
  cycle detection.
* :mod:`~specdash.parser.validator` -- OpenAPI meta-schema validation.
* :mod:`~specdash.parser.serializer` -- canonical YAML/JSON output.

:class:`~specdash.importer.SpecImporter` wires these stages together.
"""

from specdash.parser.detector import (
    detect_version,
    infer_preference,
    parse_document,
    parse_fragment,
)
from specdash.parser.fetcher import SpecFetcher
from specdash.parser.resolver import bundle, dereference, iter_refs, resolve_pointer
from specdash.parser.serializer import SerializedDocument, serialize, to_json, to_yaml
from specdash.parser.validator import validate_document

__all__ = [
    "SerializedDocument",
    "SpecFetcher",
    "bundle",
    "dereference",
    "detect_version",
    "infer_preference",
    "iter_refs",
    "parse_document",
    "parse_fragment",
    "resolve_pointer",
    "serialize",
    "to_json",
    "to_yaml",
    "validate_document",
]
