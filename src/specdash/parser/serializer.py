"""Canonical text renditions of a document tree.

Every imported document is normalised to one YAML rendition (stored as the
record's raw content and shown to the user) and one JSON rendition (stored
as the record's content), whatever format or formatting it arrived in.

YAML output keeps insertion order, uses block style and writes non-ASCII
characters as-is.  Strings that would otherwise load as another type
(``"200"``, ``"2024-01-01"``, ``"true"``, ``"1e5"``) are quoted by the dumper, so
parsing the output with :func:`~specdash.parser.detector.parse_document`
gives back a deep-equal tree.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import yaml

from specdash.models import ParsedDocument
from specdash.parser.detector import FLOAT_TAG, JSON_FLOAT


@dataclass(frozen=True)
class SerializedDocument:
    yaml: str
    json: str


class _CanonicalDumper(yaml.SafeDumper):
    """SafeDumper that quotes every string the loader would read as a float."""


_CanonicalDumper.yaml_implicit_resolvers = {
    first: list(resolvers) for first, resolvers in yaml.SafeDumper.yaml_implicit_resolvers.items()
}
for _first in "-+.0123456789":
    _CanonicalDumper.yaml_implicit_resolvers.setdefault(_first, []).insert(
        0, (FLOAT_TAG, JSON_FLOAT)
    )


def to_yaml(tree: Any) -> str:
    return yaml.dump(
        tree,
        Dumper=_CanonicalDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def to_json(tree: Any, indent: int | None = None) -> str:
    """Render *tree* as JSON. Compact unless *indent* is given."""
    return json.dumps(tree, ensure_ascii=False, indent=indent)


def serialize(document: ParsedDocument) -> SerializedDocument:
    """Return both canonical renditions of *document*."""
    return SerializedDocument(yaml=to_yaml(document.tree), json=to_json(document.tree))
