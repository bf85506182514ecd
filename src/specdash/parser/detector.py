"""Detect whether text is YAML or JSON and parse it into a document tree.

OpenAPI documents arrive as either format, and YAML is a superset of JSON, so
detection is by attempt: parse with the preferred format first, check that
the result is an OpenAPI object (a mapping carrying a ``swagger`` or
``openapi`` key), and fall back to the other format otherwise.  When both
attempts fail the error names both underlying parser messages.

YAML is loaded with a JSON-compatible safe loader: mapping keys stay strings
(``200:`` becomes ``"200"``) and timestamps stay strings, so the JSON and the
YAML rendition of one document parse to deep-equal trees.

Public functions:

* :func:`parse_document` -- text to :class:`~specdash.models.ParsedDocument`.
* :func:`parse_fragment` -- lenient parse for external ``$ref`` targets.
* :func:`detect_version` -- read the version discriminator of a tree.
* :func:`infer_preference` -- pick the first format to try from a file name.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Optional

import yaml
from yaml.constructor import ConstructorError

from specdash.exceptions import SpecParseError, UnsupportedSpecError
from specdash.models import ParsedDocument, SpecFormat, SpecVersion

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"
FLOAT_TAG = "tag:yaml.org,2002:float"

# YAML 1.2 / JSON floats: the exponent needs no dot and its sign is optional.
JSON_FLOAT = re.compile(
    r"""^(?:[-+]?[0-9][0-9_]*\.[0-9_]*(?:[eE][-+]?[0-9]+)?
    |[-+]?\.[0-9][0-9_]*(?:[eE][-+]?[0-9]+)?
    |[-+]?[0-9][0-9_]*[eE][-+]?[0-9]+
    |[-+]?\.(?:inf|Inf|INF)
    |\.(?:nan|NaN|NAN))$""",
    re.X,
)


class _JSONCompatibleLoader(yaml.SafeLoader):
    """SafeLoader whose output survives a ``json.dumps`` round trip unchanged."""

    def construct_mapping(self, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
        if not isinstance(node, yaml.MappingNode):
            raise ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )
        self.flatten_mapping(node)
        mapping: dict[str, Any] = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    "found a non-scalar key",
                    key_node.start_mark,
                )
            mapping[key_node.value] = self.construct_object(value_node, deep=deep)
        return mapping


_JSONCompatibleLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp) for tag, regexp in resolvers if tag not in (_TIMESTAMP_TAG, FLOAT_TAG)
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
for _first in "-+.0123456789":
    _JSONCompatibleLoader.yaml_implicit_resolvers.setdefault(_first, []).insert(
        0, (FLOAT_TAG, JSON_FLOAT)
    )


def load_yaml(text: str) -> Any:
    """Parse YAML text with the JSON-compatible loader."""
    return yaml.load(text, Loader=_JSONCompatibleLoader)  # noqa: S506


def load_json(text: str) -> Any:
    return json.loads(text)


_LOADERS: dict[SpecFormat, Callable[[str], Any]] = {
    SpecFormat.YAML: load_yaml,
    SpecFormat.JSON: load_json,
}


def _attempt_order(prefer: str) -> tuple[SpecFormat, SpecFormat]:
    if prefer == SpecFormat.JSON.value:
        return SpecFormat.JSON, SpecFormat.YAML
    return SpecFormat.YAML, SpecFormat.JSON


def infer_preference(filename: str) -> str:
    """Return ``"yaml"`` for ``.yaml``/``.yml`` file names, ``"json"`` otherwise."""
    lowered = filename.lower()
    if lowered.endswith((".yaml", ".yml")):
        return SpecFormat.YAML.value
    return SpecFormat.JSON.value


def _openapi_object_problem(tree: Any, fmt: SpecFormat) -> Optional[str]:
    """Describe why *tree* is not an OpenAPI object, or return ``None``."""
    label = fmt.value.upper()
    if not isinstance(tree, dict):
        got = "empty document" if tree is None else type(tree).__name__
        return f"Parsed {label} is not a valid OpenAPI object (got {got})"
    if "swagger" not in tree and "openapi" not in tree:
        return f"Parsed {label} object has neither a 'swagger' nor an 'openapi' key"
    return None


def detect_version(tree: dict[str, Any]) -> tuple[SpecVersion, str]:
    """Return the version family and version string declared by *tree*.

    Raises:
        SpecParseError: If both ``swagger`` and ``openapi`` are present.
        UnsupportedSpecError: If neither key is present, or its value is not
            a 2.x / 3.x version.
    """
    has_swagger = "swagger" in tree
    has_openapi = "openapi" in tree
    if has_swagger and has_openapi:
        raise SpecParseError(
            "Document declares both 'swagger' and 'openapi'; mixing versions is invalid"
        )
    if has_swagger:
        version_str = str(tree["swagger"])
        if version_str.startswith("2."):
            return SpecVersion.SWAGGER_2, version_str
        raise UnsupportedSpecError(
            f"Unsupported specification format: swagger {version_str}"
        )
    if has_openapi:
        version_str = str(tree["openapi"])
        if version_str.startswith("3."):
            return SpecVersion.OPENAPI_3, version_str
        raise UnsupportedSpecError(
            f"Unsupported specification format: openapi {version_str}"
        )
    raise UnsupportedSpecError(
        "Unsupported specification format: no 'swagger' or 'openapi' version key"
    )


def parse_document(
    text: str,
    prefer: str = SpecFormat.YAML.value,
    origin: Optional[str] = None,
) -> ParsedDocument:
    """Parse *text* into a :class:`~specdash.models.ParsedDocument`.

    Args:
        text: Raw document text.
        prefer: ``"yaml"`` (default) or ``"json"``; the format tried first.
        origin: URL or path the text came from, kept for resolving
            relative external ``$ref`` pointers.

    Raises:
        SpecParseError: If neither format yields an OpenAPI object. The
            message carries both the YAML and the JSON error.
        UnsupportedSpecError: If the version discriminator is unrecognised.
    """
    errors: dict[SpecFormat, str] = {}
    for fmt in _attempt_order(prefer):
        try:
            tree = _LOADERS[fmt](text)
        except (yaml.YAMLError, ValueError) as exc:
            errors[fmt] = str(exc)
            continue
        problem = _openapi_object_problem(tree, fmt)
        if problem is not None:
            errors[fmt] = problem
            continue
        version, version_string = detect_version(tree)
        return ParsedDocument(
            tree=tree,
            format=fmt,
            version=version,
            version_string=version_string,
            origin=origin,
        )

    raise SpecParseError(
        "Failed to parse specification. Content is not valid YAML or JSON. "
        f"YAML error: {errors[SpecFormat.YAML]}, JSON error: {errors[SpecFormat.JSON]}"
    )


def parse_fragment(text: str, prefer: str = SpecFormat.YAML.value) -> Any:
    """Parse the text of an external ``$ref`` document.

    Unlike :func:`parse_document` any YAML/JSON value is accepted, since a
    referenced file often holds a bare schema or a map of schemas.

    Raises:
        SpecParseError: If the text is neither YAML nor JSON.
    """
    errors: dict[SpecFormat, str] = {}
    for fmt in _attempt_order(prefer):
        try:
            return _LOADERS[fmt](text)
        except (yaml.YAMLError, ValueError) as exc:
            errors[fmt] = str(exc)
    raise SpecParseError(
        "Content is not valid YAML or JSON. "
        f"YAML error: {errors[SpecFormat.YAML]}, JSON error: {errors[SpecFormat.JSON]}"
    )
