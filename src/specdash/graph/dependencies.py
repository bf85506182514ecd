"""Build the schema usage map of an OpenAPI document.

For every named schema in the document's schema container
(``components.schemas`` for OpenAPI 3, ``definitions`` for Swagger 2) the
map records:

* ``operations`` -- each ``(path, method, requestBody|response)`` whose
  request body or response schema references it, in path then method order;
* ``referenced_by_schemas`` -- the other container schemas whose body
  references it, in container order.

Every container key gets an entry, even when nothing uses it, so callers can
report "defined but not used" schemas.  Only ``$ref`` values carrying the
document's own prefix count: a Swagger 2 document's
``#/components/schemas/...`` reference is ignored, and vice versa.

Path-item keys outside the eight HTTP methods (``parameters``, ``summary``,
``servers``, vendor extensions) are not operations and are skipped.  A
request body or response that is itself a ``$ref`` (to
``components/requestBodies``, ``components/responses`` or Swagger 2
``responses``/``parameters``) is followed one level.
"""

from __future__ import annotations

from typing import Any, Iterator

from specdash.models import HTTPMethod, OperationUsage, SchemaUsage, SpecVersion, UsageKind
from specdash.parser.detector import detect_version
from specdash.parser.resolver import is_internal, iter_refs, resolve_pointer, unescape_segment

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)


def build_dependency_graph(tree: dict[str, Any]) -> dict[str, SchemaUsage]:
    """Return the :class:`~specdash.models.SchemaUsage` of every container schema.

    Args:
        tree: A parsed (preferably bundled and validated) document tree.

    Raises:
        UnsupportedSpecError: If *tree* has no recognised ``swagger`` /
            ``openapi`` discriminator.
    """
    version, _ = detect_version(tree)
    prefix = version.ref_prefix
    container = _schema_container(tree, version)
    graph: dict[str, SchemaUsage] = {name: SchemaUsage() for name in container}

    for name, body in container.items():
        for target in _referenced_schemas(body, prefix):
            usage = graph.get(target)
            if usage is not None and name not in usage.referenced_by_schemas:
                usage.referenced_by_schemas.append(name)

    for path, method, kind, schema in _operation_schemas(tree, version):
        for target in _referenced_schemas(schema, prefix):
            usage = graph.get(target)
            if usage is None:
                continue
            entry = OperationUsage(path=path, method=method, type=kind)
            if entry not in usage.operations:
                usage.operations.append(entry)

    return graph


def dependency_view(graph: dict[str, SchemaUsage]) -> dict[str, dict[str, Any]]:
    """JSON-ready form of *graph* with ``operations`` / ``referencedBySchemas`` keys."""
    return {
        name: usage.model_dump(by_alias=True, mode="json") for name, usage in graph.items()
    }


def unused_schemas(graph: dict[str, SchemaUsage]) -> list[str]:
    """Names of schemas no operation and no other schema references."""
    return [name for name, usage in graph.items() if not usage.is_used]


# --- Helpers ---


def _schema_container(tree: dict[str, Any], version: SpecVersion) -> dict[str, Any]:
    node: Any = tree
    for key in version.schema_container_path:
        if not isinstance(node, dict):
            return {}
        node = node.get(key)
    return node if isinstance(node, dict) else {}


def _referenced_schemas(node: Any, prefix: str) -> Iterator[str]:
    """Yield the container schema name of every ``$ref`` under *node* using *prefix*."""
    for ref in iter_refs(node):
        if ref.startswith(prefix):
            yield unescape_segment(ref[len(prefix):].split("/", 1)[0])


def _follow(tree: dict[str, Any], node: Any) -> Any:
    """Replace a single internal ``$ref`` object by its target."""
    if isinstance(node, dict) and isinstance(node.get("$ref"), str) and is_internal(node["$ref"]):
        return resolve_pointer(tree, node["$ref"][1:], node["$ref"])
    return node


def _content_schemas(node: Any) -> Iterator[Any]:
    """Yield the ``schema`` of every media type in an OpenAPI 3 ``content`` map."""
    if not isinstance(node, dict):
        return
    content = node.get("content")
    if not isinstance(content, dict):
        return
    for media_type in content.values():
        if isinstance(media_type, dict) and "schema" in media_type:
            yield media_type["schema"]


def _responses(tree: dict[str, Any], operation: dict[str, Any]) -> Iterator[dict[str, Any]]:
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return
    for response in responses.values():
        response = _follow(tree, response)
        if isinstance(response, dict):
            yield response


def _operation_schemas(
    tree: dict[str, Any], version: SpecVersion
) -> Iterator[tuple[str, str, UsageKind, Any]]:
    """Yield ``(path, method, kind, schema)`` for every body and response schema."""
    paths = tree.get("paths")
    if not isinstance(paths, dict):
        return

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for key, operation in path_item.items():
            method = str(key).lower()
            if method not in _HTTP_METHODS or not isinstance(operation, dict):
                continue

            if version is SpecVersion.SWAGGER_2:
                for parameter in operation.get("parameters") or []:
                    parameter = _follow(tree, parameter)
                    if (
                        isinstance(parameter, dict)
                        and parameter.get("in") == "body"
                        and "schema" in parameter
                    ):
                        yield path, method, UsageKind.REQUEST_BODY, parameter["schema"]
                for response in _responses(tree, operation):
                    if "schema" in response:
                        yield path, method, UsageKind.RESPONSE, response["schema"]
            else:
                request_body = _follow(tree, operation.get("requestBody"))
                for schema in _content_schemas(request_body):
                    yield path, method, UsageKind.REQUEST_BODY, schema
                for response in _responses(tree, operation):
                    for schema in _content_schemas(response):
                        yield path, method, UsageKind.RESPONSE, schema
