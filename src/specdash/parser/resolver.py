"""Resolve ``$ref`` JSON Reference pointers in OpenAPI documents.

Two operations are offered:

* :func:`bundle` -- inline every **external** reference (another file or
  URL) while leaving internal ``#/...`` references in place.  This is the
  form specdash validates and stores.
* :func:`dereference` -- replace every internal reference with a copy of its
  target, producing a ``$ref``-free tree (except at recursion points).

Bundling rules:

* Relative external references resolve against the location of the
  document that contains them (URL join for URLs, parent directory for
  files).
* The first reference to an external target is replaced by the target's
  content.  Every later reference to the same target becomes an internal
  reference to that first location, so shared external schemas are inlined
  once.
* A named schema whose whole body is an external reference
  (``components.schemas.Pet: {$ref: pet.yaml}``, or ``definitions`` for
  Swagger 2.0) is always the location its target is inlined at, even when an
  operation refers to the same target earlier in the document.  Operations
  then carry ``#/components/schemas/Pet`` and show up in the dependency
  graph.
* References *inside* an external document that point within that same
  document are handled the same way, so the bundled tree never points into a
  foreign document.  A recursive schema in an external file therefore ends
  up as an internal self-reference.
* The documents currently being inlined form a stack.  An external
  reference to a document already on the stack (``a.yaml`` -> ``b.yaml`` ->
  ``a.yaml``, or back to the root document) raises
  :class:`~specdash.exceptions.CyclicReferenceError` instead of recursing.
* Every internal reference of the root document must resolve in the bundled
  result; a missing target raises
  :class:`~specdash.exceptions.BrokenReferenceError`, as does an external
  document that cannot be loaded.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable, Iterator, Optional
from urllib.parse import unquote, urldefrag, urljoin

from specdash.exceptions import (
    BrokenReferenceError,
    CyclicReferenceError,
    FetchError,
    SpecParseError,
)
from specdash.models import ParsedDocument
from specdash.output import debug
from specdash.parser.fetcher import is_url, normalize_location

DocumentLoader = Callable[[str], Any]
"""Callable returning the parsed tree of the document at an absolute location."""

_ROOT_KEY = "<root>"


# --------------------------------------------------------------------------- #
# JSON Pointer helpers
# --------------------------------------------------------------------------- #


def escape_segment(segment: str) -> str:
    """Escape one JSON Pointer segment (RFC 6901)."""
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_pointer(tree: Any, fragment: str, ref: Optional[str] = None) -> Any:
    """Return the node addressed by the JSON Pointer *fragment* inside *tree*.

    Args:
        tree: Document to navigate.
        fragment: The part after ``#`` (``""`` addresses the whole tree).
        ref: The original ``$ref`` string, used in error messages.

    Raises:
        BrokenReferenceError: If any segment does not exist.
    """
    label = ref if ref is not None else f"#{fragment}"
    if fragment == "":
        return tree
    if not fragment.startswith("/"):
        raise BrokenReferenceError(
            f"Cannot resolve $ref '{label}': fragment is not a JSON pointer"
        )

    current: Any = tree
    for raw in fragment[1:].split("/"):
        segment = unescape_segment(raw)
        if isinstance(current, dict):
            if segment not in current:
                decoded = unquote(segment)
                if decoded not in current:
                    raise BrokenReferenceError(
                        f"Cannot resolve $ref '{label}': key '{segment}' not found at path"
                    )
                segment = decoded
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise BrokenReferenceError(
                    f"Cannot resolve $ref '{label}': invalid array index '{segment}'"
                ) from exc
        else:
            raise BrokenReferenceError(
                f"Cannot resolve $ref '{label}': cannot navigate into {type(current).__name__}"
            )
    return current


def iter_refs(node: Any) -> Iterator[str]:
    """Yield every ``$ref`` string found anywhere under *node*, depth-first."""
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                yield value
            else:
                yield from iter_refs(value)
    elif isinstance(node, list):
        for item in node:
            yield from iter_refs(item)


def is_internal(ref: str) -> bool:
    return ref.startswith("#")


def join_location(base: Optional[str], reference: str) -> str:
    """Resolve the document part of an external ``$ref`` against *base*.

    Args:
        base: Location of the referring document (URL or absolute path), or
            ``None`` when it has no origin (relative paths then resolve
            against the working directory).
        reference: The ``$ref`` value with its ``#fragment`` removed.
    """
    if is_url(reference):
        return urldefrag(reference)[0]
    if base is not None and is_url(base):
        return urldefrag(urljoin(base, reference))[0]
    directory = Path(base).parent if base else Path.cwd()
    return str((directory / unquote(reference)).resolve())


# --------------------------------------------------------------------------- #
# Bundling
# --------------------------------------------------------------------------- #


class _Bundler:
    """One bundling run over a root document.

    Attributes kept for the duration of the run:

    * ``_documents`` -- parsed external documents by absolute location, so
      each is loaded once.
    * ``_inlined`` -- ``(location, fragment)`` of every inlined target
      mapped to the internal pointer where its content now lives.
    * ``_in_flight`` -- stack of documents being inlined, root first.
    * ``_root_refs`` -- internal refs of the root, verified at the end.
    """

    def __init__(
        self,
        root: dict[str, Any],
        origin: Optional[str],
        loader: DocumentLoader,
        container_path: tuple[str, ...] = (),
    ):
        self._root = root
        self._origin = normalize_location(origin) if origin else None
        self._root_key = self._origin or _ROOT_KEY
        self._loader = loader
        self._container_path = container_path
        self._documents: dict[str, Any] = {self._root_key: root}
        self._inlined: dict[tuple[str, str], str] = {}
        self._in_flight: list[str] = [self._root_key]
        self._root_refs: list[str] = []

    def run(self) -> dict[str, Any]:
        self._claim_named_schemas()
        bundled = self._walk(self._root, self._root_key, self._origin, "#")
        for ref in self._root_refs:
            resolve_pointer(bundled, ref[1:], ref)
        return bundled

    def _claim_named_schemas(self) -> None:
        """Reserve the schema container slot for each external target it names.

        A named schema that is only ``{"$ref": "pet.yaml"}`` gets the target's
        content at its own slot, and every other use of ``pet.yaml`` becomes
        ``<prefix>Pet`` wherever it is met, paths included.
        """
        container: Any = self._root
        for key in self._container_path:
            container = container.get(key) if isinstance(container, dict) else None
        if not container or not isinstance(container, dict):
            return

        prefix = "#" + "".join(f"/{escape_segment(key)}" for key in self._container_path)
        for name, entry in container.items():
            ref = entry.get("$ref") if isinstance(entry, dict) else None
            if not isinstance(ref, str) or is_internal(ref):
                continue
            raw_location, _, fragment = ref.partition("#")
            target_key = join_location(self._origin, raw_location)
            if target_key == self._root_key:
                continue
            self._inlined.setdefault((target_key, fragment), f"{prefix}/{escape_segment(name)}")

    def _walk(self, node: Any, doc_key: str, base: Optional[str], pointer: str) -> Any:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str):
                return self._resolve(node, ref, doc_key, base, pointer)
            return {
                key: self._walk(value, doc_key, base, f"{pointer}/{escape_segment(key)}")
                for key, value in node.items()
            }
        if isinstance(node, list):
            return [
                self._walk(item, doc_key, base, f"{pointer}/{index}")
                for index, item in enumerate(node)
            ]
        return node

    def _resolve(
        self,
        node: dict[str, Any],
        ref: str,
        doc_key: str,
        base: Optional[str],
        pointer: str,
    ) -> Any:
        raw_location, _, fragment = ref.partition("#")
        target_key = join_location(base, raw_location) if raw_location else doc_key

        if target_key == self._root_key and doc_key == self._root_key:
            self._root_refs.append(f"#{fragment}")
            return copy.deepcopy(node) if raw_location == "" else {"$ref": f"#{fragment}"}

        crossing = target_key != doc_key
        if crossing and target_key in self._in_flight:
            chain = " -> ".join(self._in_flight + [target_key])
            raise CyclicReferenceError(f"Cyclic reference detected while resolving '{ref}': {chain}")

        inlined_at = self._inlined.get((target_key, fragment))
        if inlined_at is not None and inlined_at != pointer:
            return {"$ref": inlined_at}

        target = resolve_pointer(self._load(target_key, ref), fragment, ref)
        self._inlined[(target_key, fragment)] = pointer
        debug(f"Inlining {target_key}#{fragment} at {pointer}")

        if crossing:
            self._in_flight.append(target_key)
        try:
            resolved = self._walk(target, target_key, target_key, pointer)
        finally:
            if crossing:
                self._in_flight.pop()

        siblings = {
            key: self._walk(value, doc_key, base, f"{pointer}/{escape_segment(key)}")
            for key, value in node.items()
            if key != "$ref"
        }
        if siblings and isinstance(resolved, dict):
            resolved = {**resolved, **siblings}
        return resolved

    def _load(self, location: str, ref: str) -> Any:
        if location not in self._documents:
            try:
                self._documents[location] = self._loader(location)
            except (FetchError, SpecParseError) as exc:
                raise BrokenReferenceError(f"Cannot resolve $ref '{ref}': {exc}") from exc
        return self._documents[location]


def bundle(document: ParsedDocument, loader: DocumentLoader) -> ParsedDocument:
    """Inline every external ``$ref`` of *document*, keeping internal ones.

    Args:
        document: The parsed root document. Its ``origin`` is the base for
            relative references.
        loader: Returns the parsed tree for an absolute URL or file path.
            Called once per distinct external document.

    Returns:
        A new :class:`~specdash.models.ParsedDocument` whose tree holds no
        external references and whose internal references all resolve.

    Raises:
        BrokenReferenceError: A target is missing or cannot be loaded.
        CyclicReferenceError: External documents reference each other in a
            loop.
    """
    bundler = _Bundler(
        document.tree, document.origin, loader, document.version.schema_container_path
    )
    return document.with_tree(bundler.run())


def find_external_refs(tree: Any) -> list[str]:
    """Return the distinct external ``$ref`` values of *tree*, in document order."""
    seen: dict[str, None] = {}
    for ref in iter_refs(tree):
        if not is_internal(ref):
            seen.setdefault(ref, None)
    return list(seen)


# --------------------------------------------------------------------------- #
# Dereferencing
# --------------------------------------------------------------------------- #


def dereference(tree: dict[str, Any]) -> dict[str, Any]:
    """Replace every internal ``$ref`` with a copy of the object it points to.

    The input is not modified.  Recursive schemas keep their ``$ref`` dict at
    the point where the recursion closes, so the output stays finite.  Run
    :func:`bundle` first: external references raise
    :class:`~specdash.exceptions.BrokenReferenceError` here.
    """
    return _deep_resolve(tree, tree, frozenset())


def _deep_resolve(obj: Any, root: dict[str, Any], seen: frozenset[str]) -> Any:
    """Recursively resolve ``$ref`` pointers within *obj*.

    ``seen`` holds the refs on the current resolution path; each branch
    extends its own copy so sibling references do not interfere.
    """
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str):
            if ref in seen:
                return copy.deepcopy(obj)
            if not is_internal(ref):
                raise BrokenReferenceError(
                    f"Cannot dereference external $ref '{ref}'; bundle the document first"
                )
            resolved = resolve_pointer(root, ref[1:], ref)
            return _deep_resolve(resolved, root, seen | {ref})
        return {key: _deep_resolve(value, root, seen) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_deep_resolve(item, root, seen) for item in obj]

    return obj
