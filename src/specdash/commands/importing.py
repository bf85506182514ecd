"""Import commands -- bring an OpenAPI document into the store.

``specdash import SOURCE`` accepts an ``http(s)://`` URL or a file path and
runs the full pipeline (parse, bundle, validate, serialize, store).
``specdash fetch URL`` runs the same pipeline without storing and prints the
``{"specObject", "rawSpecText"}`` / ``{"error"}`` envelope as JSON, for
callers that only want the normalised document.
"""

from __future__ import annotations

from typing import Optional

import typer

from specdash.commands.common import get_config, reporting_errors
from specdash.exit_codes import EXIT_GENERIC_FAILURE
from specdash.importer import SpecImporter, fetch_spec_envelope
from specdash.models import ImportResult
from specdash.output import debug, format_response, get_output, print_source, success, suggest
from specdash.parser.fetcher import is_url
from specdash.parser.serializer import to_json


def _summary(result: ImportResult) -> dict[str, object]:
    document = result.document
    paths = document.tree.get("paths")
    return {
        "id": result.stored.id if result.stored is not None else None,
        "name": result.name,
        "title": document.title,
        "version": f"{document.version.value} {document.version_string}",
        "paths": len(paths) if isinstance(paths, dict) else 0,
        "schemas": len(document.schemas),
    }


def import_command(
    ctx: typer.Context,
    source: str = typer.Argument(help="URL or path of the OpenAPI document."),
    name: Optional[str] = typer.Option(
        None, "--name", help="Record name (default: file name or last URL segment)."
    ),
    no_save: bool = typer.Option(
        False, "--no-save", help="Validate and print the canonical YAML without storing."
    ),
) -> None:
    """Import an OpenAPI document from a URL or a file.

    Example::

        specdash import ./openapi.yaml
        specdash import https://petstore3.swagger.io/api/v3/openapi.json --name petstore
        specdash import ./openapi.json --no-save > canonical.yaml
    """
    with reporting_errors():
        config = get_config(ctx)
        with SpecImporter(config) as importer:
            if is_url(source):
                result = importer.import_url(source, name=name, save=not no_save)
            else:
                result = importer.import_file(source, save=not no_save, name=name)

    if no_save:
        debug(f"Validated {result.name} without storing")
        print_source(result.raw_spec_text, "yaml")
        return

    success(f"Imported '{result.name}'")
    format_response(_summary(result))
    if result.stored is not None:
        suggest(f"View dependencies: specdash deps {result.stored.id}")


def fetch_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL of the OpenAPI document."),
) -> None:
    """Fetch and normalise a remote document without storing it.

    Prints ``{"specObject": ..., "rawSpecText": ...}`` on success and
    ``{"error": ...}`` (exit code 1) on failure.

    Example::

        specdash fetch https://example.com/openapi.yaml | jq .specObject.info
    """
    with reporting_errors():
        config = get_config(ctx)
    with SpecImporter(config) as importer:
        envelope = fetch_spec_envelope(importer, url)

    get_output().print_data(to_json(envelope, indent=2))
    if "error" in envelope:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
