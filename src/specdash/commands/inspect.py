"""Inspect commands -- examine a stored specification.

Provides the ``specdash inspect`` sub-command group with read-only views of
a stored document: general info, the operations under ``paths``, and the
schema container.  All sub-commands load the record into a
:class:`~specdash.session.SpecSession` and present tables or structured
output.
"""

from __future__ import annotations

import typer

from specdash.commands.common import open_session, reporting_errors
from specdash.models import HTTPMethod
from specdash.output import format_response, get_output, info

inspect_app = typer.Typer(no_args_is_help=True)

_METHOD_ORDER = [m.value for m in HTTPMethod]


@inspect_app.command("info")
def inspect_info(
    ctx: typer.Context,
    spec_id: str = typer.Argument(help="Stored spec id."),
) -> None:
    """Show title, version, and size of a stored specification.

    Example::

        specdash inspect info 3f2c...
    """
    with reporting_errors():
        session = open_session(ctx, spec_id)
        document = session.require_document()

    tree = document.tree
    spec_info = tree.get("info") if isinstance(tree.get("info"), dict) else {}
    paths = tree.get("paths") if isinstance(tree.get("paths"), dict) else {}
    data: dict[str, object] = {
        "id": session.spec_id,
        "name": session.file_name,
        "title": document.title or "-",
        "api_version": str(spec_info.get("version", "-")),
        document.version.value: document.version_string,
        "paths": len(paths),
        "schemas": len(document.schemas),
    }
    if spec_info.get("description"):
        data["description"] = spec_info["description"]
    format_response(data)


@inspect_app.command("paths")
def inspect_paths(
    ctx: typer.Context,
    spec_id: str = typer.Argument(help="Stored spec id."),
) -> None:
    """List all operations (method + path) of a stored specification.

    Example::

        specdash inspect paths 3f2c...
    """
    with reporting_errors():
        document = open_session(ctx, spec_id).require_document()

    paths = document.tree.get("paths")
    rows: list[list[str]] = []
    if isinstance(paths, dict):
        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            for method in _METHOD_ORDER:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue
                rows.append([
                    method.upper(),
                    path,
                    operation.get("summary") or "-",
                    "Yes" if operation.get("deprecated") else "",
                ])

    if not rows:
        info("No operations defined in this spec.")
        return

    get_output().print_table(
        ["Method", "Path", "Summary", "Deprecated"],
        rows,
        title=f"{document.title or 'API'} -- Paths ({len(rows)})",
    )


@inspect_app.command("schemas")
def inspect_schemas(
    ctx: typer.Context,
    spec_id: str = typer.Argument(help="Stored spec id."),
) -> None:
    """List the schemas of a stored specification.

    Shows each schema container entry with its type and up to five property
    names.

    Example::

        specdash inspect schemas 3f2c...
    """
    with reporting_errors():
        document = open_session(ctx, spec_id).require_document()

    schemas = document.schemas
    if not schemas:
        info("No schemas defined in this spec.")
        return

    rows: list[list[str]] = []
    for name, schema in schemas.items():
        if not isinstance(schema, dict):
            rows.append([name, "unknown", ""])
            continue
        if "$ref" in schema:
            rows.append([name, "ref", str(schema["$ref"])])
            continue
        prop_names = list((schema.get("properties") or {}).keys())
        props = ", ".join(prop_names[:5])
        if len(prop_names) > 5:
            props += "..."
        rows.append([name, str(schema.get("type", "object")), props])

    get_output().print_table(["Schema", "Type", "Properties"], rows, title=f"Schemas ({len(rows)})")
