"""Stored spec commands -- list, show, and delete imported documents.

Provides the ``specdash specs`` sub-command group over
:class:`~specdash.storage.SpecStore`.
"""

from __future__ import annotations

import json

import typer

from specdash.commands.common import is_forced, open_store, reporting_errors
from specdash.exceptions import InvalidUsageError
from specdash.output import OutputFormat, format_response, get_output, info, print_source, success
from specdash.parser.serializer import to_json

specs_app = typer.Typer(no_args_is_help=True)


@specs_app.command("list")
def specs_list(ctx: typer.Context) -> None:
    """List stored specifications, most recently updated first.

    Example::

        specdash specs list
        specdash --json specs list
    """
    with reporting_errors():
        records = open_store(ctx).list()

    if not records:
        info("No stored specifications. Import one with: specdash import <url|file>")
        return

    output = get_output()
    if output.format == OutputFormat.JSON:
        format_response(
            [
                record.model_dump(by_alias=True, mode="json", exclude={"content", "raw_content"})
                for record in records
            ]
        )
        return

    rows = [
        [record.id, record.name, record.updated_at.isoformat(timespec="seconds")]
        for record in records
    ]
    output.print_table(["ID", "Name", "Updated"], rows, title=f"Stored specs ({len(rows)})")


@specs_app.command("show")
def specs_show(
    ctx: typer.Context,
    spec_id: str = typer.Argument(help="Stored spec id."),
    fmt: str = typer.Option("yaml", "--format", help="yaml (canonical text) or json."),
) -> None:
    """Print a stored specification.

    Example::

        specdash specs show 3f2c... --format json
    """
    with reporting_errors():
        if fmt not in ("yaml", "json"):
            raise InvalidUsageError(f"--format must be 'yaml' or 'json', got: {fmt}")
        record = open_store(ctx).get(spec_id)

    if fmt == "yaml":
        print_source(record.raw_content, "yaml")
    else:
        print_source(to_json(json.loads(record.content), indent=2), "json")


@specs_app.command("delete")
def specs_delete(
    ctx: typer.Context,
    spec_id: str = typer.Argument(help="Stored spec id."),
) -> None:
    """Delete a stored specification. Asks for confirmation unless ``--force``.

    Example::

        specdash --force specs delete 3f2c...
    """
    with reporting_errors():
        store = open_store(ctx)
        record = store.get(spec_id)
        if not is_forced(ctx):
            if not typer.confirm(f"Delete '{record.name}' ({record.id})?"):
                info("Cancelled.")
                raise typer.Exit()
        store.delete(spec_id)
    success(f"Deleted '{record.name}'")
