"""Dependency command -- show which operations and schemas use each schema."""

from __future__ import annotations

import typer

from specdash.commands.common import open_session, reporting_errors
from specdash.graph import dependency_view, unused_schemas
from specdash.output import OutputFormat, format_response, get_output, info, warning


def deps_command(
    ctx: typer.Context,
    spec_id: str = typer.Argument(help="Stored spec id."),
    unused: bool = typer.Option(
        False, "--unused", help="Only list schemas that nothing references."
    ),
) -> None:
    """Show the schema dependency view of a stored specification.

    Every schema in the document's schema container is listed; schemas no
    operation or other schema references are reported as defined but not
    used.

    Example::

        specdash deps 3f2c...
        specdash --json deps 3f2c... | jq '.Pet.referencedBySchemas'
        specdash deps 3f2c... --unused
    """
    with reporting_errors():
        session = open_session(ctx, spec_id)
        graph = session.dependency_graph()

    output = get_output()
    if unused:
        names = unused_schemas(graph)
        if not names and output.format != OutputFormat.JSON:
            info("Every schema is referenced.")
            return
        format_response(names)
        return

    if output.format == OutputFormat.JSON:
        format_response(dependency_view(graph))
        return

    if not graph:
        info("No schemas defined in this spec.")
        return

    rows: list[list[str]] = []
    for name, usage in graph.items():
        if not usage.is_used:
            rows.append([name, "-", "-"])
            continue
        operations = "; ".join(
            f"{op.method.upper()} {op.path} ({op.type.value})" for op in usage.operations
        )
        rows.append([name, operations or "-", ", ".join(usage.referenced_by_schemas) or "-"])
    output.print_table(
        ["Schema", "Used by operations", "Referenced by schemas"],
        rows,
        title=f"{session.file_name} -- Schema dependencies ({len(rows)})",
    )
    for name in unused_schemas(graph):
        warning(f"{name}: defined but not used")
