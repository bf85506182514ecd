"""Typer application and CLI entry point for specdash.

This module builds the top-level Typer application and registers the
built-in sub-commands (``import``, ``fetch``, ``specs``, ``deps``,
``inspect``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`specdash.config`: Configuration resolution run in :func:`main_callback`.
    :mod:`specdash.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specdash import __version__
from specdash.commands.config import config_app
from specdash.commands.deps import deps_command
from specdash.commands.importing import fetch_command, import_command
from specdash.commands.inspect import inspect_app
from specdash.commands.specs import specs_app
from specdash.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="specdash",
    help="Import, normalise, and analyse OpenAPI 2.0/3.x documents.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.command("import")(import_command)
app.command("fetch")(fetch_command)
app.command("deps")(deps_command)
app.add_typer(specs_app, name="specs", help="Stored specification management.")
app.add_typer(inspect_app, name="inspect", help="Inspect a stored specification.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specdash {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="HTTP timeout in seconds for every fetch."
    ),
    store_dir: Optional[str] = typer.Option(
        None, "--store-dir", help="Directory holding stored specifications."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Do not use the external $ref cache."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Resolves the effective configuration, initialises the global
    :class:`~specdash.output.OutputManager`, and stores both in
    ``ctx.obj`` for the sub-commands.  A configuration error is kept and
    reported by the first command that needs the configuration, so
    ``config reset`` still works on a broken config file.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        force: Skip interactive confirmations.
        timeout: Fetch timeout override (highest precedence).
        store_dir: Store directory override (highest precedence).
        no_cache: Disable the external ``$ref`` cache.
    """
    from specdash.config import resolve_config
    from specdash.exceptions import ConfigError
    from specdash.output import OutputFormat, OutputManager, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    config = None
    config_error: Optional[ConfigError] = None
    try:
        config = resolve_config(
            cli_timeout=timeout,
            cli_store_dir=store_dir,
            cli_format=cli_format,
            cli_no_cache=no_cache,
        )
    except ConfigError as exc:
        config_error = exc

    fmt = OutputFormat.AUTO
    if config is not None:
        try:
            fmt = OutputFormat(config.output.format)
        except ValueError:
            config_error = ConfigError(
                f"Invalid output.format '{config.output.format}': "
                "expected auto, json, plain, or rich"
            )
    elif cli_format is not None:
        fmt = OutputFormat(cli_format)

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["config_error"] = config_error
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from specdash.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specdash`` console script.

    Unhandled :class:`~specdash.exceptions.SpecdashError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specdash.exceptions import SpecdashError
        from specdash.output import error

        if isinstance(exc, SpecdashError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
