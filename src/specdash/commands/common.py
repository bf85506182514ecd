"""Helpers shared by the sub-command modules.

The root callback in :mod:`specdash.app` stores the effective configuration
(or the :class:`~specdash.exceptions.ConfigError` that prevented resolving
it) and the global flags in ``ctx.obj``; commands read them through these
helpers.  :func:`reporting_errors` turns a
:class:`~specdash.exceptions.SpecdashError` into an error line and the
matching exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, NoReturn

import typer

from specdash.exceptions import SpecdashError
from specdash.models import GlobalConfig
from specdash.output import error
from specdash.session import SpecSession
from specdash.storage import SpecStore


def fail(exc: SpecdashError) -> NoReturn:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Report any :class:`SpecdashError` raised in the block and exit with its code."""
    try:
        yield
    except SpecdashError as exc:
        fail(exc)


def get_config(ctx: typer.Context) -> GlobalConfig:
    """Return the configuration resolved by the root callback.

    Raises:
        ConfigError: If resolving it failed.
    """
    obj = ctx.obj or {}
    config_error = obj.get("config_error")
    if config_error is not None:
        raise config_error
    return obj.get("config") or GlobalConfig()


def is_forced(ctx: typer.Context) -> bool:
    return bool(ctx.obj.get("force", False)) if ctx.obj else False


def open_store(ctx: typer.Context) -> SpecStore:
    return SpecStore(config=get_config(ctx))


def open_session(ctx: typer.Context, spec_id: str) -> SpecSession:
    """Load stored spec *spec_id* into a fresh session."""
    return SpecSession.from_stored(open_store(ctx).get(spec_id))
