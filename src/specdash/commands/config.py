"""Config commands -- view and modify the user configuration.

Provides the ``specdash config`` sub-command group for reading, updating,
and resetting the user's :class:`~specdash.models.GlobalConfig`, and for
emptying the external ``$ref`` cache.
"""

from __future__ import annotations

from typing import Any

import typer

from specdash.commands.common import get_config, is_forced, reporting_errors
from specdash.exceptions import ConfigError
from specdash.output import format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Prints the config and store directories on stderr, then the
    configuration after applying project config, environment, and flags.

    Example::

        specdash config show
        specdash --json config show
    """
    from specdash.config import get_config_dir, get_store_dir

    with reporting_errors():
        config = get_config(ctx)
    info(f"Config directory: {get_config_dir()}")
    info(f"Store directory: {get_store_dir(config)}")
    format_response(config.model_dump(mode="json"))


def _coerce(key: str, current: Any, value: str) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"Expected integer for {key}, got: {value}") from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            raise ConfigError(f"Expected number for {key}, got: {value}") from None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g., 'fetch.timeout_seconds')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a user configuration value.

    The value is coerced to the type of the existing field (bool, int,
    float, or str) and the result is validated before saving.

    Example::

        specdash config set fetch.timeout_seconds 10
        specdash config set cache.enabled false
        specdash config set storage.directory ~/specs
    """
    from specdash.config import load_global_config, save_global_config
    from specdash.models import GlobalConfig

    with reporting_errors():
        data = load_global_config().model_dump(mode="json")

        keys = key.split(".")
        target = data
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                raise ConfigError(f"Invalid config key: {key}")
            target = target[k]

        final_key = keys[-1]
        if final_key not in target or isinstance(target[final_key], dict):
            raise ConfigError(f"Unknown config key: {key}")

        coerced = _coerce(key, target[final_key], value)
        target[final_key] = coerced

        try:
            new_config = GlobalConfig.model_validate(data)
        except ValueError as exc:
            raise ConfigError(f"Validation error: {exc}") from exc

        save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset the user configuration to defaults. Asks unless ``--force``.

    Example::

        specdash --force config reset
    """
    from specdash.config import save_global_config
    from specdash.models import GlobalConfig

    if not is_forced(ctx):
        if not typer.confirm("Reset all config to defaults?"):
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")


@config_app.command("clear-cache")
def config_clear_cache(ctx: typer.Context) -> None:
    """Empty the cache of external ``$ref`` documents.

    Example::

        specdash config clear-cache
    """
    from specdash.cache import RefCache
    from specdash.config import get_cache_dir

    with reporting_errors():
        config = get_config(ctx)
    if not config.cache.enabled:
        info("The $ref cache is disabled.")
        return

    cache = RefCache(get_cache_dir(), config.cache)
    try:
        entries = cache.stats().get("size", 0)
        cache.clear()
    finally:
        cache.close()
    success(f"Cleared {entries} cached $ref document(s).")
