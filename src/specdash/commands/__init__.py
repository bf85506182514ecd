"""Built-in CLI sub-commands for specdash.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~specdash.commands.importing` -- ``import`` and ``fetch``.
* :mod:`~specdash.commands.specs` -- list, show, and delete stored specs.
* :mod:`~specdash.commands.deps` -- the schema dependency view.
* :mod:`~specdash.commands.inspect` -- info, paths, and schemas of a
  stored spec.
* :mod:`~specdash.commands.config` -- view and modify settings.

Each module either exports a :class:`typer.Typer` sub-application (for
groups like ``specs`` and ``config``) or a plain callback function
registered directly on the root app (for single commands like ``import``).
"""
