"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one failure class of the ingestion pipeline and is
referenced by the corresponding :class:`~specdash.exceptions.SpecdashError`
subclass.  Scripts wrapping ``specdash import`` can tell a network problem
from a broken ``$ref`` without parsing stderr.

Example::

    $ specdash import ./openapi.yaml
    $ echo $?
    8   # EXIT_REFERENCE_ERROR -- a $ref target is missing
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""The requested stored specification does not exist."""

EXIT_FETCH_ERROR = 6
"""The document could not be retrieved (network, DNS, timeout, non-2xx, missing file)."""

EXIT_SPEC_PARSE_ERROR = 7
"""The content is not YAML/JSON or is not an OpenAPI object."""

EXIT_REFERENCE_ERROR = 8
"""A ``$ref`` is broken, unloadable, or part of a cycle."""

EXIT_VALIDATION_ERROR = 9
"""The document violates the OpenAPI meta-schema."""

EXIT_STORAGE_ERROR = 11
"""The spec store could not be read or written."""
