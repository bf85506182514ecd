"""Exception hierarchy for specdash.

All exceptions inherit from :class:`SpecdashError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specdash.exit_codes`.
The ingestion pipeline is fail-fast: the first stage that fails raises one of
these and nothing is persisted.  The top-level handler in
:func:`specdash.app.main` catches ``SpecdashError`` and exits with the
appropriate code.

Subclass hierarchy::

    SpecdashError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- NotFoundError            (exit 4)
    +-- FetchError               (exit 6)
    +-- SpecParseError           (exit 7)
    |   +-- UnsupportedSpecError (exit 7)
    +-- BrokenReferenceError     (exit 8)
    |   +-- CyclicReferenceError (exit 8)
    +-- SpecValidationError      (exit 9)
    +-- StorageError             (exit 11)
    +-- ConfigError              (exit 1)
"""

from __future__ import annotations

from specdash.exit_codes import (
    EXIT_FETCH_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_REFERENCE_ERROR,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_STORAGE_ERROR,
    EXIT_VALIDATION_ERROR,
)


class SpecdashError(Exception):
    """Base exception for all specdash errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specdash.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecdashError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SpecdashError):
    """Raised when a stored specification id does not exist."""

    exit_code = EXIT_NOT_FOUND


class FetchError(SpecdashError):
    """Raised when a document cannot be retrieved.

    Covers network failures (DNS, connection refused, timeout), non-2xx HTTP
    responses and unreadable local files.  ``status_code`` is set when the
    server answered.
    """

    exit_code = EXIT_FETCH_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SpecParseError(SpecdashError):
    """Raised when content is neither YAML nor JSON, or is not an OpenAPI object."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class UnsupportedSpecError(SpecParseError):
    """Raised when the version discriminator is missing or not recognised."""


class BrokenReferenceError(SpecdashError):
    """Raised when a ``$ref`` has no target or its document cannot be loaded."""

    exit_code = EXIT_REFERENCE_ERROR


class CyclicReferenceError(BrokenReferenceError):
    """Raised when external documents reference each other in a loop."""


class SpecValidationError(SpecdashError):
    """Raised when a bundled document violates the OpenAPI meta-schema.

    Args:
        message: Summary line.
        violations: One entry per violated constraint, formatted as
            ``<json path>: <message>``.
    """

    exit_code = EXIT_VALIDATION_ERROR

    def __init__(self, message: str, violations: list[str] | None = None):
        self.violations = list(violations or [])
        if self.violations:
            message = message + "\n  " + "\n  ".join(self.violations)
        super().__init__(message)


class StorageError(SpecdashError):
    """Raised when the spec store cannot be read or written."""

    exit_code = EXIT_STORAGE_ERROR


class ConfigError(SpecdashError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
