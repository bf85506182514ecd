"""OpenAPI meta-schema validation of bundled documents.

Delegates to :mod:`openapi_spec_validator`, picking the validator class from
the version string the document declares.  Validation runs after bundling,
because the meta-schema validator cannot follow external references itself.
"""

from __future__ import annotations

from typing import Any, Iterable

from openapi_spec_validator import (
    OpenAPIV2SpecValidator,
    OpenAPIV30SpecValidator,
    OpenAPIV31SpecValidator,
)

from specdash.exceptions import SpecValidationError, UnsupportedSpecError
from specdash.models import ParsedDocument, SpecVersion
from specdash.output import debug


def _validator_class(document: ParsedDocument) -> type:
    if document.version is SpecVersion.SWAGGER_2:
        return OpenAPIV2SpecValidator
    if document.version_string.startswith("3.0"):
        return OpenAPIV30SpecValidator
    if document.version_string.startswith("3.1"):
        return OpenAPIV31SpecValidator
    raise UnsupportedSpecError(
        f"Unsupported specification format: openapi {document.version_string}"
    )


def format_violation(error: Any) -> str:
    """Render one validator error as ``<json path>: <message>``."""
    path = "/".join(str(part) for part in getattr(error, "absolute_path", ()))
    return f"{path or '(root)'}: {error.message}"


def collect_violations(document: ParsedDocument) -> list[str]:
    """Return every meta-schema violation of *document* (empty when valid)."""
    validator = _validator_class(document)(document.tree)
    errors: Iterable[Any] = validator.iter_errors()
    return [format_violation(error) for error in errors]


def validate_document(document: ParsedDocument) -> ParsedDocument:
    """Check *document* against the OpenAPI meta-schema of its version.

    Returns:
        The same document, unchanged, when it is valid.

    Raises:
        SpecValidationError: With one entry per violated constraint in
            ``violations``.
        UnsupportedSpecError: For an OpenAPI 3.x minor version no validator
            exists for.
    """
    violations = collect_violations(document)
    if violations:
        raise SpecValidationError(
            f"Specification is not a valid OpenAPI {document.version_string} document",
            violations=violations,
        )
    debug(f"Validated OpenAPI {document.version_string} document")
    return document
