"""specdash -- Import, normalize, and analyse OpenAPI/Swagger documents.

This package ingests an OpenAPI document (Swagger 2.0 or OpenAPI 3.x, JSON
or YAML, from a URL or a local file), bundles its external ``$ref`` pointers,
validates it against the OpenAPI meta-schema, stores a canonical YAML
rendition, and derives a schema dependency graph from the stored document.

Typical workflow::

    specdash import https://petstore3.swagger.io/api/v3/openapi.json
    specdash specs list
    specdash deps <spec-id>

Modules:
    app: Typer application factory and CLI entry point.
    importer: The fetch -> parse -> bundle -> validate -> serialize pipeline.
    session: Explicit session context holding the active document.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration with precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
