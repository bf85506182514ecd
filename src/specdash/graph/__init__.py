"""Schema dependency analysis over bundled documents."""

from specdash.graph.dependencies import (
    build_dependency_graph,
    dependency_view,
    unused_schemas,
)

__all__ = ["build_dependency_graph", "dependency_view", "unused_schemas"]
