"""Persistence of imported specifications."""

from specdash.storage.store import SpecStore

__all__ = ["SpecStore"]
