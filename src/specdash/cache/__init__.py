"""Disk-based cache for external ``$ref`` documents.

This package provides :class:`RefCache`, which stores the text of documents
fetched while bundling so that specs sharing a remote schema library do not
download it on every import.  It is consumed by
:class:`~specdash.parser.fetcher.SpecFetcher` and controlled by the ``cache``
section of :class:`~specdash.models.GlobalConfig`.
"""

from specdash.cache.cache import RefCache

__all__ = ["RefCache"]
