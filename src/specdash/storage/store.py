"""File-backed store of imported specifications.

Each :class:`~specdash.models.StoredSpec` lives in its own JSON file,
``<store dir>/<id>.json``, with the camelCase record shape
``{id, name, content, rawContent, createdAt, updatedAt}``.  The store
directory defaults to ``~/.local/share/specdash/specs`` (XDG) and can be
moved with ``storage.directory`` or ``SPECDASH_STORE_DIR``.

Writes go through :func:`~specdash.config.atomic_write`, so a record file is
either fully present or absent.  Records are never updated in place:
importing the same document again creates a new record.

Any filesystem failure surfaces as :class:`~specdash.exceptions.StorageError`
and an unknown id as :class:`~specdash.exceptions.NotFoundError`.
"""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from specdash.config import atomic_write, get_store_dir
from specdash.exceptions import NotFoundError, StorageError
from specdash.models import GlobalConfig, StoredSpec
from specdash.output import debug

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class SpecStore:
    """Save, list, load, and delete stored specifications.

    Args:
        directory: Store directory. When omitted it is derived from
            *config* via :func:`~specdash.config.get_store_dir`.
        config: Effective configuration used to locate the directory.

    Example::

        store = SpecStore(config=resolve_config())
        record = store.save("petstore.yaml", content_json, canonical_yaml)
        assert store.get(record.id).name == "petstore.yaml"
    """

    def __init__(
        self,
        directory: Optional[Path] = None,
        config: Optional[GlobalConfig] = None,
    ) -> None:
        if directory is not None:
            self._directory = Path(directory)
        else:
            try:
                self._directory = get_store_dir(config)
            except OSError as exc:
                raise StorageError(f"Could not open spec store: {exc}") from exc

    @property
    def directory(self) -> Path:
        return self._directory

    def save(self, name: str, content: str, raw_content: str) -> StoredSpec:
        """Persist a new record and return it.

        Args:
            name: Display name (file name or last URL segment).
            content: JSON rendition of the bundled document.
            raw_content: Canonical YAML rendition.

        Raises:
            StorageError: If the record cannot be written.
        """
        now = datetime.now(timezone.utc)
        record = StoredSpec(
            id=uuid.uuid4().hex,
            name=name,
            content=content,
            raw_content=raw_content,
            created_at=now,
            updated_at=now,
        )
        data = record.model_dump(by_alias=True, mode="json")
        try:
            atomic_write(self._path_for(record.id), json.dumps(data, indent=2) + "\n")
        except OSError as exc:
            raise StorageError(f"Could not persist specification '{name}': {exc}") from exc
        debug(f"Stored spec {record.id} in {self._directory}")
        return record

    def list(self) -> list[StoredSpec]:
        """Return every record, most recently updated first.

        Raises:
            StorageError: If the directory or a record cannot be read.
        """
        if not self._directory.is_dir():
            return []
        try:
            paths = sorted(self._directory.glob("*.json"))
        except OSError as exc:
            raise StorageError(f"Could not read spec store {self._directory}: {exc}") from exc
        records = [self._read(path) for path in paths]
        records.sort(key=lambda record: record.updated_at, reverse=True)
        return records

    def get(self, spec_id: str) -> StoredSpec:
        """Load one record.

        Raises:
            NotFoundError: If no record has *spec_id*.
            StorageError: If the record file is unreadable or malformed.
        """
        path = self._path_for(spec_id)
        if not path.is_file():
            raise NotFoundError(f"No stored specification with id '{spec_id}'")
        return self._read(path)

    def delete(self, spec_id: str) -> None:
        """Remove one record.

        Raises:
            NotFoundError: If no record has *spec_id*.
            StorageError: If the file cannot be removed.
        """
        path = self._path_for(spec_id)
        if not path.is_file():
            raise NotFoundError(f"No stored specification with id '{spec_id}'")
        try:
            path.unlink()
        except OSError as exc:
            raise StorageError(f"Could not delete specification '{spec_id}': {exc}") from exc
        debug(f"Deleted spec {spec_id}")

    def _path_for(self, spec_id: str) -> Path:
        if not _ID_PATTERN.match(spec_id):
            raise NotFoundError(f"No stored specification with id '{spec_id}'")
        return self._directory / f"{spec_id}.json"

    def _read(self, path: Path) -> StoredSpec:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return StoredSpec.model_validate(data)
        except OSError as exc:
            raise StorageError(f"Could not read stored specification {path}: {exc}") from exc
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StorageError(f"Corrupt stored specification {path}: {exc}") from exc
