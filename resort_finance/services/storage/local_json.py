"""
Local JSON Snapshot Storage

The default backend: the whole resort state in one JSON file next to the
app. Good enough for a single front desk machine.

Writes go to a temporary file first and are then moved over the old
snapshot, so a crash mid-write never leaves a half-written file behind.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from resort_finance.models.transaction import ResortSnapshot
from resort_finance.services.storage.interface import (
    CorruptDataError,
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class LocalJSONStorage(SnapshotStorageInterface):
    """Snapshot storage backed by a single JSON file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> Optional[ResortSnapshot]:
        if not self._path.exists():
            logger.info("snapshot_not_found", path=str(self._path))
            return None

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}")

        if not raw.strip():
            return None

        try:
            return ResortSnapshot.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptDataError(f"Snapshot at {self._path} is invalid: {e}")

    async def save(self, snapshot: ResortSnapshot) -> bool:
        payload = snapshot.model_dump_json(indent=2)

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Could not write {self._path}: {e}")

        logger.debug(
            "snapshot_saved",
            path=str(self._path),
            transactions=len(snapshot.transactions),
            bookings=len(snapshot.bookings),
        )
        return True

    async def clear(self) -> bool:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove {self._path}: {e}")
        return True

