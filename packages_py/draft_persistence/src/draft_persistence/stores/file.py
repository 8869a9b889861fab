"""
File-backed draft store.

Each key is kept in its own JSON file inside a directory, so drafts survive
process restarts.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

from ..types import DraftQuotaExceededError, DraftStore, DraftStoreError

logger = logging.getLogger(__name__)

LOG_PREFIX = "[draft_persistence.file]"


class FileDraftStore(DraftStore):
    """
    Durable draft store writing one file per key.

    Writes go to a temporary file that is then moved into place, so a crash
    mid-write never leaves a truncated record behind.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        max_bytes: Optional[int] = None,
    ) -> None:
        """
        Create a new FileDraftStore.

        Args:
            directory: Directory holding the draft files. Created if missing.
            max_bytes: Optional per-value size limit in bytes
        """
        self._directory = Path(directory)
        self._max_bytes = max_bytes
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        """Map a key to a file name that is safe on every filesystem."""
        return self._directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[str]:
        """Get a stored value, or None if absent."""
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as error:
            raise DraftStoreError(f"Failed to read {path}: {error}") from error

    def set(self, key: str, value: str) -> None:
        """Store a value atomically."""
        encoded = value.encode("utf-8")
        if self._max_bytes is not None and len(encoded) > self._max_bytes:
            raise DraftQuotaExceededError(
                f"Draft {key} is {len(encoded)} bytes, limit is {self._max_bytes}"
            )

        path = self._path_for(key)
        tmp_path: Optional[Path] = None
        try:
            # Unique name per write so concurrent writers never share a temp file.
            with tempfile.NamedTemporaryFile(
                dir=self._directory,
                prefix=f"{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(encoded)
            os.replace(tmp_path, path)
        except OSError as error:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise DraftStoreError(f"Failed to write {path}: {error}") from error
        logger.debug(f"{LOG_PREFIX} Wrote {len(encoded)} bytes to {path}")

    def delete(self, key: str) -> None:
        """Remove a value. Missing keys are ignored."""
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as error:
            raise DraftStoreError(f"Failed to delete {path}: {error}") from error


def create_file_draft_store(
    directory: Union[str, Path],
    max_bytes: Optional[int] = None,
) -> FileDraftStore:
    """Create a file draft store."""
    return FileDraftStore(directory, max_bytes)
