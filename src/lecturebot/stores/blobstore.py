"""Filesystem blob store — one file per key under a root directory."""

from __future__ import annotations

import logging
from pathlib import Path

from lecturebot.errors import NotFound, StorageFailed

log = logging.getLogger(__name__)


class BlobStore:
    """Stores raw file bytes addressed by an opaque, flat key."""

    def __init__(self, root: str = "./data/blobs"):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or key in (".", "..") or Path(key).name != key:
            raise StorageFailed(f"Invalid blob key: {key!r}")
        return self.root / key

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Write *data* under *key*. Never overwrites an existing blob."""
        path = self._path(key)
        try:
            with open(path, "xb") as f:
                f.write(data)
        except FileExistsError as exc:
            raise StorageFailed(f"Blob key already exists: {key}") from exc
        except OSError as exc:
            raise StorageFailed(f"Writing blob {key} failed: {exc}") from exc
        log.debug("Stored blob %s (%d bytes, %s)", key, len(data), content_type)
        return key

    def get(self, key: str) -> bytes:
        """Read the blob stored under *key*."""
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFound(key) from exc
        except OSError as exc:
            raise StorageFailed(f"Reading blob {key} failed: {exc}") from exc

    def delete(self, key: str) -> None:
        """Remove a blob; missing keys are ignored."""
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageFailed(f"Deleting blob {key} failed: {exc}") from exc

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()
