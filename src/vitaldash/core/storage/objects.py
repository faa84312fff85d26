"""Filesystem-backed object storage bucket for uploaded report files."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object cannot be stored, read or removed."""


class ObjectStorage:
    """A single named bucket rooted at ``<root>/<bucket>``.

    Object paths are relative POSIX paths such as ``<user_id>/<key>.pdf``.

    Usage::

        storage = ObjectStorage("~/.vitaldash/storage", "medical-reports")
        storage.upload("user-1/1700000000000.pdf", data)
        storage.download("user-1/1700000000000.pdf")
    """

    def __init__(self, root: str | Path, bucket: str = "medical-reports") -> None:
        self.bucket = bucket
        self._base = Path(root).expanduser() / bucket
        self._base.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        pure = PurePosixPath(path)
        if not path or pure.is_absolute() or ".." in pure.parts:
            raise StorageError(f"Invalid object path: {path!r}")
        return self._base.joinpath(*pure.parts)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def upload(self, path: str, data: bytes) -> str:
        """Store ``data`` at ``path``. Existing objects are never overwritten."""
        target = self._resolve(path)
        if target.exists():
            raise StorageError(f"Object already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Upload failed for {path}: {exc}") from exc
        logger.info("Stored object %s/%s (%d bytes)", self.bucket, path, len(data))
        return path

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise StorageError(f"Object not found: {path}") from exc
        except OSError as exc:
            raise StorageError(f"Download failed for {path}: {exc}") from exc

    def remove(self, paths: list[str]) -> list[str]:
        """Delete objects; returns the paths that existed and were removed."""
        removed: list[str] = []
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"Remove failed for {path}: {exc}") from exc
            removed.append(path)
        if removed:
            logger.info("Removed %d object(s) from %s", len(removed), self.bucket)
        return removed
