from __future__ import annotations

import asyncio
import logging
import os
import re
import time
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

from fastapi import UploadFile

from ..errors import UploadTooLarge
from .types import StoredUpload

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_LENGTH = 100
_CHUNK_SIZE = 1024 * 1024


def sanitize_filename(filename: Optional[str]) -> str:
    """Reduce an untrusted client filename to a safe basename."""

    if not filename:
        return "upload"
    name = PurePosixPath(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).lstrip(".")
    if len(name) > _MAX_NAME_LENGTH:
        stem, dot, ext = name.rpartition(".")
        if dot and len(ext) < 16:
            name = stem[: _MAX_NAME_LENGTH - len(ext) - 1] + "." + ext
        else:
            name = name[:_MAX_NAME_LENGTH]
    return name or "upload"


class UploadStore:
    """Persists multipart uploads into the shared working directory."""

    def __init__(self, *, directory: Path, max_bytes: int, retain: bool = True) -> None:
        self._directory = Path(directory)
        self._max_bytes = max_bytes
        self._retain = retain

    @property
    def directory(self) -> Path:
        return self._directory

    def ensure_directory(self) -> bool:
        """Create the directory if missing. Returns True when it was created."""

        if self._directory.is_dir():
            return False
        self._directory.mkdir(parents=True, exist_ok=True)
        logger.info("uploads.directory_created %s", self._directory)
        return True

    def _target_path(self, filename: Optional[str]) -> Path:
        token = f"{time.time_ns() // 1_000_000}-{uuid.uuid4().hex}"
        return self._directory / f"{token}-{sanitize_filename(filename)}"

    async def save(self, upload: UploadFile) -> StoredUpload:
        target = self._target_path(upload.filename)
        size = 0
        try:
            with open(target, "xb") as fh:
                while True:
                    chunk = await upload.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self._max_bytes:
                        raise UploadTooLarge(self._max_bytes)
                    await asyncio.to_thread(fh.write, chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        logger.info(
            "uploads.saved",
            extra={"path": str(target), "size": size, "original_filename": upload.filename},
        )
        return StoredUpload(
            path=target.resolve(),
            original_filename=upload.filename or "",
            size=size,
            content_type=upload.content_type,
        )

    def discard(self, stored: StoredUpload) -> None:
        if self._retain:
            return
        try:
            os.unlink(stored.path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("uploads.discard_failed", extra={"path": str(stored.path)}, exc_info=True)


__all__ = ["UploadStore", "sanitize_filename"]
