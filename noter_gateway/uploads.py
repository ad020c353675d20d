"""Upload admission and the temporary file lifecycle for audio uploads."""

import logging
import os
import re
import uuid
from collections.abc import AsyncIterator, Collection
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import UploadFile
from starlette.formparsers import MultiPartParser

from .errors import InvalidUpload

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
DEFAULT_FILENAME = "audio.m4a"
SAFE_SUFFIX = re.compile(r"\.[A-Za-z0-9]{1,10}")


def keep_parts_in_memory(max_bytes: int) -> None:
    """Raise the multipart spool threshold so parts up to ``max_bytes`` never touch disk.

    Starlette rolls parts over 1 MiB into a temporary file while parsing, which
    happens before any handler can look at the upload.
    """
    MultiPartParser.spool_max_size = max_bytes


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    # Measure the spooled body in place; nothing is copied.
    position = upload.file.tell()
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(position)
    return size


def admit_upload(upload: UploadFile, max_bytes: int, allowed_types: Collection[str]) -> None:
    """Reject the upload before anything is written to the upload directory."""
    if upload.content_type not in allowed_types:
        raise InvalidUpload("audio format not allowed")
    if _upload_size(upload) > max_bytes:
        raise InvalidUpload("audio file too large")


def upload_filename(upload: UploadFile) -> str:
    return upload.filename or DEFAULT_FILENAME


class TemporaryUploadStore:
    """Persists admitted uploads under generated names and removes them afterwards."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _new_path(self, filename: str) -> Path:
        suffix = Path(filename).suffix
        if not SAFE_SUFFIX.fullmatch(suffix):
            suffix = ""
        return self.directory / f"{uuid.uuid4().hex}{suffix}"

    @asynccontextmanager
    async def persist(self, upload: UploadFile) -> AsyncIterator[Path]:
        """Write the upload to disk and yield its path.

        The file is removed exactly once when the block exits, whatever the
        outcome. A failed removal is logged and never raised.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path = self._new_path(upload_filename(upload))
        try:
            await upload.seek(0)
            with open(tmp_path, "wb") as f:
                while chunk := await upload.read(CHUNK_SIZE):
                    f.write(chunk)
            yield tmp_path
        finally:
            self.remove(tmp_path)

    @staticmethod
    def remove(path: Path) -> None:
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Could not delete temporary file %s: %s", path, exc)
