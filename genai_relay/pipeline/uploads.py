"""
Temporary on-disk storage for uploaded files.

Each upload is written to its own uuid-named file under the upload directory
and removed again when the owning request finishes, whatever the outcome.
"""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Union

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from .errors import PayloadTooLargeError, UnsupportedMediaError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 20 * 1024 * 1024
DEFAULT_CHUNK_SIZE = 1024 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadedFile:
    path: Path
    mime_type: str
    size_bytes: int
    field_name: str
    filename: Optional[str] = None


class UploadStore:
    def __init__(
        self,
        directory: Union[str, Path],
        max_bytes: int = DEFAULT_MAX_BYTES,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        allowed_mime_types: Optional[Dict[str, List[str]]] = None,
    ):
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.chunk_size = chunk_size
        self.allowed_mime_types = allowed_mime_types or {}

    @classmethod
    def from_config(cls, config: Dict) -> "UploadStore":
        return cls(
            directory=config.get("dir", "uploads"),
            max_bytes=int(config.get("max_bytes", DEFAULT_MAX_BYTES)),
            chunk_size=int(config.get("chunk_size", DEFAULT_CHUNK_SIZE)),
            allowed_mime_types=config.get("allowed_mime_types") or {},
        )

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def check_mime_type(self, kind: str, mime_type: str) -> None:
        """Kinds without an allow-list accept any mime type; entries match by prefix."""
        allowed = self.allowed_mime_types.get(kind)
        if not allowed:
            return
        if not any(mime_type.startswith(prefix) for prefix in allowed):
            raise UnsupportedMediaError(f"Unsupported {kind} type: {mime_type}")

    async def store(self, upload: UploadFile, field_name: str, kind: Optional[str] = None) -> UploadedFile:
        mime_type = upload.content_type or DEFAULT_MIME_TYPE
        self.check_mime_type(kind or field_name, mime_type)

        uploaded = UploadedFile(
            path=self.directory / uuid.uuid4().hex,
            mime_type=mime_type,
            size_bytes=0,
            field_name=field_name,
            filename=upload.filename,
        )

        size = 0
        handle = await run_in_threadpool(open, uploaded.path, "xb")
        try:
            while True:
                chunk = await upload.read(self.chunk_size)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_bytes:
                    raise PayloadTooLargeError(
                        f"Uploaded {field_name} exceeds the {self.max_bytes} byte limit."
                    )
                await run_in_threadpool(handle.write, chunk)
        except BaseException:
            await run_in_threadpool(handle.close)
            await self.release(uploaded)
            raise
        await run_in_threadpool(handle.close)

        logger.debug(f"Stored {field_name} upload ({size} bytes) at {uploaded.path}")
        return UploadedFile(
            path=uploaded.path,
            mime_type=mime_type,
            size_bytes=size,
            field_name=field_name,
            filename=upload.filename,
        )

    async def release(self, file: UploadedFile) -> bool:
        """Delete the file; a file that is already gone is a no-op. Never raises OSError."""
        try:
            await run_in_threadpool(os.remove, file.path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete temporary upload {file.path}: {e}")
            return False
        return True

    @asynccontextmanager
    async def hold(self, upload: UploadFile, field_name: str, kind: Optional[str] = None) -> AsyncIterator[UploadedFile]:
        uploaded = await self.store(upload, field_name, kind)
        try:
            yield uploaded
        finally:
            await self.release(uploaded)
