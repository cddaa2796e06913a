"""Helpers for reading multipart uploads with size limits."""

from __future__ import annotations

from dataclasses import dataclass
from os import SEEK_END
from urllib.parse import quote

from fastapi import Response, UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.errors import AppError, ValidationError

MULTIPART_OVERHEAD_BYTES = 64 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"


class FileTooLargeError(AppError):
    status_code = 413
    error = "Payload too large"


@dataclass
class UploadedFile:
    """An upload fully read into memory."""
    file_name: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def content_length_exceeds_limit(
    content_length_header: str | None,
    *,
    max_size_bytes: int,
    overhead_bytes: int = MULTIPART_OVERHEAD_BYTES,
) -> bool:
    """Return True when Content-Length clearly exceeds the allowed request size."""
    if not content_length_header:
        return False
    try:
        content_length = int(content_length_header)
    except (TypeError, ValueError):
        return False
    return content_length > (max_size_bytes + overhead_bytes)


async def get_upload_file_size(file: UploadFile) -> int:
    """Read size from the underlying file object without loading into memory."""

    def _get_size() -> int:
        stream = file.file
        original_pos = stream.tell()
        try:
            stream.seek(0, SEEK_END)
            return stream.tell()
        finally:
            stream.seek(original_pos)

    return await run_in_threadpool(_get_size)


async def read_upload(file: UploadFile, *, max_size_bytes: int) -> UploadedFile:
    """
    Check the spooled size, then read the upload into memory.

    Raises:
        ValidationError: no file name or empty file
        FileTooLargeError: file larger than max_size_bytes
    """
    if not file.filename:
        raise ValidationError("No file uploaded")
    size = await get_upload_file_size(file)
    if size > max_size_bytes:
        max_mb = max_size_bytes / (1024 * 1024)
        raise FileTooLargeError(f"File size exceeds {max_mb:.0f} MB limit")
    content = await file.read()
    if not content:
        raise ValidationError(f"{file.filename} is empty")
    return UploadedFile(
        file_name=file.filename,
        mime_type=(file.content_type or DEFAULT_MIME_TYPE).split(";")[0].strip().lower(),
        content=content,
    )


def attachment_response(content: bytes, media_type: str, file_name: str) -> Response:
    """Download response with a UTF-8 safe Content-Disposition."""
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"},
    )
