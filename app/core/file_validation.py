"""Upload size enforcement for recorded answers."""
from __future__ import annotations

import logging

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


def _too_large(max_bytes: int) -> ValidationAppError:
    return ValidationAppError(
        code="audio_too_large",
        message=f"Audio too large. Max {max_bytes // (1024 * 1024)}MB",
        details={"max_value": max_bytes},
    )


async def read_audio_upload(file: UploadFile) -> bytes:
    """Read an uploaded audio file in chunks enforcing the size limit.

    Uses ``file.size`` when the multipart headers provide it, then enforces
    the limit again while reading.

    Args:
        file: FastAPI upload file instance.

    Returns:
        The audio bytes.

    Raises:
        ValidationAppError: If the file is empty or exceeds the size limit.
    """
    max_bytes = settings.app.max_audio_bytes

    file_size = getattr(file, "size", None)
    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "audio_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes},
        )
        raise _too_large(max_bytes)

    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(_CHUNK_SIZE)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "audio_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise _too_large(max_bytes)
        chunks.append(chunk)

    if size == 0:
        raise ValidationAppError(code="audio_empty", message="Empty audio file")

    return b"".join(chunks)


def validate_audio_duration(duration_ms: float | None) -> None:
    """Reject client-reported durations above the configured maximum.

    Raises:
        ValidationAppError: If the duration is too long.
    """
    max_ms = settings.app.max_audio_duration_ms
    if duration_ms and duration_ms > max_ms:
        raise ValidationAppError(
            code="audio_too_long",
            message=f"Audio too long. Max {max_ms // 1000}s",
            details={"max_value": max_ms},
        )
