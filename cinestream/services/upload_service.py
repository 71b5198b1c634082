"""Media uploads to the object store.

Uploaded files are stored under ``<field>/<epoch-ms>-<random>-<name>`` and
only the resulting key is returned; the caller persists it on a movie.
"""

from __future__ import annotations

import asyncio
import logging
import re
import secrets
import time
from typing import Optional

from fastapi import HTTPException, UploadFile, status

from cinestream.core.config import settings
from cinestream.storage.s3_client import ObjectStore, S3StorageError, get_object_store

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_LENGTH = 100


def sanitize_filename(filename: str) -> str:
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_NAME_CHARS_RE.sub("-", name)
    name = re.sub(r"\.{2,}", ".", name).strip(".-")
    return name[-_MAX_NAME_LENGTH:] or "file"


def build_object_key(field_name: str, filename: str) -> str:
    epoch_ms = int(time.time() * 1000)
    nonce = secrets.randbelow(10**9)
    return f"{field_name}/{epoch_ms}-{nonce:09d}-{sanitize_filename(filename)}"


def _upload_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    stream = file.file
    position = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(position)
    return size


async def upload_media(
    file: Optional[UploadFile],
    *,
    field_name: str,
    media_type: str,
    store: Optional[ObjectStore] = None,
) -> str:
    """Validate and store one uploaded file, returning its object key.

    ``media_type`` is the required MIME major type (``video`` or ``image``).
    """

    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded"
        )

    content_type = (file.content_type or "").lower()
    if not content_type.startswith(f"{media_type}/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {media_type} files are allowed",
        )

    if _upload_size(file) > settings.MAX_UPLOAD_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.MAX_UPLOAD_SIZE_BYTES} byte limit",
        )

    if store is None:
        store = get_object_store()

    key = build_object_key(field_name, file.filename)
    try:
        return await asyncio.to_thread(
            store.upload_fileobj,
            key,
            file.file,
            content_type=content_type,
            field_name=field_name,
            cache_control=settings.UPLOAD_CACHE_CONTROL,
        )
    except S3StorageError as exc:
        logger.error("Upload of %s failed: %s", key, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store uploaded file",
        ) from exc
