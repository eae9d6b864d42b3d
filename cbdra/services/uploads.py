"""Incident media uploads stored under the public uploads directory."""
import logging
import os
import secrets
import shutil
import time
from os import SEEK_END
from typing import List

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from cbdra.core.config import settings
from cbdra.core.errors import InvalidRequestError

logger = logging.getLogger("cbdra.uploads")

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/ogg": ".ogg",
}


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


def _stored_name(file: UploadFile) -> str:
    # The static mount serves by extension, so it must follow the accepted content type
    extension = ALLOWED_CONTENT_TYPES[file.content_type]
    return f"{int(time.time() * 1000)}_{secrets.token_hex(6)}{extension}"


async def validate_files(files: List[UploadFile]) -> None:
    """
    Reject the whole batch if any file has a disallowed type or is too large.
    """
    if not files:
        raise InvalidRequestError("No files uploaded")
    max_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
    for file in files:
        if file.content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidRequestError(f"File type {file.content_type} not allowed")
        if await get_upload_file_size(file) > settings.MAX_UPLOAD_SIZE:
            raise InvalidRequestError(f"File size too large. Maximum {max_mb}MB allowed.")


def _write(file: UploadFile, path: str) -> None:
    file.file.seek(0)
    with open(path, "wb") as out:
        shutil.copyfileobj(file.file, out)


async def save_files(files: List[UploadFile]) -> List[str]:
    """
    Validate then store every file, returning their public URLs in order.
    """
    await validate_files(files)
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    urls = []
    for file in files:
        name = _stored_name(file)
        await run_in_threadpool(_write, file, os.path.join(settings.UPLOAD_DIR, name))
        urls.append(f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{name}")
    logger.info(f"Files uploaded: count={len(urls)}")
    return urls
