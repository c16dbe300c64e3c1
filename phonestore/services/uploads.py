from __future__ import annotations

import logging
import os
import random
import time
from typing import Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)


class UploadError(ValueError):
    pass


def _extension(filename: Optional[str]) -> str:
    return os.path.splitext(filename or "")[1].lower()


def unique_name(prefix: str, filename: Optional[str]) -> str:
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{prefix}-{suffix}{_extension(filename)}"


def check_image(upload: Optional[UploadFile], missing: str) -> UploadFile:
    if upload is None or not upload.filename:
        raise UploadError(missing)
    if not (upload.content_type or "").startswith("image/"):
        raise UploadError("Only image files are allowed")
    return upload


async def save_image(upload: UploadFile, directory: str, name: str, max_bytes: int) -> str:
    """Writes the upload to directory/name and returns the full path."""
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise UploadError(f"File too large (max {max_bytes // (1024 * 1024)}MB)")

    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, name)
    with open(path, "wb") as f:
        f.write(data)
    return path


def delete_upload(path: Optional[str]) -> None:
    if not path:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Error deleting uploaded file %s: %s", path, e)
