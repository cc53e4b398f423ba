"""
Attachment file storage on the local filesystem.

Uploads are streamed to ``UPLOAD_DIR`` in chunks under a generated name;
the original name is kept only in the database row.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from vortexboard.config import settings
from vortexboard.errors import ValidationError
from vortexboard.models.attachment import format_file_size
from vortexboard.utils.logger import setup_logger
from vortexboard.utils.object_id import generate_object_id

logger = setup_logger("storage")

CHUNK_SIZE = 1024 * 1024
SAFE_SUFFIX = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


@dataclass(frozen=True)
class StoredFile:
    filename: str
    path: str
    size: int


def _stored_name(original_name: str) -> str:
    suffix = Path(original_name).suffix
    return generate_object_id() + (suffix.lower() if SAFE_SUFFIX.match(suffix) else "")


async def save_upload(
    upload: UploadFile,
    upload_dir: str | None = None,
    max_bytes: int | None = None,
) -> StoredFile:
    """Write an upload to disk, rejecting it once it exceeds ``max_bytes``."""
    upload_dir = upload_dir or settings.upload_dir
    max_bytes = max_bytes if max_bytes is not None else settings.max_attachment_bytes

    if not upload.filename:
        raise ValidationError("Please upload a file")

    os.makedirs(upload_dir, exist_ok=True)
    filename = _stored_name(upload.filename)
    path = os.path.join(upload_dir, filename)

    size = 0
    with open(path, "wb") as out:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_bytes:
                break
            out.write(chunk)

    if size > max_bytes:
        remove_stored_file(path)
        raise ValidationError(
            f"File size cannot exceed {format_file_size(max_bytes)}"
        )

    logger.debug(f"Stored upload '{upload.filename}' as {path} ({size} bytes)")
    return StoredFile(filename=filename, path=path, size=size)


def remove_stored_file(path: str) -> bool:
    """Delete a stored file. Missing files and OS errors are logged, not raised."""
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        logger.warning(f"Attachment file already missing: {path}")
    except OSError as e:
        logger.error(f"Failed to remove attachment file {path}: {e}")
    return False
