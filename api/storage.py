"""Reality Debugger — flat-directory blob store for uploaded videos.

Blobs are named ``<uuid4><ext>``. There is no metadata database; lookup
matches the file id exactly against the blob stem.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from errors import AmbiguousUploadError, UploadNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".mp4"


@dataclass(frozen=True)
class StoredUpload:
    file_id: str
    file_name: str
    path: Path


def _is_uuid(value: str) -> bool:
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def save_upload(upload_dir: Path, data: bytes, original_name: str) -> StoredUpload:
    """Write ``data`` under a freshly generated id, keeping the original extension."""
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_id = str(uuid.uuid4())
    ext = Path(original_name).suffix.lower() or DEFAULT_EXTENSION
    file_name = f"{file_id}{ext}"
    path = upload_dir / file_name

    path.write_bytes(data)
    logger.info("Stored upload %s (%d bytes) as %s", original_name, len(data), path)
    return StoredUpload(file_id=file_id, file_name=file_name, path=path)


def find_upload(upload_dir: Path, file_id: str) -> Path:
    """Resolve a file id to its stored blob.

    Raises:
        UploadNotFoundError: id is not a UUID or nothing is stored under it.
        AmbiguousUploadError: more than one blob shares the id.
    """
    if not _is_uuid(file_id) or not upload_dir.is_dir():
        raise UploadNotFoundError(file_id)

    matches = sorted(p for p in upload_dir.iterdir() if p.is_file() and p.stem == file_id.lower())
    if not matches:
        raise UploadNotFoundError(file_id)
    if len(matches) > 1:
        raise AmbiguousUploadError(file_id, [p.name for p in matches])
    return matches[0]
