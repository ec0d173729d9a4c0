from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path, PurePath
from typing import Protocol
from uuid import uuid4

from asperda.core.config import get_settings
from asperda.core.errors import UpstreamFailure, ValidationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes
    content_type: str | None = None


class FileStorage(Protocol):
    async def upload(self, bucket: str, file: UploadedFile) -> str:
        """Store the file and return its public URL."""
        ...


def _object_name(file: UploadedFile) -> str:
    # Random object names keep user-supplied filenames out of storage paths.
    suffix = PurePath(file.filename).suffix.lower()
    if suffix and not suffix[1:].isalnum():
        suffix = ""
    return f"{uuid4().hex}{suffix}"


class LocalFileStorage:
    """Filesystem-backed storage for development and tests."""

    def __init__(self, root: Path | str | None = None, base_url: str | None = None) -> None:
        settings = get_settings()
        self._root = Path(root or settings.storage_dir)
        self._base_url = (base_url or settings.storage_base_url).rstrip("/")

    async def upload(self, bucket: str, file: UploadedFile) -> str:
        settings = get_settings()
        if len(file.content) > settings.upload_max_bytes:
            raise ValidationError("Attachment exceeds the upload size limit", field="file")
        name = _object_name(file)
        target_dir = self._root / bucket
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            (target_dir / name).write_bytes(file.content)
        except OSError as exc:
            raise UpstreamFailure(f"Upload to {bucket} failed: {exc}", bucket=bucket) from exc
        return f"{self._base_url}/{bucket}/{name}"


async def upload_best_effort(storage: FileStorage | None, bucket: str, file: UploadedFile | None) -> str | None:
    # Attachments never block the enclosing record save; log and continue without one.
    if storage is None or file is None:
        return None
    try:
        return await storage.upload(bucket, file)
    except (UpstreamFailure, ValidationError) as exc:
        logger.warning("attachment_upload_failed bucket=%s filename=%s", bucket, file.filename, exc_info=exc)
        return None
