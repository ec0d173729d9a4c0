from __future__ import annotations

from fastapi import UploadFile

from asperda.core.config import get_settings
from asperda.services.storage import UploadedFile


async def read_upload(upload: UploadFile | None) -> UploadedFile | None:
    # Browsers send an empty part when no file was picked; treat it as no attachment.
    if upload is None or not upload.filename:
        return None
    # One byte past the limit is enough for storage to reject the file as oversized.
    content = await upload.read(get_settings().upload_max_bytes + 1)
    if not content:
        return None
    return UploadedFile(filename=upload.filename, content=content, content_type=upload.content_type)
