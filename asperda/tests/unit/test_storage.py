from __future__ import annotations

import pytest

from asperda.core.config import get_settings
from asperda.core.errors import UpstreamFailure, ValidationError
from asperda.services.storage import LocalFileStorage, UploadedFile, upload_best_effort


@pytest.mark.asyncio
async def test_local_storage_writes_under_bucket(tmp_path) -> None:
    storage = LocalFileStorage(root=tmp_path, base_url="http://files.test/")
    url = await storage.upload("blacklist-evidence", UploadedFile(filename="../../ktp.JPG", content=b"data"))

    assert url.startswith("http://files.test/blacklist-evidence/")
    assert url.endswith(".jpg")
    stored = list((tmp_path / "blacklist-evidence").iterdir())
    assert len(stored) == 1
    assert stored[0].read_bytes() == b"data"


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("UPLOAD_MAX_BYTES", "3")
    get_settings.cache_clear()
    storage = LocalFileStorage(root=tmp_path)
    with pytest.raises(ValidationError):
        await storage.upload("finance-proofs", UploadedFile(filename="nota.png", content=b"1234"))


@pytest.mark.asyncio
async def test_best_effort_upload_swallows_upstream_failures() -> None:
    class Broken:
        async def upload(self, bucket: str, file: UploadedFile) -> str:
            raise UpstreamFailure("offline")

    file = UploadedFile(filename="nota.png", content=b"png")
    assert await upload_best_effort(Broken(), "finance-proofs", file) is None
    assert await upload_best_effort(None, "finance-proofs", file) is None
    assert await upload_best_effort(Broken(), "finance-proofs", None) is None
