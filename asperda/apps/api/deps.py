from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from asperda.core.config import get_settings
from asperda.core.errors import Unauthenticated
from asperda.domain.state import CallerProfile
from asperda.persistence.db import get_session
from asperda.persistence.store import RecordStore
from asperda.services.auth.profiles import CallerContext
from asperda.services.storage import FileStorage, LocalFileStorage


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    # One AsyncSession per request; context manager ensures close on success/error.
    async with get_session() as session:
        yield session


async def get_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_storage() -> FileStorage:
    return LocalFileStorage()


def _parse_bearer_token(header_value: str | None) -> str | None:
    # Enforce Bearer token format for session authentication.
    if not header_value:
        return None
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthenticated("Missing or invalid bearer token")
    return parts[1]


def get_bearer_token(request: Request) -> str | None:
    settings = get_settings()
    return _parse_bearer_token(request.headers.get(settings.auth_header))


async def get_caller(
    token: str | None = Depends(get_bearer_token),
    store: RecordStore = Depends(get_store),
) -> CallerContext:
    return CallerContext(store, token)


async def get_profile(caller: CallerContext = Depends(get_caller)) -> CallerProfile:
    # Resolve once per request; routes share the memoized profile through the context.
    return await caller.profile()
