from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from asperda.apps.api.errors import (
    asperda_exception_handler,
    http_exception_handler,
    starlette_http_exception_handler,
    tenant_predicate_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from asperda.apps.api.routes.account import router as account_router
from asperda.apps.api.routes.admin import router as admin_router
from asperda.apps.api.routes.auth import router as auth_router
from asperda.apps.api.routes.blacklist import router as blacklist_router
from asperda.apps.api.routes.finance import router as finance_router
from asperda.apps.api.routes.health import router as health_router
from asperda.apps.api.routes.high_seasons import router as high_seasons_router
from asperda.apps.api.routes.settings import router as settings_router
from asperda.core.config import get_settings
from asperda.core.errors import AsperdaError
from asperda.core.logging import configure_logging
from asperda.persistence.guards import TenantPredicateError


API_VERSION = "v1"

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=get_settings().app_name)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):  # type: ignore[override]
        # Preserve incoming request IDs or assign a new one for traceability.
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        start = time.monotonic()
        response = await call_next(request)
        latency_ms = (time.monotonic() - start) * 1000.0
        logger.info(
            "request_completed method=%s path=%s status=%s latency_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            latency_ms,
        )
        response.headers.setdefault("X-Request-Id", request_id)
        return response

    @app.exception_handler(AsperdaError)
    async def _asperda_exception_handler(request: Request, exc: AsperdaError):
        return await asperda_exception_handler(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        return await starlette_http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        return await unhandled_exception_handler(request, exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        return await validation_exception_handler(request, exc)

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        return await http_exception_handler(request, exc)

    @app.exception_handler(TenantPredicateError)
    async def _tenant_predicate_exception_handler(request: Request, exc: TenantPredicateError):
        return await tenant_predicate_exception_handler(request, exc)

    app.include_router(health_router, prefix=f"/{API_VERSION}")
    app.include_router(auth_router, prefix=f"/{API_VERSION}")
    app.include_router(account_router, prefix=f"/{API_VERSION}")
    # Association-level review screens; each endpoint scopes by the caller's role.
    app.include_router(admin_router, prefix=f"/{API_VERSION}")
    app.include_router(blacklist_router, prefix=f"/{API_VERSION}")
    app.include_router(finance_router, prefix=f"/{API_VERSION}")
    app.include_router(high_seasons_router, prefix=f"/{API_VERSION}")
    app.include_router(settings_router, prefix=f"/{API_VERSION}")
    return app


app = create_app()
