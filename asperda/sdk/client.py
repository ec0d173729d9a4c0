from __future__ import annotations

import asyncio
from typing import Any

import httpx

from asperda.services.snapshots import LatestSnapshot


class ApiError(Exception):
    """Error envelope returned by the ASPERDA API."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}


def _api_error(response: httpx.Response) -> ApiError:
    try:
        error = response.json().get("error") or {}
    except ValueError:
        error = {}
    return ApiError(
        response.status_code,
        error.get("code", "HTTP_ERROR"),
        error.get("message", response.reason_phrase),
        error.get("details"),
    )


class AsperdaClient:
    """Async client for dashboards and scripts talking to the ASPERDA API.

    Reviewer lists are loaded through ``LatestSnapshot``: when a screen
    reloads a list before an earlier load finished, or the user navigates
    away (``abandon_lists``), the late response is dropped instead of
    replacing the newer snapshot.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_backoff: float = 0.25,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._token = token
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self.pending_members: LatestSnapshot[list[dict[str, Any]]] = LatestSnapshot()
        self.active_members: LatestSnapshot[list[dict[str, Any]]] = LatestSnapshot()
        self.pending_reports: LatestSnapshot[list[dict[str, Any]]] = LatestSnapshot()

    async def __aenter__(self) -> "AsperdaClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        attempt = 0
        while True:
            response = await self._http.request(method, path, headers=headers, **kwargs)
            # Retry only on temporary unavailability; every other error is final.
            if response.status_code == 503 and attempt < self._max_retries:
                await asyncio.sleep(min(2.0, self._retry_backoff * (2**attempt)))
                attempt += 1
                continue
            if response.status_code >= 400:
                raise _api_error(response)
            if response.status_code == 204 or not response.content:
                return None
            return response.json()

    async def login(self, email: str, password: str) -> dict[str, Any]:
        body = await self._request("POST", "/v1/auth/login", json={"email": email, "password": password})
        self._token = body["access_token"]
        return body["profile"]

    async def logout(self) -> None:
        await self._request("POST", "/v1/auth/logout")
        self._token = None
        self.abandon_lists()

    def abandon_lists(self) -> None:
        # Called when the reviewer leaves the screen; in-flight loads are discarded.
        for snapshot in (self.pending_members, self.active_members, self.pending_reports):
            snapshot.abandon()

    async def load_pending_members(self) -> list[dict[str, Any]] | None:
        return await self.pending_members.load(lambda: self._request("GET", "/v1/admin/members/pending"))

    async def load_active_members(self) -> list[dict[str, Any]] | None:
        return await self.active_members.load(lambda: self._request("GET", "/v1/admin/members/active"))

    async def load_pending_reports(self) -> list[dict[str, Any]] | None:
        return await self.pending_reports.load(lambda: self._request("GET", "/v1/admin/blacklist-reports"))

    async def approve_report(self, report_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/v1/admin/blacklist-reports/{report_id}/approve")

    async def reject_report(self, report_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/v1/admin/blacklist-reports/{report_id}/reject")

    async def set_member_status(self, company_id: str, status: str) -> dict[str, Any]:
        return await self._request("POST", f"/v1/admin/members/{company_id}/status", json={"status": status})

    async def set_member_compliance(self, company_id: str, verification_status: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/v1/admin/members/{company_id}/compliance",
            json={"verification_status": verification_status},
        )
