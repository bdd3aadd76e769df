"""Habit service clients: the request/response boundary the Store talks to.

Clients hold no habit state. Every failure surfaces as a HabitServiceError
tagged with an ErrorKind.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from core.errors import ErrorKind, HabitServiceError, error_for_kind
from core.habits import HabitService
from core.logging_config import get_logger
from core.models import WeeklyHabits
from core.workspace import current_week

logger = get_logger(__name__)


class HabitClient(Protocol):
    async def fetch_current_week(self) -> WeeklyHabits: ...

    async def toggle(self, name: str) -> None: ...

    async def add(self, name: str) -> None: ...

    async def remove(self, name: str) -> None: ...

    async def reorder(self, names: list[str]) -> None: ...

    async def rename(self, old_name: str, new_name: str) -> None: ...


# ── In-process ────────────────────────────────────────────────


class LocalHabitClient:
    """Calls a HabitService in this process.

    The file I/O runs off the event loop; results come back to the caller's
    loop. Writes go to the current ISO week unless *week* pins one.
    """

    def __init__(self, service: HabitService, week: tuple[int, int] | None = None) -> None:
        self.service = service
        self.week = week

    def _week(self) -> tuple[int, int]:
        return self.week or current_week()

    async def _call(self, fn: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except HabitServiceError:
            raise
        except Exception as e:
            logger.exception("Habit service call %s failed", getattr(fn, "__name__", fn))
            raise HabitServiceError(str(e), ErrorKind.INTERNAL) from e

    async def fetch_current_week(self) -> WeeklyHabits:
        year, week = self._week()
        return await self._call(self.service.load_week, year, week)

    async def toggle(self, name: str) -> None:
        await self._call(self.service.toggle, *self._week(), name)

    async def add(self, name: str) -> None:
        await self._call(self.service.add, *self._week(), name)

    async def remove(self, name: str) -> None:
        await self._call(self.service.remove, *self._week(), name)

    async def reorder(self, names: list[str]) -> None:
        await self._call(self.service.reorder, *self._week(), list(names))

    async def rename(self, old_name: str, new_name: str) -> None:
        await self._call(self.service.rename, *self._week(), old_name, new_name)


# ── HTTP ──────────────────────────────────────────────────────


_STATUS_KINDS = {
    400: ErrorKind.INVALID,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.INVALID,
}


class HttpHabitClient:
    """Talks to the FastAPI backend in ui/app.py."""

    def __init__(
        self,
        base_url: str,
        auth: tuple[str, str] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            resp = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise HabitServiceError(f"Cannot reach habit service: {e}", ErrorKind.NETWORK) from e
        if resp.is_error:
            raise self._error_from(resp)
        return resp.json()

    @staticmethod
    def _error_from(resp: httpx.Response) -> HabitServiceError:
        detail = resp.reason_phrase
        kind = _STATUS_KINDS.get(resp.status_code)
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if isinstance(body, dict):
            detail = str(body.get("detail", detail))
            try:
                kind = ErrorKind(body.get("kind")) if body.get("kind") else kind
            except ValueError:
                pass
        if kind is None:
            kind = ErrorKind.STORAGE if resp.status_code >= 500 else ErrorKind.INTERNAL
        return error_for_kind(kind, f"HTTP {resp.status_code}: {detail}")

    async def fetch_current_week(self) -> WeeklyHabits:
        return WeeklyHabits.from_dict(await self._request("GET", "/api/habits/current"))

    async def toggle(self, name: str) -> None:
        await self._request("POST", "/api/habits/toggle", json={"name": name})

    async def add(self, name: str) -> None:
        await self._request("POST", "/api/habits", json={"name": name})

    async def remove(self, name: str) -> None:
        await self._request("DELETE", f"/api/habits/{quote(name, safe='')}")

    async def reorder(self, names: list[str]) -> None:
        await self._request("POST", "/api/habits/reorder", json={"names": list(names)})

    async def rename(self, old_name: str, new_name: str) -> None:
        await self._request("POST", "/api/habits/rename", json={"old_name": old_name, "new_name": new_name})
