"""Habit Store: the client-held snapshot of the current week.

Every write goes to the service and is followed by a full re-fetch that
replaces the snapshot; nothing is patched locally. Failures never raise to
the caller, they land in ``state.error`` as a generic message.

Overlapping round trips are allowed. Each load takes a ticket from a
monotonically increasing counter and its response is applied only if no
later ticket has been applied already, so a slow stale response cannot
overwrite a fresher one. After ``close()`` nothing is applied at all.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Awaitable, Callable

from core.client import HabitClient
from core.logging_config import get_logger
from core.models import Habit, WeeklyHabits
from core.ordering import order_habits

logger = get_logger(__name__)

LOAD_FAILED = "Failed to load habits"
UPDATE_FAILED = "Failed to update habit"
ADD_FAILED = "Failed to add habit"
REMOVE_FAILED = "Failed to remove habit"
EDIT_FAILED = "Failed to edit habit"
REORDER_FAILED = "Failed to reorder habits"


@dataclass(frozen=True)
class StoreState:
    data: WeeklyHabits | None = None
    loading: bool = False
    error: str | None = None
    load_failed: bool = False


Listener = Callable[[StoreState], None]


class HabitStore:
    def __init__(self, client: HabitClient, atomic_rename: bool = False) -> None:
        self.client = client
        self.atomic_rename = atomic_rename
        self.state = StoreState()
        self._listeners: list[Listener] = []
        self._alive = True
        self._issued = 0
        self._applied = 0
        self._pending = 0

    # ── Subscription & liveness ───────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def alive(self) -> bool:
        return self._alive

    def close(self) -> None:
        """Detach from the view; responses still in flight are dropped."""
        self._alive = False
        self._listeners.clear()

    def _set(self, **changes: object) -> None:
        if not self._alive:
            return
        self.state = replace(self.state, **changes)
        for listener in list(self._listeners):
            listener(self.state)

    def ordered(self) -> list[Habit]:
        return order_habits(self.state.data)

    def names(self) -> set[str]:
        return set(self.state.data.habits) if self.state.data else set()

    # ── Load ──────────────────────────────────────────────────

    async def load(self) -> bool:
        """Fetch the current week. Returns True if this response was applied."""
        self._issued += 1
        ticket = self._issued
        self._pending += 1
        self._set(loading=True, error=None, load_failed=False)
        try:
            data = await self.client.fetch_current_week()
        except Exception:
            self._pending -= 1
            if not self._alive:
                return False
            if ticket < self._applied:
                logger.debug("Dropped stale failed load #%d (applied #%d)", ticket, self._applied)
                self._set(loading=self._pending > 0)
                return False
            self._applied = ticket
            logger.warning("Loading habits failed", exc_info=True)
            self._set(data=None, loading=self._pending > 0, error=LOAD_FAILED, load_failed=True)
            return False
        self._pending -= 1
        if not self._alive:
            return False
        if ticket < self._applied:
            logger.debug("Dropped stale load #%d (applied #%d)", ticket, self._applied)
            self._set(loading=self._pending > 0)
            return False
        self._applied = ticket
        self._set(data=data, loading=self._pending > 0, error=None, load_failed=False)
        return True

    # ── Mutations ─────────────────────────────────────────────

    async def _mutate(self, call: Callable[[], Awaitable[object]], message: str, what: str) -> bool:
        try:
            await call()
        except Exception:
            logger.warning("%s failed", what, exc_info=True)
            self._set(error=message)
            return False
        await self.load()
        return True

    async def toggle(self, name: str) -> bool:
        return await self._mutate(lambda: self.client.toggle(name), UPDATE_FAILED, f"toggle {name!r}")

    async def add(self, name: str) -> bool:
        """Create a habit. Blank names are ignored without a service call."""
        name = (name or "").strip()
        if not name:
            return False
        return await self._mutate(lambda: self.client.add(name), ADD_FAILED, f"add {name!r}")

    async def remove(self, name: str) -> bool:
        return await self._mutate(lambda: self.client.remove(name), REMOVE_FAILED, f"remove {name!r}")

    async def reorder(self, names: list[str]) -> bool:
        names = list(names)
        return await self._mutate(lambda: self.client.reorder(names), REORDER_FAILED, "reorder")

    async def rename(self, old_name: str, new_name: str) -> bool:
        """Give a habit a new name.

        Without atomic_rename this is add(new) then remove(old): remove only
        runs once add is confirmed, and a failed remove is retried once on
        its own, never by adding again. A name already used by another habit
        is refused before any call.
        """
        new_name = (new_name or "").strip()
        if not new_name or new_name == old_name:
            return False
        if new_name in self.names():
            logger.warning("Rename %r -> %r refused: name already in use", old_name, new_name)
            self._set(error=EDIT_FAILED)
            return False

        if self.atomic_rename:
            return await self._mutate(lambda: self.client.rename(old_name, new_name), EDIT_FAILED, "rename")

        try:
            await self.client.add(new_name)
        except Exception:
            logger.warning("Rename %r -> %r: add failed", old_name, new_name, exc_info=True)
            self._set(error=EDIT_FAILED)
            return False

        removed = await self._remove_for_rename(old_name)
        await self.load()
        if not removed and not self.state.load_failed:
            self._set(error=EDIT_FAILED)
        return removed

    async def _remove_for_rename(self, old_name: str) -> bool:
        for attempt in (1, 2):
            try:
                await self.client.remove(old_name)
                return True
            except Exception:
                logger.warning("Rename: remove %r failed (attempt %d)", old_name, attempt, exc_info=True)
        return False
