"""Transient per-item editing state: inline rename and the add-habit form."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from core.store import HabitStore


# ── Inline rename ─────────────────────────────────────────────


@dataclass(frozen=True)
class Viewing:
    pass


@dataclass(frozen=True)
class Editing:
    original: str
    draft: str


EditorState = Union[Viewing, Editing]

VIEWING = Viewing()


class InlineEditor:
    """Rename one habit at a time.

    Enter and loss of focus can both fire for one user action. commit()
    drops back to Viewing before it awaits anything, so the second call
    finds no session and does nothing.
    """

    def __init__(self, store: HabitStore) -> None:
        self.store = store
        self.state: EditorState = VIEWING

    @property
    def editing(self) -> str | None:
        return self.state.original if isinstance(self.state, Editing) else None

    def is_editing(self, name: str) -> bool:
        return self.editing == name

    def activate(self, name: str) -> bool:
        if isinstance(self.state, Editing):
            return False
        self.state = Editing(original=name, draft=name)
        return True

    def change(self, text: str) -> None:
        if isinstance(self.state, Editing):
            self.state = Editing(original=self.state.original, draft=text)

    def cancel(self) -> None:
        self.state = VIEWING

    async def commit(self) -> bool:
        """Returns True if a rename was sent to the store."""
        state = self.state
        if not isinstance(state, Editing):
            return False
        self.state = VIEWING
        draft = state.draft.strip()
        if not draft or draft == state.original:
            return False
        await self.store.rename(state.original, draft)
        return True


# ── Add form ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Collapsed:
    pass


@dataclass(frozen=True)
class Expanded:
    draft: str = ""


FormState = Union[Collapsed, Expanded]

COLLAPSED = Collapsed()


class AddItemForm:
    def __init__(self, store: HabitStore) -> None:
        self.store = store
        self.state: FormState = COLLAPSED
        self._submitting = False

    @property
    def expanded(self) -> bool:
        return isinstance(self.state, Expanded)

    @property
    def draft(self) -> str:
        return self.state.draft if isinstance(self.state, Expanded) else ""

    @property
    def can_submit(self) -> bool:
        return bool(self.draft.strip())

    def open(self) -> None:
        if not self.expanded:
            self.state = Expanded("")

    def change(self, text: str) -> None:
        if self.expanded:
            self.state = Expanded(text)

    def cancel(self) -> None:
        self.state = COLLAPSED

    def blur(self) -> None:
        if self.expanded and not self.draft.strip():
            self.state = COLLAPSED

    async def submit(self) -> bool:
        """Add the drafted habit. The form collapses afterwards whatever the outcome."""
        if not self.expanded or self._submitting:
            return False
        name = self.draft.strip()
        if not name:
            return False
        self._submitting = True
        try:
            return await self.store.add(name)
        finally:
            self._submitting = False
            self.state = COLLAPSED
