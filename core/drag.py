"""Drag-Reorder Controller: one pointer-drag gesture over the ordered habits.

Indices are positions in the combined ordered sequence (core.ordering),
never positions within the incomplete or completed half.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Sequence, TypeVar, Union

from core.logging_config import get_logger
from core.models import Habit

if TYPE_CHECKING:
    from core.editing import InlineEditor
    from core.store import HabitStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    source: int


@dataclass(frozen=True)
class DragOver:
    source: int
    target: int


DragState = Union[Idle, Dragging, DragOver]

IDLE = Idle()


def move_item(seq: Sequence[T], source: int, target: int) -> list[T]:
    """Remove the element at *source*, then insert it at *target*.

    Removal happens first, so for source < target the later elements have
    already shifted down by one: [A, B, C, D] with 0 -> 2 gives [B, C, A, D].
    """
    items = list(seq)
    item = items.pop(source)
    items.insert(target, item)
    return items


def commit_order(ordered: Sequence[Habit], source: int, target: int) -> list[Habit]:
    """Move one habit and renumber order 0..n-1 across the whole sequence."""
    return [replace(h, order=i) for i, h in enumerate(move_item(ordered, source, target))]


class DragReorderController:
    def __init__(self, store: HabitStore, editor: InlineEditor | None = None) -> None:
        self.store = store
        self.editor = editor
        self.state: DragState = IDLE

    @property
    def source(self) -> int | None:
        return self.state.source if isinstance(self.state, (Dragging, DragOver)) else None

    @property
    def target(self) -> int | None:
        return self.state.target if isinstance(self.state, DragOver) else None

    def is_dragged(self, index: int) -> bool:
        return self.source == index

    def is_drop_target(self, index: int) -> bool:
        """True for the hovered pill when dropping there would move something."""
        return self.target == index and self.source != index

    def start(self, index: int) -> bool:
        if self.editor is not None and self.editor.editing is not None:
            return False
        self.state = Dragging(index)
        return True

    def over(self, index: int) -> None:
        source = self.source
        if source is None:
            return
        self.state = DragOver(source, index)

    def end(self) -> None:
        """Gesture finished without a drop."""
        self.state = IDLE

    def leave(self) -> None:
        """Pointer left the drop surface."""
        self.state = IDLE

    async def drop(self, ordered: Sequence[Habit] | None = None) -> bool:
        """Commit the gesture. Returns True if a reorder was sent.

        The controller is back in Idle before the reorder call goes out, so
        a failed commit is never retried from here.
        """
        state = self.state
        self.state = IDLE
        if not isinstance(state, DragOver) or state.source == state.target:
            return False
        if ordered is None:
            ordered = self.store.ordered()
        n = len(ordered)
        if not (0 <= state.source < n and 0 <= state.target < n):
            logger.debug("Drop outside the list ignored: %s (n=%d)", state, n)
            return False
        names = [h.name for h in commit_order(ordered, state.source, state.target)]
        logger.debug("Drop %d -> %d: %s", state.source, state.target, names)
        await self.store.reorder(names)
        return True
