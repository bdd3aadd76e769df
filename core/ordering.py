"""Display order of a week's habits.

The combined ordered sequence is the index space for drag-and-drop and
reorder commits. The incomplete/completed split built by pill_rows is for
rendering only.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.models import Habit, WeeklyHabits


def order_habits(weekly: WeeklyHabits | None) -> list[Habit]:
    """Incomplete before completed, then by order.

    sorted() is stable and dict iteration follows insertion order, so equal
    (completed, order) keys keep the order the habits were inserted in.
    """
    if weekly is None:
        return []
    return sorted(weekly.habits.values(), key=lambda h: (h.completed, h.order))


@dataclass(frozen=True)
class PillRow:
    habit: Habit
    index: int  # position in the combined ordered sequence


@dataclass(frozen=True)
class PillLayout:
    incomplete: list[PillRow]
    completed: list[PillRow]

    @property
    def show_separator(self) -> bool:
        return bool(self.completed)

    def rows(self) -> list[PillRow]:
        return self.incomplete + self.completed


def pill_rows(ordered: list[Habit]) -> PillLayout:
    """Split an ordered sequence for rendering, keeping each pill's combined index."""
    incomplete = []
    completed = []
    for i, habit in enumerate(ordered):
        row = PillRow(habit=habit, index=i)
        (completed if habit.completed else incomplete).append(row)
    return PillLayout(incomplete=incomplete, completed=completed)
