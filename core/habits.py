"""File-backed habit service: one markdown note per ISO week.

This is the backend half of the habit contract. Every operation loads the
week from disk, applies one change and writes it back; callers re-fetch to
see the result.
"""

from __future__ import annotations

from pathlib import Path

from core.errors import HabitConflictError, HabitNotFoundError, InvalidHabitError, StorageError
from core.fileio import read_text, write_text_atomic
from core.logging_config import get_logger
from core.markdown import extract_habits, new_weekly_note, replace_habits_section
from core.models import Config, Habit, WeeklyHabits
from core.ordering import order_habits
from core.workspace import current_week, previous_week, week_title, weekly_note_path

logger = get_logger(__name__)


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidHabitError("Habit name must not be empty")
    if "\n" in cleaned or "\r" in cleaned:
        raise InvalidHabitError("Habit name must be a single line")
    return cleaned


class HabitService:
    """Habit CRUD over weekly notes in the configured workspace."""

    def __init__(self, config: Config) -> None:
        self.config = config

    # ── Paths & I/O ───────────────────────────────────────────

    def weekly_file_path(self, year: int, week: int) -> Path:
        return weekly_note_path(self.config, year, week)

    def _read_note(self, path: Path) -> str:
        try:
            return read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read weekly file {path}: {e}") from e

    def load_week(self, year: int, week: int) -> WeeklyHabits:
        """Load a week; a week without a note starts from last week's habits."""
        path = self.weekly_file_path(year, week)
        if not path.exists():
            return self._new_week(year, week)
        habits = extract_habits(self._read_note(path))
        return WeeklyHabits(
            year=year,
            week_number=week,
            habits={h.name: h for h in habits},
        )

    def _new_week(self, year: int, week: int) -> WeeklyHabits:
        names = self.default_habit_names(year, week)
        weekly = WeeklyHabits(year=year, week_number=week)
        for i, name in enumerate(names):
            weekly.habits[name] = Habit(name=name, completed=False, order=i)
        return weekly

    def default_habit_names(self, year: int, week: int) -> list[str]:
        """Names from the previous week's note, in file order; [] if there is none."""
        prev_year, prev_week = previous_week(year, week)
        path = self.weekly_file_path(prev_year, prev_week)
        if not path.exists():
            return []
        try:
            habits = extract_habits(read_text(path))
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read previous week %s", path, exc_info=True)
            return []
        return [h.name for h in habits]

    def save_week(self, weekly: WeeklyHabits) -> None:
        path = self.weekly_file_path(weekly.year, weekly.week_number)
        existing = self._read_note(path) if path.exists() else new_weekly_note(week_title(weekly.week_number))
        content = replace_habits_section(existing, order_habits(weekly), week_title(weekly.week_number))
        try:
            write_text_atomic(path, content)
        except OSError as e:
            raise StorageError(f"Failed to write weekly file {path}: {e}") from e

    # ── Operations ────────────────────────────────────────────

    def get_current_week(self) -> WeeklyHabits:
        year, week = current_week()
        return self.load_week(year, week)

    def toggle(self, year: int, week: int, name: str) -> Habit:
        weekly = self.load_week(year, week)
        habit = weekly.habits.get(name)
        if habit is None:
            raise HabitNotFoundError(f"Habit not found: {name}")
        habit.completed = not habit.completed
        self.save_week(weekly)
        logger.info("Toggled %r -> %s (%d-W%02d)", name, habit.completed, year, week)
        return habit

    def add(self, year: int, week: int, name: str) -> Habit:
        """Append a habit after the highest order. An existing name is left as is."""
        name = _clean_name(name)
        weekly = self.load_week(year, week)
        habit = weekly.habits.get(name)
        if habit is None:
            habit = Habit(name=name, completed=False, order=weekly.max_order() + 1)
            weekly.habits[name] = habit
            logger.info("Added %r (%d-W%02d)", name, year, week)
        else:
            logger.info("Add of existing habit %r ignored", name)
        self.save_week(weekly)
        return habit

    def remove(self, year: int, week: int, name: str) -> bool:
        weekly = self.load_week(year, week)
        removed = weekly.habits.pop(name, None) is not None
        self.save_week(weekly)
        if removed:
            logger.info("Removed %r (%d-W%02d)", name, year, week)
        return removed

    def reorder(self, year: int, week: int, names: list[str]) -> None:
        """Assign order = position in *names*; unnamed habits follow in their old order."""
        weekly = self.load_week(year, week)
        position = 0
        seen = set()
        for name in names:
            habit = weekly.habits.get(name)
            if habit is None or name in seen:
                continue
            seen.add(name)
            habit.order = position
            position += 1
        rest = sorted((h for n, h in weekly.habits.items() if n not in seen), key=lambda h: h.order)
        for habit in rest:
            habit.order = position
            position += 1
        self.save_week(weekly)
        logger.info("Reordered %d habits (%d-W%02d)", len(seen), year, week)

    def rename(self, year: int, week: int, old_name: str, new_name: str) -> Habit:
        """Rename in a single write, keeping completion and order."""
        new_name = _clean_name(new_name)
        weekly = self.load_week(year, week)
        habit = weekly.habits.get(old_name)
        if habit is None:
            raise HabitNotFoundError(f"Habit not found: {old_name}")
        if new_name == old_name:
            return habit
        if new_name in weekly.habits:
            raise HabitConflictError(f"Habit already exists: {new_name}")
        weekly.habits = {
            (new_name if n == old_name else n): h for n, h in weekly.habits.items()
        }
        habit.name = new_name
        self.save_week(weekly)
        logger.info("Renamed %r -> %r (%d-W%02d)", old_name, new_name, year, week)
        return habit
