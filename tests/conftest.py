"""Shared test fixtures for weekplanner tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from core.errors import ErrorKind, HabitServiceError
from core.models import Habit, WeeklyHabits

WEEK = (2024, 10)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a config file and one weekly note."""
    root = tmp_path / "workspace"
    weekly_dir = root / "_periodic" / "weekly"
    weekly_dir.mkdir(parents=True)

    config = {
        "workspace_root": str(root),
        "periodic_notes": {
            "weekly_subdir": "_periodic/weekly",
            "weekly_name_format": "YYYY-[W]WW",
        },
        "weekly_view": {"enabled_components": {"habit_tracker": True}},
    }
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.dump(config, default_flow_style=False), encoding="utf-8")

    note = """# Week 10

Notes for the week.

## Habits

- [ ] Exercise
- [x] Read
- [ ] Meditate

## Journal
Started strong.
"""
    (weekly_dir / "2024-W10.md").write_text(note, encoding="utf-8")

    os.environ["PLANNER_ROOT"] = str(root)
    os.environ["PLANNER_CONFIG"] = str(config_file)
    yield root
    for key in ("PLANNER_ROOT", "PLANNER_CONFIG"):
        if key in os.environ:
            del os.environ[key]


def make_week(*habits: tuple[str, bool]) -> WeeklyHabits:
    weekly = WeeklyHabits(year=WEEK[0], week_number=WEEK[1])
    for i, (name, completed) in enumerate(habits):
        weekly.habits[name] = Habit(name=name, completed=completed, order=i)
    return weekly


class FakeClient:
    """In-memory habit service that records every call.

    ``fail`` maps a method name to how many upcoming calls of it should fail
    (-1 fails forever).
    """

    def __init__(self, weekly: WeeklyHabits | None = None) -> None:
        self.weekly = weekly or make_week()
        self.calls: list[tuple] = []
        self.fail: dict[str, int] = {}

    def _check(self, method: str) -> None:
        left = self.fail.get(method, 0)
        if left:
            if left > 0:
                self.fail[method] = left - 1
            raise HabitServiceError(f"{method} failed", ErrorKind.NETWORK)

    def _copy(self) -> WeeklyHabits:
        return WeeklyHabits.from_dict(self.weekly.to_dict())

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c[0] == method)

    async def fetch_current_week(self) -> WeeklyHabits:
        self.calls.append(("fetch",))
        self._check("fetch")
        return self._copy()

    async def toggle(self, name: str) -> None:
        self.calls.append(("toggle", name))
        self._check("toggle")
        habit = self.weekly.habits[name]
        habit.completed = not habit.completed

    async def add(self, name: str) -> None:
        self.calls.append(("add", name))
        self._check("add")
        if name not in self.weekly.habits:
            self.weekly.habits[name] = Habit(name=name, order=self.weekly.max_order() + 1)

    async def remove(self, name: str) -> None:
        self.calls.append(("remove", name))
        self._check("remove")
        self.weekly.habits.pop(name, None)

    async def reorder(self, names: list[str]) -> None:
        self.calls.append(("reorder", list(names)))
        self._check("reorder")
        for i, name in enumerate(names):
            if name in self.weekly.habits:
                self.weekly.habits[name].order = i

    async def rename(self, old_name: str, new_name: str) -> None:
        self.calls.append(("rename", old_name, new_name))
        self._check("rename")
        habit = self.weekly.habits.pop(old_name)
        habit.name = new_name
        self.weekly.habits[new_name] = habit


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient(make_week(("A", False), ("B", False), ("C", False), ("D", False)))
