"""Typed dataclasses for the weekly planner data model.

All models use from_dict/to_dict for JSON/YAML serialization.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Habit:
    """One tracked habit. The name is its identity within a week."""

    name: str = ""
    completed: bool = False
    order: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        return cls(
            name=str(d.get("name", "")),
            completed=bool(d.get("completed", False)),
            order=int(d.get("order", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "completed": self.completed, "order": self.order}


@dataclass
class WeeklyHabits:
    """The habits of one ISO week, keyed by name in insertion order."""

    year: int = 0
    week_number: int = 0
    habits: dict[str, Habit] = field(default_factory=dict)
    day_status: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WeeklyHabits:
        if not d or not isinstance(d, dict):
            return cls()
        habits: dict[str, Habit] = {}
        for key, hd in (d.get("habits") or {}).items():
            if isinstance(hd, dict):
                habit = Habit.from_dict(hd)
                if not habit.name:
                    habit.name = str(key)
                habits[habit.name] = habit
        day_status = {str(k): bool(v) for k, v in (d.get("day_status") or {}).items()}
        return cls(
            year=int(d.get("year", 0) or 0),
            week_number=int(d.get("week_number", 0) or 0),
            habits=habits,
            day_status=day_status,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "week_number": self.week_number,
            "habits": {name: h.to_dict() for name, h in self.habits.items()},
            "day_status": dict(self.day_status),
        }

    def max_order(self) -> int:
        return max((h.order for h in self.habits.values()), default=-1)


# ── Config ────────────────────────────────────────────────────


@dataclass
class PeriodicNotes:
    weekly_subdir: str = "_periodic/weekly"
    weekly_name_format: str = "YYYY-[W]WW"


@dataclass
class WeeklyViewConfig:
    habit_tracker: bool = True


@dataclass
class Config:
    workspace_root: str = ""
    periodic_notes: PeriodicNotes = field(default_factory=PeriodicNotes)
    weekly_view: WeeklyViewConfig = field(default_factory=WeeklyViewConfig)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Config:
        if not d or not isinstance(d, dict):
            return cls()
        pn = d.get("periodic_notes") or {}
        if not isinstance(pn, dict):
            pn = {}
        wv = d.get("weekly_view") or {}
        components = wv.get("enabled_components") if isinstance(wv, dict) else None
        if not isinstance(components, dict):
            components = {}
        defaults = PeriodicNotes()
        return cls(
            workspace_root=str(d.get("workspace_root", "") or ""),
            periodic_notes=PeriodicNotes(
                weekly_subdir=str(pn.get("weekly_subdir") or defaults.weekly_subdir),
                weekly_name_format=str(pn.get("weekly_name_format") or defaults.weekly_name_format),
            ),
            weekly_view=WeeklyViewConfig(
                habit_tracker=bool(components.get("habit_tracker", True)),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspace_root": self.workspace_root,
            "periodic_notes": {
                "weekly_subdir": self.periodic_notes.weekly_subdir,
                "weekly_name_format": self.periodic_notes.weekly_name_format,
            },
            "weekly_view": {
                "enabled_components": {"habit_tracker": self.weekly_view.habit_tracker},
            },
        }


# ── Weekly note checkbox ──────────────────────────────────────


@dataclass
class NoteCheckbox:
    line: int = 0
    label: str = ""
    checked: bool = False
