"""ISO week arithmetic and weekly-note path helpers."""

from __future__ import annotations

import re
from datetime import date, timedelta
from pathlib import Path

from core.models import Config


def today() -> date:
    return date.today()


def current_week(on: date | None = None) -> tuple[int, int]:
    """(ISO year, ISO week number) for *on*, default today."""
    iso = (on or today()).isocalendar()
    return iso[0], iso[1]


def week_monday(year: int, week: int) -> date:
    return date.fromisocalendar(year, week, 1)


def previous_week(year: int, week: int) -> tuple[int, int]:
    """The ISO week before (year, week); week 1 rolls back to week 52 or 53."""
    prev = week_monday(year, week) - timedelta(days=7)
    iso = prev.isocalendar()
    return iso[0], iso[1]


def week_title(week: int) -> str:
    return f"Week {week:02d}"


_TOKEN_RE = re.compile(r"\[([^\]]*)\]|YYYY|WW")


def format_week_name(fmt: str, year: int, week: int) -> str:
    """Render a moment-style name format such as 'YYYY-[W]WW' -> '2024-W01'."""

    def _sub(m: re.Match[str]) -> str:
        if m.group(1) is not None:
            return m.group(1)
        if m.group(0) == "YYYY":
            return f"{year:04d}"
        return f"{week:02d}"

    return _TOKEN_RE.sub(_sub, fmt)


def workspace_root(config: Config) -> Path:
    if not config.workspace_root:
        return Path.cwd()
    return Path(config.workspace_root).expanduser().resolve()


def weekly_note_path(config: Config, year: int, week: int) -> Path:
    name = format_week_name(config.periodic_notes.weekly_name_format, year, week)
    return workspace_root(config) / config.periodic_notes.weekly_subdir / f"{name}.md"


def log_dir(config: Config) -> Path:
    return workspace_root(config) / ".planner" / "logs"
