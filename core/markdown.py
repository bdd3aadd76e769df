"""Weekly-note markdown: read and rewrite the checkbox list under '## Habits'.

Only the Habits section is touched; every other line of the note is
preserved as written.
"""

from __future__ import annotations

import re

from core.models import Habit, NoteCheckbox

HABITS_HEADING = "Habits"

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_TASK_RE = re.compile(r"^\s*[-*]\s*\[([ xX])\]\s*(.*)$")


def parse_heading(line: str) -> tuple[int, str] | None:
    """'## Habits' -> (2, 'Habits'); None for non-heading lines."""
    m = _HEADING_RE.match(line)
    if not m:
        return None
    return len(m.group(1)), m.group(2).strip()


def find_section(lines: list[str], title: str) -> tuple[int, int] | None:
    """Locate the heading titled *title* (case-insensitive).

    Returns (heading_index, end_index) where end_index is the first line of
    the next heading at the same or a higher level, or len(lines).
    """
    wanted = title.strip().lower()
    for i, line in enumerate(lines):
        h = parse_heading(line)
        if h is None or h[1].lower() != wanted:
            continue
        level = h[0]
        for j in range(i + 1, len(lines)):
            nxt = parse_heading(lines[j])
            if nxt is not None and nxt[0] <= level:
                return i, j
        return i, len(lines)
    return None


def extract_checkboxes(lines: list[str], start: int = 0, end: int | None = None) -> list[NoteCheckbox]:
    """Checkbox lines in lines[start:end]; labels with no text are skipped."""
    if end is None:
        end = len(lines)
    out = []
    for i in range(start, end):
        m = _TASK_RE.match(lines[i])
        if not m:
            continue
        label = m.group(2).strip()
        if not label:
            continue
        out.append(NoteCheckbox(line=i, label=label, checked=m.group(1).lower() == "x"))
    return out


def extract_habits(note_md: str) -> list[Habit]:
    """Habits listed under the Habits heading, ordered by file position.

    A repeated label keeps its first position and its last checkbox state.
    """
    lines = note_md.splitlines()
    section = find_section(lines, HABITS_HEADING)
    if section is None:
        return []
    start, end = section
    by_name: dict[str, Habit] = {}
    for cb in extract_checkboxes(lines, start + 1, end):
        if cb.label in by_name:
            by_name[cb.label].completed = cb.checked
            continue
        by_name[cb.label] = Habit(name=cb.label, completed=cb.checked, order=len(by_name))
    return list(by_name.values())


def format_checkbox(habit: Habit) -> str:
    return f"- [{'x' if habit.completed else ' '}] {habit.name}"


def new_weekly_note(title: str) -> str:
    return f"# {title}\n"


def replace_habits_section(note_md: str, habits: list[Habit], title: str) -> str:
    """Return *note_md* with the Habits checkbox list replaced by *habits*.

    *habits* is written in the order given. When the note has no Habits
    heading one is appended, preceded by a '# <title>' heading if the note
    is empty.
    """
    lines = note_md.splitlines()
    task_lines = [format_checkbox(h) for h in habits]
    section = find_section(lines, HABITS_HEADING)

    if section is None:
        if not any(line.strip() for line in lines):
            lines = [f"# {title}"]
        while lines and not lines[-1].strip():
            lines.pop()
        lines += ["", f"## {HABITS_HEADING}", ""] + task_lines
        return "\n".join(lines) + "\n"

    start, end = section
    body = lines[start + 1:end]
    kept: list[str] = []
    insert_at: int | None = None
    for line in body:
        if _TASK_RE.match(line):
            if insert_at is None:
                insert_at = len(kept)
            continue
        kept.append(line)
    if insert_at is None:
        # leading blank line after the heading, then the list
        insert_at = 0
        while insert_at < len(kept) and not kept[insert_at].strip():
            insert_at += 1
        if insert_at == 0:
            kept.insert(0, "")
            insert_at = 1
    new_body = kept[:insert_at] + task_lines + kept[insert_at:]
    if end < len(lines) and (not new_body or new_body[-1].strip()):
        new_body.append("")
    out = lines[:start + 1] + new_body + lines[end:]
    while out and not out[-1].strip():
        out.pop()
    return "\n".join(out) + "\n"
