#!/usr/bin/env python3
"""Weekplanner TUI — this week's habits in the terminal, powered by Textual."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from rich.text import Text
from textual import events, on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.errors import NoWidget
from textual.logging import TextualHandler
from textual.message import Message
from textual.widgets import Button, Footer, Header, Input, Label, Rule, Static

from core import (
    AddItemForm,
    Config,
    ConfigError,
    DragReorderController,
    HabitService,
    HabitStore,
    HttpHabitClient,
    InlineEditor,
    LocalHabitClient,
    PillRow,
    StoreState,
    current_week,
    get_logger,
    load_config_or_default,
    pill_rows,
    setup_logging,
    validate_workspace_path,
)
from core.client import HabitClient
from core.config import load_config
from core.workspace import log_dir, workspace_root

logger = get_logger(__name__)


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#week-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 2;
}

#status {
    height: auto;
    padding: 0 2;
    color: $text-muted;
}

#habit-list {
    height: 1fr;
    padding: 0 1;
}

HabitPill {
    width: auto;
    min-width: 12;
    height: 1;
    padding: 0 1;
    margin: 0 0 1 0;
    background: $panel;
}

HabitPill:focus {
    background: $primary-background;
    text-style: bold;
}

HabitPill.completed {
    color: $success;
}

HabitPill.dragging {
    opacity: 50%;
}

HabitPill.drop-target {
    border-top: tall $accent;
}

.pill-input {
    width: 40;
    margin: 0 0 1 0;
}

#add-button {
    min-width: 5;
    margin: 0 0 1 0;
}

.separator {
    margin: 0 0;
    color: $primary-background-darken-2;
}
"""


# ── Custom widgets ─────────────────────────────────────────────


class HabitPill(Static, can_focus=True):
    """One habit: status glyph + name. Index is its place in the combined order."""

    BINDINGS = [
        Binding("space", "toggle", "Toggle"),
        Binding("enter", "edit", "Rename"),
        Binding("delete", "remove", "Remove"),
        Binding("left_square_bracket", "move(-1)", "Move up"),
        Binding("right_square_bracket", "move(1)", "Move down"),
    ]

    class Requested(Message):
        def __init__(self, pill: HabitPill, action: str, delta: int = 0) -> None:
            super().__init__()
            self.pill = pill
            self.action = action
            self.delta = delta

    def __init__(self, row: PillRow, dragged: bool = False, drop_target: bool = False) -> None:
        glyph = "✅" if row.habit.completed else "⭕"
        super().__init__(Text(f"{glyph} {row.habit.name}"))
        self.row = row
        self.set_class(row.habit.completed, "completed")
        self.set_class(dragged, "dragging")
        self.set_class(drop_target, "drop-target")
        self.tooltip = "Double-click to edit, drag to reorder"

    @property
    def habit_name(self) -> str:
        return self.row.habit.name

    @property
    def index(self) -> int:
        return self.row.index

    def _request(self, action: str, delta: int = 0) -> None:
        self.post_message(self.Requested(self, action, delta))

    def action_toggle(self) -> None:
        self._request("toggle")

    def action_edit(self) -> None:
        self._request("edit")

    def action_remove(self) -> None:
        self._request("remove")

    def action_move(self, delta: int) -> None:
        self._request("move", delta)

    def on_click(self, event: events.Click) -> None:
        if getattr(event, "chain", 1) >= 2:
            self._request("edit")
        elif event.x <= 2:
            self._request("toggle")

    def on_mouse_down(self, event: events.MouseDown) -> None:
        self._request("drag_start")

    def on_enter(self, event: events.Enter) -> None:
        self._request("drag_over")

    def on_mouse_up(self, event: events.MouseUp) -> None:
        self._request("drop")
        event.stop()


class PillInput(Input):
    """Text entry for a rename or a new habit; reports loss of focus."""

    class LostFocus(Message):
        def __init__(self, box: PillInput) -> None:
            super().__init__()
            self.box = box

    def on_blur(self, event: events.Blur) -> None:
        self.post_message(self.LostFocus(self))


# ── Main app ───────────────────────────────────────────────────


class WeekplannerApp(App):
    """Habit list for the current ISO week."""

    TITLE = "Weekplanner"
    CSS = CSS

    BINDINGS = [
        Binding("a", "add_habit", "Add"),
        Binding("r", "retry", "Retry"),
        Binding("escape", "cancel", "Cancel"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self, client: HabitClient, config: Config | None = None, atomic_rename: bool = False) -> None:
        super().__init__()
        self.client = client
        self.config = config or Config()
        self.store = HabitStore(client, atomic_rename=atomic_rename)
        self.editor = InlineEditor(self.store)
        self.form = AddItemForm(self.store)
        self.drag = DragReorderController(self.store, self.editor)
        self._focus_name: str | None = None

    def compose(self) -> ComposeResult:
        year, week = current_week()
        yield Header()
        yield Label(f"Week {week:02d}  {year}", id="week-title")
        yield Static(id="status")
        yield VerticalScroll(id="habit-list", can_focus=False)
        yield Footer()

    def on_mount(self) -> None:
        if not self.config.weekly_view.habit_tracker:
            self.query_one("#status", Static).update("Habit tracker is disabled in config.")
            return
        self.store.subscribe(self._on_store_change)
        self.query_one("#status", Static).update("Loading habits...")
        self._load()

    async def on_unmount(self) -> None:
        await self._close_client()

    async def _close_client(self) -> None:
        self.store.close()
        aclose = getattr(self.client, "aclose", None)
        if aclose is not None:
            await aclose()

    # ── Rendering ──────────────────────────────────────────────

    def _on_store_change(self, state: StoreState) -> None:
        self._request_render()

    def _request_render(self) -> None:
        self.call_later(self._render_list)

    async def _render_list(self) -> None:
        status = self.query_one("#status", Static)
        container = self.query_one("#habit-list", VerticalScroll)
        state = self.store.state

        if isinstance(self.focused, HabitPill):
            self._focus_name = self.focused.habit_name
        await container.remove_children()

        if state.load_failed:
            status.update(Text(f"{state.error}  (press r to retry)", style="red"))
            await container.mount(Button("Retry", id="retry"))
            return
        if state.data is None:
            status.update("Loading habits..." if state.loading else "")
            return
        status.update(Text(state.error, style="red") if state.error else "")

        layout = pill_rows(self.store.ordered())
        widgets = [self._pill_widget(row) for row in layout.incomplete]
        widgets.append(self._add_widget(first=not layout.rows()))
        if layout.show_separator:
            widgets.append(Rule(classes="separator"))
        widgets += [self._pill_widget(row) for row in layout.completed]
        await container.mount_all(widgets)
        self._restore_focus()

    def _pill_widget(self, row: PillRow) -> HabitPill | PillInput:
        if self.editor.is_editing(row.habit.name):
            return PillInput(value=self.editor.state.draft, id="edit-input", classes="pill-input")
        return HabitPill(
            row,
            dragged=self.drag.is_dragged(row.index),
            drop_target=self.drag.is_drop_target(row.index),
        )

    def _add_widget(self, first: bool) -> Button | PillInput:
        if self.form.expanded:
            placeholder = "Add your first habit..." if first else "Add habit..."
            return PillInput(value=self.form.draft, placeholder=placeholder, id="add-input", classes="pill-input")
        button = Button("+", id="add-button")
        button.tooltip = "Add new habit"
        return button

    def _restore_focus(self) -> None:
        for selector in ("#edit-input", "#add-input"):
            found = self.query(selector)
            if found:
                found.first().focus()
                return
        if self._focus_name is None:
            return
        for pill in self.query(HabitPill):
            if pill.habit_name == self._focus_name:
                pill.focus()
                return

    def _refresh_drag_marks(self) -> None:
        for pill in self.query(HabitPill):
            pill.set_class(self.drag.is_dragged(pill.index), "dragging")
            pill.set_class(self.drag.is_drop_target(pill.index), "drop-target")

    # ── Pill requests ──────────────────────────────────────────

    @on(HabitPill.Requested)
    def _on_pill_request(self, event: HabitPill.Requested) -> None:
        name = event.pill.habit_name
        index = event.pill.index
        action = event.action
        if action == "toggle":
            self._toggle(name)
        elif action == "remove":
            self._remove(name)
        elif action == "edit":
            self.drag.end()
            if self.editor.activate(name):
                self._request_render()
        elif action == "drag_start":
            self.drag.start(index)
            self._refresh_drag_marks()
        elif action == "drag_over":
            if self.drag.source is not None:
                self.drag.over(index)
                self._refresh_drag_marks()
        elif action == "drop":
            self._drop()
        elif action == "move":
            self._move(name, index, event.delta)

    def _move(self, name: str, index: int, delta: int) -> None:
        target = index + delta
        if not 0 <= target < len(self.store.ordered()):
            return
        if self.drag.start(index):
            self.drag.over(target)
            self._focus_name = name
            self._drop()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self.drag.source is None:
            return
        try:
            widget, _ = self.screen.get_widget_at(event.screen_x, event.screen_y)
        except NoWidget:
            widget = None
        habit_list = self.query_one("#habit-list")
        if widget is None or habit_list not in widget.ancestors_with_self:
            self.drag.leave()
            self._refresh_drag_marks()

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self.drag.source is not None:
            self.drag.end()
            self._refresh_drag_marks()

    # ── Edit & add inputs ──────────────────────────────────────

    @on(Input.Changed, "#edit-input")
    def _on_edit_change(self, event: Input.Changed) -> None:
        self.editor.change(event.value)

    @on(Input.Changed, "#add-input")
    def _on_add_change(self, event: Input.Changed) -> None:
        self.form.change(event.value)

    @on(Input.Submitted, "#edit-input")
    def _on_edit_submit(self, event: Input.Submitted) -> None:
        self._commit_edit()

    @on(Input.Submitted, "#add-input")
    def _on_add_submit(self, event: Input.Submitted) -> None:
        if self.form.can_submit:
            self._submit_add()

    @on(PillInput.LostFocus)
    def _on_input_blur(self, event: PillInput.LostFocus) -> None:
        if event.box.id == "edit-input":
            self._commit_edit()
        elif event.box.id == "add-input" and self.form.expanded:
            self.form.blur()
            if not self.form.expanded:
                self._request_render()

    def _commit_edit(self) -> None:
        if self.editor.editing is None:
            return
        self._run_commit_edit()

    @on(Button.Pressed, "#retry")
    def _on_retry(self, event: Button.Pressed) -> None:
        self.action_retry()

    @on(Button.Pressed, "#add-button")
    def _on_add_button(self, event: Button.Pressed) -> None:
        self.action_add_habit()

    # ── Store round trips ──────────────────────────────────────

    @work(group="habits")
    async def _load(self) -> None:
        await self.store.load()

    @work(group="habits")
    async def _toggle(self, name: str) -> None:
        await self.store.toggle(name)

    @work(group="habits")
    async def _remove(self, name: str) -> None:
        await self.store.remove(name)

    @work(group="habits")
    async def _drop(self) -> None:
        self._refresh_drag_marks()
        await self.drag.drop(self.store.ordered())

    @work(group="habits")
    async def _run_commit_edit(self) -> None:
        self._request_render()
        await self.editor.commit()

    @work(group="habits")
    async def _submit_add(self) -> None:
        await self.form.submit()
        self._request_render()

    # ── Actions ────────────────────────────────────────────────

    def action_add_habit(self) -> None:
        if self.store.state.data is None or self.editor.editing is not None:
            return
        self.form.open()
        self._request_render()

    def action_retry(self) -> None:
        if self.store.state.load_failed:
            self._load()

    def action_cancel(self) -> None:
        """Escape: leave rename or add mode without saving, or abort a drag."""
        if self.editor.editing is not None:
            self.editor.cancel()
            self._request_render()
        elif self.form.expanded:
            self.form.cancel()
            self._request_render()
        elif self.drag.source is not None:
            self.drag.end()
            self._refresh_drag_marks()
        else:
            self.set_focus(None)

    async def action_quit_app(self) -> None:
        await self._close_client()
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="weekplanner", description="Track this week's habits.")
    parser.add_argument("--api", metavar="URL", help="use the habit HTTP API at URL instead of local files")
    parser.add_argument("--atomic-rename", action="store_true", help="rename habits in one service call")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    return parser


def make_client(args: argparse.Namespace, config: Config) -> HabitClient:
    if args.api:
        user = os.environ.get("PLANNER_USERNAME", "")
        password = os.environ.get("PLANNER_PASSWORD", "")
        return HttpHabitClient(args.api, auth=(user, password) if user and password else None)
    validate_workspace_path(workspace_root(config))
    return LocalHabitClient(HabitService(config))


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        config = load_config_or_default()

    try:
        client = make_client(args, config)
    except ConfigError as e:
        print(f"Workspace not usable: {e}")
        print("Set PLANNER_ROOT or workspace_root in the config file first.")
        sys.exit(1)

    setup_logging(
        log_dir(config),
        level=logging.DEBUG if args.debug else logging.INFO,
        extra_handlers=[TextualHandler()],
    )
    logger.info("Starting TUI (%s)", args.api or "local files")

    app = WeekplannerApp(client, config, atomic_rename=args.atomic_rename)
    app.run()


if __name__ == "__main__":
    main()
