"""Weekplanner core library — data model, persistence, habit service and list state.

Public API re-exports for convenient imports:
    from core import HabitStore, LocalHabitClient, HabitService, load_config, ...
"""

# Models
from core.models import (
    Config,
    Habit,
    NoteCheckbox,
    PeriodicNotes,
    WeeklyHabits,
    WeeklyViewConfig,
)

# Errors
from core.errors import (
    ConfigError,
    ErrorKind,
    HabitConflictError,
    HabitNotFoundError,
    HabitServiceError,
    InvalidHabitError,
    PlannerError,
    StorageError,
)

# Logging
from core.logging_config import get_logger, setup_logging

# Config & workspace
from core.config import (
    config_path,
    load_config,
    load_config_or_default,
    save_config,
    validate_workspace_path,
)
from core.workspace import (
    current_week,
    format_week_name,
    previous_week,
    week_title,
    weekly_note_path,
)

# Weekly-note markdown
from core.markdown import extract_habits, replace_habits_section

# Backend service
from core.habits import HabitService

# Ordering
from core.ordering import PillLayout, PillRow, order_habits, pill_rows

# Clients
from core.client import HabitClient, HttpHabitClient, LocalHabitClient

# Client-side list state
from core.store import HabitStore, StoreState
from core.drag import Dragging, DragOver, DragReorderController, Idle, commit_order, move_item
from core.editing import AddItemForm, Collapsed, Editing, Expanded, InlineEditor, Viewing
