"""Exception types shared by the habit service, its clients and the config layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NETWORK = "network"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    STORAGE = "storage"
    INTERNAL = "internal"


class PlannerError(Exception):
    """Base exception for all planner errors."""


class ConfigError(PlannerError):
    """Raised when the config file or workspace path is unusable."""


class HabitServiceError(PlannerError):
    """A failed habit operation, tagged with the kind of failure."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class HabitNotFoundError(HabitServiceError):
    kind = ErrorKind.NOT_FOUND


class HabitConflictError(HabitServiceError):
    """Raised when a name is already taken by another habit."""

    kind = ErrorKind.CONFLICT


class InvalidHabitError(HabitServiceError):
    kind = ErrorKind.INVALID


class StorageError(HabitServiceError):
    """Raised when a weekly note cannot be read or written."""

    kind = ErrorKind.STORAGE


_BY_KIND: dict[ErrorKind, type[HabitServiceError]] = {
    ErrorKind.NOT_FOUND: HabitNotFoundError,
    ErrorKind.CONFLICT: HabitConflictError,
    ErrorKind.INVALID: InvalidHabitError,
    ErrorKind.STORAGE: StorageError,
}


def error_for_kind(kind: ErrorKind, message: str) -> HabitServiceError:
    """Build the most specific HabitServiceError for *kind*."""
    cls = _BY_KIND.get(kind)
    if cls is None:
        return HabitServiceError(message, kind)
    return cls(message)
