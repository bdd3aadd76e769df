"""Config file loading, saving and workspace validation."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from core.errors import ConfigError
from core.fileio import read_yaml, write_yaml_atomic
from core.logging_config import get_logger
from core.models import Config

logger = get_logger(__name__)


def config_path() -> Path:
    """Location of config.yaml; PLANNER_CONFIG overrides the per-user default."""
    override = os.environ.get("PLANNER_CONFIG")
    if override:
        return Path(override).expanduser().resolve()
    return Path.home() / ".notedown" / "planner" / "config.yaml"


def default_config() -> Config:
    return Config()


def load_config(path: Path | None = None) -> Config:
    """Load the config, falling back to defaults for a missing file.

    PLANNER_ROOT, when set, wins over the workspace_root stored in the file.
    A file that exists but cannot be parsed raises ConfigError.
    """
    if path is None:
        path = config_path()
    try:
        data = read_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    cfg = Config.from_dict(data)
    env_root = os.environ.get("PLANNER_ROOT")
    if env_root:
        cfg.workspace_root = str(Path(env_root).expanduser().resolve())
    logger.debug("Loaded config from %s (workspace=%s)", path, cfg.workspace_root)
    return cfg


def load_config_or_default(path: Path | None = None) -> Config:
    """Like load_config, but an unreadable file yields the defaults."""
    try:
        return load_config(path)
    except ConfigError:
        logger.warning("Config unreadable, using defaults", exc_info=True)
        cfg = default_config()
        env_root = os.environ.get("PLANNER_ROOT")
        if env_root:
            cfg.workspace_root = str(Path(env_root).expanduser().resolve())
        return cfg


def save_config(cfg: Config, path: Path | None = None) -> None:
    if path is None:
        path = config_path()
    try:
        write_yaml_atomic(path, cfg.to_dict())
    except OSError as e:
        raise ConfigError(f"Cannot write config {path}: {e}") from e
    logger.info("Saved config to %s", path)


def validate_workspace_path(path: str | Path) -> Path:
    """Check that *path* is an existing, writable directory. Returns it resolved."""
    if not str(path).strip():
        raise ConfigError("Workspace path is empty")
    p = Path(path).expanduser()
    if not p.exists():
        raise ConfigError(f"Workspace path does not exist: {p}")
    if not p.is_dir():
        raise ConfigError(f"Workspace path is not a directory: {p}")
    probe = p / ".notedown_test"
    try:
        probe.write_text("", encoding="utf-8")
        probe.unlink()
    except OSError as e:
        raise ConfigError(f"Workspace path is not writable: {p}") from e
    return p.resolve()
