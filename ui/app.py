"""Weekplanner HTTP API: habit service endpoints over the weekly notes."""

from __future__ import annotations

import os
import secrets
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from core import (
    Config,
    ConfigError,
    ErrorKind,
    HabitService,
    HabitServiceError,
    current_week,
    get_logger,
    load_config_or_default,
    save_config,
    setup_logging,
    validate_workspace_path,
)
from core.workspace import log_dir

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    cfg = load_config_or_default()
    setup_logging(log_dir(cfg), console=True)
    logger.info("Habit API starting (workspace=%s)", cfg.workspace_root or os.getcwd())
    yield


app = FastAPI(title="Weekplanner API", version="0.1.0", lifespan=lifespan)


# ── Auth ──────────────────────────────────────────────────────

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("PLANNER_USERNAME", "")
    expected_password = os.environ.get("PLANNER_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Errors ────────────────────────────────────────────────────

_KIND_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID: 400,
    ErrorKind.STORAGE: 500,
    ErrorKind.NETWORK: 502,
    ErrorKind.INTERNAL: 500,
}


@app.exception_handler(HabitServiceError)
async def habit_error_handler(request: Request, exc: HabitServiceError) -> JSONResponse:
    code = _KIND_STATUS.get(exc.kind, 500)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content={"detail": str(exc), "kind": exc.kind.value})


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "kind": ErrorKind.INVALID.value})


# ── Helpers ───────────────────────────────────────────────────

def _service() -> HabitService:
    return HabitService(load_config_or_default())


def _name(payload: dict[str, Any], key: str = "name") -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"Missing {key}")
    return value


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/habits/current")
def api_current_week(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return _service().get_current_week().to_dict()


@app.post("/api/habits/toggle")
def api_toggle(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    year, week = current_week()
    habit = _service().toggle(year, week, _name(payload))
    return {"ok": True, "habit": habit.to_dict()}


@app.post("/api/habits")
def api_add(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    year, week = current_week()
    habit = _service().add(year, week, _name(payload))
    return {"ok": True, "habit": habit.to_dict()}


@app.post("/api/habits/reorder")
def api_reorder(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    names = payload.get("names")
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise HTTPException(status_code=400, detail="names must be a list of strings")
    year, week = current_week()
    _service().reorder(year, week, names)
    return {"ok": True}


@app.post("/api/habits/rename")
def api_rename(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    year, week = current_week()
    habit = _service().rename(year, week, _name(payload, "old_name"), _name(payload, "new_name"))
    return {"ok": True, "habit": habit.to_dict()}


@app.delete("/api/habits/{name:path}")
def api_remove(name: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    year, week = current_week()
    removed = _service().remove(year, week, name)
    return {"ok": True, "removed": removed}


@app.get("/api/config")
def api_get_config(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return load_config_or_default().to_dict()


@app.put("/api/config")
def api_put_config(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    cfg = Config.from_dict(payload)
    if cfg.workspace_root:
        cfg.workspace_root = str(validate_workspace_path(cfg.workspace_root))
    save_config(cfg)
    return {"ok": True, "config": cfg.to_dict()}


def main() -> None:
    """Serve the API; PLANNER_HOST / PLANNER_PORT pick the bind address."""
    import uvicorn

    host = os.environ.get("PLANNER_HOST", "127.0.0.1")
    port = int(os.environ.get("PLANNER_PORT", "8765"))
    logger.info("Serving habit API on http://%s:%d", host, port)
    uvicorn.run("ui.app:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
