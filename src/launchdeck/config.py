"""XDG config loading."""

from __future__ import annotations

import logging as py_logging
import os
import sys
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from launchdeck.constants import (
    COMMAND_TIMEOUT_SECONDS,
    PROBE_TIMEOUT_SECONDS,
    READINESS_BACKOFF_MULTIPLIER,
    READINESS_INITIAL_BACKOFF_SECONDS,
    READINESS_MAX_ATTEMPTS,
)
from launchdeck.errors import ExitCode, LaunchDeckError

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/launchdeck/config.toml").expanduser()
DEFAULT_WINDOWS_INTERPRETER: Literal["git-bash", "wsl"] = "git-bash"
SCRIPTS_DIR_ENV = "LAUNCHDECK_SCRIPTS_DIR"
RUNTIME_BINARY_ENV = "LAUNCHDECK_RUNTIME_BINARY"

_VALID_WINDOWS_INTERPRETERS = {"git-bash", "wsl"}
_BOOL_FIELDS = (
    "share_window_enabled",
    "open_runtime_app",
    "stop_on_startup_failure",
    "confirm_exit",
)
_STRING_FIELDS = ("scripts_dir", "runtime_binary", "wsl_distribution")


class LauncherConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    scripts_dir: str = ""
    runtime_binary: str = ""
    windows_interpreter: Literal["git-bash", "wsl"] = DEFAULT_WINDOWS_INTERPRETER
    wsl_distribution: str = ""
    share_window_enabled: bool = True
    open_runtime_app: bool = False
    readiness_max_attempts: int = Field(default=READINESS_MAX_ATTEMPTS, ge=1, le=20)
    readiness_initial_backoff_seconds: float = Field(
        default=READINESS_INITIAL_BACKOFF_SECONDS, ge=0.0, le=60.0
    )
    readiness_backoff_multiplier: float = Field(default=READINESS_BACKOFF_MULTIPLIER, ge=1.0, le=10.0)
    command_timeout_seconds: float = Field(default=COMMAND_TIMEOUT_SECONDS, gt=0, le=3600)
    probe_timeout_seconds: float = Field(default=PROBE_TIMEOUT_SECONDS, gt=0, le=600)
    stop_on_startup_failure: bool = False
    confirm_exit: bool = True

    @field_validator("windows_interpreter")
    @classmethod
    def _validate_windows_interpreter(cls, value: str) -> str:
        if value not in _VALID_WINDOWS_INTERPRETERS:
            raise ValueError(f"Invalid windows interpreter: {value}")
        return value


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _number(value: object) -> float | None:
    # bool is an int subclass; TOML booleans are never valid numbers here.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _sanitize(raw: dict[str, object]) -> LauncherConfig:
    cfg = LauncherConfig()

    for name in _STRING_FIELDS:
        value = raw.get(name)
        if isinstance(value, str):
            setattr(cfg, name, value.strip())

    for name in _BOOL_FIELDS:
        value = raw.get(name)
        if isinstance(value, bool):
            setattr(cfg, name, value)

    windows_interpreter = raw.get("windows_interpreter", cfg.windows_interpreter)
    if isinstance(windows_interpreter, str) and windows_interpreter in _VALID_WINDOWS_INTERPRETERS:
        cfg.windows_interpreter = cast(Literal["git-bash", "wsl"], windows_interpreter)

    attempts = raw.get("readiness_max_attempts")
    if isinstance(attempts, int) and not isinstance(attempts, bool) and 1 <= attempts <= 20:
        cfg.readiness_max_attempts = attempts

    for name in (
        "readiness_initial_backoff_seconds",
        "readiness_backoff_multiplier",
        "command_timeout_seconds",
        "probe_timeout_seconds",
    ):
        number = _number(raw.get(name))
        if number is None:
            continue
        try:
            setattr(cfg, name, number)
        except ValueError:
            logger.warning("Ignoring out-of-range config value %s=%s", name, number)

    env_scripts_dir = os.getenv(SCRIPTS_DIR_ENV, "").strip()
    if env_scripts_dir:
        cfg.scripts_dir = env_scripts_dir
    env_runtime_binary = os.getenv(RUNTIME_BINARY_ENV, "").strip()
    if env_runtime_binary:
        cfg.runtime_binary = env_runtime_binary

    return cfg


def load_config(path: str | Path | None = None, *, required: bool = False) -> LauncherConfig:
    """Defaults fill in for a missing file unless the caller named it explicitly."""
    resolved = get_config_path(path)
    if not resolved.exists():
        if required:
            raise LaunchDeckError(
                f"Config file not found: {resolved}",
                code=ExitCode.CONFIG_ERROR,
                hint="Check the --config path or omit it to use defaults.",
            )
        return _sanitize({})
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        logger.warning("Config file unreadable, using defaults path=%s", resolved)
        return _sanitize({})
    if not isinstance(raw, dict):
        return _sanitize({})
    return _sanitize(raw)
