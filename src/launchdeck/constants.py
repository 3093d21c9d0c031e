"""Launcher constants shared by the runtime and UI layers."""

from __future__ import annotations

import re

# =============================================================================
# TIMEOUT CONSTANTS (in seconds)
# =============================================================================

COMMAND_TIMEOUT_SECONDS: int = 600
PROBE_TIMEOUT_SECONDS: int = 30
LOGIN_SHELL_TIMEOUT_SECONDS: int = 10
NETWORK_PROBE_TIMEOUT_SECONDS: float = 1.0

# =============================================================================
# READINESS DEFAULTS
# =============================================================================

READINESS_MAX_ATTEMPTS: int = 5
READINESS_INITIAL_BACKOFF_SECONDS: float = 1.0
READINESS_BACKOFF_MULTIPLIER: float = 2.0

# =============================================================================
# LIMIT CONSTANTS
# =============================================================================

PROGRESS_LOG_TRUNCATE_LIMIT: int = 320
DEFAULT_LOG_TRUNCATE_LIMIT: int = 700

# =============================================================================
# ADDRESS CONSTANTS
# =============================================================================

APP_URL: str = "http://localhost/launchpad"
NETWORK_PROBE_HOST: str = "8.8.8.8"
NETWORK_PROBE_PORT: int = 80
LOOPBACK_ADDRESS: str = "127.0.0.1"
GIT_FOR_WINDOWS_URL: str = "https://git-scm.com/download/win"
DOCKER_INSTALL_URL: str = "https://docs.docker.com/get-docker/"

# =============================================================================
# REGEX PATTERNS (compiled at module level)
# =============================================================================

AUTH_BEARER_PATTERN: re.Pattern[str] = re.compile(
    r"(Authorization:\s*Bearer)\s+\S+",
    re.IGNORECASE,
)

URL_CREDENTIAL_PATTERN: re.Pattern[str] = re.compile(
    r"(https?://)([^/\s:@]+):([^@\s]+)@",
)

SECRET_ASSIGNMENT_PATTERN: re.Pattern[str] = re.compile(
    r"\b([A-Z0-9_]*(?:PASSWORD|SECRET|TOKEN)[A-Z0-9_]*)=(\S+)",
)

# =============================================================================
# WINDOW CONSTANTS
# =============================================================================

APP_TITLE: str = "LaunchDeck"
MAIN_WINDOW_SIZE: tuple[int, int] = (800, 600)
SPLASH_WINDOW_SIZE: tuple[int, int] = (560, 360)
CLOSING_WINDOW_SIZE: tuple[int, int] = (420, 220)
SHARE_WINDOW_SIZE: tuple[int, int] = (420, 240)
