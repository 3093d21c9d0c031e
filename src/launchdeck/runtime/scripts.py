"""Fixed helper script locations."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

SCRIPT_NAMES = {
    "up": "up",
    "stop": "stop",
    "start": "start",
    "verify_port": "verify-port",
    "open_docker": "open-docker",
    "docker_compose": "docker-compose",
}


def default_scripts_dir() -> Path:
    """Directory holding the helper scripts next to the installed package."""
    bundle_root = getattr(sys, "_MEIPASS", None)
    if getattr(sys, "frozen", False) and bundle_root:
        return Path(bundle_root) / "bin"
    return Path(__file__).resolve().parent.parent / "bin"


@dataclass(frozen=True)
class ScriptPaths:
    up: Path
    stop: Path
    start: Path
    verify_port: Path
    open_docker: Path
    docker_compose: Path

    @classmethod
    def from_directory(cls, directory: str | Path) -> ScriptPaths:
        root = Path(directory).expanduser()
        return cls(**{field: root / filename for field, filename in SCRIPT_NAMES.items()})

    def all(self) -> Iterator[tuple[str, Path]]:
        for field, filename in SCRIPT_NAMES.items():
            yield filename, getattr(self, field)
