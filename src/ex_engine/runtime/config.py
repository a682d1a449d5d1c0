"""Engine configuration sourced from defaults and ``EX_ENGINE_*`` variables."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from . import telemetry

DEFAULT_HISTORY_SIZE = 50
DEFAULT_BACKEND_PATH = "nvim"
DEFAULT_BACKEND_ARGS: Tuple[str, ...] = ("-u", "NONE", "-N", "--embed", "--headless")


def default_history_dir() -> Path:
    base = os.getenv("XDG_DATA_HOME") or os.path.join("~", ".local", "share")
    return Path(base).expanduser() / "ex_engine"


@dataclass(slots=True)
class EngineConfig:
    """Settings shared by the command-line engine, history, and backend."""

    history_size: int = DEFAULT_HISTORY_SIZE
    history_dir: Path = field(default_factory=default_history_dir)
    enable_backend: bool = False
    backend_path: str = DEFAULT_BACKEND_PATH
    backend_args: Tuple[str, ...] = DEFAULT_BACKEND_ARGS
    substitute_global_flag: bool = False
    expandtab: bool = False

    def __post_init__(self) -> None:
        if self.history_size < 0:
            raise ValueError("history_size cannot be negative")
        self.history_dir = Path(self.history_dir)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        history_dir = telemetry.env("HISTORY_DIR")
        backend_args = telemetry.env("BACKEND_ARGS")
        return cls(
            history_size=telemetry.env_int("HISTORY", DEFAULT_HISTORY_SIZE),
            history_dir=Path(history_dir) if history_dir else default_history_dir(),
            enable_backend=telemetry.env_flag("ENABLE_BACKEND", False),
            backend_path=telemetry.env("BACKEND_PATH") or DEFAULT_BACKEND_PATH,
            backend_args=(
                tuple(shlex.split(backend_args))
                if backend_args
                else DEFAULT_BACKEND_ARGS
            ),
            substitute_global_flag=telemetry.env_flag("SUBSTITUTE_GLOBAL", False),
            expandtab=telemetry.env_flag("EXPANDTAB", False),
        )

    @property
    def backend_argv(self) -> list[str]:
        return [self.backend_path, *self.backend_args]


__all__ = ["EngineConfig", "default_history_dir"]
