"""Persistent, deduplicated command-line history."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, List, Optional

from ex_engine.errors import PersistenceError
from ex_engine.runtime import telemetry

HISTORY_FILE_NAME = ".cmdline_history"


class CommandLineHistory:
    """Most-recent-last list of command lines, capped and saved as JSON.

    Adding an entry that already exists moves it to the end. Persistence
    problems are logged and otherwise ignored: the in-memory list keeps
    working even when the history file cannot be read or written.
    """

    def __init__(
        self,
        history_dir: Path | str,
        *,
        max_entries: int | Callable[[], int] = 50,
    ) -> None:
        self._history_dir = Path(history_dir)
        self._max_entries = max_entries
        self._history: List[str] = []
        self._load_from_file()

    @property
    def file_path(self) -> Path:
        return self._history_dir / HISTORY_FILE_NAME

    @property
    def max_entries(self) -> int:
        limit = self._max_entries
        return limit() if callable(limit) else limit

    def add(self, command: Optional[str]) -> None:
        if not command:
            return
        if command in self._history:
            self._history.remove(command)
        self._history.append(command)
        self._truncate()
        self.save()

    def get(self) -> List[str]:
        self._truncate()
        return list(self._history)

    def __len__(self) -> int:
        return len(self.get())

    def clear(self) -> None:
        self._history.clear()
        try:
            self.file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            telemetry.record_event(
                "history.clear_failed",
                level="warning",
                data={"path": str(self.file_path), "error": str(exc)},
            )

    def save(self) -> None:
        try:
            self._write()
        except PersistenceError as exc:
            telemetry.record_event(
                "history.save_failed", level="error", data={"error": str(exc)}
            )

    def _write(self) -> None:
        try:
            self._history_dir.mkdir(mode=0o775, parents=True, exist_ok=True)
            self.file_path.write_text(json.dumps(self._history), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"{self.file_path}: {exc}") from exc

    def _truncate(self) -> None:
        limit = self.max_entries
        if len(self._history) > limit:
            self._history = self._history[len(self._history) - limit :]

    def _load_from_file(self) -> None:
        try:
            data = self.file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            telemetry.record_event(
                "history.missing", level="debug", data={"path": str(self.file_path)}
            )
            return
        except (OSError, UnicodeDecodeError) as exc:
            telemetry.record_event(
                "history.load_failed", level="error", data={"error": str(exc)}
            )
            return

        if not data:
            return

        try:
            parsed = json.loads(data)
            if not isinstance(parsed, list):
                raise ValueError("expected a JSON array")
        except ValueError as exc:
            telemetry.record_event(
                "history.corrupted",
                level="error",
                data={"path": str(self.file_path), "error": str(exc)},
            )
            self.clear()
            return
        self._history = [str(entry) for entry in parsed]


__all__ = ["CommandLineHistory", "HISTORY_FILE_NAME"]
