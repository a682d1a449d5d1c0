"""Shared editing context borrowed by the engine for one command run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from ex_engine.buffer import Buffer, RegisterBank

StatusSink = Callable[[str], None]


class EventBus:
    """Minimal event bus letting the engine notify its host."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in self._subscribers.get(event, []):
            callback(payload)


@dataclass(slots=True)
class LastSubstitute:
    pattern: str
    replacement: str
    flags: str = ""


@dataclass(slots=True)
class SessionState:
    """Per-session settings and memory threaded into every command call."""

    substitute_global_flag: bool = False
    last_search_pattern: Optional[str] = None
    last_substitute: Optional[LastSubstitute] = None

    def record_search(self, pattern: str) -> None:
        """Called by the host for ``/``, ``?``, ``*`` and ``#`` searches."""

        if pattern:
            self.last_search_pattern = pattern


def _discard_status(text: str) -> None:
    del text


@dataclass(slots=True)
class EditorContext:
    buffer: Buffer
    session: SessionState = field(default_factory=SessionState)
    bus: EventBus = field(default_factory=EventBus)
    status: StatusSink = _discard_status
    extras: Dict[str, object] = field(default_factory=dict)
    status_text: str = ""

    @property
    def registers(self) -> RegisterBank:
        return self.buffer.registers

    def set_status(self, text: str) -> None:
        """Show transient text in the host's status line."""

        self.status_text = text
        self.status(text)
        self.bus.emit("status.update", text)


__all__ = [
    "EditorContext",
    "EventBus",
    "LastSubstitute",
    "SessionState",
    "StatusSink",
]
