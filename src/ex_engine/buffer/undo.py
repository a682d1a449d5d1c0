"""Undo history: one entry per committed buffer transaction."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from .state import Cursor

DEFAULT_UNDO_LEVELS = 1000


@dataclass(frozen=True, slots=True)
class UndoEntry:
    label: str
    before_text: str
    after_text: str
    cursor_before: Cursor
    cursor_after: Cursor


class UndoTimeline:
    """Done/undone stacks. Pushing a new entry forgets everything undone.

    Only the newest ``levels`` entries are kept, like Vim's 'undolevels'.
    """

    def __init__(self, levels: int = DEFAULT_UNDO_LEVELS) -> None:
        self._done: Deque[UndoEntry] = deque(maxlen=levels)
        self._undone: List[UndoEntry] = []

    def __len__(self) -> int:
        return len(self._done)

    def push(self, entry: UndoEntry) -> None:
        self._done.append(entry)
        self._undone.clear()

    def undo(self) -> Optional[UndoEntry]:
        if not self._done:
            return None
        entry = self._done.pop()
        self._undone.append(entry)
        return entry

    def redo(self) -> Optional[UndoEntry]:
        if not self._undone:
            return None
        entry = self._undone.pop()
        self._done.append(entry)
        return entry

    def clear(self) -> None:
        self._done.clear()
        self._undone.clear()
