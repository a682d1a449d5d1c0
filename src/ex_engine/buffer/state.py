"""Cursor and selection state for buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

Cursor = Tuple[int, int]  # (row, column), both zero-based
Selection = Tuple[Cursor, Cursor]  # (anchor, active)


@dataclass(slots=True)
class BufferState:
    """Mutable cursor + selection info tied to a BufferDocument version."""

    cursor: Cursor = (0, 0)
    selections: Tuple[Selection, ...] = ()
    last_change_tick: int = 0

    @property
    def selection(self) -> Optional[Selection]:
        return self.selections[0] if self.selections else None

    @property
    def cursor_start(self) -> Cursor:
        """Anchor of the primary selection, or the cursor when nothing is selected."""

        selection = self.selection
        return selection[0] if selection else self.cursor

    def set_cursor(self, row: int, col: int) -> None:
        self.cursor = (row, col)

    def clear_selection(self) -> None:
        self.selections = ()

    def set_selection(self, start: Cursor, end: Cursor) -> None:
        self.selections = ((start, end),)

    def set_selections(self, selections: Iterable[Selection]) -> None:
        self.selections = tuple(selections)

    def all_selections(self) -> Tuple[Selection, ...]:
        """Active selections, falling back to an empty one at the cursor."""

        return self.selections or ((self.cursor, self.cursor),)
