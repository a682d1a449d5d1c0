"""High-level buffer façade combining document, state, marks, registers, and undo."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import ContextManager, Iterable, Optional, Sequence

from ex_engine.runtime import telemetry

from .document import BufferDocument, split_lines
from .marks import VISUAL_END, VISUAL_START, Mark, MarkTable
from .registers import RegisterBank
from .state import BufferState, Cursor, Selection
from .undo import UndoEntry, UndoTimeline
from .validation import clamp_cursor, ensure_cursor


@dataclass(slots=True)
class BufferDelta:
    version: int
    text: str
    cursor: Cursor
    label: str


class Buffer:
    def __init__(
        self,
        *,
        name: str = "default",
        path: Optional[str] = None,
        document: Optional[BufferDocument] = None,
        state: Optional[BufferState] = None,
        registers: Optional[RegisterBank] = None,
        marks: Optional[MarkTable] = None,
        undo: Optional[UndoTimeline] = None,
    ) -> None:
        self.name = name
        self.path = path
        self.document = document or BufferDocument()
        self.state = state or BufferState()
        self.registers = registers or RegisterBank()
        self.marks = marks or MarkTable()
        self.undo = undo or UndoTimeline()
        self._transaction: Optional[Transaction] = None

    @classmethod
    def from_text(
        cls, text: str, *, name: str = "default", path: Optional[str] = None
    ) -> "Buffer":
        return cls(name=name, path=path, document=BufferDocument.from_text(text))

    @classmethod
    def from_lines(
        cls, lines: Iterable[str], *, name: str = "default", path: Optional[str] = None
    ) -> "Buffer":
        return cls(name=name, path=path, document=BufferDocument.from_lines(lines))

    @property
    def lines(self) -> Sequence[str]:
        return self.document.snapshot()

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def line_count(self) -> int:
        return self.document.line_count

    @property
    def dirty(self) -> bool:
        return self.document.dirty

    def mark_clean(self) -> None:
        self.document.mark_clean()

    def set_cursor(self, row: int, col: int = 0) -> Cursor:
        """Move the cursor, clamping into the document like a host editor does."""

        cursor = clamp_cursor(self.document, row, col)
        self.state.set_cursor(*cursor)
        return cursor

    def select(self, anchor: Cursor, active: Cursor) -> None:
        """Make a visual selection and record its bounds in the ``<``/``>`` marks."""

        self.select_many([(anchor, active)])

    def select_many(self, selections: Iterable[Selection]) -> None:
        selections = tuple(selections)
        self.state.set_selections(selections)
        if not selections:
            return
        self.state.set_cursor(*selections[0][1])
        starts = [min(anchor, active) for anchor, active in selections]
        ends = [max(anchor, active) for anchor, active in selections]
        self.marks.set(VISUAL_START, min(starts))
        self.marks.set(VISUAL_END, max(ends))

    def set_mark(self, name: str, position: Optional[Cursor] = None) -> Mark:
        target = ensure_cursor(self.document, position or self.state.cursor)
        return self.marks.set(name, target)

    def batch(self, label: str) -> "Transaction":
        """Group every edit made inside the block into one undo step."""

        return Transaction(self, label)

    def replace_lines(
        self, start: int, end: int, new_lines: Iterable[str], *, label: str
    ) -> BufferDelta:
        """Replace lines ``[start:end)`` with ``new_lines``."""

        if start < 0 or end > self.line_count or start > end:
            raise IndexError(f"line span [{start}, {end}) outside buffer")
        with self.batch(label):
            self.document = self.document.update_lines(start, end, new_lines)
            self._after_edit()
        return self._delta(label)

    def replace_all(self, text: str, *, label: str) -> BufferDelta:
        with self.batch(label):
            self.document = self.document.replace(lines=split_lines(text))
            self._after_edit()
        return self._delta(label)

    def undo_change(self) -> Optional[UndoEntry]:
        entry = self.undo.undo()
        if entry is not None:
            self._restore(entry.before_text, entry.cursor_before)
        return entry

    def redo_change(self) -> Optional[UndoEntry]:
        entry = self.undo.redo()
        if entry is not None:
            self._restore(entry.after_text, entry.cursor_after)
        return entry

    def _restore(self, text: str, cursor: Cursor) -> None:
        self.document = self.document.replace(lines=split_lines(text))
        self.set_cursor(*cursor)
        self._after_edit()

    def _after_edit(self) -> None:
        self.state.last_change_tick = self.document.version
        row, col = self.state.cursor
        self.state.set_cursor(*clamp_cursor(self.document, row, col))

    def _delta(self, label: str) -> BufferDelta:
        return BufferDelta(
            version=self.document.version,
            text=self.text,
            cursor=self.state.cursor,
            label=label,
        )


class Transaction(AbstractContextManager["Transaction"]):
    """Undo batching scope. Nested scopes join the outermost one.

    On a clean exit the outermost scope pushes a single ``UndoEntry`` if the
    text changed; on an exception it restores the text and cursor it saw on
    entry so a failed command never leaves a half-applied edit behind.
    """

    def __init__(self, buffer: Buffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self._outer: Optional[Transaction] = None
        self._span_cm: Optional[ContextManager[object]] = None
        self._before_text = ""
        self._before_document: Optional[BufferDocument] = None
        self._before_cursor: Cursor = (0, 0)

    def __enter__(self) -> "Transaction":
        self._outer = self.buffer._transaction
        if self._outer is not None:
            return self
        self.buffer._transaction = self
        self._before_document = self.buffer.document
        self._before_text = self.buffer.text
        self._before_cursor = self.buffer.state.cursor
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component=True,
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._outer is not None:
            return False
        self.buffer._transaction = None
        try:
            if exc_type is None:
                self._commit()
            elif self._before_document is not None:
                self.buffer.document = self._before_document
                self.buffer.state.set_cursor(*self._before_cursor)
        finally:
            if self._span_cm is not None:
                self._span_cm.__exit__(exc_type, exc, tb)
        return False

    def _commit(self) -> None:
        after_text = self.buffer.text
        if after_text == self._before_text:
            return
        self.buffer.undo.push(
            UndoEntry(
                label=self.label,
                before_text=self._before_text,
                after_text=after_text,
                cursor_before=self._before_cursor,
                cursor_after=self.buffer.state.cursor,
            )
        )
