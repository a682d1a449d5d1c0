"""Buffer abstractions: document, cursor state, marks, registers, undo."""

from .buffer import Buffer, BufferDelta, Transaction
from .document import BufferDocument, split_lines
from .marks import VISUAL_END, VISUAL_START, Mark, MarkTable
from .registers import (
    BLOCKWISE,
    CHARACTERWISE,
    LINEWISE,
    RegisterBank,
    RegisterValue,
)
from .state import BufferState, Cursor, Selection
from .undo import UndoEntry, UndoTimeline
from .validation import BufferValidationError, clamp_cursor, ensure_cursor

__all__ = [
    "BLOCKWISE",
    "CHARACTERWISE",
    "LINEWISE",
    "VISUAL_END",
    "VISUAL_START",
    "Buffer",
    "BufferDelta",
    "BufferDocument",
    "BufferState",
    "BufferValidationError",
    "Cursor",
    "Mark",
    "MarkTable",
    "RegisterBank",
    "RegisterValue",
    "Selection",
    "Transaction",
    "UndoEntry",
    "UndoTimeline",
    "clamp_cursor",
    "ensure_cursor",
    "split_lines",
]
