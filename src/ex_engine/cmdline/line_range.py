"""Parsed line ranges and their resolution against live buffer state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ex_engine.context import EditorContext
from ex_engine.errors import ErrorCode, MarkNotSetError, ParseError

from .tokens import Token, TokenType


@dataclass(slots=True)
class LineRange:
    """``left[,right]`` address tokens of one command line.

    Each side holds at most one primary address followed by any number of
    offsets. ``right`` only fills up once the separator has been seen.
    """

    left: List[Token] = field(default_factory=list)
    right: List[Token] = field(default_factory=list)
    separator: Optional[Token] = None

    def add_token(self, token: Token) -> None:
        if token.type is TokenType.COMMA:
            if self.separator is not None:
                raise ParseError(str(self), code=ErrorCode.INVALID_RANGE)
            self.separator = token
            return

        side = self.left if self.separator is None else self.right
        if not token.is_offset and any(not t.is_offset for t in side):
            raise ParseError(f"{self}{token}", code=ErrorCode.INVALID_RANGE)
        side.append(token)

    @property
    def is_empty(self) -> bool:
        return not self.left and not self.right and self.separator is None

    def __str__(self) -> str:
        left = "".join(str(t) for t in self.left)
        right = "".join(str(t) for t in self.right)
        separator = str(self.separator) if self.separator is not None else ""
        return f"{left}{separator}{right}"

    def jump(self, context: EditorContext) -> None:
        """Move the cursor to the addressed line (``:12``, ``:$``, ``:'a``)."""

        if self.is_empty:
            return
        side = self.right or self.left
        if not side:
            return
        line = self.resolve_line(side, context)
        context.buffer.set_cursor(line, 0)
        context.buffer.state.clear_selection()

    def resolve_span(self, context: EditorContext) -> Tuple[int, int]:
        """Inclusive ``(start, end)`` line span for a range-aware command."""

        buffer = context.buffer
        last_line = buffer.line_count - 1
        current = buffer.state.cursor[0]

        if self.separator is None:
            if self.left and self.left[0].type is TokenType.PERCENT:
                return 0, last_line
            line = self.resolve_line(self.left, context)
            return _within(line, last_line), _within(line, last_line)

        start = self.resolve_line(self.left, context) if self.left else current
        end = self.resolve_line(self.right, context) if self.right else current
        if self.left and self.left[0].type is TokenType.PERCENT:
            start = 0
        start, end = _within(start, last_line), _within(end, last_line)
        if start > end:
            start, end = end, start
        return start, end

    def resolve_line(self, tokens: List[Token], context: EditorContext) -> int:
        """Zero-based line for one side of the range, offsets applied."""

        if not tokens:
            raise ParseError(str(self), code=ErrorCode.INVALID_ADDRESS)
        first, rest = tokens[0], tokens[1:]
        if first.is_offset:
            line = context.buffer.state.cursor[0]
            rest = tokens
        else:
            line = self._primary_line(first, context)
        for token in rest:
            if not token.is_offset:
                raise ParseError(str(self), code=ErrorCode.INVALID_ADDRESS)
            line = _clamp(line + int(token.content), context.buffer.line_count)
        return line

    def _primary_line(self, token: Token, context: EditorContext) -> int:
        buffer = context.buffer
        kind = token.type
        if kind in (TokenType.DOLLAR, TokenType.PERCENT):
            return buffer.line_count - 1
        if kind is TokenType.DOT:
            return buffer.state.cursor[0]
        if kind is TokenType.LINE_NUMBER:
            # Upper bound is the raw line count, one past the last index.
            return _clamp(int(token.content) - 1, buffer.line_count)
        if kind is TokenType.SELECTION_FIRST_LINE:
            return min(
                min(anchor[0], active[0])
                for anchor, active in buffer.state.all_selections()
            )
        if kind is TokenType.SELECTION_LAST_LINE:
            return max(
                max(anchor[0], active[0])
                for anchor, active in buffer.state.all_selections()
            )
        if kind is TokenType.MARK:
            stored = buffer.marks.get(token.content)
            if stored is None:
                raise MarkNotSetError(token.content)
            return stored.position[0]
        raise ParseError(str(token), code=ErrorCode.INVALID_ADDRESS)


def _clamp(line: int, line_count: int) -> int:
    return min(max(0, line), line_count)


def _within(line: int, last_line: int) -> int:
    return min(line, last_line)


__all__ = ["LineRange"]
