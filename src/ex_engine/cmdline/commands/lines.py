"""Linewise register commands: ``:[range]d[elete] [x] [count]`` and ``:y[ank]``."""

from __future__ import annotations

import re
from typing import ClassVar, Optional, Tuple

from ex_engine.buffer import LINEWISE, RegisterValue
from ex_engine.buffer.registers import UNNAMED
from ex_engine.context import EditorContext
from ex_engine.errors import ErrorCode, ParseError

from .base import CommandBase

_REGISTER_AND_COUNT = re.compile(r'(?P<register>[a-zA-Z"])?\s*(?P<count>\d+)?\s*')

REPORT_THRESHOLD = 2


def parse_register_and_count(text: str) -> Tuple[str, Optional[int]]:
    match = _REGISTER_AND_COUNT.fullmatch(text.strip())
    if match is None:
        raise ParseError(text, code=ErrorCode.TRAILING_CHARACTERS)
    count = match.group("count")
    if count is not None and int(count) == 0:
        raise ParseError(count, code=ErrorCode.INVALID_RANGE)
    return match.group("register") or UNNAMED, int(count) if count else None


class LinewiseCommand(CommandBase):
    backend_capable: ClassVar[bool] = True
    bang_allowed: ClassVar[bool] = False

    def __init__(self, *, bang: bool = False, arguments: str = "") -> None:
        super().__init__(bang=bang, arguments=arguments)
        self.register, self.count = parse_register_and_count(arguments)

    async def execute(self, context: EditorContext) -> None:
        row = context.buffer.state.cursor[0]
        self._run(context, *self._span(context, row, row))

    async def execute_with_range(
        self, context: EditorContext, start: int, end: int
    ) -> None:
        self._run(context, *self._span(context, start, end))

    def _span(self, context: EditorContext, start: int, end: int) -> Tuple[int, int]:
        if self.count is None:
            return start, end
        last_line = context.buffer.line_count - 1
        return end, min(end + self.count - 1, last_line)

    def _store(self, context: EditorContext, start: int, end: int) -> int:
        lines = context.buffer.lines[start : end + 1]
        value = RegisterValue(text="\n".join(lines) + "\n", mode=LINEWISE)
        name = self.register
        if name.isupper():
            context.registers.append(name.lower(), value.text)
        else:
            context.registers.set(name, value)
        return len(lines)

    def _run(self, context: EditorContext, start: int, end: int) -> None:
        raise NotImplementedError


class DeleteCommand(LinewiseCommand):
    name: ClassVar[str] = "delete"

    def _run(self, context: EditorContext, start: int, end: int) -> None:
        buffer = context.buffer
        removed = self._store(context, start, end)
        with buffer.batch("delete"):
            buffer.replace_lines(start, end + 1, [], label="delete")
            buffer.set_cursor(start, 0)
        if removed > REPORT_THRESHOLD:
            context.set_status(f"{removed} fewer lines")


class YankCommand(LinewiseCommand):
    name: ClassVar[str] = "yank"

    def _run(self, context: EditorContext, start: int, end: int) -> None:
        yanked = self._store(context, start, end)
        if yanked > REPORT_THRESHOLD:
            context.set_status(f"{yanked} lines yanked")


__all__ = ["DeleteCommand", "LinewiseCommand", "YankCommand", "parse_register_and_count"]
