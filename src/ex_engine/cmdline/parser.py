"""Turn raw command-line text into a ``CommandLine`` (range + command)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from ex_engine.context import EditorContext
from ex_engine.errors import ErrorCode, UnsupportedSyntaxError
from ex_engine.runtime import telemetry

from .commands import CommandBase
from .lexer import tokenize
from .line_range import LineRange
from .registry import CommandRegistry, default_registry

_COMMAND_NAME = re.compile(r"[a-zA-Z]+")

_DEFAULT_REGISTRY: Optional[CommandRegistry] = None


@dataclass(slots=True)
class CommandLine:
    range: LineRange = field(default_factory=LineRange)
    command: Optional[CommandBase] = None

    @property
    def is_empty(self) -> bool:
        return self.range.is_empty and self.command is None

    def __str__(self) -> str:
        command = str(self.command) if self.command is not None else ""
        return f":{self.range}{command}"

    async def execute(self, context: EditorContext) -> None:
        if self.command is None:
            self.range.jump(context)
            return
        with telemetry.span(f"command::{self.command.name}", component="command"):
            if self.range.is_empty:
                await self.command.execute(context)
                return
            start, end = self.range.resolve_span(context)
            await self.command.execute_with_range(context, start, end)


def _registry() -> CommandRegistry:
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = default_registry()
    return _DEFAULT_REGISTRY


def parse(text: str, *, registry: Optional[CommandRegistry] = None) -> CommandLine:
    """Parse ``text`` (without the leading ``:``).

    Raises ``ParseError`` (or its ``UnsupportedSyntaxError`` subclass) without
    touching any editor state.
    """

    tokens, index = tokenize(text)
    line_range = LineRange()
    for token in tokens:
        line_range.add_token(token)

    rest = text[index:].lstrip()
    if not rest:
        return CommandLine(range=line_range)

    match = _COMMAND_NAME.match(rest)
    if match is None:
        raise UnsupportedSyntaxError(rest, code=ErrorCode.NOT_AN_EDITOR_COMMAND)
    name = match.group(0)
    tail = rest[match.end() :]
    bang = tail.startswith("!")
    if bang:
        tail = tail[1:]

    command = (registry or _registry()).create(name, bang=bang, argument=tail)
    return CommandLine(range=line_range, command=command)


__all__ = ["CommandLine", "parse"]
