"""``:q[uit]``, ``:wq`` and ``:x[it]`` / ``:exi[t]``."""

from __future__ import annotations

from typing import ClassVar

from ex_engine.context import EditorContext
from ex_engine.errors import CommandFailedError

from .base import CommandBase
from .write import WriteCommand


def emit_quit(context: EditorContext, *, force: bool) -> None:
    context.bus.emit("command.quit", {"force": force, "name": context.buffer.name})


class QuitCommand(CommandBase):
    name: ClassVar[str] = "quit"

    async def execute(self, context: EditorContext) -> None:
        if context.buffer.dirty and not self.bang:
            raise CommandFailedError()
        emit_quit(context, force=self.bang)


class WriteQuitCommand(WriteCommand):
    """``:wq`` always writes; ``:x`` only writes a modified buffer."""

    name: ClassVar[str] = "wq"
    only_if_dirty: ClassVar[bool] = False

    async def execute(self, context: EditorContext) -> None:
        if self.only_if_dirty and not context.buffer.dirty:
            emit_quit(context, force=self.bang)
            return
        if await self.write(context):
            emit_quit(context, force=self.bang)


class ExitCommand(WriteQuitCommand):
    name: ClassVar[str] = "xit"
    only_if_dirty: ClassVar[bool] = True


__all__ = ["ExitCommand", "QuitCommand", "WriteQuitCommand", "emit_quit"]
