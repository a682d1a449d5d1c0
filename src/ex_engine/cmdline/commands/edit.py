"""``:e[dit][!] [file]``."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import ClassVar

from ex_engine.context import EditorContext
from ex_engine.errors import CommandFailedError

from .base import CommandBase


class EditCommand(CommandBase):
    name: ClassVar[str] = "edit"

    async def execute(self, context: EditorContext) -> None:
        buffer = context.buffer
        if self.arguments or buffer.path is None:
            # Opening another file is the host's job.
            context.bus.emit(
                "command.edit", {"force": self.bang, "file": self.arguments or None}
            )
            return
        if buffer.dirty and not self.bang:
            raise CommandFailedError()

        path = Path(buffer.path)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as exc:
            context.set_status(str(exc))
            return
        with buffer.batch("edit"):
            buffer.replace_all(text, label="edit")
        buffer.mark_clean()
        context.set_status(f'"{path.name}" {buffer.line_count}L {len(text)}C')


__all__ = ["EditCommand"]
