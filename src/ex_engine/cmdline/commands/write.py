"""``:w[rite][!] [++opt] [>>] [file]`` and ``:w !cmd``."""

from __future__ import annotations

import asyncio
import errno
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

from ex_engine.context import EditorContext

from .base import CommandBase

_OPT = re.compile(r"\+\+(?P<opt>[a-zA-Z0-9_]+)(?:=(?P<value>\S+))?\s*")


@dataclass(slots=True)
class WriteArguments:
    opt: Optional[str] = None
    opt_value: Optional[str] = None
    append: bool = False
    cmd: Optional[str] = None
    file: Optional[str] = None

    @property
    def is_plain(self) -> bool:
        return not (self.opt or self.append or self.cmd or self.file)


def parse_write_arguments(text: str) -> WriteArguments:
    args = WriteArguments()
    rest = text.strip()
    match = _OPT.match(rest)
    if match:
        args.opt = match.group("opt")
        args.opt_value = match.group("value")
        rest = rest[match.end() :]
    if rest.startswith(">>"):
        args.append = True
        rest = rest[2:].strip()
    elif rest.startswith("!"):
        args.cmd = rest[1:].strip() or None
        return args
    args.file = rest or None
    return args


class WriteCommand(CommandBase):
    name: ClassVar[str] = "write"

    def __init__(self, *, bang: bool = False, arguments: str = "") -> None:
        super().__init__(bang=bang, arguments=arguments)
        self.write_arguments = parse_write_arguments(arguments)

    async def execute(self, context: EditorContext) -> None:
        await self.write(context)

    async def write(self, context: EditorContext) -> bool:
        """Save the buffer; ``True`` when the text reached its file."""

        if not self.write_arguments.is_plain:
            context.set_status("Not implemented.")
            return False

        buffer = context.buffer
        if buffer.path is None:
            # Untitled buffers are saved through the host's save-as flow.
            context.bus.emit(
                "command.write", {"force": self.bang, "path": None, "name": buffer.name}
            )
            return False

        path = Path(buffer.path)
        if path.exists() and not os.access(path, os.W_OK):
            if not self.bang:
                context.set_status(f"{os.strerror(errno.EACCES)}: '{path}'")
                return False
            try:
                await asyncio.to_thread(os.chmod, path, 0o666)
            except OSError as exc:
                context.set_status(str(exc))
                return False
        return await self._save(context, path)

    async def _save(self, context: EditorContext, path: Path) -> bool:
        buffer = context.buffer
        text = buffer.text
        try:
            await asyncio.to_thread(path.write_text, text, encoding="utf-8")
        except OSError as exc:
            context.set_status(str(exc))
            return False
        buffer.mark_clean()
        context.bus.emit(
            "command.write", {"force": self.bang, "path": str(path), "name": buffer.name}
        )
        context.set_status(f'"{path.name}" {buffer.line_count}L {len(text)}C written')
        return True


__all__ = ["WriteArguments", "WriteCommand", "parse_write_arguments"]
