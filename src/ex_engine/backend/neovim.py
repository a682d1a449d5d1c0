"""Delegate command execution to an embedded Neovim over msgpack-RPC.

The bridge copies editor state into Neovim (buffer lines, cursor, visual
marks, named marks, the unnamed and search registers, a few options),
feeds it the command as keystrokes, then copies the resulting state
back. Every pynvim call runs on one dedicated worker thread: pynvim
sessions drive their own event loop and must not be touched from the
host's loop thread.
"""

from __future__ import annotations

import asyncio
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, ClassVar, List, Optional, Tuple

import pynvim

from ex_engine.buffer import BLOCKWISE, CHARACTERWISE, LINEWISE, VISUAL_END, VISUAL_START
from ex_engine.cmdline.commands import CommandBase
from ex_engine.context import EditorContext
from ex_engine.errors import BackendTransportError
from ex_engine.runtime import EngineConfig, telemetry

ClientFactory = Callable[[], Any]

# Local register mode -> setreg() type, and getregtype() prefix -> local mode.
REGISTER_TYPE_OUT = {CHARACTERWISE: "c", LINEWISE: "l", BLOCKWISE: "b"}
REGISTER_TYPE_IN = {"v": CHARACTERWISE, "V": LINEWISE, "\x16": BLOCKWISE}

Position = Tuple[int, int]


def escape_key_notation(text: str) -> str:
    """Make ``text`` safe for ``nvim_input``, which parses ``<...>`` as keys."""

    return text.replace("<", "<lt>")


def register_mode_from_vim(regtype: str) -> str:
    if not regtype:
        return CHARACTERWISE
    return REGISTER_TYPE_IN.get(regtype[0], CHARACTERWISE)


@dataclass(slots=True)
class OutboundState:
    """Editor state pushed to Neovim, already in its 1-based convention."""

    lines: List[str]
    cursor: Position
    visual_start: Position
    visual_end: Position
    marks: List[Tuple[str, Position]] = field(default_factory=list)
    register_text: str = ""
    register_type: str = "c"
    expandtab: bool = False
    gdefault: bool = False
    search_pattern: str = ""


@dataclass(slots=True)
class InboundState:
    lines: List[str]
    cursor: Position
    register_text: str
    register_mode: str
    search_pattern: str = ""
    message: str = ""


def snapshot_context(context: EditorContext, *, expandtab: bool) -> OutboundState:
    buffer = context.buffer
    cursor = buffer.state.cursor
    cursor_start = buffer.state.cursor_start
    range_start, range_end = min(cursor, cursor_start), max(cursor, cursor_start)
    register = context.registers.unnamed

    marks = [
        (mark.name, (mark.position[0] + 1, mark.position[1] + 1))
        for mark in buffer.marks
        if mark.name not in (VISUAL_START, VISUAL_END)
    ]
    return OutboundState(
        lines=list(buffer.lines),
        cursor=(cursor[0] + 1, cursor[1] + 1),
        # Both visual marks take their column from the later endpoint.
        visual_start=(range_start[0] + 1, range_end[1] + 1),
        visual_end=(range_end[0] + 1, range_end[1] + 1),
        marks=marks,
        register_text=register.text,
        register_type=REGISTER_TYPE_OUT[register.mode],
        expandtab=expandtab,
        gdefault=context.session.substitute_global_flag,
        search_pattern=context.session.last_search_pattern or "",
    )


def apply_inbound(context: EditorContext, state: InboundState) -> None:
    buffer = context.buffer
    if state.lines != list(buffer.lines):
        with buffer.batch("backend"):
            buffer.replace_all("\n".join(state.lines), label="backend")
    row, col = state.cursor
    buffer.set_cursor(row - 1, max(0, col - 1))
    buffer.state.clear_selection()
    context.registers.put(state.register_text, mode=state.register_mode)
    context.session.record_search(state.search_pattern)


class NeovimBridge:
    """One embedded Neovim per editing session.

    ``initialize`` must complete before ``run``/``input``; calls must be
    serialized by the caller. Any transport failure disables the bridge.
    """

    def __init__(
        self,
        config: EngineConfig,
        *,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.config = config
        self._client_factory = client_factory or partial(
            pynvim.attach, "child", argv=config.backend_argv
        )
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="ex-engine-nvim"
        )
        self._nvim: Any = None
        self.disabled = False

    @property
    def ready(self) -> bool:
        return self._nvim is not None and not self.disabled

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(fn, *args))

    async def initialize(self) -> bool:
        if self.ready:
            return True
        if self.disabled:
            return False
        try:
            self._nvim = await self._call(self._client_factory)
        except Exception as exc:
            self._disable("backend.spawn_failed", exc)
            return False
        telemetry.record_event(
            "backend.spawned", data={"argv": " ".join(self.config.backend_argv)}
        )
        return True

    async def run(self, context: EditorContext, command: str) -> None:
        """Execute ``command`` (no leading ``:``) and surface its message."""

        with telemetry.span("backend::run", component="backend", metadata={"command": command}):
            inbound = await self._roundtrip(context, partial(self._execute_command, command))
        if inbound is None:
            context.set_status(str(BackendTransportError(command)))
            return
        apply_inbound(context, inbound)
        context.set_status(inbound.message)

    async def input(self, context: EditorContext, keys: str) -> None:
        """Feed raw ``keys`` (key notation) through the same sync envelope."""

        with telemetry.span("backend::input", component="backend", metadata={"keys": keys}):
            inbound = await self._roundtrip(context, partial(self._feed_keys, keys))
        if inbound is not None:
            apply_inbound(context, inbound)

    async def _roundtrip(
        self, context: EditorContext, action: Callable[[], str]
    ) -> Optional[InboundState]:
        if not self.ready:
            return None
        outbound = snapshot_context(context, expandtab=self.config.expandtab)
        try:
            return await self._call(self._sync_roundtrip, outbound, action)
        except Exception as exc:
            self._disable("backend.transport_error", exc)
            return None

    def _sync_roundtrip(
        self, outbound: OutboundState, action: Callable[[], str]
    ) -> InboundState:
        self._sync_out(outbound)
        message = action()
        inbound = self._sync_in()
        inbound.message = message
        return inbound

    def _sync_out(self, state: OutboundState) -> None:
        nvim = self._nvim
        nvim.options["gdefault"] = state.gdefault
        buf = nvim.current.buffer
        buf[:] = state.lines
        buf.options["expandtab"] = state.expandtab
        nvim.call("setpos", ".", [0, state.cursor[0], state.cursor[1], 0])
        nvim.call("setpos", "'<", [0, state.visual_start[0], state.visual_start[1], 0])
        nvim.call("setpos", "'>", [0, state.visual_end[0], state.visual_end[1], 0])
        for name, (row, col) in state.marks:
            nvim.call("setpos", f"'{name}", [0, row, col, 0])
        # Only the unnamed register travels; macros live in other registers.
        nvim.call("setreg", '"', state.register_text, state.register_type)
        if state.search_pattern:
            nvim.call("setreg", "/", state.search_pattern, "c")

    def _sync_in(self) -> InboundState:
        nvim = self._nvim
        lines = list(nvim.current.buffer[:])
        if sys.platform == "win32":
            lines = [line[:-1] if line.endswith("\r") else line for line in lines]
        position = nvim.call("getpos", ".")
        telemetry.record_event("backend.sync", level="debug", data={"lines": len(lines)})
        return InboundState(
            lines=lines,
            cursor=(int(position[1]), int(position[2])),
            register_text=str(nvim.call("getreg", '"')),
            register_mode=register_mode_from_vim(str(nvim.call("getregtype", '"'))),
            search_pattern=str(nvim.call("getreg", "/")),
        )

    def _execute_command(self, command: str) -> str:
        nvim = self._nvim
        nvim.command('let v:errmsg="" | let v:statusmsg=""')
        nvim.input(f":{escape_key_notation(command)}<CR>")
        if nvim.api.get_mode().get("blocking"):
            nvim.input("<Esc>")
        error = str(nvim.vvars["errmsg"] or "")
        if error:
            return error
        return str(nvim.vvars["statusmsg"] or "")

    def _feed_keys(self, keys: str) -> str:
        self._nvim.input(keys)
        return ""

    def _disable(self, event: str, exc: BaseException) -> None:
        self.disabled = True
        self.config.enable_backend = False
        telemetry.record_event(event, level="error", data={"error": str(exc)})

    async def close(self) -> None:
        nvim, self._nvim = self._nvim, None
        if nvim is not None:
            try:
                await self._call(nvim.quit)
            except Exception as exc:
                telemetry.record_event(
                    "backend.close_failed", level="warning", data={"error": str(exc)}
                )
            try:
                await self._call(nvim.close)
            except Exception as exc:
                telemetry.record_event(
                    "backend.close_failed", level="warning", data={"error": str(exc)}
                )
        self._executor.shutdown(wait=False)


class DelegatedCommand(CommandBase):
    """Runs the raw command line through a ``NeovimBridge``.

    Gives the engine one execution path: local and delegated commands are
    both awaited through ``execute``.
    """

    name: ClassVar[str] = "delegated"
    backend_capable: ClassVar[bool] = True

    def __init__(self, bridge: NeovimBridge, text: str) -> None:
        super().__init__(arguments=text)
        self.bridge = bridge

    async def execute(self, context: EditorContext) -> None:
        await self.bridge.run(context, self.arguments)

    async def execute_with_range(
        self, context: EditorContext, start: int, end: int
    ) -> None:
        del start, end
        await self.execute(context)


__all__ = [
    "DelegatedCommand",
    "InboundState",
    "NeovimBridge",
    "OutboundState",
    "apply_inbound",
    "escape_key_notation",
    "register_mode_from_vim",
    "snapshot_context",
]
