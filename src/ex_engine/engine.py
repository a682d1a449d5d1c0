"""Command-line engine: history, parsing, local vs delegated execution."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Protocol, Sequence

from ex_engine.backend import DelegatedCommand, NeovimBridge
from ex_engine.cmdline import CommandLineHistory, CommandRegistry, default_registry, parse
from ex_engine.context import EditorContext
from ex_engine.errors import ExError, UnsupportedSyntaxError
from ex_engine.runtime import EngineConfig, telemetry

SESSION_SEEDED = "ex_engine.session_seeded"


class CommandPrompt(Protocol):
    """Host widget that collects a command line or picks a history entry."""

    async def ask(self, initial_text: str) -> Optional[str]:
        """Return the typed text, or ``None`` when the user cancelled."""
        ...

    async def pick(self, entries: Sequence[str], *, placeholder: str) -> Optional[str]:
        ...


class CommandLineEngine:
    """Runs ``:`` command lines against an ``EditorContext``.

    Failures never escape ``run``: they end up as status text so the
    keystroke pipeline keeps going whatever the command did.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        history: Optional[CommandLineHistory] = None,
        backend: Optional[NeovimBridge] = None,
        prompt: Optional[CommandPrompt] = None,
        registry: Optional[CommandRegistry] = None,
    ) -> None:
        self.config = config or EngineConfig.from_env()
        self.history = history or CommandLineHistory(
            self.config.history_dir,
            max_entries=lambda: self.config.history_size,
        )
        self.prompt = prompt
        self.registry = registry or default_registry()
        self.history_index = 0
        self._backend = backend

    @property
    def history_entries(self) -> List[str]:
        return self.history.get()

    async def run(self, text: Optional[str], context: EditorContext) -> None:
        if not text:
            return
        if text.startswith(":"):
            text = text[1:]

        self._seed_session(context)
        await asyncio.to_thread(self.history.add, text)
        self.history_index = len(self.history)
        telemetry.record_event("cmdline.run", level="debug", data={"command": text})

        with telemetry.span(
            "cmdline::run", component="cmdline", metadata={"command": text}
        ):
            try:
                await self._dispatch(text, context)
            except ExError as exc:
                telemetry.record_event(
                    "cmdline.error",
                    level="warning",
                    data={"command": text, "code": int(exc.code), "error": str(exc)},
                )
                context.set_status(f"{exc}. {text}")
            except Exception as exc:
                telemetry.record_event(
                    "cmdline.error",
                    level="error",
                    data={"command": text, "error": repr(exc)},
                )
                context.set_status(str(exc) or type(exc).__name__)

    def _seed_session(self, context: EditorContext) -> None:
        """Apply the configured ``g`` flag default the first time a context runs."""

        if context.extras.get(SESSION_SEEDED):
            return
        context.extras[SESSION_SEEDED] = True
        if self.config.substitute_global_flag:
            context.session.substitute_global_flag = True

    async def _dispatch(self, text: str, context: EditorContext) -> None:
        try:
            command_line = parse(text, registry=self.registry)
            command = command_line.command
            if (
                command is not None
                and command.backend_capable
                and self.config.enable_backend
                and await self._delegate(text, context)
            ):
                return
            await command_line.execute(context)
        except UnsupportedSyntaxError:
            if self.config.enable_backend and await self._delegate(text, context):
                return
            raise

    async def _delegate(self, text: str, context: EditorContext) -> bool:
        bridge = await self._ensure_backend()
        if bridge is None:
            return False
        telemetry.record_event("cmdline.delegate", data={"command": text})
        await DelegatedCommand(bridge, text).execute(context)
        return True

    async def _ensure_backend(self) -> Optional[NeovimBridge]:
        if self._backend is None:
            self._backend = NeovimBridge(self.config)
        if not await self._backend.initialize():
            return None
        return self._backend

    async def prompt_and_run(self, initial_text: str, context: EditorContext) -> None:
        if self.prompt is None:
            telemetry.record_event("cmdline.no_prompt", level="debug")
            return
        text = await self.prompt.ask(initial_text)
        if text is None:
            return
        await self.run(text, context)

    async def show_history(
        self, initial_text: str, context: EditorContext
    ) -> Optional[str]:
        del context
        await asyncio.to_thread(self.history.add, initial_text)
        if self.prompt is None:
            return None
        entries = list(reversed(self.history.get()))
        return await self.prompt.pick(entries, placeholder="Vim command history")

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.close()
            self._backend = None


__all__ = ["CommandLineEngine", "CommandPrompt"]
