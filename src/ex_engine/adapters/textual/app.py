"""Executable Textual app that hosts the command-line engine."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use ex_engine.adapters.textual.app"
    ) from exc

from ex_engine.buffer import Buffer
from ex_engine.context import EditorContext, EventBus
from ex_engine.engine import CommandLineEngine
from ex_engine.errors import ErrorCode, ExError
from ex_engine.runtime import EngineConfig

from .prompt import TextualCommandPrompt


@dataclass
class UIState:
    buffer_text: str = ""
    status_text: str = ""


class CommandLineApp(App[None]):
    """Shows one buffer and runs ``:`` command lines against it."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 1 1;
		content-align: left top;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("colon", "command_line", "Command"),
        ("ctrl+p", "history", "History"),
        ("ctrl+c", "quit", "Quit"),
    ]

    def __init__(
        self,
        buffer: Optional[Buffer] = None,
        *,
        config: Optional[EngineConfig] = None,
    ) -> None:
        super().__init__()
        self._state = UIState()
        config = config or EngineConfig.from_env()
        self.engine = CommandLineEngine(config, prompt=TextualCommandPrompt(self))
        bus = EventBus()
        bus.subscribe("command.quit", self._handle_quit)
        bus.subscribe("command.write", self._handle_write)
        bus.subscribe("status.update", self._handle_status)
        self.context = EditorContext(
            buffer=buffer or Buffer(),
            bus=bus,
        )
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._status_widget = Static("", id="status-line", markup=False)
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_buffer()

    async def on_unmount(self) -> None:
        await self.engine.close()

    def action_command_line(self) -> None:
        self.run_worker(self._run_command_line(""), exclusive=True)

    def action_history(self) -> None:
        self.run_worker(self._run_from_history(), exclusive=True)

    async def _run_command_line(self, initial_text: str) -> None:
        await self.engine.prompt_and_run(initial_text, self.context)
        self._refresh_buffer()

    async def _run_from_history(self) -> None:
        picked = await self.engine.show_history("", self.context)
        if picked is not None:
            await self._run_command_line(picked)

    def _refresh_buffer(self) -> None:
        self._state.buffer_text = self.context.buffer.text
        if self._buffer_widget:
            self._buffer_widget.update(self._state.buffer_text)

    def _handle_status(self, payload: Any | None) -> None:
        self._state.status_text = str(payload or "")
        if self._status_widget:
            self._status_widget.update(self._state.status_text)

    def _handle_write(self, payload: Any | None) -> None:
        if isinstance(payload, dict) and payload.get("path") is None:
            self.context.set_status(str(ExError(code=ErrorCode.NO_FILE_NAME)))

    def _handle_quit(self, payload: Any | None) -> None:
        del payload
        self.exit()


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Ex command-line demo.")
    parser.add_argument("file", nargs="?", help="File to open")
    parser.add_argument(
        "--backend",
        action="store_true",
        help="Delegate unsupported commands to an embedded Neovim",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    config = EngineConfig.from_env()
    if args.backend:
        config.enable_backend = True
    buffer = Buffer()
    if args.file:
        path = Path(args.file)
        text = path.read_text(encoding="utf-8") if path.exists() else ""
        buffer = Buffer.from_text(text, name=path.name, path=str(path))
    CommandLineApp(buffer, config=config).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
