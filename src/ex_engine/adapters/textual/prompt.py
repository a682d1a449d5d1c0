"""Textual screens that collect a command line or pick a history entry."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

try:  # pragma: no cover - optional dependency
    from textual.app import App, ComposeResult
    from textual.screen import ModalScreen, Screen
    from textual.widgets import Input, OptionList
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use ex_engine.adapters.textual"
    ) from exc

from ex_engine.context import StatusSink


class CommandLineScreen(ModalScreen[Optional[str]]):
    """Single-line input; dismisses with the typed text or ``None``."""

    DEFAULT_CSS = """
	CommandLineScreen {
		align: center bottom;
	}

	CommandLineScreen > Input {
		width: 100%;
		dock: bottom;
	}
	"""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, initial_text: str = "", *, placeholder: str = "Vim command line") -> None:
        super().__init__()
        self.initial_text = initial_text
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        yield Input(value=self.initial_text, placeholder=self.placeholder, id="command-input")

    def on_mount(self) -> None:
        command_input = self.query_one(Input)
        command_input.cursor_position = len(self.initial_text)
        command_input.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class HistoryPickerScreen(ModalScreen[Optional[str]]):
    DEFAULT_CSS = """
	HistoryPickerScreen {
		align: center middle;
	}

	HistoryPickerScreen > OptionList {
		width: 80%;
		max-height: 60%;
		border: round $accent;
	}
	"""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, entries: Sequence[str], *, placeholder: str = "Vim command history") -> None:
        super().__init__()
        self.entries: List[str] = list(entries)
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        options = OptionList(*self.entries, id="history-list")
        options.border_title = self.placeholder
        yield options

    def on_mount(self) -> None:
        self.query_one(OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.dismiss(self.entries[event.option_index])

    def action_cancel(self) -> None:
        self.dismiss(None)


class TextualCommandPrompt:
    """``CommandPrompt`` backed by modal screens pushed onto ``app``.

    ``ask`` and ``pick`` wait for the screen to be dismissed, so call them
    from a worker rather than from a message handler of ``app`` itself.
    """

    def __init__(self, app: App) -> None:
        self.app = app

    async def ask(self, initial_text: str) -> Optional[str]:
        return await self._show(CommandLineScreen(initial_text))

    async def pick(self, entries: Sequence[str], *, placeholder: str) -> Optional[str]:
        if not entries:
            return None
        return await self._show(HistoryPickerScreen(entries, placeholder=placeholder))

    async def _show(self, screen: Screen[Optional[str]]) -> Optional[str]:
        result: asyncio.Future[Optional[str]] = asyncio.get_running_loop().create_future()

        def _dismissed(value: Optional[str]) -> None:
            if not result.done():
                result.set_result(value)

        self.app.push_screen(screen, callback=_dismissed)
        return await result


def status_sink(app: App) -> StatusSink:
    """Route status text to Textual notifications."""

    def _notify(text: str) -> None:
        if text:
            app.notify(text)

    return _notify


__all__ = [
    "CommandLineScreen",
    "HistoryPickerScreen",
    "TextualCommandPrompt",
    "status_sink",
]
