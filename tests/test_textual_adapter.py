from __future__ import annotations

import asyncio
from pathlib import Path
from types import SimpleNamespace
from typing import List

import pytest
from textual.widgets import Input, OptionList

from ex_engine.adapters.textual import (
    CommandLineScreen,
    HistoryPickerScreen,
    TextualCommandPrompt,
    status_sink,
)
from ex_engine.adapters.textual.app import CommandLineApp
from ex_engine.buffer import Buffer
from ex_engine.runtime import EngineConfig


def make_app(tmp_path: Path, *lines: str) -> CommandLineApp:
    return CommandLineApp(
        Buffer.from_lines(lines), config=EngineConfig(history_dir=tmp_path)
    )


@pytest.mark.asyncio
async def test_ask_returns_submitted_text(tmp_path: Path) -> None:
    app = make_app(tmp_path, "aba")
    async with app.run_test() as pilot:
        task = asyncio.create_task(TextualCommandPrompt(app).ask("s/a/"))
        await pilot.pause()
        assert isinstance(app.screen, CommandLineScreen)

        await pilot.press("d", "enter")

        assert await task == "s/a/d"


@pytest.mark.asyncio
async def test_escape_cancels_prompt(tmp_path: Path) -> None:
    app = make_app(tmp_path, "aba")
    async with app.run_test() as pilot:
        task = asyncio.create_task(TextualCommandPrompt(app).ask(""))
        await pilot.pause()

        await pilot.press("escape")

        assert await task is None


@pytest.mark.asyncio
async def test_pick_returns_selected_entry(tmp_path: Path) -> None:
    app = make_app(tmp_path, "a")
    async with app.run_test() as pilot:
        task = asyncio.create_task(
            TextualCommandPrompt(app).pick(["w", "q"], placeholder="history")
        )
        await pilot.pause()
        assert isinstance(app.screen, HistoryPickerScreen)

        options = app.screen.query_one(OptionList)
        options.highlighted = 1
        options.action_select()

        assert await task == "q"


@pytest.mark.asyncio
async def test_pick_with_no_entries_skips_screen(tmp_path: Path) -> None:
    app = make_app(tmp_path, "a")
    async with app.run_test():
        assert await TextualCommandPrompt(app).pick([], placeholder="history") is None


@pytest.mark.asyncio
async def test_colon_binding_runs_command_line(tmp_path: Path) -> None:
    app = make_app(tmp_path, "aba", "ab")
    async with app.run_test() as pilot:
        await pilot.press("colon")
        await pilot.pause()
        assert isinstance(app.screen, CommandLineScreen)

        app.screen.query_one(Input).value = "%s/a/d/g"
        await pilot.press("enter")
        await app.workers.wait_for_complete()
        await pilot.pause()

        assert app.context.buffer.lines == ("dbd", "db")
        assert app.engine.history_entries == ["%s/a/d/g"]


def test_status_sink_forwards_non_empty_text() -> None:
    notes: List[str] = []
    sink = status_sink(SimpleNamespace(notify=notes.append))

    sink("")
    sink("3 fewer lines")

    assert notes == ["3 fewer lines"]
