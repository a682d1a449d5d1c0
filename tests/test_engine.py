from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import pytest

from ex_engine.buffer import Buffer
from ex_engine.context import EditorContext
from ex_engine import engine as engine_module
from ex_engine.engine import CommandLineEngine
from ex_engine.runtime import EngineConfig


class FakeBridge:
    def __init__(self, *, spawn_ok: bool = True) -> None:
        self.spawn_ok = spawn_ok
        self.commands: List[str] = []
        self.closed = False

    async def initialize(self) -> bool:
        return self.spawn_ok

    async def run(self, context: EditorContext, command: str) -> None:
        self.commands.append(command)
        context.set_status(f"delegated {command}")

    async def close(self) -> None:
        self.closed = True


class FakePrompt:
    def __init__(self, answer: Optional[str]) -> None:
        self.answer = answer
        self.asked: List[str] = []
        self.picked: List[Tuple[List[str], str]] = []

    async def ask(self, initial_text: str) -> Optional[str]:
        self.asked.append(initial_text)
        return self.answer

    async def pick(self, entries: Sequence[str], *, placeholder: str) -> Optional[str]:
        self.picked.append((list(entries), placeholder))
        return entries[0] if entries else None


def make_engine(
    tmp_path: Path,
    *,
    backend: Any = None,
    prompt: Any = None,
    **settings: Any,
) -> CommandLineEngine:
    config = EngineConfig(
        history_dir=tmp_path, enable_backend=backend is not None, **settings
    )
    return CommandLineEngine(config, backend=backend, prompt=prompt)


def make_context(lines: Sequence[str]) -> EditorContext:
    return EditorContext(buffer=Buffer.from_lines(lines))


@pytest.mark.asyncio
async def test_bare_range_moves_cursor(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["a", "b", "c"])

    await engine.run(":3", context)

    assert context.buffer.state.cursor == (2, 0)
    assert engine.history_entries == ["3"]


@pytest.mark.asyncio
async def test_empty_text_is_ignored(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["a"])

    await engine.run("", context)
    await engine.run(None, context)

    assert engine.history_entries == []
    assert context.status_text == ""


@pytest.mark.asyncio
async def test_parse_failure_is_recorded_and_reported(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["a", "b"])

    await engine.run("1,2,3d", context)

    assert engine.history_entries == ["1,2,3d"]
    assert engine.history_index == 1
    assert context.status_text.startswith("E16: Invalid range")
    assert context.status_text.endswith(". 1,2,3d")
    assert list(context.buffer.lines) == ["a", "b"]


@pytest.mark.asyncio
async def test_execution_failure_becomes_status(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["abc"])

    await engine.run("s/zzz/y/", context)

    assert context.status_text == "E486: Pattern not found: zzz. s/zzz/y/"


@pytest.mark.asyncio
async def test_unsupported_syntax_without_backend_is_shown(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["a"])

    await engine.run("normal! gg", context)

    assert context.status_text == "E492: Not an editor command: normal. normal! gg"


@pytest.mark.asyncio
async def test_range_on_rangeless_command_reports_e481(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["a", "b"])

    await engine.run("1,2w", context)

    assert context.status_text == "E481: No range allowed: write. 1,2w"


@pytest.mark.asyncio
async def test_unsupported_syntax_falls_back_to_backend(tmp_path: Path) -> None:
    bridge = FakeBridge()
    engine = make_engine(tmp_path, backend=bridge)
    context = make_context(["a"])

    await engine.run("normal! gg", context)
    await engine.run("1,2w", context)

    assert bridge.commands == ["normal! gg", "1,2w"]
    assert context.status_text == "delegated 1,2w"


@pytest.mark.asyncio
async def test_backend_capable_commands_are_delegated(tmp_path: Path) -> None:
    bridge = FakeBridge()
    engine = make_engine(tmp_path, backend=bridge)
    context = make_context(["aba"])

    await engine.run("s/a/d/", context)

    assert bridge.commands == ["s/a/d/"]
    assert list(context.buffer.lines) == ["aba"]


@pytest.mark.asyncio
async def test_local_only_commands_stay_local(tmp_path: Path) -> None:
    bridge = FakeBridge()
    engine = make_engine(tmp_path, backend=bridge)
    context = make_context(["a"])
    quits: List[object] = []
    context.bus.subscribe("command.quit", quits.append)

    await engine.run("q", context)

    assert bridge.commands == []
    assert quits == [{"force": False, "name": "default"}]


@pytest.mark.asyncio
async def test_unavailable_backend_runs_locally(tmp_path: Path) -> None:
    bridge = FakeBridge(spawn_ok=False)
    engine = make_engine(tmp_path, backend=bridge)
    context = make_context(["aba"])

    await engine.run("s/a/d/", context)

    assert bridge.commands == []
    assert list(context.buffer.lines) == ["dba"]


@pytest.mark.asyncio
async def test_prompt_and_run_executes_answer(tmp_path: Path) -> None:
    prompt = FakePrompt("s/a/b/")
    engine = make_engine(tmp_path, prompt=prompt)
    context = make_context(["a"])

    await engine.prompt_and_run("'<,'>", context)

    assert prompt.asked == ["'<,'>"]
    assert list(context.buffer.lines) == ["b"]


@pytest.mark.asyncio
async def test_cancelled_prompt_runs_nothing(tmp_path: Path) -> None:
    engine = make_engine(tmp_path, prompt=FakePrompt(None))
    context = make_context(["a"])

    await engine.prompt_and_run("", context)

    assert engine.history_entries == []
    assert list(context.buffer.lines) == ["a"]


@pytest.mark.asyncio
async def test_show_history_lists_newest_first(tmp_path: Path) -> None:
    prompt = FakePrompt(None)
    engine = make_engine(tmp_path, prompt=prompt)
    context = make_context(["a"])
    await engine.run("1", context)
    await engine.run("2", context)

    picked = await engine.show_history("3", context)

    assert picked == "3"
    assert prompt.picked == [(["3", "2", "1"], "Vim command history")]


@pytest.mark.asyncio
async def test_history_cap_follows_config(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["a"])
    engine.config.history_size = 2

    for line in ("1", "2", "3"):
        await engine.run(line, context)

    assert engine.history_entries == ["2", "3"]


@pytest.mark.asyncio
async def test_close_tears_down_backend(tmp_path: Path) -> None:
    bridge = FakeBridge()
    engine = make_engine(tmp_path, backend=bridge)

    await engine.close()

    assert bridge.closed


@pytest.mark.asyncio
async def test_two_addresses_on_one_side_report_invalid_range(tmp_path: Path) -> None:
    engine = make_engine(tmp_path)
    context = make_context(["a", "b"])

    await engine.run("1.d", context)

    assert context.status_text.startswith("E16: Invalid range")
    assert list(context.buffer.lines) == ["a", "b"]


@pytest.mark.asyncio
async def test_configured_global_default_seeds_new_session(tmp_path: Path) -> None:
    engine = make_engine(tmp_path, substitute_global_flag=True)
    context = make_context(["aba", "aa"])

    await engine.run("%s/a/d/", context)

    assert context.session.substitute_global_flag is True
    assert list(context.buffer.lines) == ["dbd", "dd"]


@pytest.mark.asyncio
async def test_session_is_seeded_only_once(tmp_path: Path) -> None:
    engine = make_engine(tmp_path, substitute_global_flag=True)
    context = make_context(["aba"])

    await engine.run("1", context)
    context.session.substitute_global_flag = False
    await engine.run("s/a/d/", context)

    assert list(context.buffer.lines) == ["dba"]


@pytest.mark.asyncio
async def test_history_is_saved_off_the_event_loop(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    offloaded: List[str] = []
    real_to_thread = asyncio.to_thread

    async def recording_to_thread(fn: Any, *args: Any) -> Any:
        offloaded.append(getattr(fn, "__name__", repr(fn)))
        return await real_to_thread(fn, *args)

    monkeypatch.setattr(engine_module.asyncio, "to_thread", recording_to_thread)
    engine = make_engine(tmp_path)

    await engine.run("1", make_context(["a"]))

    assert offloaded == ["add"]
    assert (tmp_path / ".cmdline_history").read_text(encoding="utf-8") == '["1"]'
