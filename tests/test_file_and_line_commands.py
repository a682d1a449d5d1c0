from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pytest

from ex_engine.buffer import LINEWISE, Buffer
from ex_engine.cmdline import parse
from ex_engine.cmdline.commands.write import parse_write_arguments
from ex_engine.context import EditorContext
from ex_engine.errors import CommandFailedError, ErrorCode


def make_context(
    lines: Sequence[str], *, path: Optional[Path] = None
) -> EditorContext:
    buffer = Buffer.from_lines(lines, name="notes", path=str(path) if path else None)
    return EditorContext(buffer=buffer)


def collect(context: EditorContext, event: str) -> List[Any]:
    seen: List[Any] = []
    context.bus.subscribe(event, seen.append)
    return seen


async def run(context: EditorContext, text: str) -> None:
    await parse(text).execute(context)


@pytest.mark.asyncio
async def test_write_saves_and_marks_clean(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"
    context = make_context(["a", "b"], path=target)
    context.buffer.replace_all("a\nb\nc", label="edit")
    writes = collect(context, "command.write")

    await run(context, "w")

    assert target.read_text(encoding="utf-8") == "a\nb\nc"
    assert not context.buffer.dirty
    assert context.status_text == '"notes.txt" 3L 5C written'
    assert writes == [{"force": False, "path": str(target), "name": "notes"}]


@pytest.mark.asyncio
async def test_write_without_path_is_left_to_host() -> None:
    context = make_context(["a"])
    writes = collect(context, "command.write")

    await run(context, "w")

    assert writes == [{"force": False, "path": None, "name": "notes"}]


@pytest.mark.asyncio
async def test_write_with_arguments_is_not_implemented(tmp_path: Path) -> None:
    context = make_context(["a"], path=tmp_path / "notes.txt")

    await run(context, "w other.txt")

    assert context.status_text == "Not implemented."
    assert not (tmp_path / "notes.txt").exists()


@pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="root ignores file permissions",
)
@pytest.mark.asyncio
async def test_readonly_file_needs_bang(tmp_path: Path) -> None:
    target = tmp_path / "locked.txt"
    target.write_text("old", encoding="utf-8")
    target.chmod(stat.S_IRUSR)
    context = make_context(["new"], path=target)

    await run(context, "w")
    assert context.status_text == f"Permission denied: '{target}'"
    assert target.read_text(encoding="utf-8") == "old"

    await run(context, "w!")
    assert target.read_text(encoding="utf-8") == "new"


def test_parse_write_arguments() -> None:
    args = parse_write_arguments("++enc=utf-8 >> log.txt")
    assert (args.opt, args.opt_value, args.append, args.file) == (
        "enc",
        "utf-8",
        True,
        "log.txt",
    )
    assert parse_write_arguments("!sort").cmd == "sort"
    assert parse_write_arguments("").is_plain


@pytest.mark.asyncio
async def test_quit_refuses_dirty_buffer() -> None:
    context = make_context(["a"])
    context.buffer.replace_all("b", label="edit")
    quits = collect(context, "command.quit")

    with pytest.raises(CommandFailedError) as info:
        await run(context, "q")
    assert info.value.code is ErrorCode.NO_WRITE_SINCE_CHANGE
    assert quits == []

    await run(context, "q!")
    assert quits == [{"force": True, "name": "notes"}]


@pytest.mark.asyncio
async def test_wq_writes_then_quits(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"
    context = make_context(["a"], path=target)
    quits = collect(context, "command.quit")

    await run(context, "wq")

    assert target.read_text(encoding="utf-8") == "a"
    assert len(quits) == 1


@pytest.mark.asyncio
async def test_xit_skips_write_for_clean_buffer(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"
    context = make_context(["a"], path=target)
    quits = collect(context, "command.quit")

    await run(context, "x")

    assert not target.exists()
    assert len(quits) == 1


@pytest.mark.asyncio
async def test_edit_reloads_from_disk(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"
    target.write_text("disk\ntext", encoding="utf-8")
    context = make_context(["local"], path=target)

    await run(context, "e")

    assert context.buffer.lines == ("disk", "text")
    assert not context.buffer.dirty
    assert context.status_text == '"notes.txt" 2L 9C'


@pytest.mark.asyncio
async def test_edit_refuses_to_drop_changes(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"
    target.write_text("disk", encoding="utf-8")
    context = make_context(["local"], path=target)
    context.buffer.replace_all("changed", label="edit")

    with pytest.raises(CommandFailedError):
        await run(context, "e")
    await run(context, "e!")

    assert context.buffer.lines == ("disk",)


@pytest.mark.asyncio
async def test_edit_other_file_is_left_to_host() -> None:
    context = make_context(["a"])
    edits = collect(context, "command.edit")

    await run(context, "e other.txt")

    assert edits == [{"force": False, "file": "other.txt"}]


@pytest.mark.asyncio
async def test_delete_range_fills_register() -> None:
    context = make_context(["1", "2", "3", "4", "5"])

    await run(context, "2,4d")

    assert context.buffer.lines == ("1", "5")
    assert context.buffer.state.cursor == (1, 0)
    assert context.registers.unnamed.text == "2\n3\n4\n"
    assert context.registers.unnamed.mode == LINEWISE
    assert context.status_text == "3 fewer lines"
    assert len(context.buffer.undo) == 1


@pytest.mark.asyncio
async def test_delete_with_count_into_named_register() -> None:
    context = make_context(["1", "2", "3"])

    await run(context, "d a 2")

    assert context.buffer.lines == ("3",)
    assert context.registers.get("a").text == "1\n2\n"


@pytest.mark.asyncio
async def test_yank_appends_to_uppercase_register() -> None:
    context = make_context(["1", "2", "3"])

    await run(context, "1y a")
    await run(context, "3y A")

    assert context.registers.get("a").text == "1\n3\n"
    assert context.buffer.lines == ("1", "2", "3")
