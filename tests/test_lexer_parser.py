from __future__ import annotations

from typing import List

import pytest

from ex_engine.cmdline import CommandRegistry, TokenType, default_registry, parse, tokenize
from ex_engine.cmdline.commands import (
    DeleteCommand,
    EditCommand,
    ExitCommand,
    QuitCommand,
    SubstituteCommand,
    WriteCommand,
    WriteQuitCommand,
)
from ex_engine.errors import ErrorCode, ParseError, UnsupportedSyntaxError


def kinds(text: str) -> List[TokenType]:
    tokens, _ = tokenize(text)
    return [token.type for token in tokens]


def test_tokenizer_lexes_addresses_and_stops_at_command() -> None:
    tokens, index = tokenize("'a+2,$-1s/x/y/")

    assert [token.type for token in tokens] == [
        TokenType.MARK,
        TokenType.OFFSET,
        TokenType.COMMA,
        TokenType.DOLLAR,
        TokenType.OFFSET,
    ]
    assert [token.content for token in tokens] == ["a", "+2", ",", "$", "-1"]
    assert "'a+2,$-1s/x/y/"[index:] == "s/x/y/"


def test_tokenizer_handles_selection_marks_and_bare_offsets() -> None:
    assert kinds("'<,'>") == [
        TokenType.SELECTION_FIRST_LINE,
        TokenType.COMMA,
        TokenType.SELECTION_LAST_LINE,
    ]
    tokens, _ = tokenize(".+")
    assert [token.content for token in tokens] == [".", "+1"]


def test_tokenizer_skips_whitespace_between_addresses() -> None:
    assert kinds(" 1 , 3 d") == [
        TokenType.LINE_NUMBER,
        TokenType.COMMA,
        TokenType.LINE_NUMBER,
    ]


@pytest.mark.parametrize("text", ["'1", "'!", "'"])
def test_tokenizer_rejects_invalid_mark_names(text: str) -> None:
    with pytest.raises(ParseError) as info:
        tokenize(text)
    assert info.value.code is ErrorCode.INVALID_ADDRESS


def test_parse_range_only_line_has_no_command() -> None:
    command_line = parse("12")

    assert command_line.command is None
    assert [token.content for token in command_line.range.left] == ["12"]
    assert not command_line.is_empty


def test_parse_rejects_two_primary_addresses_on_one_side() -> None:
    with pytest.raises(ParseError) as info:
        parse("1.d")
    assert not isinstance(info.value, UnsupportedSyntaxError)
    assert info.value.code is ErrorCode.INVALID_RANGE


def test_parse_rejects_second_separator() -> None:
    with pytest.raises(ParseError) as info:
        parse("1,2,3d")
    assert info.value.code is ErrorCode.INVALID_RANGE


def test_parse_resolves_abbreviations() -> None:
    assert isinstance(parse("s/a/b/").command, SubstituteCommand)
    assert isinstance(parse("sub/a/b/").command, SubstituteCommand)
    assert isinstance(parse("w").command, WriteCommand)
    assert isinstance(parse("wq").command, WriteQuitCommand)
    assert isinstance(parse("q!").command, QuitCommand)
    assert isinstance(parse("x").command, ExitCommand)
    assert isinstance(parse("exi").command, ExitCommand)
    assert isinstance(parse("e").command, EditCommand)
    assert isinstance(parse("del").command, DeleteCommand)


def test_parse_records_bang_and_argument_tail() -> None:
    command = parse("w! notes.txt").command

    assert command is not None
    assert command.bang is True
    assert command.arguments == "notes.txt"


def test_parse_unknown_command_is_unsupported() -> None:
    with pytest.raises(UnsupportedSyntaxError) as info:
        parse("normal! gg")
    assert info.value.code is ErrorCode.NOT_AN_EDITOR_COMMAND


def test_parse_non_alpha_command_is_unsupported() -> None:
    with pytest.raises(UnsupportedSyntaxError):
        parse("%!sort")


def test_registry_computes_shortest_unique_prefix() -> None:
    registry = CommandRegistry()
    write = registry.register(WriteCommand)
    wq = registry.register(WriteQuitCommand)

    assert write.abbreviation == "w"
    assert wq.abbreviation == "wq"
    assert registry.lookup("wri").name == "write"
    assert "writ" in registry
    assert "writes" not in registry


def test_registry_rejects_duplicate_names() -> None:
    registry = default_registry()
    with pytest.raises(ValueError):
        registry.register(WriteCommand)


def test_command_line_renders_range_and_full_name() -> None:
    command_line = parse("1,2q")

    assert isinstance(command_line.command, QuitCommand)
    assert str(command_line) == ":1,2quit"


def test_bang_on_linewise_command_is_rejected() -> None:
    with pytest.raises(ParseError) as info:
        parse("d!")
    assert info.value.code is ErrorCode.NO_BANG_ALLOWED
