"""Token types produced by the range lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    LINE_NUMBER = "line_number"
    DOT = "dot"
    DOLLAR = "dollar"
    PERCENT = "percent"
    COMMA = "comma"
    OFFSET = "offset"
    MARK = "mark"
    SELECTION_FIRST_LINE = "selection_first_line"
    SELECTION_LAST_LINE = "selection_last_line"


@dataclass(frozen=True, slots=True)
class Token:
    type: TokenType
    content: str = ""

    @property
    def is_offset(self) -> bool:
        return self.type is TokenType.OFFSET

    def __str__(self) -> str:
        return self.content


def line_number(value: str) -> Token:
    return Token(TokenType.LINE_NUMBER, value)


def offset(value: str) -> Token:
    return Token(TokenType.OFFSET, value)


def mark(name: str) -> Token:
    return Token(TokenType.MARK, name)


__all__ = ["Token", "TokenType", "line_number", "mark", "offset"]
