"""Lexer for the address part of an Ex command line.

Only the range is tokenized here. Lexing stops at the first character that
cannot start or continue an address; everything from there on is the command
name plus its raw argument tail, which the command parses itself.
"""

from __future__ import annotations

from typing import List, Tuple

from ex_engine.errors import ErrorCode, ParseError

from .tokens import Token, TokenType, line_number, mark, offset

EOF_CHAR = ""

_SINGLE_CHAR_TOKENS = {
    ".": TokenType.DOT,
    "$": TokenType.DOLLAR,
    "%": TokenType.PERCENT,
    ",": TokenType.COMMA,
}
_SELECTION_MARKS = {
    "<": TokenType.SELECTION_FIRST_LINE,
    ">": TokenType.SELECTION_LAST_LINE,
}
_WHITE_SPACE = " \t"


class RangeLexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.cursor = 0

    @property
    def c(self) -> str:
        if self.cursor >= len(self.text):
            return EOF_CHAR
        return self.text[self.cursor]

    def consume(self) -> str:
        char = self.c
        self.cursor += 1
        return char

    def tokenize(self) -> Tuple[List[Token], int]:
        """Return the range tokens and the index where the command starts."""

        tokens: List[Token] = []
        while True:
            self._skip_white_space()
            char = self.c
            if char == EOF_CHAR:
                break
            if char.isdigit():
                tokens.append(line_number(str(self._match_number())))
            elif char in _SINGLE_CHAR_TOKENS:
                self.consume()
                tokens.append(Token(_SINGLE_CHAR_TOKENS[char], char))
            elif char in "+-":
                tokens.append(self._match_offset())
            elif char == "'":
                tokens.append(self._match_mark())
            else:
                break
        return tokens, self.cursor

    def _skip_white_space(self) -> None:
        while self.c != EOF_CHAR and self.c in _WHITE_SPACE:
            self.consume()

    def _match_number(self) -> int:
        start = self.cursor
        while self.c != EOF_CHAR and self.c.isdigit():
            self.consume()
        raw = self.text[start : self.cursor]
        try:
            return int(raw)
        except ValueError as exc:
            raise ParseError(raw, code=ErrorCode.INVALID_ADDRESS) from exc

    def _match_offset(self) -> Token:
        sign = self.consume()
        if self.c != EOF_CHAR and self.c.isdigit():
            return offset(f"{sign}{self._match_number()}")
        return offset(f"{sign}1")

    def _match_mark(self) -> Token:
        self.consume()
        name = self.consume()
        if name in _SELECTION_MARKS:
            return Token(_SELECTION_MARKS[name], name)
        if name.isascii() and name.isalpha():
            return mark(name)
        raise ParseError(f"'{name}", code=ErrorCode.INVALID_ADDRESS)


def tokenize(text: str) -> Tuple[List[Token], int]:
    return RangeLexer(text).tokenize()


__all__ = ["RangeLexer", "tokenize"]
