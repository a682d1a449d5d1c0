"""Error codes and exception types raised by the command-line engine.

Codes follow Vim's ``E<number>`` convention so status text reads the way a
Vim user expects (``E492: Not an editor command``).
"""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    INVALID_ADDRESS = 14
    INVALID_RANGE = 16
    MARK_NOT_SET = 20
    NO_PREVIOUS_REGEX = 35
    NO_FILE_NAME = 32
    NO_WRITE_SINCE_CHANGE = 37
    PATTERN_NOT_FOUND = 486
    INVALID_PATTERN = 383
    NO_BANG_ALLOWED = 477
    NO_RANGE_ALLOWED = 481
    TRAILING_CHARACTERS = 488
    NOT_AN_EDITOR_COMMAND = 492
    CANT_OPEN_FOR_WRITING = 212
    BACKEND_FAILURE = 903


ERROR_MESSAGES = {
    ErrorCode.INVALID_ADDRESS: "Invalid address",
    ErrorCode.INVALID_RANGE: "Invalid range",
    ErrorCode.MARK_NOT_SET: "Mark not set",
    ErrorCode.NO_PREVIOUS_REGEX: "No previous regular expression",
    ErrorCode.NO_FILE_NAME: "No file name",
    ErrorCode.NO_WRITE_SINCE_CHANGE: "No write since last change (add ! to override)",
    ErrorCode.PATTERN_NOT_FOUND: "Pattern not found",
    ErrorCode.INVALID_PATTERN: "Invalid search string",
    ErrorCode.NO_BANG_ALLOWED: "No ! allowed",
    ErrorCode.NO_RANGE_ALLOWED: "No range allowed",
    ErrorCode.TRAILING_CHARACTERS: "Trailing characters",
    ErrorCode.NOT_AN_EDITOR_COMMAND: "Not an editor command",
    ErrorCode.CANT_OPEN_FOR_WRITING: "Can't open file for writing",
    ErrorCode.BACKEND_FAILURE: "Backend command failed",
}


class ExError(RuntimeError):
    """Base class for every failure surfaced as command-line status text."""

    default_code: ErrorCode = ErrorCode.NOT_AN_EDITOR_COMMAND

    def __init__(self, detail: str = "", *, code: ErrorCode | None = None) -> None:
        self.code = code if code is not None else self.default_code
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"E{int(self.code)}: {ERROR_MESSAGES.get(self.code, '')}"
        if self.detail:
            message += f": {self.detail}"
        return message


class ParseError(ExError):
    """Malformed range, address, or command arguments."""

    default_code = ErrorCode.INVALID_RANGE


class UnsupportedSyntaxError(ParseError):
    """Syntax the local engine does not implement; eligible for delegation."""

    default_code = ErrorCode.NOT_AN_EDITOR_COMMAND


class MarkNotSetError(ExError):
    default_code = ErrorCode.MARK_NOT_SET

    def __init__(self, mark: str) -> None:
        self.mark = mark
        super().__init__(f"'{mark}")


class PatternReuseError(ExError):
    """Empty substitute pattern with no previous search to fall back on."""

    default_code = ErrorCode.NO_PREVIOUS_REGEX


class InvalidPatternError(ExError):
    default_code = ErrorCode.INVALID_PATTERN


class CommandFailedError(ExError):
    """A command parsed fine but could not complete (dirty buffer, denied write)."""

    default_code = ErrorCode.NO_WRITE_SINCE_CHANGE


class BackendTransportError(ExError):
    """The external editor process died or the RPC channel broke."""

    default_code = ErrorCode.BACKEND_FAILURE


class PersistenceError(ExError):
    """History could not be read from or written to disk. Logged, never shown."""

    default_code = ErrorCode.CANT_OPEN_FOR_WRITING


__all__ = [
    "ERROR_MESSAGES",
    "BackendTransportError",
    "CommandFailedError",
    "ErrorCode",
    "ExError",
    "InvalidPatternError",
    "MarkNotSetError",
    "ParseError",
    "PatternReuseError",
    "PersistenceError",
    "UnsupportedSyntaxError",
]
