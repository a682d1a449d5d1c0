"""Ex command-line parsing, commands, and history."""

from .commands import CommandBase
from .history import HISTORY_FILE_NAME, CommandLineHistory
from .lexer import tokenize
from .line_range import LineRange
from .parser import CommandLine, parse
from .registry import CommandRegistry, CommandSpec, default_registry
from .tokens import Token, TokenType

__all__ = [
    "HISTORY_FILE_NAME",
    "CommandBase",
    "CommandLine",
    "CommandLineHistory",
    "CommandRegistry",
    "CommandSpec",
    "LineRange",
    "Token",
    "TokenType",
    "default_registry",
    "parse",
    "tokenize",
]
