"""Closed set of Ex commands the local engine implements."""

from .base import CommandBase
from .edit import EditCommand
from .lines import DeleteCommand, YankCommand
from .quit import ExitCommand, QuitCommand, WriteQuitCommand
from .substitute import SubstituteArguments, SubstituteCommand
from .write import WriteCommand

__all__ = [
    "CommandBase",
    "DeleteCommand",
    "EditCommand",
    "ExitCommand",
    "QuitCommand",
    "SubstituteArguments",
    "SubstituteCommand",
    "WriteCommand",
    "WriteQuitCommand",
    "YankCommand",
]
