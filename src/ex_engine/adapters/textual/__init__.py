"""Textual host for the command-line engine."""

from .prompt import (
    CommandLineScreen,
    HistoryPickerScreen,
    TextualCommandPrompt,
    status_sink,
)

__all__ = [
    "CommandLineScreen",
    "HistoryPickerScreen",
    "TextualCommandPrompt",
    "status_sink",
]
