"""Named marks pointing at buffer positions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from .state import Cursor

VISUAL_START = "<"
VISUAL_END = ">"


def is_valid_mark_name(name: str) -> bool:
    return len(name) == 1 and (name.isascii() and name.isalpha() or name in "<>")


@dataclass(frozen=True, slots=True)
class Mark:
    name: str
    position: Cursor


class MarkTable:
    """Mark name -> position. A mark persists until it is overwritten."""

    def __init__(self) -> None:
        self._marks: Dict[str, Mark] = {}

    def get(self, name: str) -> Optional[Mark]:
        return self._marks.get(name)

    def set(self, name: str, position: Cursor) -> Mark:
        if not is_valid_mark_name(name):
            raise ValueError(f"Invalid mark name '{name}'")
        mark = Mark(name=name, position=position)
        self._marks[name] = mark
        return mark

    def remove(self, name: str) -> Optional[Mark]:
        return self._marks.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._marks

    def __iter__(self) -> Iterator[Mark]:
        return iter(list(self._marks.values()))

    def __len__(self) -> int:
        return len(self._marks)
