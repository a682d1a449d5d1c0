"""Line-based document storage backing editor buffers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence


@dataclass(slots=True)
class BufferDocument:
    """Versioned list-of-lines text model.

    Every mutation returns a new document with ``version`` bumped, so a
    caller holding an older instance can detect that the text moved on.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    version: int = 0
    dirty: bool = False

    @classmethod
    def from_text(cls, text: str) -> "BufferDocument":
        return cls(_lines=split_lines(text))

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "BufferDocument":
        return cls(_lines=list(lines) or [""])

    def snapshot(self) -> Sequence[str]:
        """Return the current lines without exposing internal mutability."""

        return tuple(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]

    def replace(
        self, *, lines: Iterable[str], dirty: bool | None = None
    ) -> "BufferDocument":
        """Return a new document holding ``lines`` with the version bumped."""

        return BufferDocument(
            _lines=list(lines) or [""],
            version=self.version + 1,
            dirty=bool(dirty if dirty is not None else True),
        )

    def update_lines(
        self, start: int, end: int, new_lines: Iterable[str]
    ) -> "BufferDocument":
        """Return a document with ``[start:end]`` replaced by ``new_lines``."""

        lines = list(self._lines)
        lines[start:end] = list(new_lines)
        return self.replace(lines=lines, dirty=True)

    def mark_clean(self) -> None:
        self.dirty = False


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` keeping a trailing empty line, like an editor does."""

    return text.split("\n") if text else [""]
