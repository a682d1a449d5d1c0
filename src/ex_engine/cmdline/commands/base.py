"""Base class shared by every Ex command variant."""

from __future__ import annotations

from typing import ClassVar

from ex_engine.context import EditorContext
from ex_engine.errors import ErrorCode, ParseError, UnsupportedSyntaxError


class CommandBase:
    """One parsed invocation of an Ex command.

    Subclasses set ``name`` and, when an external Vim can run them with the
    same result, ``backend_capable``. Argument tails that need structure are
    parsed in ``create`` so a malformed tail fails before anything executes.
    """

    name: ClassVar[str] = ""
    backend_capable: ClassVar[bool] = False
    bang_allowed: ClassVar[bool] = True

    def __init__(self, *, bang: bool = False, arguments: str = "") -> None:
        self.bang = bang
        self.arguments = arguments

    @classmethod
    def create(cls, *, bang: bool, argument: str) -> "CommandBase":
        if bang and not cls.bang_allowed:
            raise ParseError(cls.name, code=ErrorCode.NO_BANG_ALLOWED)
        return cls(bang=bang, arguments=argument.strip())

    async def execute(self, context: EditorContext) -> None:
        raise NotImplementedError

    async def execute_with_range(
        self, context: EditorContext, start: int, end: int
    ) -> None:
        del context, start, end
        raise UnsupportedSyntaxError(self.name, code=ErrorCode.NO_RANGE_ALLOWED)

    def __str__(self) -> str:
        bang = "!" if self.bang else ""
        tail = f" {self.arguments}" if self.arguments else ""
        return f"{self.name}{bang}{tail}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(bang={self.bang!r}, arguments={self.arguments!r})"


__all__ = ["CommandBase"]
