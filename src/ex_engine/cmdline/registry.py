"""Command name table with Vim-style abbreviation lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Type

from ex_engine.errors import ErrorCode, ParseError, UnsupportedSyntaxError

from .commands import (
    CommandBase,
    DeleteCommand,
    EditCommand,
    ExitCommand,
    QuitCommand,
    SubstituteCommand,
    WriteCommand,
    WriteQuitCommand,
    YankCommand,
)


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """``name`` may be typed as any prefix at least as long as ``abbreviation``."""

    name: str
    abbreviation: str
    factory: Type[CommandBase]

    def __post_init__(self) -> None:
        if not self.name.startswith(self.abbreviation) or not self.abbreviation:
            raise ValueError(
                f"'{self.abbreviation}' is not a prefix of command '{self.name}'"
            )

    def accepts(self, typed: str) -> bool:
        return self.name.startswith(typed) and typed.startswith(self.abbreviation)


class CommandRegistry:
    def __init__(self) -> None:
        self._specs: Dict[str, CommandSpec] = {}

    def register(
        self,
        factory: Type[CommandBase],
        *,
        name: Optional[str] = None,
        abbreviation: Optional[str] = None,
    ) -> CommandSpec:
        full_name = name or factory.name
        if full_name in self._specs:
            raise ValueError(f"Command '{full_name}' already registered")
        spec = CommandSpec(
            name=full_name,
            abbreviation=abbreviation or self._shortest_unique_prefix(full_name),
            factory=factory,
        )
        self._specs[full_name] = spec
        return spec

    def _shortest_unique_prefix(self, name: str) -> str:
        for length in range(1, len(name) + 1):
            prefix = name[:length]
            if not any(other.startswith(prefix) for other in self._specs):
                return prefix
        return name

    def lookup(self, typed: str) -> CommandSpec:
        exact = self._specs.get(typed)
        if exact is not None:
            return exact
        candidates = [spec for spec in self._specs.values() if spec.accepts(typed)]
        if not candidates:
            raise UnsupportedSyntaxError(typed, code=ErrorCode.NOT_AN_EDITOR_COMMAND)
        if len(candidates) > 1:
            names = ", ".join(sorted(spec.name for spec in candidates))
            raise ParseError(f"{typed} ({names})", code=ErrorCode.NOT_AN_EDITOR_COMMAND)
        return candidates[0]

    def create(self, typed: str, *, bang: bool, argument: str) -> CommandBase:
        return self.lookup(typed).factory.create(bang=bang, argument=argument)

    def __iter__(self) -> Iterator[CommandSpec]:
        return iter(self._specs.values())

    def __contains__(self, typed: object) -> bool:
        if not isinstance(typed, str):
            return False
        try:
            self.lookup(typed)
        except ParseError:
            return False
        return True


def default_registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.register(SubstituteCommand, abbreviation="s")
    registry.register(WriteCommand, abbreviation="w")
    registry.register(WriteQuitCommand, abbreviation="wq")
    registry.register(QuitCommand, abbreviation="q")
    registry.register(ExitCommand, abbreviation="x")
    registry.register(ExitCommand, name="exit", abbreviation="exi")
    registry.register(EditCommand, abbreviation="e")
    registry.register(DeleteCommand, abbreviation="d")
    registry.register(YankCommand, abbreviation="y")
    return registry


__all__ = ["CommandRegistry", "CommandSpec", "default_registry"]
