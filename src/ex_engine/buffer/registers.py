"""Register storage with per-register wise mode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

CHARACTERWISE = "character"
LINEWISE = "line"
BLOCKWISE = "block"
REGISTER_MODES = (CHARACTERWISE, LINEWISE, BLOCKWISE)

UNNAMED = '"'


@dataclass(slots=True)
class RegisterValue:
    text: str
    mode: str = CHARACTERWISE

    def __post_init__(self) -> None:
        if self.mode not in REGISTER_MODES:
            raise ValueError(f"Unknown register mode '{self.mode}'")


class RegisterBank:
    """Tracks the unnamed register plus any named ones written through it."""

    def __init__(self) -> None:
        self._registers: Dict[str, RegisterValue] = {UNNAMED: RegisterValue(text="")}

    def get(self, name: str = UNNAMED) -> RegisterValue:
        return self._registers.get(name, RegisterValue(text=""))

    def set(self, name: str, value: RegisterValue) -> None:
        self._registers[name] = value
        if name != UNNAMED:
            self._registers[UNNAMED] = value

    def append(self, name: str, text: str) -> None:
        existing = self.get(name)
        self.set(name, RegisterValue(text=existing.text + text, mode=existing.mode))

    @property
    def unnamed(self) -> RegisterValue:
        return self.get(UNNAMED)

    def put(self, text: str, *, mode: str = CHARACTERWISE) -> None:
        """Write ``text`` to the unnamed register."""

        self.set(UNNAMED, RegisterValue(text=text, mode=mode))
