"""Drawer-kick command table."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

_ESC = 0x1B
_DLE = 0x10


@dataclass(frozen=True)
class CommandVariant:
    name: str
    frame: bytes

    def describe(self) -> str:
        """Render the frame the way ESC/POS manuals spell it."""
        frame = self.frame
        if len(frame) == 5 and frame[0] == _ESC and frame[1] == ord("p"):
            return f"ESC p {frame[2]} {frame[3]} {frame[4]}"
        if len(frame) == 5 and frame[0] == _DLE and frame[1] == 0x14:
            return f"DLE DC4 {frame[2]} {frame[3]} {frame[4]}"
        return frame.hex(" ")


@dataclass(frozen=True)
class CommandTable:
    """Ordered drawer-kick variants. Indexes handed out are 1-based."""

    variants: tuple[CommandVariant, ...]

    def __post_init__(self) -> None:
        if not self.variants:
            raise ValueError("Command table must contain at least one variant")

    def __len__(self) -> int:
        return len(self.variants)

    def __iter__(self) -> Iterator[CommandVariant]:
        return iter(self.variants)

    def numbered(self) -> Iterator[tuple[int, CommandVariant]]:
        return enumerate(self.variants, start=1)

    def first(self) -> tuple[int, CommandVariant]:
        return 1, self.variants[0]

    def get(self, index: int) -> CommandVariant:
        if not 1 <= index <= len(self.variants):
            raise IndexError(f"Command index {index} outside 1..{len(self.variants)}")
        return self.variants[index - 1]
