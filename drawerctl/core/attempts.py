"""Sequential first-success iteration over ordered candidates."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

C = TypeVar("C")
R = TypeVar("R")


@dataclass(frozen=True)
class AttemptLog(Generic[C, R]):
    winner: R | None
    tried: tuple[tuple[C, R], ...]


async def first_success(
    candidates: Iterable[C],
    attempt: Callable[[C], Awaitable[R]],
    *,
    succeeded: Callable[[R], bool],
) -> AttemptLog[C, R]:
    """Run `attempt` for each candidate in order, stopping at the first success.

    Candidates are awaited one at a time; nothing is attempted after a winner.
    """
    tried: list[tuple[C, R]] = []
    for candidate in candidates:
        result = await attempt(candidate)
        tried.append((candidate, result))
        if succeeded(result):
            return AttemptLog(winner=result, tried=tuple(tried))
    return AttemptLog(winner=None, tried=tuple(tried))
