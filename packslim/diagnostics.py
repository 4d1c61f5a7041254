from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Diagnostics:
    """Console sink threaded through every reduction step.

    `info` lines are always emitted; `detail` lines only in verbose mode.
    """

    verbose: bool = False
    emit: Callable[[str], None] = print

    def info(self, message: str) -> None:
        self.emit(message)

    def detail(self, message: str) -> None:
        if self.verbose:
            self.emit(f"  # {message}")

    def size_delta(self, before: int, after: int) -> None:
        self.detail(f"{before // 1024} kb -> {after // 1024} kb")

