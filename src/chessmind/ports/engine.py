"""Position evaluator port."""

from __future__ import annotations

from threading import Event
from typing import Protocol

from chessmind.position_evaluation import PositionEvaluation


class PositionEvaluator(Protocol):
    """Evaluate one board position at a time, relative to the side to move."""

    def submit_position(
        self,
        fen: str,
        *,
        depth: int | None = None,
        timeout_s: float | None = None,
        cancel: Event | None = None,
    ) -> PositionEvaluation:
        """Return the evaluation and best move for ``fen``."""

    def new_game(self) -> None:
        """Reset any per-game search state."""

    def abort(self) -> None:
        """Interrupt an in-flight request from another thread."""


class ManagedEngine(PositionEvaluator, Protocol):
    """A position evaluator whose process lifecycle can be driven by a pool."""

    @property
    def is_ready(self) -> bool:
        """True when the engine can accept a request."""

    def start(self) -> None:
        """Spawn and handshake the engine process."""

    def stop(self) -> None:
        """Terminate the engine process."""
