from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PositionEvaluation:
    """Engine verdict for one position, relative to the side to move there."""

    score_cp: int
    best_move: str | None
    depth: int = 0
    mate_in: int | None = None

    @property
    def is_mate(self) -> bool:
        return self.mate_in is not None
