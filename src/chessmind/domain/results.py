"""Immutable records produced by one game analysis."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field

from chessmind.domain.mlevels import MLevel

BLUNDER_THRESHOLD = 100
MISTAKE_THRESHOLD = 50
PHASE_NAMES = ("opening", "middlegame", "endgame")
WHITE = "white"
BLACK = "black"


def centipawn_loss(eval_before: int, eval_after: int) -> int:
    """Loss in the mover's perspective; never negative."""
    return max(0, eval_before - eval_after)


@dataclass(frozen=True, slots=True)
class EvaluatedMove:
    index: int
    ply: int
    mover: str
    notation: str
    uci: str
    position_before: str
    eval_before: int
    eval_after: int
    engine_best_move: str | None
    centipawn_loss: int
    matched_best: bool
    is_blunder: bool
    is_mistake: bool

    @classmethod
    def create(
        cls,
        *,
        index: int,
        ply: int,
        mover: str,
        notation: str,
        uci: str,
        position_before: str,
        eval_before: int,
        eval_after: int,
        engine_best_move: str | None,
        matched_best: bool,
    ) -> EvaluatedMove:
        """Build a record, deriving the loss and the blunder/mistake flags."""
        loss = centipawn_loss(eval_before, eval_after)
        return cls(
            index=index,
            ply=ply,
            mover=mover,
            notation=notation,
            uci=uci,
            position_before=position_before,
            eval_before=eval_before,
            eval_after=eval_after,
            engine_best_move=engine_best_move,
            centipawn_loss=loss,
            matched_best=matched_best,
            is_blunder=loss > BLUNDER_THRESHOLD,
            is_mistake=MISTAKE_THRESHOLD < loss <= BLUNDER_THRESHOLD,
        )


@dataclass(frozen=True, slots=True)
class PhaseSummary:
    average_loss: float
    classification_level: MLevel
    accuracy_fraction: float
    move_count: int

    def to_dict(self) -> dict[str, object]:
        return {
            "average_loss": self.average_loss,
            "classification_level": self.classification_level.level,
            "classification_label": self.classification_level.label,
            "accuracy_fraction": self.accuracy_fraction,
            "move_count": self.move_count,
        }


@dataclass(frozen=True, slots=True)
class CollapseEvent:
    """A sudden, sustained rise in error rate starting at ``ply``."""

    move_index: int
    ply: int
    loss_before_window: float
    loss_after_window: float
    severity: float


@dataclass(frozen=True)
class AnalysisResult:
    moves: tuple[EvaluatedMove, ...]
    opening: PhaseSummary | None
    middlegame: PhaseSummary | None
    endgame: PhaseSummary | None
    collapse_events: tuple[CollapseEvent, ...]
    average_loss: float
    accuracy: float
    flow_stability: float
    pattern_match: float
    classification_level: MLevel
    color_summaries: Mapping[str, PhaseSummary] = field(default_factory=dict)

    @property
    def phases(self) -> dict[str, PhaseSummary | None]:
        return {name: getattr(self, name) for name in PHASE_NAMES}

    @property
    def blunder_count(self) -> int:
        return sum(1 for move in self.moves if move.is_blunder)

    @property
    def mistake_count(self) -> int:
        return sum(1 for move in self.moves if move.is_mistake)

    @property
    def best_move_count(self) -> int:
        return sum(1 for move in self.moves if move.matched_best)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready payload."""
        return {
            "moves": [asdict(move) for move in self.moves],
            "phases": {
                name: summary.to_dict() if summary is not None else None
                for name, summary in self.phases.items()
            },
            "color_summaries": {
                color: summary.to_dict() for color, summary in self.color_summaries.items()
            },
            "collapse_events": [asdict(event) for event in self.collapse_events],
            "average_loss": self.average_loss,
            "accuracy": self.accuracy,
            "flow_stability": self.flow_stability,
            "pattern_match": self.pattern_match,
            "classification_level": self.classification_level.level,
            "classification_label": self.classification_level.label,
            "blunder_count": self.blunder_count,
            "mistake_count": self.mistake_count,
            "best_move_count": self.best_move_count,
        }
