"""Reduce an evaluated-move sequence to summary statistics."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from chessmind.domain.mlevels import classify_average_loss
from chessmind.domain.results import (
    BLACK,
    WHITE,
    AnalysisResult,
    CollapseEvent,
    EvaluatedMove,
    PhaseSummary,
)
from chessmind.utils import mean

ACCURATE_LOSS_LIMIT = 10
FLOW_LOSS_LIMIT = 20
OPENING_MAX_MOVES = 15
COLLAPSE_WINDOW = 5
COLLAPSE_BASELINE_LIMIT = 30
COLLAPSE_RATIO = 2.5
COLLAPSE_MIN_AFTER = 50


def _losses(moves: Sequence[EvaluatedMove]) -> list[int]:
    return [move.centipawn_loss for move in moves]


def _fraction(count: int, total: int) -> float:
    return count / total if total else 0.0


def average_loss(moves: Sequence[EvaluatedMove]) -> float:
    return mean(_losses(moves))


def accuracy(moves: Sequence[EvaluatedMove]) -> float:
    """Fraction of moves that lost fewer than ten centipawns."""
    return _fraction(sum(1 for loss in _losses(moves) if loss < ACCURATE_LOSS_LIMIT), len(moves))


def flow_stability(moves: Sequence[EvaluatedMove]) -> float:
    """Longest unbroken run of low-error moves, as a fraction of the game."""
    longest = current = 0
    for loss in _losses(moves):
        current = current + 1 if loss < FLOW_LOSS_LIMIT else 0
        longest = max(longest, current)
    return _fraction(longest, len(moves))


def pattern_match_rate(moves: Sequence[EvaluatedMove]) -> float:
    return _fraction(sum(1 for move in moves if move.matched_best), len(moves))


def phase_bounds(total: int) -> tuple[int, int]:
    """Return ``(opening_end, endgame_start)`` as slice indices.

    The endgame never starts before ``opening_end + 1`` so short games do not
    get overlapping phases.
    """
    third = total // 3
    opening_end = min(OPENING_MAX_MOVES, third)
    endgame_start = max(opening_end + 1, total - third)
    return opening_end, endgame_start


def segment_phases(
    moves: Sequence[EvaluatedMove],
) -> dict[str, Sequence[EvaluatedMove]]:
    opening_end, endgame_start = phase_bounds(len(moves))
    return {
        "opening": moves[:opening_end],
        "middlegame": moves[opening_end:endgame_start],
        "endgame": moves[endgame_start:],
    }


def summarize_phase(moves: Sequence[EvaluatedMove]) -> PhaseSummary | None:
    """Summarize a slice of moves; an empty slice has no summary."""
    if not moves:
        return None
    phase_loss = average_loss(moves)
    return PhaseSummary(
        average_loss=phase_loss,
        classification_level=classify_average_loss(phase_loss),
        accuracy_fraction=accuracy(moves),
        move_count=len(moves),
    )


def _collapse_windows(losses: Sequence[int]) -> Iterator[tuple[int, float, float]]:
    window = COLLAPSE_WINDOW
    for ply in range(window, len(losses) - window):
        yield ply, mean(losses[ply - window : ply]), mean(losses[ply : ply + window])


def detect_collapse_events(moves: Sequence[EvaluatedMove]) -> list[CollapseEvent]:
    """Flag every window boundary where a calm stretch turns into a sustained bad one.

    Overlapping events are all reported.
    """
    events: list[CollapseEvent] = []
    for ply, before, after in _collapse_windows(_losses(moves)):
        if (
            before < COLLAPSE_BASELINE_LIMIT
            and after > before * COLLAPSE_RATIO
            and after > COLLAPSE_MIN_AFTER
        ):
            events.append(
                CollapseEvent(
                    move_index=moves[ply].index,
                    ply=ply,
                    loss_before_window=before,
                    loss_after_window=after,
                    severity=after / max(before, 1),
                )
            )
    return events


def summarize_colors(moves: Sequence[EvaluatedMove]) -> dict[str, PhaseSummary]:
    summaries: dict[str, PhaseSummary] = {}
    for color in (WHITE, BLACK):
        summary = summarize_phase([move for move in moves if move.mover == color])
        if summary is not None:
            summaries[color] = summary
    return summaries


def compute_metrics(moves: Sequence[EvaluatedMove]) -> AnalysisResult:
    """Build the full :class:`AnalysisResult` for an evaluated game."""
    ordered = tuple(moves)
    phases = segment_phases(ordered)
    overall_loss = average_loss(ordered)
    return AnalysisResult(
        moves=ordered,
        opening=summarize_phase(phases["opening"]),
        middlegame=summarize_phase(phases["middlegame"]),
        endgame=summarize_phase(phases["endgame"]),
        collapse_events=tuple(detect_collapse_events(ordered)),
        average_loss=overall_loss,
        accuracy=accuracy(ordered),
        flow_stability=flow_stability(ordered),
        pattern_match=pattern_match_rate(ordered),
        classification_level=classify_average_loss(overall_loss),
        color_summaries=summarize_colors(ordered),
    )
