"""Walk a move sequence and evaluate every move from the mover's perspective."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from threading import Event

import chess

from chessmind.domain.results import EvaluatedMove
from chessmind.errors import AnalysisCancelled, InternalInconsistency
from chessmind.extract_moves__pgn import GameMove
from chessmind.move_notation import moves_match
from chessmind.ports.engine import PositionEvaluator
from chessmind.position_evaluation import PositionEvaluation
from chessmind.utils.logger import funclogger, get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[dict[str, object]], None]


def _board_key(fen: str) -> str:
    """Compare positions without the move counters, which notation sources disagree on."""
    return " ".join(fen.split()[:4])


class EvaluationPipeline:
    """Evaluate moves strictly in game order through a single evaluator.

    Each move costs two requests: the position before the move (scored for
    the mover) and the position after it (scored for the opponent, then
    negated back to the mover's side).
    """

    def __init__(
        self,
        evaluator: PositionEvaluator,
        *,
        depth: int | None = None,
        cancel: Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.evaluator = evaluator
        self.depth = depth
        self.cancel = cancel
        self.progress = progress

    @funclogger
    def run(self, moves: Sequence[GameMove]) -> list[EvaluatedMove]:
        if not moves:
            return []
        self.evaluator.new_game()
        board = chess.Board(moves[0].fen_before)
        evaluated: list[EvaluatedMove] = []
        for game_move in moves:
            self._raise_if_cancelled()
            evaluated.append(self._evaluate_move(board, game_move))
            self._emit_progress(game_move.ply, len(moves))
        logger.info("Evaluated %s moves", len(evaluated))
        return evaluated

    def _evaluate_move(self, board: chess.Board, game_move: GameMove) -> EvaluatedMove:
        if _board_key(board.fen()) != _board_key(game_move.fen_before):
            raise InternalInconsistency(
                f"Move {game_move.ply} ({game_move.san}) expects position "
                f"{game_move.fen_before!r} but the replayed board is {board.fen()!r}"
            )
        fen_before = board.fen()
        before = self._submit(fen_before)
        matched_best = moves_match(before.best_move, game_move.uci, board=board)
        self._apply(board, game_move)
        after = self._submit(board.fen())
        return EvaluatedMove.create(
            index=game_move.index,
            ply=game_move.ply,
            mover=game_move.mover,
            notation=game_move.san,
            uci=game_move.uci,
            position_before=fen_before,
            eval_before=before.score_cp,
            # The engine scores the new position for the opponent.
            eval_after=-after.score_cp,
            engine_best_move=before.best_move,
            matched_best=matched_best,
        )

    def _submit(self, fen: str) -> PositionEvaluation:
        return self.evaluator.submit_position(fen, depth=self.depth, cancel=self.cancel)

    def _apply(self, board: chess.Board, game_move: GameMove) -> None:
        try:
            move = board.parse_uci(game_move.uci)
        except ValueError as exc:
            raise InternalInconsistency(
                f"Move {game_move.ply} ({game_move.san}) cannot be applied: {exc}"
            ) from exc
        board.push(move)

    def _raise_if_cancelled(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise AnalysisCancelled("Analysis cancelled")

    def _emit_progress(self, ply: int, total: int) -> None:
        if self.progress is None:
            return
        self.progress({"step": "move_evaluated", "ply": ply, "total": total})


def evaluate_moves(
    evaluator: PositionEvaluator,
    moves: Sequence[GameMove],
    *,
    depth: int | None = None,
    cancel: Event | None = None,
    progress: ProgressCallback | None = None,
) -> list[EvaluatedMove]:
    return EvaluationPipeline(evaluator, depth=depth, cancel=cancel, progress=progress).run(moves)
