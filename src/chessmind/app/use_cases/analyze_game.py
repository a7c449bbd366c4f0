"""Use case for analyzing one game end to end."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from threading import Event

from chessmind.domain.metrics import compute_metrics
from chessmind.domain.results import AnalysisResult
from chessmind.evaluation_pipeline import ProgressCallback, evaluate_moves
from chessmind.extract_moves__pgn import ExtractedGame, extract_moves
from chessmind.ports.engine import PositionEvaluator
from chessmind.utils.logger import get_logger

logger = get_logger(__name__)

EngineProvider = Callable[[], AbstractContextManager[PositionEvaluator]]


def analyze_moves(
    game: ExtractedGame,
    evaluator: PositionEvaluator,
    *,
    depth: int | None = None,
    cancel: Event | None = None,
    progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Evaluate an already extracted game and reduce it to metrics."""
    moves = evaluate_moves(evaluator, game.moves, depth=depth, cancel=cancel, progress=progress)
    return compute_metrics(moves)


def analyze_game(
    pgn: str,
    evaluator: PositionEvaluator,
    *,
    depth: int | None = None,
    cancel: Event | None = None,
    progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Analyze ``pgn`` with an evaluator the caller has already started."""
    game = extract_moves(pgn)
    return analyze_moves(game, evaluator, depth=depth, cancel=cancel, progress=progress)


@dataclass
class AnalyzeGameUseCase:
    """Analyze games with engines handed out by ``engine_provider``.

    ``engine_provider`` returns a context manager that yields a ready engine
    and releases it on exit, whether the analysis finished or raised. A
    standalone :class:`~chessmind.engine_client.EngineClient` and
    :meth:`~chessmind.engine_pool.EnginePool.lease` both fit.
    """

    engine_provider: EngineProvider
    depth: int | None = None
    extract: Callable[[str], ExtractedGame] = field(default=extract_moves)

    def execute(
        self,
        pgn: str,
        *,
        depth: int | None = None,
        cancel: Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        game = self.extract(pgn)
        return self.execute_extracted(game, depth=depth, cancel=cancel, progress=progress)

    def execute_extracted(
        self,
        game: ExtractedGame,
        *,
        depth: int | None = None,
        cancel: Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Run an already validated game, so invalid notation never costs an engine."""
        search_depth = depth if depth is not None else self.depth
        logger.info(
            "Analyzing %s vs %s (%s moves)", game.white, game.black, len(game.moves)
        )
        with self.engine_provider() as engine:
            return analyze_moves(
                game, engine, depth=search_depth, cancel=cancel, progress=progress
            )
