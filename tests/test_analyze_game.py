from contextlib import contextmanager

import pytest

from chessmind.app.use_cases.analyze_game import AnalyzeGameUseCase, analyze_game
from chessmind.app.wiring import build_single_engine_use_case
from chessmind.config import Settings
from chessmind.engine_client import EngineClient
from chessmind.errors import EngineTimeout, InvalidInput
from tests.engine_helpers import ConstantEvaluator, ScriptedEvaluator, fake_engine_settings


def test_two_move_game_end_to_end() -> None:
    evaluator = ScriptedEvaluator(scores=[20, -20, 30, 70])

    result = analyze_game("1. e4 e5 *", evaluator)

    assert result.average_loss == 50
    first, second = result.moves
    assert first.centipawn_loss == 0
    assert second.centipawn_loss == 100
    assert second.is_mistake
    assert not second.is_blunder
    assert result.mistake_count == 1
    assert result.blunder_count == 0
    assert result.accuracy == 0.5
    assert result.classification_level.level == 4


def test_invalid_notation_never_reaches_the_engine() -> None:
    opened: list[object] = []

    @contextmanager
    def provider():
        opened.append(object())
        yield ConstantEvaluator()

    use_case = AnalyzeGameUseCase(engine_provider=provider)

    with pytest.raises(InvalidInput):
        use_case.execute("1. e4 e5 2. Ke3 *")
    assert opened == []


def test_engine_is_released_when_analysis_fails() -> None:
    released: list[bool] = []

    class _Timeouts(ConstantEvaluator):
        def submit_position(self, fen, *, depth=None, timeout_s=None, cancel=None):
            raise EngineTimeout("no bestmove")

    @contextmanager
    def provider():
        try:
            yield _Timeouts()
        finally:
            released.append(True)

    with pytest.raises(EngineTimeout):
        AnalyzeGameUseCase(engine_provider=provider).execute("1. e4 *")
    assert released == [True]


def test_use_case_default_depth_and_override() -> None:
    evaluator = ConstantEvaluator()

    @contextmanager
    def provider():
        yield evaluator

    use_case = AnalyzeGameUseCase(engine_provider=provider, depth=11)
    use_case.execute("1. d4 *")
    use_case.execute("1. d4 *", depth=4)

    assert [depth for _, depth in evaluator.requests] == [11, 11, 4, 4]


def test_single_engine_wiring_runs_and_stops_process() -> None:
    settings = Settings(engine=fake_engine_settings("--score", "15", "--bestmove", "e2e4"))
    clients: list[EngineClient] = []
    use_case = build_single_engine_use_case(settings)
    make_client = use_case.engine_provider

    def tracking_provider() -> EngineClient:
        clients.append(make_client())
        return clients[-1]

    use_case.engine_provider = tracking_provider

    result = use_case.execute("1. e4 e5 *")

    # Every position scores +15 for the side to move, so each move loses 30.
    assert [move.centipawn_loss for move in result.moves] == [30, 30]
    assert result.moves[0].matched_best
    assert not result.moves[1].matched_best
    assert clients[0].process.poll() is not None
