import threading
from contextlib import contextmanager

import pytest

from chessmind.analysis_jobs import AnalysisJobRunner, InMemoryJobStore, JobStatus
from chessmind.app.use_cases.analyze_game import AnalyzeGameUseCase
from chessmind.define_engine_settings__config import PoolSettings
from chessmind.domain.metrics import compute_metrics
from chessmind.engine_pool import EnginePool
from chessmind.errors import AnalysisCancelled, EngineCrashed, InvalidInput, PoolSaturated
from chessmind.models import AnalysisRequest
from tests.engine_helpers import ConstantEvaluator, ScriptedEvaluator, fake_engine_settings

GAME = "1. e4 e5 2. Nf3 Nc6 *"


def _use_case(evaluator_factory) -> AnalyzeGameUseCase:
    @contextmanager
    def provider():
        yield evaluator_factory()

    return AnalyzeGameUseCase(engine_provider=provider)


class _BlockingEvaluator(ConstantEvaluator):
    """Blocks every request until released, honouring cancellation."""

    def __init__(self, release: threading.Event, entered: threading.Event) -> None:
        super().__init__()
        self.release = release
        self.entered = entered

    def submit_position(self, fen, *, depth=None, timeout_s=None, cancel=None):
        self.entered.set()
        while not self.release.wait(0.01):
            if cancel is not None and cancel.is_set():
                raise AnalysisCancelled("Analysis cancelled while waiting for the engine")
        return super().submit_position(fen, depth=depth, timeout_s=timeout_s, cancel=cancel)


def test_completed_job_carries_result() -> None:
    with AnalysisJobRunner(_use_case(ConstantEvaluator)) as runner:
        job = runner.submit(GAME)
        assert job.status in {JobStatus.PENDING, JobStatus.ANALYZING, JobStatus.COMPLETED}
        finished = runner.wait(job.job_id, timeout=5.0)

    assert finished.status is JobStatus.COMPLETED
    assert finished.result is not None
    assert len(finished.result.moves) == 4
    assert finished.error_message is None
    assert finished.progress == {"step": "move_evaluated", "ply": 3, "total": 4}
    assert finished.started_at is not None
    assert finished.finished_at is not None


def test_engine_failure_marks_job_failed_without_result() -> None:
    def crashing() -> ScriptedEvaluator:
        evaluator = ScriptedEvaluator(scores=[0, 0])

        def submit(fen, *, depth=None, timeout_s=None, cancel=None):
            if len(evaluator.requests) == 2:
                raise EngineCrashed("Engine stockfish exited unexpectedly")
            return ScriptedEvaluator.submit_position(
                evaluator, fen, depth=depth, timeout_s=timeout_s, cancel=cancel
            )

        evaluator.submit_position = submit  # type: ignore[method-assign]
        return evaluator

    with AnalysisJobRunner(_use_case(crashing)) as runner:
        job = runner.wait(runner.submit(GAME).job_id, timeout=5.0)

    assert job.status is JobStatus.FAILED
    assert job.result is None
    assert job.error_message == "Engine stockfish exited unexpectedly"


def test_invalid_game_is_rejected_at_submission() -> None:
    runner = AnalysisJobRunner(_use_case(ConstantEvaluator))

    with pytest.raises(InvalidInput):
        runner.submit("1. e4 e5 2. Ke3 *")
    with pytest.raises(InvalidInput):
        runner.submit("   ")

    assert runner.list() == []


def test_request_model_depth_is_forwarded() -> None:
    evaluators: list[ConstantEvaluator] = []

    def factory() -> ConstantEvaluator:
        evaluators.append(ConstantEvaluator())
        return evaluators[-1]

    with AnalysisJobRunner(_use_case(factory)) as runner:
        job = runner.submit(AnalysisRequest(pgn=GAME, depth=6))
        runner.wait(job.job_id, timeout=5.0)

    assert {depth for _, depth in evaluators[0].requests} == {6}


def test_cancel_running_job() -> None:
    release, entered = threading.Event(), threading.Event()
    with AnalysisJobRunner(_use_case(lambda: _BlockingEvaluator(release, entered))) as runner:
        job = runner.submit(GAME)
        assert entered.wait(5.0)

        assert runner.cancel(job.job_id)
        finished = runner.wait(job.job_id, timeout=5.0)

    assert finished.status is JobStatus.FAILED
    assert "cancelled" in finished.error_message
    assert finished.result is None


def test_cancel_pending_job_fails_it_immediately() -> None:
    release, entered = threading.Event(), threading.Event()
    runner = AnalysisJobRunner(_use_case(lambda: _BlockingEvaluator(release, entered)))
    runner.start()
    try:
        running = runner.submit(GAME)
        assert entered.wait(5.0)
        queued = runner.submit(GAME)

        assert runner.cancel(queued.job_id)
        assert queued.status is JobStatus.FAILED
        assert queued.error_message == "Analysis cancelled"
    finally:
        release.set()
        runner.shutdown()

    assert running.status is JobStatus.COMPLETED
    assert not runner.cancel(running.job_id)


def test_backlog_limit_refuses_submissions() -> None:
    runner = AnalysisJobRunner(_use_case(ConstantEvaluator), max_pending=1)

    runner.submit(GAME)
    with pytest.raises(PoolSaturated):
        runner.submit(GAME)


def test_unknown_job_id() -> None:
    runner = AnalysisJobRunner(_use_case(ConstantEvaluator))

    assert runner.get("missing") is None
    with pytest.raises(KeyError):
        runner.wait("missing")


def test_job_payload() -> None:
    with AnalysisJobRunner(_use_case(ConstantEvaluator), id_factory=lambda: "job-1") as runner:
        runner.submit('[White "Ann"]\n[Black "Ben"]\n\n' + GAME)
        payload = runner.wait("job-1", timeout=5.0).to_dict()

    assert payload["job_id"] == "job-1"
    assert payload["status"] == "completed"
    assert (payload["white"], payload["black"]) == ("Ann", "Ben")
    assert payload["total_moves"] == 4
    assert payload["result"]["classification_level"] == 10


def test_store_rejects_duplicate_ids() -> None:
    store = InMemoryJobStore()
    runner = AnalysisJobRunner(_use_case(ConstantEvaluator), store=store, id_factory=lambda: "same")
    runner.submit(GAME)

    with pytest.raises(ValueError):
        runner.submit(GAME)


def test_runner_over_pool_of_real_engines() -> None:
    pool = EnginePool(
        fake_engine_settings("--score", "0"),
        PoolSettings(size=2, max_pending=4, acquire_timeout_s=10.0),
    )
    runner = AnalysisJobRunner.from_pool(pool)
    runner.start()
    try:
        jobs = [runner.submit(GAME) for _ in range(3)]
        finished = [runner.wait(job.job_id, timeout=30.0) for job in jobs]
    finally:
        runner.shutdown()

    assert [job.status for job in finished] == [JobStatus.COMPLETED] * 3
    assert pool.stats.live == 0


class _CancelledAfterLastResponse:
    """Produces a result, then holds it until the caller has cancelled the job."""

    def __init__(self) -> None:
        self.finished_search = threading.Event()
        self.hand_back = threading.Event()

    def execute_extracted(self, game, *, depth=None, cancel=None, progress=None):
        result = compute_metrics([])
        self.finished_search.set()
        self.hand_back.wait(5.0)
        return result


def test_cancel_after_last_engine_response_still_fails_job() -> None:
    use_case = _CancelledAfterLastResponse()
    with AnalysisJobRunner(use_case) as runner:
        job = runner.submit(GAME)
        assert use_case.finished_search.wait(5.0)

        assert runner.cancel(job.job_id)
        use_case.hand_back.set()
        finished = runner.wait(job.job_id, timeout=5.0)

    assert finished.status is JobStatus.FAILED
    assert finished.error_message == "Analysis cancelled"
    assert finished.result is None


def test_cancel_after_completion_is_refused() -> None:
    with AnalysisJobRunner(_use_case(ConstantEvaluator)) as runner:
        job = runner.wait(runner.submit(GAME).job_id, timeout=5.0)

        assert job.status is JobStatus.COMPLETED
        assert not runner.cancel(job.job_id)
        assert job.result is not None
