"""Analysis job records, an in-memory job store, and the threaded job runner."""

# pylint: disable=broad-exception-caught

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from queue import Queue
from uuid import uuid4

from pydantic import ValidationError

from chessmind.app.use_cases.analyze_game import AnalyzeGameUseCase
from chessmind.app.wiring import build_pooled_use_case
from chessmind.domain.results import AnalysisResult
from chessmind.engine_pool import EnginePool
from chessmind.errors import ChessmindError, InvalidInput, PoolSaturated
from chessmind.extract_moves__pgn import ExtractedGame, extract_moves
from chessmind.models import AnalysisRequest
from chessmind.ports.job_store import JobStore
from chessmind.utils.logger import get_logger

logger = get_logger(__name__)

_STOP = object()


class JobStatus(StrEnum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {JobStatus.COMPLETED, JobStatus.FAILED}


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class AnalysisJob:
    """One submitted game and everything known about its analysis so far."""

    job_id: str
    game: ExtractedGame = field(repr=False)
    depth: int | None = None
    status: JobStatus = JobStatus.PENDING
    error_message: str | None = None
    result: AnalysisResult | None = field(default=None, repr=False)
    progress: dict[str, object] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_now)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)
    done: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def to_dict(self) -> dict[str, object]:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "error_message": self.error_message,
            "white": self.game.white,
            "black": self.game.black,
            "game_result": self.game.result,
            "date": self.game.date,
            "total_moves": len(self.game.moves),
            "progress": dict(self.progress),
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "result": self.result.to_dict() if self.result else None,
        }


class InMemoryJobStore:
    """Thread-safe job store kept in process memory."""

    def __init__(self) -> None:
        self._jobs: dict[str, AnalysisJob] = {}
        self._lock = threading.Lock()

    def create(self, job: AnalysisJob) -> None:
        with self._lock:
            if job.job_id in self._jobs:
                raise ValueError(f"Duplicate job id: {job.job_id}")
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> AnalysisJob | None:
        with self._lock:
            return self._jobs.get(job_id)

    def list(self) -> list[AnalysisJob]:
        with self._lock:
            return list(self._jobs.values())

    def update_status(
        self,
        job_id: str,
        status: JobStatus,
        error_message: str | None = None,
    ) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = status
            job.error_message = error_message
            if status is JobStatus.ANALYZING:
                job.started_at = _now()
            if status.is_terminal:
                job.finished_at = _now()
        if status.is_terminal:
            job.done.set()

    def attach_result(self, job_id: str, result: AnalysisResult) -> None:
        with self._lock:
            self._jobs[job_id].result = result

    def record_progress(self, job_id: str, payload: dict[str, object]) -> None:
        with self._lock:
            self._jobs[job_id].progress = dict(payload)


class AnalysisJobRunner:
    """Run submitted games on a fixed set of worker threads.

    Jobs move ``pending -> analyzing -> completed | failed``. A result is
    attached only when the whole analysis succeeded; any error leaves the
    job ``failed`` with the error message. Submissions beyond
    ``max_pending`` queued jobs are refused with :class:`PoolSaturated`.
    """

    def __init__(
        self,
        use_case: AnalyzeGameUseCase,
        *,
        workers: int = 1,
        max_pending: int = 16,
        store: JobStore | None = None,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
        on_shutdown: Callable[[], None] | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("Job runner needs at least one worker")
        self.use_case = use_case
        self.workers = workers
        self.max_pending = max_pending
        self.store: JobStore = store or InMemoryJobStore()
        self._id_factory = id_factory
        self._on_shutdown = on_shutdown
        self._queue: Queue[object] = Queue()
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._pending = 0
        self._closed = False

    @classmethod
    def from_pool(
        cls,
        pool: EnginePool,
        *,
        store: JobStore | None = None,
        depth: int | None = None,
    ) -> AnalysisJobRunner:
        """Build a runner with one worker per pooled engine; shutdown closes the pool."""
        return cls(
            build_pooled_use_case(pool, depth),
            workers=pool.pool_settings.size,
            max_pending=pool.pool_settings.max_pending,
            store=store,
            on_shutdown=pool.close,
        )

    def __enter__(self) -> AnalysisJobRunner:
        self.start()
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.shutdown()

    def start(self) -> None:
        with self._lock:
            if self._threads or self._closed:
                return
            self._threads = [
                threading.Thread(target=self._work, name=f"analysis-worker-{i}", daemon=True)
                for i in range(self.workers)
            ]
        for thread in self._threads:
            thread.start()
        logger.info("Started %s analysis workers", self.workers)

    def submit(self, request: AnalysisRequest | str, *, depth: int | None = None) -> AnalysisJob:
        """Validate and queue one game.

        Raises:
            InvalidInput: the payload or its game notation is malformed. No
                job is created.
            PoolSaturated: too many jobs are already waiting.
        """
        if isinstance(request, str):
            try:
                request = AnalysisRequest(pgn=request, depth=depth)
            except ValidationError as exc:
                raise InvalidInput(f"Invalid analysis request: {exc}") from exc
        game = extract_moves(request.pgn)
        with self._lock:
            if self._closed:
                raise PoolSaturated("Job runner is shut down")
            if self._pending >= self.max_pending:
                raise PoolSaturated(f"Too many queued analyses ({self._pending} pending)")
            job = AnalysisJob(job_id=self._id_factory(), game=game, depth=request.depth)
            self.store.create(job)
            self._pending += 1
        self._queue.put(job.job_id)
        logger.info("Queued job %s (%s moves)", job.job_id, len(game.moves))
        return job

    def get(self, job_id: str) -> AnalysisJob | None:
        return self.store.get(job_id)

    def list(self) -> list[AnalysisJob]:
        return self.store.list()

    def wait(self, job_id: str, timeout: float | None = None) -> AnalysisJob:
        """Block until the job is finished or ``timeout`` elapses; return it either way."""
        job = self._require(job_id)
        job.done.wait(timeout)
        return job

    def cancel(self, job_id: str) -> bool:
        """Cancel a job. Returns False if it had already finished.

        A queued job fails immediately; a running one stops its engine and
        fails as soon as the worker observes the cancellation.
        """
        job = self._require(job_id)
        with self._lock:
            if job.status.is_terminal:
                return False
            job.cancel_event.set()
            if job.status is JobStatus.PENDING:
                self._pending -= 1
                self.store.update_status(job_id, JobStatus.FAILED, "Analysis cancelled")
        logger.info("Cancelled job %s", job_id)
        return True

    def shutdown(self, *, cancel_running: bool = False) -> None:
        """Stop accepting jobs, let workers drain the queue, then stop them."""
        with self._lock:
            self._closed = True
            threads = list(self._threads)
        if cancel_running:
            for job in self.store.list():
                if not job.status.is_terminal:
                    self.cancel(job.job_id)
        for _ in threads:
            self._queue.put(_STOP)
        for thread in threads:
            thread.join()
        if self._on_shutdown is not None:
            self._on_shutdown()
        logger.info("Job runner shut down")

    def _require(self, job_id: str) -> AnalysisJob:
        job = self.store.get(job_id)
        if job is None:
            raise KeyError(f"Unknown job id: {job_id}")
        return job

    def _work(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            job = self.store.get(str(item))
            if job is not None and self._claim(job):
                self._run(job)

    def _claim(self, job: AnalysisJob) -> bool:
        with self._lock:
            if job.status is not JobStatus.PENDING:
                return False
            self._pending -= 1
            self.store.update_status(job.job_id, JobStatus.ANALYZING)
        return True

    def _run(self, job: AnalysisJob) -> None:
        def progress(payload: dict[str, object]) -> None:
            self.store.record_progress(job.job_id, payload)

        logger.info("Analyzing job %s", job.job_id)
        try:
            result = self.use_case.execute_extracted(
                job.game,
                depth=job.depth,
                cancel=job.cancel_event,
                progress=progress,
            )
        except ChessmindError as exc:
            self._fail(job, str(exc) or type(exc).__name__)
        except Exception as exc:
            logger.exception("Unexpected error in job %s", job.job_id)
            self._fail(job, f"Internal error: {exc}")
        else:
            self._complete(job, result)

    def _complete(self, job: AnalysisJob, result: AnalysisResult) -> None:
        # Serialized with cancel(): a cancel that returned True always wins.
        with self._lock:
            cancelled = job.cancelled
            if not cancelled:
                self.store.attach_result(job.job_id, result)
                self.store.update_status(job.job_id, JobStatus.COMPLETED)
        if cancelled:
            self._fail(job, "Analysis cancelled")
        else:
            logger.info("Job %s completed", job.job_id)

    def _fail(self, job: AnalysisJob, message: str) -> None:
        logger.error("Job %s failed: %s", job.job_id, message)
        self.store.update_status(job.job_id, JobStatus.FAILED, message)
