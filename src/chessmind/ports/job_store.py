"""Job store port abstraction."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from chessmind.analysis_jobs import AnalysisJob, JobStatus
    from chessmind.domain.results import AnalysisResult


class JobStore(Protocol):
    """Persist analysis job records between submission and completion."""

    def create(self, job: AnalysisJob) -> None:
        """Store a newly submitted job."""

    def get(self, job_id: str) -> AnalysisJob | None:
        """Return the job with ``job_id`` if it exists."""

    def list(self) -> list[AnalysisJob]:
        """Return all known jobs in submission order."""

    def update_status(
        self,
        job_id: str,
        status: JobStatus,
        error_message: str | None = None,
    ) -> None:
        """Move a job to ``status``, recording an optional failure message."""

    def attach_result(self, job_id: str, result: AnalysisResult) -> None:
        """Record the finished analysis for a job."""

    def record_progress(self, job_id: str, payload: dict[str, object]) -> None:
        """Replace the job's latest progress payload."""
