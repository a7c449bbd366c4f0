# pylint: disable=duplicate-code,R0801
"""Custom error types used in chessmind."""

from __future__ import annotations


class ChessmindError(Exception):
    """Base class for every chessmind error."""


class AnalysisError(ChessmindError):
    """Terminal error that aborts a whole game analysis."""


class InvalidInput(AnalysisError):
    """The submitted game notation could not be parsed."""


class InternalInconsistency(AnalysisError):
    """A supplied move could not be applied to the supplied position."""


class AnalysisCancelled(AnalysisError):
    """The caller cancelled the analysis before it finished."""


class EngineError(AnalysisError):
    """Failure reported by, or about, the external analysis process."""

    def __init__(
        self,
        message: str,
        *,
        engine_path: str | None = None,
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.engine_path = engine_path
        self.returncode = returncode


class EngineStartFailure(EngineError):
    """The engine process could not be spawned or failed its handshake."""


class EngineTimeout(EngineError):
    """No terminal response arrived within the request budget."""


class EngineCrashed(EngineError):
    """The engine process exited while a request was outstanding."""


class EngineNotReady(EngineError):
    """A request was submitted to an engine that is not in the ready state."""


class PoolSaturated(ChessmindError):
    """The engine pool refused admission because its waiting queue is full."""


__all__ = [
    "AnalysisCancelled",
    "AnalysisError",
    "ChessmindError",
    "EngineCrashed",
    "EngineError",
    "EngineNotReady",
    "EngineStartFailure",
    "EngineTimeout",
    "InternalInconsistency",
    "InvalidInput",
    "PoolSaturated",
]
