"""Cognitive metrics for chess games evaluated by a UCI engine."""

from chessmind.analysis_jobs import AnalysisJob, AnalysisJobRunner, JobStatus
from chessmind.app.use_cases.analyze_game import AnalyzeGameUseCase, analyze_game
from chessmind.config import Settings, get_settings
from chessmind.domain.metrics import compute_metrics
from chessmind.domain.results import AnalysisResult, EvaluatedMove
from chessmind.engine_client import EngineClient, EngineState
from chessmind.engine_pool import EnginePool
from chessmind.evaluation_pipeline import EvaluationPipeline, evaluate_moves
from chessmind.extract_moves__pgn import extract_moves
from chessmind.position_evaluation import PositionEvaluation

__all__ = [
    "AnalysisJob",
    "AnalysisJobRunner",
    "AnalysisResult",
    "AnalyzeGameUseCase",
    "EngineClient",
    "EnginePool",
    "EngineState",
    "EvaluatedMove",
    "EvaluationPipeline",
    "JobStatus",
    "PositionEvaluation",
    "Settings",
    "analyze_game",
    "compute_metrics",
    "evaluate_moves",
    "extract_moves",
    "get_settings",
]
