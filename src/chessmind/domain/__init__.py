"""Domain records and pure metric computations."""

from chessmind.domain.metrics import compute_metrics
from chessmind.domain.mlevels import M_LEVELS, MLevel, classify_average_loss
from chessmind.domain.results import AnalysisResult, CollapseEvent, EvaluatedMove, PhaseSummary

__all__ = [
    "M_LEVELS",
    "AnalysisResult",
    "CollapseEvent",
    "EvaluatedMove",
    "MLevel",
    "PhaseSummary",
    "classify_average_loss",
    "compute_metrics",
]
