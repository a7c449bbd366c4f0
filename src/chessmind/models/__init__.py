from chessmind.models.analysis_request import AnalysisRequest

__all__ = ["AnalysisRequest"]
