"""Application use-case entrypoints."""

from chessmind.app.use_cases.analyze_game import (
    AnalyzeGameUseCase,
    analyze_game,
    analyze_moves,
)

__all__ = [
    "AnalyzeGameUseCase",
    "analyze_game",
    "analyze_moves",
]
