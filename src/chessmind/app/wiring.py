"""Default dependency wiring for use-cases."""

from __future__ import annotations

from chessmind.app.use_cases.analyze_game import AnalyzeGameUseCase
from chessmind.config import Settings, get_settings
from chessmind.engine_client import EngineClient
from chessmind.engine_pool import EnginePool


def build_engine_client(settings: Settings) -> EngineClient:
    return EngineClient(settings.engine, identifier="engine")


def build_single_engine_use_case(settings: Settings | None = None) -> AnalyzeGameUseCase:
    """Analyze each game with its own engine process, stopped when the game is done."""
    resolved = settings or get_settings()
    return AnalyzeGameUseCase(
        engine_provider=lambda: build_engine_client(resolved),
        depth=resolved.engine.depth,
    )


def build_engine_pool(settings: Settings | None = None) -> EnginePool:
    resolved = settings or get_settings()
    return EnginePool(resolved.engine, resolved.pool)


def build_pooled_use_case(pool: EnginePool, depth: int | None = None) -> AnalyzeGameUseCase:
    """Analyze games on engines leased from ``pool``."""
    return AnalyzeGameUseCase(
        engine_provider=pool.lease,
        depth=depth if depth is not None else pool.engine_settings.depth,
    )
