"""Engine and engine-pool configuration."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass(slots=True)
class EngineSettings:
    """Analysis engine process configuration."""

    path: Path = field(default_factory=lambda: Path(_env_str("CHESSMIND_ENGINE_PATH", "stockfish")))
    threads: int = field(default_factory=lambda: _env_int("CHESSMIND_ENGINE_THREADS", 2))
    hash_mb: int = field(default_factory=lambda: _env_int("CHESSMIND_ENGINE_HASH", 128))
    depth: int = field(default_factory=lambda: _env_int("CHESSMIND_ENGINE_DEPTH", 15))
    handshake_timeout_s: float = field(
        default_factory=lambda: _env_float("CHESSMIND_HANDSHAKE_TIMEOUT_S", 10.0)
    )
    request_timeout_s: float = field(
        default_factory=lambda: _env_float("CHESSMIND_REQUEST_TIMEOUT_S", 30.0)
    )
    quit_timeout_s: float = field(
        default_factory=lambda: _env_float("CHESSMIND_QUIT_TIMEOUT_S", 2.0)
    )
    start_attempts: int = field(
        default_factory=lambda: _env_int("CHESSMIND_ENGINE_START_ATTEMPTS", 3)
    )
    extra_args: tuple[str, ...] = ()

    def resolve_command(self) -> list[str]:
        """Return the argv used to spawn the engine."""
        configured = str(self.path)
        if Path(configured).exists():
            return [configured, *self.extra_args]
        resolved = shutil.which(configured)
        return [resolved or configured, *self.extra_args]


@dataclass(slots=True)
class PoolSettings:
    """Bounds for the shared pool of engine processes."""

    size: int = field(default_factory=lambda: _env_int("CHESSMIND_POOL_SIZE", 2))
    max_pending: int = field(default_factory=lambda: _env_int("CHESSMIND_POOL_MAX_PENDING", 16))
    acquire_timeout_s: float = field(
        default_factory=lambda: _env_float("CHESSMIND_POOL_ACQUIRE_TIMEOUT_S", 60.0)
    )
