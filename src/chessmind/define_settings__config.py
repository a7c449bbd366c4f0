"""Define top-level application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields

from chessmind.define_engine_settings__config import EngineSettings, PoolSettings

_MISSING = object()

# Flat keyword aliases accepted by Settings(...), mapped onto nested settings.
_SETTINGS_ALIASES = {
    "engine_path": ("engine", "path"),
    "engine_threads": ("engine", "threads"),
    "engine_hash_mb": ("engine", "hash_mb"),
    "engine_depth": ("engine", "depth"),
    "engine_handshake_timeout_s": ("engine", "handshake_timeout_s"),
    "engine_request_timeout_s": ("engine", "request_timeout_s"),
    "engine_quit_timeout_s": ("engine", "quit_timeout_s"),
    "engine_start_attempts": ("engine", "start_attempts"),
    "engine_extra_args": ("engine", "extra_args"),
    "pool_size": ("pool", "size"),
    "pool_max_pending": ("pool", "max_pending"),
    "pool_acquire_timeout_s": ("pool", "acquire_timeout_s"),
}


@dataclass(slots=True, init=False)
class Settings:
    """Central configuration for engine processes, pooling and logging."""

    engine: EngineSettings = field(default_factory=EngineSettings)
    pool: PoolSettings = field(default_factory=PoolSettings)
    log_level: str = field(default_factory=lambda: os.getenv("CHESSMIND_LOG_LEVEL", "INFO"))

    def __init__(self, **kwargs: object) -> None:
        for field_info in fields(self):
            value = kwargs.pop(field_info.name, _MISSING)
            if value is _MISSING:
                value = field_info.default_factory()  # type: ignore[misc]
            setattr(self, field_info.name, value)
        self._apply_aliases(kwargs)
        if kwargs:
            unexpected = ", ".join(sorted(kwargs))
            raise TypeError(f"Unexpected settings: {unexpected}")

    def _apply_aliases(self, kwargs: dict[str, object]) -> None:
        for alias, (section, attribute) in _SETTINGS_ALIASES.items():
            value = kwargs.pop(alias, _MISSING)
            if value is not _MISSING:
                setattr(getattr(self, section), attribute, value)
