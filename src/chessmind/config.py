"""Configuration entrypoints for chessmind."""

from __future__ import annotations

from chessmind.define_engine_settings__config import EngineSettings, PoolSettings
from chessmind.define_settings__config import Settings
from chessmind.get_settings__config import get_settings

__all__ = [
    "EngineSettings",
    "PoolSettings",
    "Settings",
    "get_settings",
]
