"""Load settings with environment overrides."""

from __future__ import annotations

from dotenv import load_dotenv

from chessmind.define_settings__config import Settings


def get_settings(**overrides: object) -> Settings:
    """Return a fresh Settings instance, reading ``.env`` first."""
    load_dotenv()
    return Settings(**overrides)
