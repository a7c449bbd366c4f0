"""Utility exports for the chessmind package."""

from .logger import Logger, funclogger, get_logger, set_level, set_stream
from .mean import mean
from .to_int import to_int

__all__ = [
    "Logger",
    "funclogger",
    "get_logger",
    "mean",
    "set_level",
    "set_stream",
    "to_int",
]
