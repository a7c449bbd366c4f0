"""Port interfaces for the chessmind application."""

from chessmind.ports.engine import ManagedEngine, PositionEvaluator  # noqa: F401
from chessmind.ports.job_store import JobStore  # noqa: F401
