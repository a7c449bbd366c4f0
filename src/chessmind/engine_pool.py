"""Bounded pool of engine processes shared by concurrent analyses."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chessmind.define_engine_settings__config import EngineSettings, PoolSettings
from chessmind.engine_client import EngineClient
from chessmind.errors import EngineStartFailure, PoolSaturated
from chessmind.ports.engine import ManagedEngine
from chessmind.utils.logger import get_logger

logger = get_logger(__name__)

EngineFactory = Callable[[str], ManagedEngine]


@dataclass(frozen=True, slots=True)
class PoolStats:
    size: int
    live: int
    idle: int
    leased: int
    waiting: int


class EnginePool:
    """Hand out at most ``size`` engines, one analysis per engine at a time.

    Engines are spawned lazily. An engine that comes back from a lease in any
    state other than ready, or whose process exits while idle, is discarded
    and a fresh one is spawned for the next caller. When every engine is busy, callers queue; once
    ``max_pending`` callers are already queued, further acquires are refused
    with :class:`PoolSaturated`.
    """

    def __init__(
        self,
        engine_settings: EngineSettings,
        pool_settings: PoolSettings,
        *,
        engine_factory: EngineFactory | None = None,
    ) -> None:
        if pool_settings.size < 1:
            raise ValueError("Engine pool size must be at least 1")
        self.engine_settings = engine_settings
        self.pool_settings = pool_settings
        self._factory = engine_factory or self._default_factory
        self._cond = threading.Condition()
        self._idle: deque[ManagedEngine] = deque()
        self._leased: set[int] = set()
        self._live = 0
        self._waiting = 0
        self._retired: list[ManagedEngine] = []
        self._closed = False
        self._serial = itertools.count(1)

    def _default_factory(self, identifier: str) -> ManagedEngine:
        return EngineClient(self.engine_settings, identifier=identifier)

    def __enter__(self) -> EnginePool:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.close()

    @property
    def stats(self) -> PoolStats:
        with self._cond:
            return PoolStats(
                size=self.pool_settings.size,
                live=self._live,
                idle=len(self._idle),
                leased=len(self._leased),
                waiting=self._waiting,
            )

    def warm_up(self) -> None:
        """Spawn engines until the pool is full."""
        spawned = []
        try:
            while True:
                with self._cond:
                    if self._closed or self._live >= self.pool_settings.size:
                        break
                    self._live += 1
                try:
                    spawned.append(self._spawn())
                except EngineStartFailure:
                    with self._cond:
                        self._live -= 1
                    raise
        finally:
            with self._cond:
                self._idle.extend(spawned)
                self._cond.notify_all()

    def acquire(self, timeout: float | None = None) -> ManagedEngine:
        """Take an engine out of the pool, spawning one if capacity allows.

        Raises:
            PoolSaturated: The waiting queue is full, or no engine freed up
                before ``timeout`` (defaults to ``acquire_timeout_s``).
            EngineStartFailure: A new engine could not be started after the
                configured number of attempts.
        """
        budget = self.pool_settings.acquire_timeout_s if timeout is None else timeout
        try:
            return self._acquire(time.monotonic() + budget)
        finally:
            self._stop_retired()

    def _acquire(self, deadline: float) -> ManagedEngine:
        with self._cond:
            self._raise_if_closed()
            engine = self._take_idle()
            if engine is not None:
                return engine
            if self._live >= self.pool_settings.size:
                if self._waiting >= self.pool_settings.max_pending:
                    raise PoolSaturated(
                        f"Engine pool is saturated ({self._waiting} requests already waiting)"
                    )
                self._wait_for_capacity(deadline)
                engine = self._take_idle()
                if engine is not None:
                    return engine
            self._live += 1
        try:
            engine = self._spawn()
        except EngineStartFailure:
            with self._cond:
                self._live -= 1
                self._cond.notify()
            raise
        with self._cond:
            self._leased.add(id(engine))
        return engine

    def release(self, engine: ManagedEngine) -> None:
        """Return a leased engine; engines that are no longer ready are stopped."""
        healthy = engine.is_ready
        with self._cond:
            self._leased.discard(id(engine))
            retire = self._closed or not healthy
            if retire:
                self._live -= 1
            else:
                self._idle.append(engine)
            self._cond.notify()
        if not healthy:
            logger.warning("Retiring engine returned to the pool in a non-ready state")
        if retire:
            engine.stop()

    @contextmanager
    def lease(self, timeout: float | None = None) -> Iterator[ManagedEngine]:
        engine = self.acquire(timeout)
        try:
            yield engine
        finally:
            self.release(engine)

    def close(self) -> None:
        """Stop idle engines now; leased engines are stopped when released."""
        with self._cond:
            self._closed = True
            idle = list(self._idle)
            self._idle.clear()
            self._live -= len(idle)
            self._cond.notify_all()
        for engine in idle:
            engine.stop()
        logger.info("Engine pool closed (%s idle engines stopped)", len(idle))

    def _take_idle(self) -> ManagedEngine | None:
        while self._idle:
            engine = self._idle.popleft()
            if engine.is_ready:
                self._leased.add(id(engine))
                return engine
            logger.warning("Dropping idle engine whose process is no longer running")
            self._live -= 1
            self._retired.append(engine)
        return None

    def _stop_retired(self) -> None:
        with self._cond:
            retired, self._retired = self._retired, []
        for engine in retired:
            engine.stop()

    def _wait_for_capacity(self, deadline: float) -> None:
        self._waiting += 1
        try:
            while not self._idle and self._live >= self.pool_settings.size:
                self._raise_if_closed()
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise PoolSaturated("Timed out waiting for a free engine")
                self._cond.wait(remaining)
            self._raise_if_closed()
        finally:
            self._waiting -= 1

    def _raise_if_closed(self) -> None:
        if self._closed:
            raise PoolSaturated("Engine pool is closed")

    def _spawn(self) -> ManagedEngine:
        identifier = f"engine-{next(self._serial)}"
        retrying = Retrying(
            retry=retry_if_exception_type(EngineStartFailure),
            stop=stop_after_attempt(max(1, self.engine_settings.start_attempts)),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        for attempt in retrying:
            with attempt:
                engine = self._factory(identifier)
                engine.start()
        logger.info("Spawned %s", identifier)
        return engine
