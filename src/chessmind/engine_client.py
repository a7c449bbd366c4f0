"""Request/response client for one external UCI analysis process."""

from __future__ import annotations

import subprocess
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from enum import StrEnum
from queue import Empty, Queue
from typing import IO, Any

from chessmind import uci_protocol
from chessmind.define_engine_settings__config import EngineSettings
from chessmind.errors import (
    AnalysisCancelled,
    EngineCrashed,
    EngineNotReady,
    EngineStartFailure,
    EngineTimeout,
)
from chessmind.position_evaluation import PositionEvaluation
from chessmind.utils.logger import get_logger

logger = get_logger(__name__)

_END_OF_STREAM = object()
_POLL_INTERVAL_S = 0.05

Popen = Callable[..., subprocess.Popen]


class EngineState(StrEnum):
    STOPPED = "stopped"
    STARTING = "starting"
    READY = "ready"
    EVALUATING = "evaluating"


class EngineClient(AbstractContextManager["EngineClient"]):
    """Own a single engine process and serialize requests over its text stream.

    The protocol carries no request identifiers, so exactly one request may
    be outstanding. Any request that ends in a timeout, crash or cancellation
    leaves the stream in an unknown state; the process is then terminated and
    the client stays ``STOPPED`` until ``start`` is called again.
    """

    def __init__(
        self,
        settings: EngineSettings,
        *,
        identifier: str | None = None,
        popen: Popen = subprocess.Popen,
    ) -> None:
        self.settings = settings
        self.identifier = identifier or "engine"
        self._popen = popen
        self.process: subprocess.Popen | None = None
        self._lines: Queue[Any] = Queue()
        self._readers: list[threading.Thread] = []
        self._state = EngineState.STOPPED
        self._state_lock = threading.Lock()
        self._aborted = threading.Event()

    def __enter__(self) -> EngineClient:
        self.start()
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.stop()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        """True when the client is idle and its process is still running."""
        process = self.process
        return (
            self._state is EngineState.READY
            and process is not None
            and process.poll() is None
        )

    @property
    def engine_path(self) -> str:
        return str(self.settings.path)

    def start(self) -> None:
        """Spawn the process and run the handshake, leaving the client ``READY``."""
        with self._state_lock:
            if self._state is not EngineState.STOPPED:
                return
            self._state = EngineState.STARTING
        command = self.settings.resolve_command()
        logger.info("[%s] Starting engine: %s", self.identifier, " ".join(command))
        try:
            self.process = self._popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (OSError, ValueError) as exc:
            self._state = EngineState.STOPPED
            raise EngineStartFailure(
                f"Could not spawn engine {self.engine_path}: {exc}",
                engine_path=self.engine_path,
            ) from exc
        self._aborted.clear()
        self._lines = Queue()
        self._start_readers(self.process, self._lines)
        try:
            self._handshake()
        except (EngineTimeout, EngineCrashed, OSError) as exc:
            returncode = self._terminate()
            raise EngineStartFailure(
                f"Engine {self.engine_path} failed its handshake: {exc}",
                engine_path=self.engine_path,
                returncode=returncode,
            ) from exc
        self._state = EngineState.READY
        logger.info("[%s] Engine ready (pid=%s)", self.identifier, self.process.pid)

    def _handshake(self) -> None:
        deadline = time.monotonic() + self.settings.handshake_timeout_s
        self._send(uci_protocol.UCI)
        self._wait_for(uci_protocol.UCI_OK, deadline)
        for command in uci_protocol.handshake_commands(
            self.settings.threads, self.settings.hash_mb
        ):
            self._send(command)
        self._wait_for(uci_protocol.READY_OK, deadline)

    def new_game(self) -> None:
        """Reset engine search state between games."""
        with self._request():
            deadline = time.monotonic() + self.settings.handshake_timeout_s
            self._send(uci_protocol.NEW_GAME)
            self._send(uci_protocol.IS_READY)
            self._wait_for(uci_protocol.READY_OK, deadline)

    def submit_position(
        self,
        fen: str,
        *,
        depth: int | None = None,
        timeout_s: float | None = None,
        cancel: threading.Event | None = None,
    ) -> PositionEvaluation:
        """Evaluate ``fen`` and block until the engine names its best move.

        The returned score is relative to the side to move in ``fen``.
        """
        budget = self.settings.request_timeout_s if timeout_s is None else timeout_s
        with self._request():
            deadline = time.monotonic() + budget
            self._send(uci_protocol.position_fen(fen))
            self._send(uci_protocol.go_depth(depth or self.settings.depth))
            score_cp = 0
            mate_in: int | None = None
            reached_depth = 0
            while True:
                line = self._next_line(deadline, cancel)
                is_bestmove, best_move = uci_protocol.parse_bestmove_line(line)
                if is_bestmove:
                    return PositionEvaluation(
                        score_cp=score_cp,
                        best_move=best_move,
                        depth=reached_depth,
                        mate_in=mate_in,
                    )
                info = uci_protocol.parse_info_line(line)
                if info is not None:
                    score_cp, mate_in = info.score_cp, info.mate_in
                    reached_depth = info.depth or reached_depth

    def abort(self) -> None:
        """Stop an in-flight search from another thread and kill the process.

        The waiting caller observes ``AnalysisCancelled``.
        """
        self._aborted.set()
        process = self.process
        if process is None or process.poll() is not None:
            return
        logger.info("[%s] Aborting engine (pid=%s)", self.identifier, process.pid)
        self._send_quietly(uci_protocol.STOP)
        process.kill()

    def stop(self) -> None:
        """Ask the engine to quit, killing it if it does not exit in time."""
        process = self.process
        if process is None:
            self._state = EngineState.STOPPED
            return
        if process.poll() is None:
            self._send_quietly(uci_protocol.QUIT)
            try:
                process.wait(timeout=self.settings.quit_timeout_s)
            except subprocess.TimeoutExpired:
                logger.warning(
                    "[%s] Engine ignored quit after %.1fs; killing pid=%s",
                    self.identifier,
                    self.settings.quit_timeout_s,
                    process.pid,
                )
                process.kill()
                process.wait()
        self._cleanup(process)
        logger.info("[%s] Engine stopped (returncode=%s)", self.identifier, process.returncode)

    @contextmanager
    def _request(self) -> Iterator[None]:
        with self._state_lock:
            if self._state is not EngineState.READY:
                raise EngineNotReady(
                    f"Engine {self.identifier} is {self._state.value}, not ready",
                    engine_path=self.engine_path,
                )
            self._state = EngineState.EVALUATING
        try:
            yield
        except AnalysisCancelled:
            self._send_quietly(uci_protocol.STOP)
            self._terminate()
            raise
        except EngineTimeout:
            self._terminate()
            raise
        except EngineCrashed as exc:
            returncode = self._terminate()
            if exc.returncode is None:
                exc.returncode = returncode
            raise
        except OSError as exc:
            returncode = self._terminate()
            raise EngineCrashed(
                f"Lost the engine stream: {exc}",
                engine_path=self.engine_path,
                returncode=returncode,
            ) from exc
        with self._state_lock:
            if self._state is EngineState.EVALUATING:
                self._state = EngineState.READY

    def _next_line(self, deadline: float, cancel: threading.Event | None = None) -> str:
        while True:
            if cancel is not None and cancel.is_set():
                raise AnalysisCancelled("Analysis cancelled while waiting for the engine")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("[%s] Engine response timed out", self.identifier)
                raise EngineTimeout(
                    f"No response from engine {self.engine_path} within the time budget",
                    engine_path=self.engine_path,
                )
            try:
                item = self._lines.get(timeout=min(remaining, _POLL_INTERVAL_S))
            except Empty:
                continue
            if item is _END_OF_STREAM:
                if self._aborted.is_set():
                    raise AnalysisCancelled("Analysis cancelled; engine was aborted")
                returncode = self.process.poll() if self.process else None
                logger.warning(
                    "[%s] Engine exited unexpectedly (returncode=%s)", self.identifier, returncode
                )
                raise EngineCrashed(
                    f"Engine {self.engine_path} exited unexpectedly",
                    engine_path=self.engine_path,
                    returncode=returncode,
                )
            return item

    def _wait_for(self, expected: str, deadline: float) -> None:
        while self._next_line(deadline) != expected:
            pass

    def _send(self, command: str) -> None:
        if self.process is None or self.process.stdin is None:
            raise BrokenPipeError("engine process is not running")
        logger.debug("[%s] >> %s", self.identifier, command)
        self.process.stdin.write(command + "\n")
        self.process.stdin.flush()

    def _send_quietly(self, command: str) -> None:
        try:
            self._send(command)
        except (OSError, ValueError) as exc:
            logger.debug("[%s] Could not send %r: %s", self.identifier, command, exc)

    def _terminate(self) -> int | None:
        process = self.process
        if process is None:
            self._state = EngineState.STOPPED
            return None
        if process.poll() is None:
            process.kill()
        process.wait()
        self._cleanup(process)
        return process.returncode

    def _cleanup(self, process: subprocess.Popen) -> None:
        self._close_stream(process.stdin)
        # Readers hit EOF once the process is gone; join them before closing their streams.
        for reader in self._readers:
            reader.join(timeout=1.0)
        self._readers = []
        self._close_stream(process.stdout)
        self._close_stream(process.stderr)
        self._state = EngineState.STOPPED

    def _close_stream(self, stream: IO[str] | None) -> None:
        if stream is None:
            return
        try:
            stream.close()
        except (OSError, ValueError) as exc:
            logger.debug("[%s] Error closing engine stream: %s", self.identifier, exc)

    def _start_readers(self, process: subprocess.Popen, lines: Queue[Any]) -> None:
        self._readers = [
            threading.Thread(
                target=self._pump_stdout,
                args=(process.stdout, lines),
                name=f"{self.identifier}-stdout",
                daemon=True,
            ),
            threading.Thread(
                target=self._pump_stderr,
                args=(process.stderr,),
                name=f"{self.identifier}-stderr",
                daemon=True,
            ),
        ]
        for reader in self._readers:
            reader.start()

    def _pump_stdout(self, stream: IO[str] | None, lines: Queue[Any]) -> None:
        try:
            if stream is None:
                return
            for raw in stream:
                line = raw.strip()
                if line:
                    logger.debug("[%s] << %s", self.identifier, line)
                    lines.put(line)
        except (OSError, ValueError) as exc:
            logger.debug("[%s] Engine stdout closed: %s", self.identifier, exc)
        finally:
            lines.put(_END_OF_STREAM)

    def _pump_stderr(self, stream: IO[str] | None) -> None:
        if stream is None:
            return
        try:
            for raw in stream:
                if raw.strip():
                    logger.warning("[%s] Engine stderr: %s", self.identifier, raw.strip())
        except (OSError, ValueError) as exc:
            logger.debug("[%s] Engine stderr closed: %s", self.identifier, exc)
