"""One analysis run against one engine process.

The session's loop runs on the thread that calls :meth:`EngineSession.run`
and consumes a single event queue. Two producers feed it: the stdout reader
thread (one item per line, then an end marker) and the cancellation token
(at most one cancel marker). The loop is the only writer of the engine's
stdin. It ends at ``bestmove``, at end of stream, or on cancellation.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from enum import IntEnum, auto
from pathlib import Path
from typing import Protocol

from enginelines.core.position import AnalysisPosition
from enginelines.engine.aggregator import LineAggregator
from enginelines.engine.cancellation import CancelToken
from enginelines.engine.models import ProcessExit, SessionOutcome
from enginelines.engine.process import EngineProcess, EngineWriteError
from enginelines.engine.search import (
    AnalysisRequest,
    BestMovesSink,
    Clock,
    DiagnosticSink,
    SessionConfig,
)
from enginelines.engine.uci import LineParser
from enginelines.engine_paths import resolve_engine_path

_LOGGER = logging.getLogger(__name__)

_STOP_COMMAND = "stop"


class SessionState(IntEnum):
    """Lifecycle states of an :class:`EngineSession`."""

    STARTING = auto()
    RUNNING = auto()
    STOPPING = auto()
    TERMINATED = auto()


class IEngineProcess(Protocol):
    """What the session needs from a running engine."""

    def send(self, command: str) -> None: ...

    def readline(self) -> str | None: ...

    def watch_exit(self, on_exit: Callable[[ProcessExit], None] | None = None) -> None: ...

    def close_input(self) -> None: ...


ProcessFactory = Callable[[AnalysisRequest, Path], IEngineProcess]


def _spawn(request: AnalysisRequest, path: Path) -> IEngineProcess:
    return EngineProcess.spawn(path, label=request.caller or path.name)


class _Marker:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<{self.name}>"


_END_OF_STREAM = _Marker("end-of-stream")
_CANCEL = _Marker("cancel")

_Event = str | _Marker


class EngineSession:
    """Drives one engine from spawn to termination.

    Fatal errors (:class:`EngineSpawnError`, :class:`EngineWriteError`)
    propagate out of :meth:`run`. Malformed or illegal engine lines are
    dropped silently.
    """

    __slots__ = (
        "_request",
        "_path",
        "_on_best_moves",
        "_on_diagnostic",
        "_config",
        "_clock",
        "_process_factory",
        "_events",
        "_token",
        "_state",
        "_state_lock",
    )

    def __init__(
        self,
        request: AnalysisRequest,
        *,
        on_best_moves: BestMovesSink,
        config: SessionConfig | None = None,
        on_diagnostic: DiagnosticSink | None = None,
        engine_path: Path | None = None,
        process_factory: ProcessFactory = _spawn,
        clock: Clock = time.monotonic,
    ) -> None:
        self._request = request
        self._path = (
            engine_path
            if engine_path is not None
            else resolve_engine_path(request.engine, relative=request.relative)
        )
        self._on_best_moves = on_best_moves
        self._on_diagnostic = on_diagnostic
        self._config = config or SessionConfig()
        self._clock = clock
        self._process_factory = process_factory
        self._events: queue.Queue[_Event] = queue.Queue()
        self._token = CancelToken(lambda: self._events.put(_CANCEL))
        self._state = SessionState.STARTING
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    def cancel(self) -> bool:
        """Ask the running session to stop.

        Thread-safe. A session cancelled before :meth:`run` never spawns
        its engine. Returns ``False`` when the session already terminated
        or was cancelled before.
        """
        return self._token.cancel()

    def run(self) -> SessionOutcome:
        """Run the session to completion on the calling thread."""
        if self._state is not SessionState.STARTING:
            raise RuntimeError("EngineSession.run() may only be called once")

        request = self._request
        token = self._token
        if token.cancelled:
            token.release()
            self._set_state(SessionState.TERMINATED)
            _LOGGER.info("Analysis for %s cancelled before start", request.caller or "<anonymous>")
            return SessionOutcome.CANCELLED

        _LOGGER.info(
            "Starting analysis for %s: %s depth=%d lines=%d threads=%d",
            request.caller or "<anonymous>",
            self._path,
            request.depth,
            request.lines,
            request.threads,
        )
        try:
            position = AnalysisPosition(request.fen)
            process = self._process_factory(request, self._path)
        except Exception:
            token.release()
            self._set_state(SessionState.TERMINATED)
            raise
        process.watch_exit(self._on_diagnostic)

        parser = LineParser(position, request.caller)
        aggregator = LineAggregator(
            request.lines,
            convert=parser.to_payload,
            sink=self._on_best_moves,
            config=self._config,
            clock=self._clock,
        )

        try:
            for command in request.commands():
                process.send(command)
            self._set_state(SessionState.RUNNING)

            reader = threading.Thread(
                target=self._pump_output,
                args=(process,),
                name=f"{request.caller or 'engine'}-stdout",
                daemon=True,
            )
            reader.start()

            outcome = self._loop(process, parser, aggregator, token)
        finally:
            token.release()
            process.close_input()
            self._set_state(SessionState.TERMINATED)

        _LOGGER.info("Analysis for %s %s", request.caller or "<anonymous>", outcome)
        return outcome

    def _loop(
        self,
        process: IEngineProcess,
        parser: LineParser,
        aggregator: LineAggregator,
        token: CancelToken,
    ) -> SessionOutcome:
        while True:
            event = self._events.get()
            # A cancel raised while lines were queued wins over those lines.
            if event is _CANCEL or token.cancelled:
                self._stop(process, token)
                return SessionOutcome.CANCELLED
            if event is _END_OF_STREAM:
                return SessionOutcome.COMPLETED
            if not isinstance(event, str):
                raise TypeError(f"Unexpected session event {event!r}")
            if event == "readyok":
                _LOGGER.debug("Engine ready")
                continue
            if event.startswith("bestmove"):
                # Search is over; closing stdin afterwards lets the engine exit.
                _LOGGER.debug("Search finished: %s", event)
                return SessionOutcome.COMPLETED
            info = parser.parse(event)
            if info is None:
                continue
            aggregator.push(info)

    def _stop(self, process: IEngineProcess, token: CancelToken) -> None:
        self._set_state(SessionState.STOPPING)
        token.release()
        _LOGGER.info("Stopping engine for %s", self._request.caller or "<anonymous>")
        try:
            process.send(_STOP_COMMAND)
        except EngineWriteError as exc:
            # The engine is already gone; there is nothing left to stop.
            _LOGGER.warning("Could not send stop: %s", exc)

    def _pump_output(self, process: IEngineProcess) -> None:
        try:
            while True:
                line = process.readline()
                if line is None:
                    break
                self._events.put(line)
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Engine read error: %s", exc)
        finally:
            self._events.put(_END_OF_STREAM)

    def _set_state(self, state: SessionState) -> None:
        with self._state_lock:
            self._state = state
