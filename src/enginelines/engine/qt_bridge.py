"""Qt bridge to run engine sessions in a worker thread."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from enginelines.engine.models import BestMovePayload, ProcessExit, SessionOutcome
from enginelines.engine.process import EngineSessionError
from enginelines.engine.search import AnalysisRequest, SessionConfig
from enginelines.engine.session import EngineSession

SessionFactory = Callable[..., EngineSession]


class AnalysisWorker(QObject):
    """Thread-affine worker that runs one engine session per request.

    Every signal carries the request id first so the owner can drop
    results of requests it already abandoned.
    """

    best_moves_ready = pyqtSignal(int, object)  # request_id, list[BestMovePayload]
    analysis_finished = pyqtSignal(int, str)  # request_id, SessionOutcome
    analysis_failed = pyqtSignal(int, str)  # request_id, message
    engine_exited = pyqtSignal(int, int)  # request_id, return code

    __slots__ = (
        "_config",
        "_session_factory",
        "_session",
        "_session_id",
        "_dropped_ids",
        "_last_started_id",
        "_lock",
    )

    def __init__(
        self,
        *,
        config: SessionConfig | None = None,
        session_factory: SessionFactory = EngineSession,
    ) -> None:
        super().__init__()
        self._config = config or SessionConfig()
        self._session_factory = session_factory
        self._session: EngineSession | None = None
        self._session_id: int | None = None
        self._dropped_ids: set[int] = set()
        self._last_started_id = 0
        self._lock = threading.Lock()

    @pyqtSlot(int, object)
    def run_analysis(self, request_id: int, request_obj: object) -> None:
        """Run an analysis for *request_obj* until it finishes or is cancelled."""
        if not isinstance(request_obj, AnalysisRequest):
            self._retire(request_id)
            self.analysis_failed.emit(request_id, "Engine received invalid analysis request")
            return

        def _emit_best_moves(payloads: Sequence[BestMovePayload]) -> None:
            self.best_moves_ready.emit(request_id, list(payloads))

        def _emit_exit(event: ProcessExit) -> None:
            self.engine_exited.emit(request_id, event.returncode)

        try:
            session = self._session_factory(
                request_obj,
                on_best_moves=_emit_best_moves,
                on_diagnostic=_emit_exit,
                config=self._config,
            )
        except ValueError as exc:
            self._retire(request_id)
            self.analysis_failed.emit(request_id, str(exc))
            return

        if self._retire(request_id, session):
            self.analysis_finished.emit(request_id, str(SessionOutcome.CANCELLED))
            return

        try:
            outcome = session.run()
        except (EngineSessionError, ValueError) as exc:
            self.analysis_failed.emit(request_id, str(exc))
            return
        finally:
            with self._lock:
                self._session = None
                self._session_id = None

        self.analysis_finished.emit(request_id, str(outcome))

    def cancel(self, request_id: int | None = None) -> bool:
        """Stop the running session. Safe to call from any thread.

        With *request_id*, only that request is cancelled; if it has not
        reached the worker yet it is dropped on arrival. Ids the worker
        already picked up and finished are ignored.
        """
        with self._lock:
            session = self._session
            if request_id is not None and request_id != self._session_id:
                if request_id <= self._last_started_id:
                    return False
                self._dropped_ids.add(request_id)
                return True
        if session is None:
            return False
        return session.cancel()

    @pyqtSlot(object)
    def set_config(self, config: object) -> None:
        """Replace the throttling config (takes effect on the next request)."""
        if isinstance(config, SessionConfig):
            self._config = config

    def _retire(self, request_id: int, session: EngineSession | None = None) -> bool:
        """Mark *request_id* as picked up; return ``True`` if it was cancelled.

        A live *session* becomes the running one unless its id was dropped.
        """
        with self._lock:
            dropped = request_id in self._dropped_ids
            self._dropped_ids.discard(request_id)
            self._last_started_id = max(self._last_started_id, request_id)
            if session is not None and not dropped:
                self._session = session
                self._session_id = request_id
        return dropped
