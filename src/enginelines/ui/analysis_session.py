"""Background engine analysis orchestration for the UI thread."""

from __future__ import annotations

import logging
from collections.abc import Callable

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from enginelines.engine.models import BestMovePayload
from enginelines.engine.qt_bridge import AnalysisWorker
from enginelines.engine.search import AnalysisRequest, SessionConfig

_LOGGER = logging.getLogger(__name__)


class _AnalysisCommandBus(QObject):
    analyze_requested = pyqtSignal(int, object)  # request_id, AnalysisRequest
    config_changed = pyqtSignal(object)  # SessionConfig


class EngineAnalysisSession:
    """Owns the worker thread and hands engine batches to the UI.

    One request is active at a time; starting a new one stops the previous
    engine first. Results of abandoned requests are dropped here.
    """

    __slots__ = (
        "__weakref__",
        "_on_best_moves",
        "_on_finished",
        "_on_failed",
        "_command_bus",
        "_thread",
        "_worker",
        "_is_started",
        "_is_shutting_down",
        "_pending_request_id",
        "_next_request_id",
    )

    def __init__(
        self,
        *,
        on_best_moves: Callable[[list[BestMovePayload]], None],
        on_finished: Callable[[str], None],
        on_failed: Callable[[str], None],
        config: SessionConfig | None = None,
        parent: QObject | None = None,
    ) -> None:
        self._on_best_moves = on_best_moves
        self._on_finished = on_finished
        self._on_failed = on_failed

        self._command_bus = _AnalysisCommandBus(parent)
        self._thread = QThread(parent)
        self._worker = AnalysisWorker(config=config)
        self._is_started = False
        self._is_shutting_down = False
        self._pending_request_id: int | None = None
        self._next_request_id = 0

    @property
    def is_running(self) -> bool:
        return self._pending_request_id is not None

    def setup(self) -> None:
        """Start worker thread and connect cross-thread signals."""
        if self._is_started:
            return
        self._is_shutting_down = False
        self._worker.moveToThread(self._thread)
        self._command_bus.analyze_requested.connect(self._worker.run_analysis)
        self._command_bus.config_changed.connect(self._worker.set_config)
        self._worker.best_moves_ready.connect(self._on_worker_best_moves)
        self._worker.analysis_finished.connect(self._on_worker_finished)
        self._worker.analysis_failed.connect(self._on_worker_failed)
        self._worker.engine_exited.connect(self._on_worker_engine_exited)
        self._thread.start()
        self._is_started = True

    def shutdown(self) -> None:
        """Stop the engine and the worker thread."""
        if not self._is_started:
            return
        self._is_shutting_down = True
        self.stop_analysis()
        self._thread.quit()
        self._thread.wait(2000)
        self._is_started = False

    def request_analysis(self, request: AnalysisRequest) -> bool:
        """Start (or restart) analysis of *request*."""
        if not self._is_started:
            self.setup()
        if self._is_shutting_down:
            return False

        self.stop_analysis()
        self._next_request_id += 1
        request_id = self._next_request_id
        self._pending_request_id = request_id
        self._command_bus.analyze_requested.emit(request_id, request)
        return True

    def set_config(self, config: SessionConfig) -> None:
        """Change throttling for requests started after this call."""
        if self._is_started:
            self._command_bus.config_changed.emit(config)
        else:
            self._worker.set_config(config)

    def stop_analysis(self) -> None:
        """Send ``stop`` to the engine of the active request, if any."""
        request_id = self._pending_request_id
        self._pending_request_id = None
        if request_id is not None and self._is_started:
            # Called directly: the worker thread is busy inside the session loop.
            self._worker.cancel(request_id)

    def _on_worker_best_moves(self, request_id: int, payloads_obj: object) -> None:
        if self._is_shutting_down:
            return
        if request_id != self._pending_request_id:
            return
        if not isinstance(payloads_obj, list):
            return
        self._on_best_moves(payloads_obj)

    def _on_worker_finished(self, request_id: int, outcome: str) -> None:
        if self._is_shutting_down:
            return
        if request_id != self._pending_request_id:
            return
        self._pending_request_id = None
        self._on_finished(outcome)

    def _on_worker_failed(self, request_id: int, message: str) -> None:
        if self._is_shutting_down:
            return
        if request_id != self._pending_request_id:
            return
        self._pending_request_id = None
        self._on_failed(message)

    def _on_worker_engine_exited(self, request_id: int, returncode: int) -> None:
        if returncode != 0:
            _LOGGER.warning(
                "Engine for request %d exited with status %d", request_id, returncode
            )
