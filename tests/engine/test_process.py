"""Subprocess tests against the scripted fake engine."""

from __future__ import annotations

import sys
import threading
from collections.abc import Sequence
from pathlib import Path

import pytest

from enginelines.engine.models import BestMovePayload, ProcessExit, SessionOutcome
from enginelines.engine.process import EngineProcess, EngineSpawnError, EngineWriteError
from enginelines.engine.search import AnalysisRequest, SessionConfig
from enginelines.engine.session import EngineSession

_START = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def _spawn(script: Path, *args: str, label: str = "fake") -> EngineProcess:
    return EngineProcess.spawn(sys.executable, str(script), *args, label=label)


class TestEngineProcess:
    def test_spawn_missing_executable_raises(self, tmp_path: Path) -> None:
        with pytest.raises(EngineSpawnError):
            EngineProcess.spawn(tmp_path / "no-such-engine")

    def test_handshake(self, fake_engine_script: Path) -> None:
        proc = _spawn(fake_engine_script)
        assert proc.pid > 0
        proc.send("isready")
        assert proc.readline() == "readyok"
        proc.close_input()
        assert proc.readline() is None

    def test_exit_status_is_reported(self, fake_engine_script: Path) -> None:
        events: list[ProcessExit] = []
        done = threading.Event()

        def _on_exit(event: ProcessExit) -> None:
            events.append(event)
            done.set()

        proc = _spawn(fake_engine_script, "--exit-code", "3", label="sf")
        proc.watch_exit(_on_exit)
        proc.close_input()

        assert done.wait(10.0)
        assert events == [ProcessExit(caller="sf", returncode=3)]
        assert events[0].abnormal is True

    def test_send_after_close_raises_write_error(self, fake_engine_script: Path) -> None:
        proc = _spawn(fake_engine_script)
        proc.close_input()
        with pytest.raises(EngineWriteError):
            proc.send("isready")


class TestSessionWithFakeEngine:
    def _request(self, lines: int) -> AnalysisRequest:
        return AnalysisRequest(
            engine=sys.executable,
            fen=_START,
            depth=12,
            lines=lines,
            threads=2,
            caller="board",
        )

    def test_full_search_completes_at_bestmove(self, fake_engine_script: Path) -> None:
        batches: list[list[BestMovePayload]] = []
        session = EngineSession(
            self._request(3),
            on_best_moves=lambda payloads: batches.append(list(payloads)),
            config=SessionConfig(debounce_ms=0, min_depth=10),
            process_factory=lambda request, _path: _spawn(
                fake_engine_script, label=request.caller
            ),
        )

        assert session.run() == SessionOutcome.COMPLETED
        assert [b[0].depth for b in batches] == [10, 11, 12]
        assert [p.san_moves for p in batches[-1]] == [
            ("e4", "e5", "Nf3"),
            ("d4", "d5", "c4"),
            ("Nf3", "Nf6", "c4"),
        ]

    def test_cancel_sends_stop_once(self, fake_engine_script: Path, tmp_path: Path) -> None:
        log = tmp_path / "commands.log"
        batches: list[Sequence[BestMovePayload]] = []
        exited = threading.Event()
        session_box: list[EngineSession] = []

        def _sink(payloads: Sequence[BestMovePayload]) -> None:
            batches.append(payloads)
            session_box[0].cancel()
            session_box[0].cancel()

        session = EngineSession(
            self._request(2),
            on_best_moves=_sink,
            config=SessionConfig(debounce_ms=0, min_depth=10),
            on_diagnostic=lambda _event: exited.set(),
            process_factory=lambda request, _path: _spawn(
                fake_engine_script,
                "--wait-for-stop",
                "--log",
                str(log),
                label=request.caller,
            ),
        )
        session_box.append(session)

        assert session.run() == SessionOutcome.CANCELLED
        assert len(batches) == 1
        assert exited.wait(10.0)
        commands = log.read_text(encoding="utf-8").splitlines()
        assert commands == [
            f"position fen {_START}",
            "setoption name Threads value 2",
            "setoption name multipv value 2",
            "go depth 12",
            "stop",
        ]
