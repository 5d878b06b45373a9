"""Subprocess wrapper for an external UCI engine."""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
from collections.abc import Callable
from pathlib import Path

from enginelines.engine.models import ProcessExit

_LOGGER = logging.getLogger(__name__)

# Keeps a console window from flashing up for console engines on Windows.
_CREATE_NO_WINDOW = 0x08000000


class EngineSessionError(RuntimeError):
    """Fatal failure that aborts an engine session."""


class EngineSpawnError(EngineSessionError):
    """The engine executable could not be started."""


class EngineWriteError(EngineSessionError):
    """A command could not be written to the engine's stdin."""


class EngineProcess:
    """Running engine with all three standard streams piped.

    stdout is read by exactly one consumer through :meth:`readline`;
    stderr is drained on a daemon thread and logged at DEBUG level.
    """

    __slots__ = ("_proc", "_label", "_stderr_thread", "_exit_thread")

    def __init__(self, proc: subprocess.Popen[str], *, label: str = "engine") -> None:
        self._proc = proc
        self._label = label
        self._stderr_thread = threading.Thread(
            target=self._drain_stderr,
            name=f"{label}-stderr",
            daemon=True,
        )
        self._stderr_thread.start()
        self._exit_thread: threading.Thread | None = None

    @classmethod
    def spawn(cls, path: str | Path, *args: str, label: str = "engine") -> EngineProcess:
        """Start *path* with *args*; raise :class:`EngineSpawnError` on failure."""
        creationflags = _CREATE_NO_WINDOW if sys.platform == "win32" else 0
        try:
            proc = subprocess.Popen(
                [str(path), *args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                creationflags=creationflags,
            )
        except (OSError, ValueError) as exc:
            raise EngineSpawnError(f"Failed to start engine {path}: {exc}") from exc
        _LOGGER.info("Started engine %s (pid %d)", path, proc.pid)
        return cls(proc, label=label)

    @property
    def pid(self) -> int:
        return self._proc.pid

    def send(self, command: str) -> None:
        """Write one newline-terminated command and flush."""
        stdin = self._proc.stdin
        if stdin is None:
            raise EngineWriteError(f"{self._label}: stdin is not available")
        try:
            stdin.write(command + "\n")
            stdin.flush()
        except (OSError, ValueError) as exc:
            raise EngineWriteError(f"{self._label}: failed to send {command!r}: {exc}") from exc
        _LOGGER.debug("%s <- %s", self._label, command)

    def readline(self) -> str | None:
        """Next stdout line without its terminator; ``None`` at end of stream.

        Raises :class:`OSError` or :class:`ValueError` on a broken stream.
        """
        stdout = self._proc.stdout
        if stdout is None:
            return None
        line = stdout.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def watch_exit(self, on_exit: Callable[[ProcessExit], None] | None = None) -> None:
        """Wait for the process on a daemon thread and report how it ended."""
        if self._exit_thread is not None:
            return

        def _wait() -> None:
            returncode = self._proc.wait()
            event = ProcessExit(caller=self._label, returncode=returncode)
            if event.abnormal:
                _LOGGER.warning("%s exited with status %d", self._label, returncode)
            else:
                _LOGGER.info("%s exited", self._label)
            if on_exit is not None:
                on_exit(event)

        self._exit_thread = threading.Thread(
            target=_wait,
            name=f"{self._label}-exit",
            daemon=True,
        )
        self._exit_thread.start()

    def close_input(self) -> None:
        """Close stdin so the engine reads EOF and exits on its own."""
        stdin = self._proc.stdin
        if stdin is None or stdin.closed:
            return
        try:
            stdin.close()
        except OSError as exc:
            _LOGGER.debug("%s: closing stdin failed: %s", self._label, exc)

    def _drain_stderr(self) -> None:
        stderr = self._proc.stderr
        if stderr is None:
            return
        try:
            for line in stderr:
                _LOGGER.debug("%s stderr: %s", self._label, line.rstrip())
        except (OSError, ValueError):
            return
