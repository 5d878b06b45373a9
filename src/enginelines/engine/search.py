"""Analysis request/config models and the result sink protocol."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from enginelines.engine.models import BestMovePayload, ProcessExit

MIN_LINES = 1
MAX_LINES = 5

BestMovesSink = Callable[[Sequence["BestMovePayload"]], None]
DiagnosticSink = Callable[["ProcessExit"], None]
Clock = Callable[[], float]


@dataclass(slots=True, frozen=True)
class SessionConfig:
    """Emission throttling for a session.

    Args:
        debounce_ms: Minimum time between two emitted batches.
        min_depth: Shallowest depth whose batches are worth emitting.
    """

    debounce_ms: int = 300
    min_depth: int = 10

    def __post_init__(self) -> None:
        if self.debounce_ms < 0:
            raise ValueError("debounce_ms must be >= 0")
        if self.min_depth < 0:
            raise ValueError("min_depth must be >= 0")


@dataclass(slots=True, frozen=True)
class AnalysisRequest:
    """Everything needed to start one engine analysis.

    ``engine`` is an executable path, or a name under the application data
    directory when ``relative`` is set. ``caller`` tags every emitted
    payload.
    """

    engine: str
    fen: str
    depth: int
    lines: int
    threads: int = 1
    caller: str = ""
    relative: bool = False

    def __post_init__(self) -> None:
        if not MIN_LINES <= self.lines <= MAX_LINES:
            raise ValueError(
                f"lines must be between {MIN_LINES} and {MAX_LINES}, got {self.lines}"
            )
        if self.depth < 1:
            raise ValueError("Analysis depth must be >= 1")
        if self.threads < 1:
            raise ValueError("Thread count must be >= 1")

    def commands(self) -> Iterator[str]:
        """UCI commands that configure and start the search, in order."""
        yield f"position fen {self.fen}"
        yield f"setoption name Threads value {self.threads}"
        yield f"setoption name multipv value {self.lines}"
        yield f"go depth {self.depth}"
