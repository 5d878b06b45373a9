"""Data models for parsed engine output and emitted results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeAlias


@dataclass(slots=True, frozen=True)
class Centipawn:
    """Evaluation in hundredths of a pawn."""

    value: int

    def negated(self) -> Centipawn:
        return Centipawn(-self.value)

    def to_dict(self) -> dict[str, int]:
        return {"cp": self.value}


@dataclass(slots=True, frozen=True)
class MateIn:
    """Forced mate in *moves*; negative when the other side mates."""

    moves: int

    def negated(self) -> MateIn:
        return MateIn(-self.moves)

    def to_dict(self) -> dict[str, int]:
        return {"mate": self.moves}


Score: TypeAlias = Centipawn | MateIn


@dataclass(slots=True, frozen=True)
class SearchInfo:
    """One parsed ``info ... pv ...`` line."""

    depth: int
    score: Score
    multipv: int
    nps: int
    pv: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class BestMovePayload:
    """One finalized principal variation, ready for display."""

    engine: str
    depth: int
    score: Score
    san_moves: tuple[str, ...]
    uci_moves: tuple[str, ...]
    multipv: int
    nps: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys GUI consumers expect."""
        return {
            "engine": self.engine,
            "depth": self.depth,
            "score": self.score.to_dict(),
            "sanMoves": list(self.san_moves),
            "uciMoves": list(self.uci_moves),
            "multipv": self.multipv,
            "nps": self.nps,
        }


class SessionOutcome(StrEnum):
    """How a session's loop ended without a fatal error."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class ProcessExit:
    """Diagnostic event reported when the engine process exits."""

    caller: str
    returncode: int

    @property
    def abnormal(self) -> bool:
        return self.returncode != 0
