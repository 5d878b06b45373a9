"""Parsing of UCI ``info`` lines into :class:`SearchInfo` records.

Example input::

    info depth 12 seldepth 17 multipv 1 score cp 31 nodes 204833 nps 1024165
    tbhits 0 time 200 pv e2e4 e7e5 g1f3

Malformed lines are common in real engine output, so every function here
returns ``None`` instead of raising.
"""

from __future__ import annotations

import logging

from enginelines.core.position import AnalysisPosition, IllegalMoveError
from enginelines.engine.models import BestMovePayload, Centipawn, MateIn, Score, SearchInfo

_LOGGER = logging.getLogger(__name__)

# Keywords that may follow the pv and end the move list.
_INFO_KEYWORDS = frozenset(
    {
        "depth",
        "seldepth",
        "time",
        "nodes",
        "multipv",
        "score",
        "currmove",
        "currmovenumber",
        "hashfull",
        "nps",
        "tbhits",
        "sbhits",
        "cpuload",
        "string",
        "refutation",
        "currline",
        "wdl",
    }
)


def _parse_int(tokens: list[str], index: int) -> int | None:
    if index >= len(tokens):
        return None
    try:
        return int(tokens[index])
    except ValueError:
        return None


def parse_info_line(line: str) -> SearchInfo | None:
    """Parse one engine line, returning ``None`` if it is not a pv report."""
    tokens = line.split()
    if not tokens or tokens[0] != "info" or "pv" not in tokens:
        return None

    depth: int | None = None
    score: Score | None = None
    multipv = 1
    nps = 0
    pv: list[str] = []

    i = 1
    while i < len(tokens):
        token = tokens[i]
        if token == "depth":
            depth = _parse_int(tokens, i + 1)
            if depth is None or depth < 0:
                return None
            i += 2
        elif token == "score":
            kind = tokens[i + 1] if i + 1 < len(tokens) else ""
            value = _parse_int(tokens, i + 2)
            if value is None:
                return None
            if kind == "cp":
                score = Centipawn(value)
            elif kind == "mate":
                score = MateIn(value)
            else:
                return None
            i += 3
        elif token == "multipv":
            parsed = _parse_int(tokens, i + 1)
            if parsed is None or parsed < 1:
                return None
            multipv = parsed
            i += 2
        elif token == "nps":
            parsed = _parse_int(tokens, i + 1)
            if parsed is None or parsed < 0:
                return None
            nps = parsed
            i += 2
        elif token == "pv":
            i += 1
            while i < len(tokens) and tokens[i] not in _INFO_KEYWORDS:
                pv.append(tokens[i])
                i += 1
        elif token == "string":
            # Free-form text up to end of line.
            break
        else:
            i += 1

    if depth is None or score is None or not pv:
        return None
    return SearchInfo(depth=depth, score=score, multipv=multipv, nps=nps, pv=tuple(pv))


class LineParser:
    """Per-session parser bound to the analyzed root position.

    Scores are flipped once here so every stored score is from White's
    point of view, whoever is to move at the root.
    """

    __slots__ = ("_position", "_engine", "_flip")

    def __init__(self, position: AnalysisPosition, engine: str) -> None:
        self._position = position
        self._engine = engine
        self._flip = not position.white_to_move

    def parse(self, line: str) -> SearchInfo | None:
        info = parse_info_line(line)
        if info is None or not self._flip:
            return info
        return SearchInfo(
            depth=info.depth,
            score=info.score.negated(),
            multipv=info.multipv,
            nps=info.nps,
            pv=info.pv,
        )

    def to_payload(self, info: SearchInfo) -> BestMovePayload | None:
        """Replay the pv from the root; ``None`` if any move is illegal."""
        try:
            san_moves = self._position.replay(info.pv)
        except IllegalMoveError as exc:
            _LOGGER.debug("Discarding pv %s: %s", " ".join(info.pv), exc)
            return None
        return BestMovePayload(
            engine=self._engine,
            depth=info.depth,
            score=info.score,
            san_moves=tuple(san_moves),
            uci_moves=info.pv,
            multipv=info.multipv,
            nps=info.nps,
        )
