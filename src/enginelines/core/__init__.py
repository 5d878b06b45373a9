"""Core domain layer: the starting position and move replay.

Quick start::

    from enginelines.core import AnalysisPosition, STARTING_FEN

    pos = AnalysisPosition(STARTING_FEN)
    pos.replay(["e2e4", "e7e5"])  # ["e4", "e5"]
"""

from enginelines.core.position import STARTING_FEN, AnalysisPosition, IllegalMoveError

__all__ = [
    "STARTING_FEN",
    "AnalysisPosition",
    "IllegalMoveError",
]
