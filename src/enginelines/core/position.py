"""AnalysisPosition: the analyzed root position and UCI to SAN replay."""

from __future__ import annotations

from collections.abc import Iterable

import chess

STARTING_FEN = chess.STARTING_FEN


class IllegalMoveError(ValueError):
    """Raised when a UCI token cannot be played in the current position."""


class AnalysisPosition:
    """Immutable root position of one analysis request.

    Wraps a :class:`chess.Board`. The side to move is read once at
    construction; replays always start from a private copy so the root is
    never mutated.
    """

    __slots__ = ("_board", "_white_to_move")

    def __init__(self, fen: str = STARTING_FEN) -> None:
        # chess.Board raises ValueError on a malformed FEN.
        self._board = chess.Board(fen)
        self._white_to_move = self._board.turn == chess.WHITE

    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def white_to_move(self) -> bool:
        return self._white_to_move

    def replay(self, uci_moves: Iterable[str]) -> list[str]:
        """Play *uci_moves* in order and return their SAN.

        Raises :class:`IllegalMoveError` on the first token that is
        malformed or illegal in context; nothing is returned for the
        moves before it.
        """
        board = self._board.copy(stack=False)
        san_moves: list[str] = []
        for token in uci_moves:
            try:
                move = board.parse_uci(token)
            except ValueError as exc:
                raise IllegalMoveError(f"{token!r} in {board.fen()}") from exc
            if not move:
                # Null moves ("0000") parse but are not playable.
                raise IllegalMoveError(f"{token!r} in {board.fen()}")
            san_moves.append(board.san_and_push(move))
        return san_moves

    def __repr__(self) -> str:
        return f"AnalysisPosition({self.fen!r})"
