"""Thin helpers over python-chess for move text conversion."""

from __future__ import annotations

import chess

_PROMOTION_SYMBOLS = ("n", "b", "r", "q")


def uci_to_san(fen: str, uci: str) -> str:
    """Convert a UCI move to SAN in *fen*, or return *uci* unchanged.

    Invalid FENs, malformed move text and illegal moves all fall back to the
    UCI string so a display never breaks on a bad engine line.
    """
    try:
        board = chess.Board(fen)
        move = chess.Move.from_uci(uci)
    except ValueError:
        return uci
    if not board.is_legal(move):
        return uci
    return board.san(move)


def move_from_squares(
    board: chess.Board,
    from_square: str,
    to_square: str,
    promotion: str | None = None,
) -> chess.Move | None:
    """Return the legal move *from_square* -> *to_square* on *board*, if any."""
    try:
        src = chess.parse_square(from_square)
        dst = chess.parse_square(to_square)
    except ValueError:
        return None

    piece_type = None
    if promotion:
        symbol = promotion.lower()
        if symbol not in _PROMOTION_SYMBOLS:
            return None
        piece_type = chess.PIECE_SYMBOLS.index(symbol)

    move = chess.Move(src, dst, promotion=piece_type)
    return move if board.is_legal(move) else None
