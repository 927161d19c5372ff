"""Human-readable game-over texts."""

from __future__ import annotations

import chess


def game_over_text(board: chess.Board) -> str | None:
    """Describe how the game on *board* ended, or ``None`` if it has not."""
    if board.is_checkmate():
        winner = "Black" if board.turn == chess.WHITE else "White"
        return f"{winner} wins by checkmate"
    if board.is_stalemate():
        return "Stalemate"
    if board.is_repetition(3):
        return "Draw by repetition"
    if board.is_insufficient_material():
        return "Draw (insufficient material)"
    if board.can_claim_fifty_moves() or board.is_seventyfive_moves():
        return "Draw"
    return None


def game_over_title(text: str | None, player_color: chess.Color) -> str:
    """Headline for the game-over dialog from the player's point of view."""
    if not text:
        return ""
    player = "White" if player_color == chess.WHITE else "Black"
    if text.startswith(("White wins", "Black wins")):
        return "You Win!" if text.startswith(player) else "You Lost"
    return "Game Over"
