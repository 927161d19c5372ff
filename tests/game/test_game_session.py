"""Tests for GameSession turn handling and events."""

from __future__ import annotations

import chess

from kibitz.game.session import GamePhase, GameSession


class TestGameSession:
    def test_initial_state(self) -> None:
        game = GameSession()
        assert game.fen == chess.STARTING_FEN
        assert game.phase == GamePhase.AWAITING_MOVE
        assert not game.is_engine_turn
        assert game.moves() == ()

    def test_player_move_hands_turn_to_engine(self) -> None:
        game = GameSession()
        seen: list[tuple[str, str]] = []
        game.events.on_move.append(lambda move, san: seen.append((move.uci(), san)))

        assert game.submit_move("e2", "e4")

        assert seen == [("e2e4", "e4")]
        assert game.phase == GamePhase.THINKING
        assert not game.submit_move("e7", "e5")

    def test_engine_move_must_be_legal(self) -> None:
        game = GameSession()
        game.submit_move("e2", "e4")

        assert not game.apply_engine_move(None)
        assert not game.apply_engine_move(chess.Move.from_uci("e2e4"))
        assert game.apply_engine_move(chess.Move.from_uci("c7c5"))
        assert game.history() == ["e4", "c5"]

    def test_playing_black_engine_moves_first(self) -> None:
        game = GameSession(player_color=chess.BLACK)
        assert game.is_engine_turn
        assert not game.submit_move("e2", "e4")
        assert game.apply_engine_move(chess.Move.from_uci("d2d4"))
        assert game.submit_move("d7", "d5")

    def test_checkmate_ends_game(self) -> None:
        game = GameSession(player_color=chess.BLACK)
        results: list[str] = []
        game.events.on_game_over.append(results.append)

        game.apply_engine_move(chess.Move.from_uci("f2f3"))
        game.submit_move("e7", "e5")
        game.apply_engine_move(chess.Move.from_uci("g2g4"))
        game.submit_move("d8", "h4")

        assert results == ["Black wins by checkmate"]
        assert game.phase == GamePhase.GAME_OVER
        assert not game.is_engine_turn
        assert game.in_check
        assert not game.apply_engine_move(chess.Move.from_uci("a2a3"))

    def test_promotion_defaults_to_queen(self) -> None:
        game = GameSession()
        game._board = chess.Board("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")

        assert game.submit_move("a7", "a8")
        assert game.history()[-1] == "a8=Q+"

    def test_new_game_resets_and_notifies(self) -> None:
        game = GameSession()
        colors: list[chess.Color] = []
        game.events.on_new_game.append(colors.append)
        game.submit_move("e2", "e4")

        game.new_game(chess.BLACK)

        assert colors == [chess.BLACK]
        assert game.moves() == ()
        assert game.player_color == chess.BLACK
        assert game.phase == GamePhase.THINKING

    def test_board_is_a_copy(self) -> None:
        game = GameSession()
        board = game.board
        board.push_san("e4")
        assert game.fen == chess.STARTING_FEN
