from __future__ import annotations

import pytest

from chess_rules.engine.game import GameSession, MoveResult
from chess_rules.engine.move import parse_uci, str_to_square
from chess_rules.engine.pieces import Color, PieceKind
from chess_rules.engine.position import STARTPOS_FEN, GameState, GameStatus


def propose(session: GameSession, uci: str):
    mv = parse_uci(uci)
    return session.propose_move(mv.from_sq, mv.to_sq, mv.promotion)


def test_new_session_snapshot() -> None:
    session = GameSession.new()
    assert session.to_fen() == STARTPOS_FEN
    assert session.status == GameStatus.active()
    assert len(session.legal_moves()) == 20
    assert not session.in_check()
    assert not session.draw_offered


def test_applied_move_records_history() -> None:
    session = GameSession.new()
    outcome = propose(session, "e2e4")
    assert outcome.accepted
    assert outcome.result is MoveResult.APPLIED
    assert session.history == [session.get_position().fingerprint()]
    assert session.move_history_uci() == ["e2e4"]


def test_rejections_do_not_change_state() -> None:
    session = GameSession.new()
    before = session.get_position()
    cases = {
        "e7e5": "not your turn",
        "e3e4": "no piece on origin square",
        "e2e5": "illegal move",
    }
    for uci, reason in cases.items():
        outcome = propose(session, uci)
        assert outcome.result is MoveResult.REJECTED
        assert outcome.reason == reason
    assert session.get_position() is before
    assert session.history == []
    assert session.move_log == []


def test_off_board_squares_rejected() -> None:
    session = GameSession.new()
    outcome = session.propose_move((8, 0), (7, 0))
    assert outcome.reason == "invalid square"


def test_invalid_promotion_kind_rejected() -> None:
    session = GameSession.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    outcome = session.propose_move(str_to_square("e7"), str_to_square("e8"), PieceKind.PAWN)
    assert outcome.reason == "invalid promotion piece"


def test_exposing_own_king_is_accepted_then_king_is_captured() -> None:
    # Bishop on e2 is pinned against the king by the rook on e7
    session = GameSession.from_fen("4k3/4r3/8/8/8/8/4B3/4K3 w - - 0 1")
    assert "e2d3" not in {m.to_uci() for m in session.legal_moves()}

    assert propose(session, "e2d3").result is MoveResult.APPLIED
    assert not session.in_check()  # black to move, white king hangs

    outcome = propose(session, "e7e1")
    assert outcome.effects is not None and outcome.effects.king_captured
    assert session.status == GameStatus.won(Color.BLACK)
    assert session.legal_moves() == []

    after = propose(session, "d3e4")
    assert after.result is MoveResult.REJECTED
    assert after.reason == "game is over"


def test_draw_offer_accept() -> None:
    session = GameSession.new()
    assert session.offer_draw()
    assert session.draw_offered_by is Color.WHITE
    assert not session.offer_draw()  # already outstanding

    blocked = propose(session, "e2e4")
    assert blocked.reason == "draw offer pending"

    assert session.accept_draw()
    assert session.status.state is GameState.DRAW
    assert session.status.reason == "agreement"
    assert not session.draw_offered
    assert not session.accept_draw()
    assert not session.offer_draw()


def test_draw_offer_decline_resumes_play() -> None:
    session = GameSession.new()
    assert not session.decline_draw()
    assert session.offer_draw()
    assert session.decline_draw()
    assert session.status.is_active
    assert propose(session, "e2e4").result is MoveResult.APPLIED
    assert session.offer_draw()
    assert session.draw_offered_by is Color.BLACK


def test_reset_session() -> None:
    session = GameSession.new()
    propose(session, "e2e4")
    session.offer_draw()
    session.reset_session()
    assert session.to_fen() == STARTPOS_FEN
    assert session.history == []
    assert session.move_history_uci() == []
    assert not session.draw_offered


def test_promotion_choice_on_a_non_promoting_move_is_rejected() -> None:
    session = GameSession.new()
    before = session.get_position()
    outcome = session.propose_move(str_to_square("e2"), str_to_square("e4"), PieceKind.QUEEN)
    assert outcome.result is MoveResult.REJECTED
    assert outcome.reason == "promotion not allowed"
    assert session.get_position() is before
    assert session.move_history_uci() == []

    # A rook on the last rank is not a pawn either
    session = GameSession.from_fen("4k3/8/8/8/8/8/R7/4K3 w - - 0 1")
    outcome = session.propose_move(str_to_square("a2"), str_to_square("a8"), PieceKind.QUEEN)
    assert outcome.reason == "promotion not allowed"


def test_session_from_fen_requires_one_king_per_side() -> None:
    for fen in ("8/8/8/8/8/8/8/R3K3 w - - 0 1", "4k3/8/8/8/8/8/8/K3K3 w - - 0 1"):
        with pytest.raises(ValueError):
            GameSession.from_fen(fen)
