from __future__ import annotations

import pytest

from chess_rules.engine.move import str_to_square
from chess_rules.engine.pieces import Color, Piece, PieceKind
from chess_rules.engine.position import STARTPOS_FEN, Position


def test_startpos_round_trip() -> None:
    p = Position.from_fen(STARTPOS_FEN)
    assert p.to_fen() == STARTPOS_FEN
    assert Position.starting() == p


@pytest.mark.parametrize(
    "fen",
    [
        # Mixed pieces and empty squares, some castling rights
        "r1bqkbnr/pppp1ppp/2n5/4p3/3P4/5N2/PPP1PPPP/RNBQKB1R b KQ - 2 3",
        # No castling rights, ep target present on rank 3 or 6
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b - e3 0 1",
        "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq e6 0 2",
        # All castling rights
        "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1",
    ],
)
def test_round_trip_various_positions(fen: str) -> None:
    assert Position.from_fen(fen).to_fen() == fen


def test_castling_field_is_normalized() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w qkQK - 0 1")
    assert p.to_fen().split()[2] == "KQkq"


def test_squares_are_rank_major_from_white() -> None:
    p = Position.starting()
    assert p.piece_at(str_to_square("e1")) == Piece(Color.WHITE, PieceKind.KING)
    assert p.piece_at(str_to_square("d8")) == Piece(Color.BLACK, PieceKind.QUEEN)
    assert p.piece_at(str_to_square("a2")) == Piece(Color.WHITE, PieceKind.PAWN)
    assert p.piece_at(str_to_square("e4")) is None
    assert p.king_square(Color.BLACK) == str_to_square("e8")


def test_en_passant_target_records_pawn_color() -> None:
    p = Position.from_fen("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1")
    assert p.en_passant is not None
    assert p.en_passant.square == str_to_square("e3")
    assert p.en_passant.color is Color.WHITE


def test_king_moved_flag_derived_from_castling_field() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w k - 0 1")
    assert p.castling.white.king_moved is True
    assert p.castling.black.king_moved is False
    assert p.castling.black.kingside and not p.castling.black.queenside


def test_fingerprint_is_layout_and_side_only() -> None:
    a = Position.from_fen("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
    b = Position.from_fen("4k3/8/8/8/8/8/8/4K3 w - - 17 40")
    c = Position.from_fen("4k3/8/8/8/8/8/8/4K3 b - - 0 1")
    assert a.fingerprint() == b.fingerprint()
    assert a.fingerprint() != c.fingerprint()


@pytest.mark.parametrize(
    "fen",
    [
        "",  # empty
        "8/8/8/8/8/8/8 w - - 0 1",  # not enough ranks
        "4k3/8/8/8/8/8/8/4K3 w - - 0",  # missing fields
        "4k3/8/8/8/8/8/8/4K3 x - - 0 1",  # bad side to move
        "4k3/8/8/8/8/8/8/4K3 w A - 0 1",  # bad castling
        "4k3/8/8/8/8/8/8/4K3 w - z9 0 1",  # bad ep square
        "4k3/8/8/8/8/8/8/4K3 w - e4 0 1",  # ep square on the wrong rank
        "4k3/8/8/8/8/8/8/4K3 w - - -1 1",  # bad halfmove
        "4k3/8/8/8/8/8/8/4K3 w - - 0 0",  # bad fullmove
        "9/8/8/8/8/8/8/8 w - - 0 1",  # too many squares
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",  # bad piece
        "8/8/8/8/8/8/8/R3K3 w - - 0 1",  # no black king
        "4k3/8/8/8/8/8/8/K3K3 w - - 0 1",  # two white kings
        "8/8/8/8/8/8/8/8 w - - 0 1",  # empty board
    ],
)
def test_invalid_fen_raises(fen: str) -> None:
    with pytest.raises(ValueError):
        Position.from_fen(fen)
