from __future__ import annotations

import pytest

from chess_rules.engine.move import str_to_square
from chess_rules.engine.position import Position
from chess_rules.engine.validation import is_legal_pseudo_move


def ok(p: Position, uci: str) -> bool:
    return is_legal_pseudo_move(str_to_square(uci[:2]), str_to_square(uci[2:4]), p)


def test_rook_stops_at_blockers() -> None:
    # White rook a1, black pawn a5, white king e1
    p = Position.from_fen("4k3/8/8/p7/8/8/8/R3K3 w - - 0 1")
    assert ok(p, "a1a4")
    assert ok(p, "a1a5")  # capture
    assert not ok(p, "a1a6")  # behind the pawn
    assert ok(p, "a1d1")
    assert not ok(p, "a1e1")  # own king
    assert not ok(p, "a1f1")  # through own king
    assert not ok(p, "a1b2")  # not orthogonal


def test_bishop_blocked_by_own_piece() -> None:
    p = Position.from_fen("4k3/8/8/8/8/2P5/8/B3K3 w - - 0 1")
    assert ok(p, "a1b2")
    assert not ok(p, "a1c3")
    assert not ok(p, "a1d4")
    assert not ok(p, "a1a2")


def test_queen_lines() -> None:
    p = Position.from_fen("4k3/8/8/8/8/8/8/3QK3 w - - 0 1")
    assert ok(p, "d1d8")
    assert ok(p, "d1a4")
    assert ok(p, "d1h5")
    assert ok(p, "d1a1")
    assert not ok(p, "d1e3")


# Queen on d4 surrounded by a mix of blockers of both colors
CROWDED = "4k3/1p6/5n2/2P5/3Q1p2/8/1N1B4/4K3 w - - 0 1"


def _between(a, b):
    dr = (b[0] > a[0]) - (b[0] < a[0])
    df = (b[1] > a[1]) - (b[1] < a[1])
    r, f = a[0] + dr, a[1] + df
    while (r, f) != b:
        yield (r, f)
        r += dr
        f += df


def test_sliding_moves_rejected_whenever_path_is_occupied() -> None:
    p = Position.from_fen(CROWDED)
    d4 = str_to_square("d4")
    for rank in range(8):
        for file in range(8):
            to = (rank, file)
            dr, df = rank - d4[0], file - d4[1]
            if to == d4 or not (dr == 0 or df == 0 or abs(dr) == abs(df)):
                continue
            blocked = any(p.piece_at(sq) is not None for sq in _between(d4, to))
            if blocked:
                assert not is_legal_pseudo_move(d4, to, p), to


def test_knight_accepts_exactly_the_knight_deltas() -> None:
    p = Position.from_fen("4k3/8/8/8/3N4/8/8/4K3 w - - 0 1")
    d4 = str_to_square("d4")
    deltas = {(1, 2), (2, 1), (-1, 2), (-2, 1), (1, -2), (2, -1), (-1, -2), (-2, -1)}
    accepted = set()
    for rank in range(8):
        for file in range(8):
            if is_legal_pseudo_move(d4, (rank, file), p):
                accepted.add((rank - d4[0], file - d4[1]))
    assert accepted == deltas


def test_knight_jumps_over_pieces_but_not_onto_own() -> None:
    p = Position.starting()
    assert ok(p, "g1f3")
    assert ok(p, "b1c3")
    assert not ok(p, "g1e2")


@pytest.mark.parametrize("uci", ["e1e2", "e1d2", "e1f1", "e1d1"])
def test_king_single_steps(uci: str) -> None:
    p = Position.from_fen("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
    assert ok(p, uci)


def test_king_cannot_step_two_without_castling() -> None:
    p = Position.from_fen("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
    assert not ok(p, "e1e3")
    assert not ok(p, "e1g1")
