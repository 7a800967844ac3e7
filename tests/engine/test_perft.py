from __future__ import annotations

import pytest

from chess_rules.engine.perft import perft
from chess_rules.engine.position import Position


KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"
POSITION_3 = "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1"


@pytest.mark.parametrize("depth, expected", [(0, 1), (1, 20), (2, 400)])
def test_perft_startpos(depth: int, expected: int) -> None:
    assert perft(Position.starting(), depth) == expected


@pytest.mark.slow
def test_perft_startpos_depth3() -> None:
    assert perft(Position.starting(), 3) == 8902


@pytest.mark.parametrize("depth, expected", [(1, 48), (2, 2039)])
def test_perft_kiwipete(depth: int, expected: int) -> None:
    assert perft(Position.from_fen(KIWIPETE), depth) == expected


@pytest.mark.parametrize("depth, expected", [(1, 14), (2, 191)])
def test_perft_position_3(depth: int, expected: int) -> None:
    assert perft(Position.from_fen(POSITION_3), depth) == expected


def test_perft_rejects_negative_depth() -> None:
    with pytest.raises(ValueError):
        perft(Position.starting(), -1)
