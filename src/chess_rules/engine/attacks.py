from __future__ import annotations

from .move import Square
from .pieces import Color
from .position import Position
from .validation import piece_can_reach


def is_square_under_attack(square: Square, defending_color: Color, position: Position) -> bool:
    """Return True if any piece of the other color could move onto ``square``.

    Each attacker is probed in neutral mode (no castling, no en passant, pawns
    threaten diagonals only), independent of whose turn it is.
    """
    for from_sq, piece in position.pieces(defending_color.opposite()):
        if from_sq == square:
            continue
        if piece_can_reach(position, piece, from_sq, square, neutral=True):
            return True
    return False


def is_king_in_check(color: Color, position: Position) -> bool:
    """Return True if ``color``'s king is attacked. False when it has no king."""
    king_sq = position.king_square(color)
    if king_sq is None:
        return False
    return is_square_under_attack(king_sq, color, position)
