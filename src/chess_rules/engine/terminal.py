from __future__ import annotations

from typing import List, Sequence, Tuple

from .attacks import is_king_in_check
from .move import Square
from .pieces import Color, PieceKind
from .position import (
    DRAW_FIFTY_MOVE,
    DRAW_INSUFFICIENT_MATERIAL,
    DRAW_REPETITION,
    DRAW_STALEMATE,
    GameStatus,
    Position,
)
from .validation import has_legal_move


FIFTY_MOVE_LIMIT = 50
REPETITION_COUNT = 3
MIN_REPETITION_HISTORY = 5


def evaluate(position: Position, history: Sequence[str]) -> GameStatus:
    """Decide whether the game is over after a completed move.

    Args:
        position (Position): Position after the move (and after promotion, if
            one was pending).
        history (Sequence[str]): Fingerprints of every position reached so far,
            already including ``position``'s own.

    Returns:
        GameStatus: The first matching result in this order: an existing
        king-capture win, fifty-move rule, threefold repetition, stalemate,
        insufficient material. Active when none apply.
    """
    if not position.status.is_active:
        return position.status
    if position.halfmove_clock >= FIFTY_MOVE_LIMIT:
        return GameStatus.draw(DRAW_FIFTY_MOVE)
    if is_threefold_repetition(history):
        return GameStatus.draw(DRAW_REPETITION)
    if is_stalemate(position):
        return GameStatus.draw(DRAW_STALEMATE)
    if has_insufficient_material(position):
        return GameStatus.draw(DRAW_INSUFFICIENT_MATERIAL)
    return GameStatus.active()


def is_threefold_repetition(history: Sequence[str]) -> bool:
    """True if the latest fingerprint occurs at least three times in ``history``."""
    if len(history) < MIN_REPETITION_HISTORY:
        return False
    current = history[-1]
    return history.count(current) >= REPETITION_COUNT


def is_stalemate(position: Position) -> bool:
    """Side to move is not in check and has no legal move."""
    side = position.side_to_move
    if is_king_in_check(side, position):
        return False
    return not has_legal_move(position)


def has_insufficient_material(position: Position) -> bool:
    """Detect the bare-minimum drawn material configurations.

    Covered: K vs K, K vs K+N, K vs K+B, and K+B vs K+B with both bishops on
    squares of the same parity. Anything else (two knights included) is
    considered sufficient.
    """
    white = _non_king_material(position, Color.WHITE)
    black = _non_king_material(position, Color.BLACK)

    if not white and not black:
        return True
    for lone, other in ((white, black), (black, white)):
        if not lone and len(other) == 1 and other[0][1] in (PieceKind.KNIGHT, PieceKind.BISHOP):
            return True
    if (
        len(white) == 1
        and len(black) == 1
        and white[0][1] is PieceKind.BISHOP
        and black[0][1] is PieceKind.BISHOP
    ):
        return _square_parity(white[0][0]) == _square_parity(black[0][0])
    return False


def _non_king_material(position: Position, color: Color) -> List[Tuple[Square, PieceKind]]:
    return [
        (sq, piece.kind)
        for sq, piece in position.pieces(color)
        if piece.kind is not PieceKind.KING
    ]


def _square_parity(sq: Square) -> int:
    return (sq[0] + sq[1]) % 2
