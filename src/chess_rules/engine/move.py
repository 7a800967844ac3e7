from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .pieces import PROMOTION_KINDS, PieceKind


Square = Tuple[int, int]

FILES = "abcdefgh"


@dataclass(frozen=True)
class MoveRequest:
    """A move as proposed by the host.

    Attributes:
        from_sq (Square): Origin square as ``(rank, file)``.
        to_sq (Square): Destination square as ``(rank, file)``.
        promotion (Optional[PieceKind]): Promotion choice, only meaningful
            when a pawn reaches the last rank. May be left out and supplied
            later through the pending-promotion flow.
    """

    from_sq: Square
    to_sq: Square
    promotion: Optional[PieceKind] = None

    def to_uci(self) -> str:
        """Serialize the move into long algebraic form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = self.promotion.value.lower() if self.promotion is not None else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo


def parse_uci(uci: str) -> MoveRequest:
    """Parse a long algebraic move string.

    Args:
        uci (str): Move such as ``"e2e4"`` or ``"e7e8q"``.

    Returns:
        MoveRequest: Parsed request.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[PieceKind] = None
    if len(uci) == 5:
        promo = parse_promotion(uci[4])
    return MoveRequest(from_sq, to_sq, promo)


def parse_promotion(letter: str) -> PieceKind:
    """Map a promotion letter (``q``, ``r``, ``b``, ``n``) to a piece kind.

    Raises:
        ValueError: If ``letter`` does not name a promotion piece.
    """
    try:
        kind = PieceKind(letter.upper())
    except ValueError as e:
        raise ValueError(f"invalid promotion piece: {letter!r}") from e
    if kind not in PROMOTION_KINDS:
        raise ValueError(f"invalid promotion piece: {letter!r}")
    return kind


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a ``(rank, file)`` square.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: Zero-based ``(rank, file)``; ``"a1"`` is ``(0, 0)``.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return int(s[1]) - 1, ord(s[0]) - ord("a")


def square_to_str(sq: Square) -> str:
    """Convert a ``(rank, file)`` square into algebraic notation.

    Raises:
        ValueError: If ``sq`` is off the board.
    """
    if not is_on_board(sq):
        raise ValueError(f"invalid square: {sq!r}")
    rank, file = sq
    return FILES[file] + str(rank + 1)


def is_on_board(sq: object) -> bool:
    if not isinstance(sq, tuple) or len(sq) != 2:
        return False
    rank, file = sq
    if not isinstance(rank, int) or not isinstance(file, int):
        return False
    return 0 <= rank < 8 and 0 <= file < 8
