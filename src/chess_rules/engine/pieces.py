from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Color(Enum):
    WHITE = "w"
    BLACK = "b"

    def opposite(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class PieceKind(Enum):
    """Piece kinds, valued by their uppercase FEN letter."""

    PAWN = "P"
    KNIGHT = "N"
    BISHOP = "B"
    ROOK = "R"
    QUEEN = "Q"
    KING = "K"


PROMOTION_KINDS = frozenset(
    {PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT}
)


@dataclass(frozen=True)
class Piece:
    color: Color
    kind: PieceKind

    def symbol(self) -> str:
        """Return the FEN letter: uppercase for White, lowercase for Black."""
        letter = self.kind.value
        return letter if self.color is Color.WHITE else letter.lower()

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        """Build a piece from its FEN letter.

        Raises:
            ValueError: If ``ch`` is not one of ``PNBRQKpnbrqk``.
        """
        try:
            kind = PieceKind(ch.upper())
        except ValueError as e:
            raise ValueError(f"invalid piece in FEN: {ch!r}") from e
        color = Color.WHITE if ch.isupper() else Color.BLACK
        return cls(color, kind)
