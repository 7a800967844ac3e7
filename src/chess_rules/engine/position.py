from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .move import Square, is_on_board, square_to_str, str_to_square
from .pieces import Color, Piece, PieceKind


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

HOME_RANK = {Color.WHITE: 0, Color.BLACK: 7}
PAWN_START_RANK = {Color.WHITE: 1, Color.BLACK: 6}
PROMOTION_RANK = {Color.WHITE: 7, Color.BLACK: 0}
FORWARD = {Color.WHITE: 1, Color.BLACK: -1}

KING_FILE = 4
KINGSIDE_ROOK_FILE = 7
QUEENSIDE_ROOK_FILE = 0

Board = Tuple[Tuple[Optional[Piece], ...], ...]


class GameState(Enum):
    ACTIVE = "active"
    WON = "won"
    DRAW = "draw"


DRAW_FIFTY_MOVE = "fifty-move rule"
DRAW_REPETITION = "repetition"
DRAW_STALEMATE = "stalemate"
DRAW_INSUFFICIENT_MATERIAL = "insufficient material"
DRAW_AGREEMENT = "agreement"


@dataclass(frozen=True)
class GameStatus:
    """Active, Won(color) or Draw(reason). Terminal once it leaves Active."""

    state: GameState = GameState.ACTIVE
    winner: Optional[Color] = None
    reason: Optional[str] = None

    @classmethod
    def active(cls) -> "GameStatus":
        return cls()

    @classmethod
    def won(cls, color: Color) -> "GameStatus":
        return cls(GameState.WON, winner=color)

    @classmethod
    def draw(cls, reason: str) -> "GameStatus":
        return cls(GameState.DRAW, reason=reason)

    @property
    def is_active(self) -> bool:
        return self.state is GameState.ACTIVE


@dataclass(frozen=True)
class SideCastling:
    kingside: bool = True
    queenside: bool = True
    king_moved: bool = False


@dataclass(frozen=True)
class CastlingRights:
    """Castling availability for both colors.

    Rights only ever go from available to unavailable; ``revoke`` cannot
    restore them.
    """

    white: SideCastling = field(default_factory=SideCastling)
    black: SideCastling = field(default_factory=SideCastling)

    def for_color(self, color: Color) -> SideCastling:
        return self.white if color is Color.WHITE else self.black

    def revoke(
        self,
        color: Color,
        *,
        kingside: bool = False,
        queenside: bool = False,
        king_moved: bool = False,
    ) -> "CastlingRights":
        side = self.for_color(color)
        updated = SideCastling(
            kingside=side.kingside and not kingside,
            queenside=side.queenside and not queenside,
            king_moved=side.king_moved or king_moved,
        )
        if color is Color.WHITE:
            return replace(self, white=updated)
        return replace(self, black=updated)

    def to_fen(self) -> str:
        out = ""
        if self.white.kingside:
            out += "K"
        if self.white.queenside:
            out += "Q"
        if self.black.kingside:
            out += "k"
        if self.black.queenside:
            out += "q"
        return out or "-"


@dataclass(frozen=True)
class EnPassantTarget:
    """Square skipped by a pawn's double advance, plus that pawn's color."""

    square: Square
    color: Color


@dataclass(frozen=True)
class Position:
    """Immutable snapshot of a game.

    Notes:
    - ``squares[rank][file]``; rank 0 is White's back rank, file 0 the a-file.
    - Every transition builds a new Position; nothing is mutated in place.
    - ``pending_promotion`` holds the square of a pawn that reached the last
      rank and is waiting for the host to choose its replacement.
    """

    squares: Board
    side_to_move: Color = Color.WHITE
    castling: CastlingRights = field(default_factory=CastlingRights)
    en_passant: Optional[EnPassantTarget] = None
    halfmove_clock: int = 0
    fullmove_count: int = 1
    status: GameStatus = field(default_factory=GameStatus.active)
    pending_promotion: Optional[Square] = None

    @classmethod
    def starting(cls) -> "Position":
        """Return the standard chess starting position."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def empty(cls, **kwargs) -> "Position":
        board: Board = tuple(tuple(None for _ in range(8)) for _ in range(8))
        return cls(squares=board, **kwargs)

    @classmethod
    def from_fen(cls, fen: str) -> "Position":
        """Create a position from a Forsyth-Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Position: Active position initialized from ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square, or move counters, or either side does not have
                exactly one king.

        Notes:
            The king-moved flags are derived from the castling field: a color
            with no castling right left is treated as having moved its king.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        rows: List[List[Optional[Piece]]] = [[None] * 8 for _ in range(8)]
        for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if file_idx >= 8:
                        raise ValueError("too many squares in FEN rank")
                    rows[rank_idx][file_idx] = Piece.from_symbol(ch)
                    file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")

        if castling != "-":
            for ch in castling:
                if ch not in "KQkq":
                    raise ValueError("invalid castling rights")
        else:
            castling = ""
        rights = CastlingRights(
            white=SideCastling(
                kingside="K" in castling,
                queenside="Q" in castling,
                king_moved=not ("K" in castling or "Q" in castling),
            ),
            black=SideCastling(
                kingside="k" in castling,
                queenside="q" in castling,
                king_moved=not ("k" in castling or "q" in castling),
            ),
        )

        en_passant: Optional[EnPassantTarget] = None
        if ep != "-":
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # Target sits on rank 3 behind a white pawn or rank 6 behind a black one
            if ep_square[0] == 2:
                en_passant = EnPassantTarget(ep_square, Color.WHITE)
            elif ep_square[0] == 5:
                en_passant = EnPassantTarget(ep_square, Color.BLACK)
            else:
                raise ValueError("invalid en passant square rank")

        try:
            halfmove_clock = int(halfmove)
            fullmove_count = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_count <= 0:
            raise ValueError("invalid move counters in FEN")

        for color in Color:
            king = Piece(color, PieceKind.KING)
            if sum(row.count(king) for row in rows) != 1:
                raise ValueError("FEN must have exactly one king per side")

        return cls(
            squares=tuple(tuple(row) for row in rows),
            side_to_move=Color(stm),
            castling=rights,
            en_passant=en_passant,
            halfmove_clock=halfmove_clock,
            fullmove_count=fullmove_count,
        )

    def to_fen(self) -> str:
        """Serialize the position into a FEN string.

        Returns:
            str: FEN string; the last field carries ``fullmove_count`` as is.
        """
        stm = self.side_to_move.value
        castling = self.castling.to_fen()
        ep = square_to_str(self.en_passant.square) if self.en_passant is not None else "-"
        return f"{self.placement()} {stm} {castling} {ep} {self.halfmove_clock} {self.fullmove_count}"

    def placement(self) -> str:
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):  # 7..0 maps to ranks 8..1
            run = 0
            row = []
            for piece in self.squares[rank_idx]:
                if piece is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(piece.symbol())
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        return "/".join(ranks_str)

    def fingerprint(self) -> str:
        """Board layout plus side to move, used for repetition detection."""
        return f"{self.placement()} {self.side_to_move.value}"

    def piece_at(self, sq: Square) -> Optional[Piece]:
        rank, file = sq
        return self.squares[rank][file]

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` for occupied squares, optionally by color."""
        for rank in range(8):
            for file in range(8):
                piece = self.squares[rank][file]
                if piece is not None and (color is None or piece.color is color):
                    yield (rank, file), piece

    def king_square(self, color: Color) -> Optional[Square]:
        target = Piece(color, PieceKind.KING)
        for sq, piece in self.pieces(color):
            if piece == target:
                return sq
        return None

    def with_board(self, changes: Dict[Square, Optional[Piece]], **fields) -> "Position":
        """Return a copy with the given squares overwritten and fields replaced."""
        rows = [list(row) for row in self.squares]
        for sq, piece in changes.items():
            if not is_on_board(sq):
                raise ValueError(f"invalid square: {sq!r}")
            rows[sq[0]][sq[1]] = piece
        return replace(self, squares=tuple(tuple(row) for row in rows), **fields)
