from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .move import MoveRequest, Square
from .pieces import PROMOTION_KINDS, Piece, PieceKind
from .position import (
    FORWARD,
    HOME_RANK,
    KINGSIDE_ROOK_FILE,
    PROMOTION_RANK,
    QUEENSIDE_ROOK_FILE,
    CastlingRights,
    EnPassantTarget,
    GameStatus,
    Position,
)


@dataclass(frozen=True)
class MoveEffects:
    """Side effects of an executed move, reported back to the host.

    Attributes:
        captured (Optional[Piece]): Piece removed from the board, if any.
        captured_square (Optional[Square]): Where it was removed from; differs
            from the destination for en passant.
        castled_rook (Optional[Tuple[Square, Square]]): Rook origin and
            destination when the move was a castle.
        en_passant (bool): The capture was en passant.
        promotion_pending (bool): A pawn reached the last rank without a
            promotion choice; the turn has not flipped yet.
        king_captured (bool): The move took the opposing king and won the game.
    """

    captured: Optional[Piece] = None
    captured_square: Optional[Square] = None
    castled_rook: Optional[Tuple[Square, Square]] = None
    en_passant: bool = False
    promotion_pending: bool = False
    king_captured: bool = False

    @property
    def is_capture(self) -> bool:
        return self.captured is not None


def apply_move(request: MoveRequest, position: Position) -> Tuple[Position, MoveEffects]:
    """Apply a pseudo-legal move and return the resulting position.

    The caller is responsible for validating ``request`` first; ``position``
    itself is never modified.

    Raises:
        ValueError: If the origin square is empty or the request carries a
            piece kind that is not a promotion choice.
    """
    from_sq, to_sq = request.from_sq, request.to_sq
    piece = position.piece_at(from_sq)
    if piece is None:
        raise ValueError("no piece to move from from_sq")
    if request.promotion is not None and request.promotion not in PROMOTION_KINDS:
        raise ValueError(f"invalid promotion piece: {request.promotion}")
    mover = piece.color
    target = position.piece_at(to_sq)
    changes: Dict[Square, Optional[Piece]] = {}

    captured = target
    captured_square: Optional[Square] = to_sq if target is not None else None

    # King capture is the only way to win
    status = position.status
    king_captured = target is not None and target.kind is PieceKind.KING
    if king_captured:
        status = GameStatus.won(mover)

    castled_rook: Optional[Tuple[Square, Square]] = None
    if piece.kind is PieceKind.KING and abs(to_sq[1] - from_sq[1]) == 2:
        rank = from_sq[0]
        if to_sq[1] > from_sq[1]:
            rook_from, rook_to = (rank, KINGSIDE_ROOK_FILE), (rank, 5)
        else:
            rook_from, rook_to = (rank, QUEENSIDE_ROOK_FILE), (rank, 3)
        changes[rook_to] = position.piece_at(rook_from)
        changes[rook_from] = None
        castled_rook = (rook_from, rook_to)

    castling = _update_castling_rights(position.castling, piece, from_sq, target, to_sq)

    en_passant_capture = False
    if piece.kind is PieceKind.PAWN and from_sq[1] != to_sq[1] and target is None:
        ep = position.en_passant
        if ep is not None and ep.square == to_sq:
            captured_square = (from_sq[0], to_sq[1])
            captured = position.piece_at(captured_square)
            changes[captured_square] = None
            en_passant_capture = True

    if captured is not None or piece.kind is PieceKind.PAWN:
        halfmove_clock = 0
    else:
        halfmove_clock = position.halfmove_clock + 1

    new_ep: Optional[EnPassantTarget] = None
    if piece.kind is PieceKind.PAWN and abs(to_sq[0] - from_sq[0]) == 2:
        new_ep = EnPassantTarget((from_sq[0] + FORWARD[mover], from_sq[1]), mover)

    placed = piece
    pending: Optional[Square] = None
    if (
        piece.kind is PieceKind.PAWN
        and to_sq[0] == PROMOTION_RANK[mover]
        and not king_captured
    ):
        if request.promotion is not None:
            placed = Piece(mover, request.promotion)
        else:
            # Pawn stays on the last rank as a placeholder until the choice arrives
            pending = to_sq

    changes[from_sq] = None
    changes[to_sq] = placed

    new_position = position.with_board(
        changes,
        side_to_move=mover if pending is not None else mover.opposite(),
        castling=castling,
        en_passant=new_ep,
        halfmove_clock=halfmove_clock,
        fullmove_count=position.fullmove_count + 1,
        status=status,
        pending_promotion=pending,
    )
    effects = MoveEffects(
        captured=captured,
        captured_square=captured_square,
        castled_rook=castled_rook,
        en_passant=en_passant_capture,
        promotion_pending=pending is not None,
        king_captured=king_captured,
    )
    return new_position, effects


def finalize_promotion(kind: PieceKind, position: Position) -> Position:
    """Replace the pending pawn placeholder with ``kind`` and pass the turn.

    Raises:
        ValueError: If no promotion is pending or ``kind`` is not one of
            queen, rook, bishop or knight.
    """
    sq = position.pending_promotion
    if sq is None:
        raise ValueError("no promotion pending")
    if kind not in PROMOTION_KINDS:
        raise ValueError(f"invalid promotion piece: {kind}")
    pawn = position.piece_at(sq)
    if pawn is None:
        raise ValueError("promotion square is empty")
    return position.with_board(
        {sq: Piece(pawn.color, kind)},
        side_to_move=pawn.color.opposite(),
        pending_promotion=None,
    )


def _update_castling_rights(
    rights: CastlingRights,
    piece: Piece,
    from_sq: Square,
    captured: Optional[Piece],
    to_sq: Square,
) -> CastlingRights:
    """Revoke castling rights on king/rook moves and rook captures."""
    if piece.kind is PieceKind.KING:
        rights = rights.revoke(piece.color, kingside=True, queenside=True, king_moved=True)
    elif piece.kind is PieceKind.ROOK:
        home = HOME_RANK[piece.color]
        if from_sq == (home, QUEENSIDE_ROOK_FILE):
            rights = rights.revoke(piece.color, queenside=True)
        elif from_sq == (home, KINGSIDE_ROOK_FILE):
            rights = rights.revoke(piece.color, kingside=True)
    # Rook captured on its original corner
    if captured is not None and captured.kind is PieceKind.ROOK:
        home = HOME_RANK[captured.color]
        if to_sq == (home, QUEENSIDE_ROOK_FILE):
            rights = rights.revoke(captured.color, queenside=True)
        elif to_sq == (home, KINGSIDE_ROOK_FILE):
            rights = rights.revoke(captured.color, kingside=True)
    return rights
