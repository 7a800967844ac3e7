from __future__ import annotations

from typing import Iterable, Iterator, List

from .executor import apply_move
from .move import MoveRequest, Square, is_on_board
from .pieces import Piece, PieceKind
from .position import (
    FORWARD,
    HOME_RANK,
    KING_FILE,
    KINGSIDE_ROOK_FILE,
    PAWN_START_RANK,
    PROMOTION_RANK,
    QUEENSIDE_ROOK_FILE,
    Position,
)


KNIGHT_OFFSETS = ((1, 2), (2, 1), (2, -1), (1, -2), (-1, -2), (-2, -1), (-2, 1), (-1, 2))
KING_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))
DIAGONALS = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ORTHOGONALS = ((-1, 0), (1, 0), (0, -1), (0, 1))

# Promotion order used when expanding a promoting move
PROMOTION_ORDER = (PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT)


def is_legal_pseudo_move(from_sq: Square, to_sq: Square, position: Position) -> bool:
    """Return True if the piece on ``from_sq`` may move to ``to_sq``.

    Checks piece geometry, obstruction, capture rules, castling and en-passant
    preconditions. Does not check whether the mover's own king is left in
    check; see :func:`is_legal_move`.

    Rejects immediately when either square is off the board, the squares are
    equal, a promotion choice is still pending, or ``from_sq`` does not hold a
    piece of the side to move.
    """
    if not (is_on_board(from_sq) and is_on_board(to_sq)) or from_sq == to_sq:
        return False
    if position.pending_promotion is not None:
        return False
    piece = position.piece_at(from_sq)
    if piece is None or piece.color is not position.side_to_move:
        return False
    return piece_can_reach(position, piece, from_sq, to_sq)


def piece_can_reach(
    position: Position,
    piece: Piece,
    from_sq: Square,
    to_sq: Square,
    *,
    neutral: bool = False,
) -> bool:
    """Per-piece movement rules for ``piece`` standing on ``from_sq``.

    Args:
        neutral (bool): Attack-probe mode. Castling and en passant are not
            considered, and pawns reach only their two forward diagonals.
            Attack detection uses this so castling checks never recurse.
    """
    if from_sq == to_sq:
        return False
    target = position.piece_at(to_sq)
    if target is not None and target.color is piece.color:
        return False

    dr = to_sq[0] - from_sq[0]
    df = to_sq[1] - from_sq[1]
    kind = piece.kind

    if kind is PieceKind.PAWN:
        return _pawn_can_reach(position, piece, from_sq, to_sq, neutral)
    if kind is PieceKind.KNIGHT:
        return (abs(dr), abs(df)) in ((1, 2), (2, 1))
    if kind is PieceKind.BISHOP:
        return abs(dr) == abs(df) and _path_clear(position, from_sq, to_sq)
    if kind is PieceKind.ROOK:
        return (dr == 0 or df == 0) and _path_clear(position, from_sq, to_sq)
    if kind is PieceKind.QUEEN:
        if dr == 0 or df == 0 or abs(dr) == abs(df):
            return _path_clear(position, from_sq, to_sq)
        return False
    if kind is PieceKind.KING:
        if abs(dr) <= 1 and abs(df) <= 1:
            return True
        if not neutral and dr == 0 and abs(df) == 2:
            return _castling_allowed(position, piece, from_sq, to_sq)
        return False
    return False


def _pawn_can_reach(
    position: Position, piece: Piece, from_sq: Square, to_sq: Square, neutral: bool
) -> bool:
    fwd = FORWARD[piece.color]
    dr = to_sq[0] - from_sq[0]
    df = to_sq[1] - from_sq[1]
    if neutral:
        return dr == fwd and abs(df) == 1

    target = position.piece_at(to_sq)
    if df == 0:
        if target is not None:
            return False
        if dr == fwd:
            return True
        if dr == 2 * fwd and from_sq[0] == PAWN_START_RANK[piece.color]:
            return position.piece_at((from_sq[0] + fwd, from_sq[1])) is None
        return False

    if abs(df) != 1 or dr != fwd:
        return False
    if target is not None:
        return True
    # En passant onto the recorded target, only against the pawn that skipped it
    ep = position.en_passant
    if ep is None or ep.square != to_sq or ep.color is piece.color:
        return False
    victim = position.piece_at((from_sq[0], to_sq[1]))
    return victim == Piece(ep.color, PieceKind.PAWN)


def _path_clear(position: Position, from_sq: Square, to_sq: Square) -> bool:
    """True if every square strictly between the two squares is empty."""
    dr = to_sq[0] - from_sq[0]
    df = to_sq[1] - from_sq[1]
    step_r = (dr > 0) - (dr < 0)
    step_f = (df > 0) - (df < 0)
    r, f = from_sq[0] + step_r, from_sq[1] + step_f
    while (r, f) != to_sq:
        if position.squares[r][f] is not None:
            return False
        r += step_r
        f += step_f
    return True


def _castling_allowed(position: Position, king: Piece, from_sq: Square, to_sq: Square) -> bool:
    from .attacks import is_square_under_attack

    color = king.color
    home = HOME_RANK[color]
    if from_sq != (home, KING_FILE):
        return False
    rights = position.castling.for_color(color)
    if rights.king_moved:
        return False

    kingside = to_sq[1] > from_sq[1]
    if kingside:
        if not rights.kingside:
            return False
        rook_sq = (home, KINGSIDE_ROOK_FILE)
    else:
        if not rights.queenside:
            return False
        rook_sq = (home, QUEENSIDE_ROOK_FILE)
    if position.piece_at(rook_sq) != Piece(color, PieceKind.ROOK):
        return False
    if not _path_clear(position, from_sq, rook_sq):
        return False

    step = 1 if kingside else -1
    passed = (home, KING_FILE + step)
    for sq in (from_sq, passed, to_sq):
        if is_square_under_attack(sq, color, position):
            return False
    return True


def is_legal_move(request: MoveRequest, position: Position) -> bool:
    """Pseudo-legal and does not leave the mover's own king in check.

    The move is simulated on a disposable copy; ``position`` is untouched.
    """
    from .attacks import is_king_in_check

    if not is_legal_pseudo_move(request.from_sq, request.to_sq, position):
        return False
    mover = position.side_to_move
    simulated, _ = apply_move(MoveRequest(request.from_sq, request.to_sq), position)
    return not is_king_in_check(mover, simulated)


def legal_moves(position: Position) -> List[MoveRequest]:
    """Return every legal move for the side to move.

    Pawn moves onto the last rank are expanded into one request per
    promotion choice.
    """
    moves: List[MoveRequest] = []
    for request in _legal_iter(position):
        piece = position.piece_at(request.from_sq)
        if (
            piece is not None
            and piece.kind is PieceKind.PAWN
            and request.to_sq[0] == PROMOTION_RANK[piece.color]
        ):
            moves.extend(
                MoveRequest(request.from_sq, request.to_sq, promo) for promo in PROMOTION_ORDER
            )
        else:
            moves.append(request)
    return moves


def has_legal_move(position: Position) -> bool:
    return next(_legal_iter(position), None) is not None


def _legal_iter(position: Position) -> Iterator[MoveRequest]:
    if position.pending_promotion is not None:
        return
    for from_sq, piece in position.pieces(position.side_to_move):
        for to_sq in _candidate_targets(position, piece, from_sq):
            request = MoveRequest(from_sq, to_sq)
            if is_legal_move(request, position):
                yield request


def _candidate_targets(position: Position, piece: Piece, from_sq: Square) -> Iterable[Square]:
    """Squares worth testing for ``piece``; the validator has the final say."""
    r, f = from_sq
    kind = piece.kind
    if kind is PieceKind.PAWN:
        fwd = FORWARD[piece.color]
        offsets: Iterable = ((fwd, 0), (2 * fwd, 0), (fwd, -1), (fwd, 1))
    elif kind is PieceKind.KNIGHT:
        offsets = KNIGHT_OFFSETS
    elif kind is PieceKind.KING:
        offsets = KING_OFFSETS + ((0, 2), (0, -2))
    else:
        if kind is PieceKind.BISHOP:
            directions = DIAGONALS
        elif kind is PieceKind.ROOK:
            directions = ORTHOGONALS
        else:
            directions = DIAGONALS + ORTHOGONALS
        return list(_ray_targets(position, from_sq, directions))
    return [(r + dr, f + df) for dr, df in offsets if is_on_board((r + dr, f + df))]


def _ray_targets(position: Position, from_sq: Square, directions) -> Iterator[Square]:
    for dr, df in directions:
        r, f = from_sq
        while True:
            r += dr
            f += df
            if not (0 <= r < 8 and 0 <= f < 8):
                break
            yield (r, f)
            if position.squares[r][f] is not None:
                break
