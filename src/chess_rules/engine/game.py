from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from .attacks import is_king_in_check
from .executor import MoveEffects, apply_move, finalize_promotion
from .move import MoveRequest, Square, is_on_board
from .pieces import PROMOTION_KINDS, Color, PieceKind
from .position import DRAW_AGREEMENT, PROMOTION_RANK, GameStatus, Position
from .terminal import evaluate
from .validation import is_legal_pseudo_move, legal_moves


logger = logging.getLogger(__name__)


class MoveResult(Enum):
    REJECTED = "rejected"
    APPLIED = "applied"
    PENDING_PROMOTION = "pending_promotion"


@dataclass(frozen=True)
class MoveOutcome:
    """What happened to a move request or promotion choice."""

    result: MoveResult
    status: GameStatus
    effects: Optional[MoveEffects] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.result is not MoveResult.REJECTED


@dataclass
class GameSession:
    """Turn cycle around a single position.

    Responsibility: validate requests, apply them, record repetition
    fingerprints, evaluate terminal state and expose a read-only snapshot.
    Rejected requests never change any state.
    """

    position: Position
    history: List[str] = field(default_factory=list)
    move_log: List[MoveRequest] = field(default_factory=list)
    draw_offered_by: Optional[Color] = None
    _pending: Optional[Tuple[MoveRequest, MoveEffects]] = field(default=None, repr=False)

    @classmethod
    def new(cls) -> "GameSession":
        return cls(position=Position.starting())

    @classmethod
    def from_fen(cls, fen: str) -> "GameSession":
        return cls(position=Position.from_fen(fen))

    def to_fen(self) -> str:
        return self.position.to_fen()

    def get_position(self) -> Position:
        return self.position

    @property
    def status(self) -> GameStatus:
        return self.position.status

    @property
    def draw_offered(self) -> bool:
        return self.draw_offered_by is not None

    @property
    def pending_promotion(self) -> Optional[Square]:
        return self.position.pending_promotion

    def legal_moves(self) -> List[MoveRequest]:
        if not self.status.is_active:
            return []
        return legal_moves(self.position)

    def in_check(self) -> bool:
        return is_king_in_check(self.position.side_to_move, self.position)

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.move_log]

    # --- Turn cycle ---
    def propose_move(
        self, from_sq: Square, to_sq: Square, promotion: Optional[PieceKind] = None
    ) -> MoveOutcome:
        """Validate and apply a move.

        Returns:
            MoveOutcome: ``REJECTED`` with a reason, ``PENDING_PROMOTION`` when a
            pawn reached the last rank without ``promotion``, or ``APPLIED``
            with the resulting status.
        """
        reason = self._precheck(from_sq, to_sq, promotion)
        if reason is not None:
            return self._reject(reason)

        request = MoveRequest(from_sq, to_sq, promotion)
        new_position, effects = apply_move(request, self.position)
        if effects.promotion_pending:
            self.position = new_position
            self._pending = (request, effects)
            logger.debug("promotion pending on %s", request.to_uci())
            return MoveOutcome(MoveResult.PENDING_PROMOTION, self.status, effects)
        return self._complete(new_position, request, effects)

    def finalize_promotion(self, kind: PieceKind) -> MoveOutcome:
        """Supply the promotion choice for the pending pawn."""
        if self._pending is None:
            return self._reject("no promotion pending")
        if kind not in PROMOTION_KINDS:
            return self._reject("invalid promotion piece")
        request, effects = self._pending
        new_position = finalize_promotion(kind, self.position)
        self._pending = None
        return self._complete(
            new_position,
            replace(request, promotion=kind),
            replace(effects, promotion_pending=False),
        )

    def _precheck(
        self, from_sq: Square, to_sq: Square, promotion: Optional[PieceKind]
    ) -> Optional[str]:
        if not self.status.is_active:
            return "game is over"
        if self._pending is not None:
            return "promotion pending"
        if self.draw_offered:
            return "draw offer pending"
        if not (is_on_board(from_sq) and is_on_board(to_sq)):
            return "invalid square"
        if promotion is not None and promotion not in PROMOTION_KINDS:
            return "invalid promotion piece"
        piece = self.position.piece_at(from_sq)
        if piece is None:
            return "no piece on origin square"
        if piece.color is not self.position.side_to_move:
            return "not your turn"
        if not is_legal_pseudo_move(from_sq, to_sq, self.position):
            return "illegal move"
        if promotion is not None and not (
            piece.kind is PieceKind.PAWN and to_sq[0] == PROMOTION_RANK[piece.color]
        ):
            return "promotion not allowed"
        return None

    def _complete(
        self, new_position: Position, request: MoveRequest, effects: MoveEffects
    ) -> MoveOutcome:
        self.history.append(new_position.fingerprint())
        self.move_log.append(request)
        status = evaluate(new_position, self.history)
        if status != new_position.status:
            new_position = replace(new_position, status=status)
        self.position = new_position
        logger.debug("applied %s", request.to_uci())
        if not status.is_active:
            logger.info(
                "game over: %s", status.winner.name if status.winner else status.reason
            )
        return MoveOutcome(MoveResult.APPLIED, status, effects)

    def _reject(self, reason: str) -> MoveOutcome:
        logger.debug("move rejected: %s", reason)
        return MoveOutcome(MoveResult.REJECTED, self.status, reason=reason)

    # --- Draw offers ---
    def offer_draw(self) -> bool:
        """Record a draw offer from the side to move. Returns True if recorded."""
        if not self.status.is_active or self.draw_offered or self._pending is not None:
            return False
        self.draw_offered_by = self.position.side_to_move
        return True

    def accept_draw(self) -> bool:
        if not self.status.is_active or not self.draw_offered:
            return False
        self.draw_offered_by = None
        self.position = replace(self.position, status=GameStatus.draw(DRAW_AGREEMENT))
        logger.info("game over: %s", DRAW_AGREEMENT)
        return True

    def decline_draw(self) -> bool:
        if not self.status.is_active or not self.draw_offered:
            return False
        self.draw_offered_by = None
        return True

    def reset_session(self) -> None:
        self.position = Position.starting()
        self.history.clear()
        self.move_log.clear()
        self.draw_offered_by = None
        self._pending = None
