from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...engine.game import GameSession, MoveOutcome, MoveResult
from ...engine.move import parse_promotion, parse_uci, square_to_str
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequestBody(BaseModel):
    move: str = Field(..., description="Move in long algebraic form, e.g. e2e4 or e7e8q")


class PromotionRequestBody(BaseModel):
    piece: str = Field(..., min_length=1, max_length=1, description="One of q, r, b, n")


class GameState(BaseModel):
    game_id: str
    fen: str
    side_to_move: str
    status: str
    winner: Optional[str]
    reason: Optional[str]
    pending_promotion: Optional[str]
    draw_offered: bool
    in_check: bool
    legal_moves: list[str]
    last_move: Optional[str]
    move_history: list[str]


class MoveResponse(GameState):
    result: str
    captured: Optional[str]


def create_app() -> FastAPI:
    app = FastAPI(title="Chess Rules API", version="0.1.0")

    logging.basicConfig(level=logging.INFO)

    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = store.create(GameSession.new())
        logger.info("created game %s", game_id)
        session = _require_game(store, game_id)
        return CreateGameResponse(game_id=game_id, fen=session.to_fen())

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _game_state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        _require_game(store, game_id)
        try:
            store.set(game_id, GameSession.from_fen(req.fen))
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        return _game_state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/move", response_model=MoveResponse)
    async def make_move(game_id: str, req: MoveRequestBody) -> MoveResponse:
        session = _require_game(store, game_id)
        try:
            move = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        outcome = session.propose_move(move.from_sq, move.to_sq, move.promotion)
        return _move_response(game_id, session, outcome)

    @app.post("/api/games/{game_id}/promotion", response_model=MoveResponse)
    async def promote(game_id: str, req: PromotionRequestBody) -> MoveResponse:
        session = _require_game(store, game_id)
        try:
            kind = parse_promotion(req.piece)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        outcome = session.finalize_promotion(kind)
        return _move_response(game_id, session, outcome)

    @app.post("/api/games/{game_id}/draw/offer", response_model=GameState)
    async def offer_draw(game_id: str) -> GameState:
        session = _require_game(store, game_id)
        if not session.offer_draw():
            raise HTTPException(status_code=409, detail="cannot offer a draw now")
        return _game_state(game_id, session)

    @app.post("/api/games/{game_id}/draw/accept", response_model=GameState)
    async def accept_draw(game_id: str) -> GameState:
        session = _require_game(store, game_id)
        if not session.accept_draw():
            raise HTTPException(status_code=409, detail="no draw offer to accept")
        return _game_state(game_id, session)

    @app.post("/api/games/{game_id}/draw/decline", response_model=GameState)
    async def decline_draw(game_id: str) -> GameState:
        session = _require_game(store, game_id)
        if not session.decline_draw():
            raise HTTPException(status_code=409, detail="no draw offer to decline")
        return _game_state(game_id, session)

    @app.post("/api/games/{game_id}/reset", response_model=GameState)
    async def reset(game_id: str) -> GameState:
        session = _require_game(store, game_id)
        session.reset_session()
        return _game_state(game_id, session)

    @app.delete("/api/games/{game_id}", status_code=204)
    async def delete_game(game_id: str) -> Response:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return Response(status_code=204)

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _game_state(game_id: str, session: GameSession) -> GameState:
    return GameState(**_state_fields(game_id, session))


def _state_fields(game_id: str, session: GameSession) -> dict:
    position = session.get_position()
    status = position.status
    history = session.move_history_uci()
    pending = position.pending_promotion
    return {
        "game_id": game_id,
        "fen": position.to_fen(),
        "side_to_move": position.side_to_move.value,
        "status": status.state.value,
        "winner": status.winner.value if status.winner is not None else None,
        "reason": status.reason,
        "pending_promotion": square_to_str(pending) if pending is not None else None,
        "draw_offered": session.draw_offered,
        "in_check": session.in_check(),
        "legal_moves": [m.to_uci() for m in session.legal_moves()],
        "last_move": history[-1] if history else None,
        "move_history": history,
    }


def _move_response(game_id: str, session: GameSession, outcome: MoveOutcome) -> MoveResponse:
    if outcome.result is MoveResult.REJECTED:
        raise HTTPException(status_code=400, detail=outcome.reason or "illegal move")
    captured = None
    if outcome.effects is not None and outcome.effects.captured is not None:
        captured = outcome.effects.captured.symbol()
    return MoveResponse(
        result=outcome.result.value,
        captured=captured,
        **_state_fields(game_id, session),
    )


# Default app for non-factory servers
app = create_app()
