from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from ...engine.game import GameSession


class InMemorySessionStore:
    """Thread-safe in-memory store of game sessions.

    The engine itself handles one request at a time per session; the lock
    only guards the mapping, since the ASGI server may serve several games.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, GameSession] = {}

    def create(self, session: Optional[GameSession] = None) -> str:
        """Register a session (a fresh game by default) and return its id."""
        gid = str(uuid.uuid4())
        if session is None:
            session = GameSession.new()
        with self._lock:
            self._games[gid] = session
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._games.get(game_id)

    def set(self, game_id: str, session: GameSession) -> None:
        with self._lock:
            if game_id not in self._games:
                raise KeyError(game_id)
            self._games[game_id] = session

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
