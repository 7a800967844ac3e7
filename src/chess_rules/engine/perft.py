from __future__ import annotations

from .executor import apply_move
from .position import Position
from .validation import legal_moves


def perft(position: Position, depth: int) -> int:
    """Compute perft node count for `position` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Promotions are counted once per promotion piece, so results line up with
    published reference counts.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    nodes = 0
    for request in legal_moves(position):
        child, _ = apply_move(request, position)
        nodes += perft(child, depth - 1)
    return nodes
