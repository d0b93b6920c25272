from collections import deque
from typing import NamedTuple

from board import can_step
from paths import shortest_path
from utils import N, goal_row, opponent


class Weights(NamedTuple):
    """Evaluation weights. The path race must stay the dominant term."""
    path: int = 150
    walls: int = 8
    control: int = 3
    near_goal: int = 15
    exposure: int = 7
    exposure_radius: int = 2
    proximity: int = 2
    win: int = 50000
    blocked: int = 49000


DEFAULT_WEIGHTS = Weights()


def board_control(state):
    """Tiles each side reaches first: (side1_tiles, side2_tiles).

    Both tokens expand one shared breadth-first frontier; side 1 is seeded
    first, so equidistant tiles go to whichever frontier pops first.
    """
    owner = {state.positions[0]: 1}
    if state.positions[1] not in owner:
        owner[state.positions[1]] = 2
    queue = deque(owner.keys())
    while queue:
        x, y = queue.popleft()
        side = owner[(x, y)]
        for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            if (nx, ny) in owner or not can_step(state, x, y, nx, ny):
                continue
            owner[(nx, ny)] = side
            queue.append((nx, ny))
    counts = [0, 0]
    for side in owner.values():
        counts[side - 1] += 1
    return counts[0], counts[1]


def near_goal_blocks(state, side):
    """Blocked horizontal edges bordering ``side``'s goal row."""
    row = N - 2 if goal_row(side) == N - 1 else 0
    return sum(1 for x in range(N) if state.h_blocked[row][x])


def path_exposure(state, side, path, radius=DEFAULT_WEIGHTS.exposure_radius):
    """How close the opponent token sits to ``side``'s shortest path.

    Returns ``radius + 1 - distance`` when the token is within ``radius``
    of some tile on the path, else 0.
    """
    if not path:
        return 0
    ox, oy = state.pawn(opponent(side))
    distance = min(abs(ox - x) + abs(oy - y) for x, y in path)
    if distance > radius:
        return 0
    return radius + 1 - distance


def goal_proximity(state, side):
    _, y = state.pawn(side)
    return (N - 1) - abs(y - goal_row(side))


def evaluate(state, root_side, weights=DEFAULT_WEIGHTS):
    """Static score of ``state``; larger is better for ``root_side``.

    Every positional term is a differential between the two sides, so the
    score for side 1 is always the negation of the score for side 2.
    """
    opp = opponent(root_side)
    own = shortest_path(state, root_side)
    their = shortest_path(state, opp)

    if own.length == 0:
        return weights.win
    if their.length == 0:
        return -weights.win
    if not own.reachable:
        return -weights.blocked
    if not their.reachable:
        return weights.blocked

    score = (their.length - own.length) * weights.path
    score += (state.walls_remaining[root_side - 1] - state.walls_remaining[opp - 1]) * weights.walls

    control = board_control(state)
    score += (control[root_side - 1] - control[opp - 1]) * weights.control

    score += (near_goal_blocks(state, opp) - near_goal_blocks(state, root_side)) * weights.near_goal

    own_exposed = path_exposure(state, root_side, own.path, weights.exposure_radius)
    their_exposed = path_exposure(state, opp, their.path, weights.exposure_radius)
    # subtracted: exposure discourages paths that run close to the opponent
    score -= (own_exposed - their_exposed) * weights.exposure

    score += (goal_proximity(state, root_side) - goal_proximity(state, opp)) * weights.proximity
    return score
