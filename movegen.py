import time
from typing import List, Tuple

from board import WallPlacement, apply_wall, can_step, wall_in_bounds, wall_segments
from paths import shortest_path
from utils import N, WALL_LENGTHS, Orientation, goal_row, opponent, vlog

# ---- Wall candidate pruning (tunable) ----
# Full wall enumeration is large; only the best-scoring walls are searched.
WALL_CANDIDATE_CAP = 25
WALL_SCORE_FLOOR = -10
WALL_OPP_WEIGHT = 10
WALL_OWN_WEIGHT = 15

DIRECTIONS = ((1, 0), (-1, 0), (0, 1), (0, -1))


# ============== Token moves ==============
def pawn_moves(state, side) -> List[Tuple[int, int]]:
    """Legal destinations for ``side``'s token, closest to its goal row first."""
    x, y = state.pawn(side)
    other = state.pawn(opponent(side))
    out = []

    for dx, dy in DIRECTIONS:
        nx, ny = x + dx, y + dy
        if not can_step(state, x, y, nx, ny):
            continue
        if (nx, ny) != other:
            out.append((nx, ny))
            continue
        # opponent adjacent: straight jump, else side-steps around it
        jx, jy = nx + dx, ny + dy
        if can_step(state, nx, ny, jx, jy):
            out.append((jx, jy))
            continue
        for px, py in ((dy, dx), (-dy, -dx)):
            sx, sy = nx + px, ny + py
            if can_step(state, nx, ny, sx, sy):
                out.append((sx, sy))

    goal = goal_row(side)
    out.sort(key=lambda p: abs(goal - p[1]))
    return out


# ============== Wall placements ==============
def crosses_existing(state, wall):
    """True if ``wall`` passes straight through a perpendicular wall.

    Checked at each interior junction of the new wall: the junction is
    crossed when the perpendicular segments on both sides of it are blocked.
    Endpoint contacts (T-junctions) are allowed.
    """
    if wall.horizontal:
        for i in range(wall.length - 1):
            jx = wall.x + i
            if state.v_blocked[wall.y][jx] and state.v_blocked[wall.y + 1][jx]:
                return True
    else:
        for i in range(wall.length - 1):
            jy = wall.y + i
            if state.h_blocked[jy][wall.x] and state.h_blocked[jy][wall.x + 1]:
                return True
    return False


def is_structurally_legal(state, wall):
    if not wall_in_bounds(wall):
        return False
    grid = state.h_blocked if wall.horizontal else state.v_blocked
    if any(grid[y][x] for x, y in wall_segments(wall)):
        return False
    return not crosses_existing(state, wall)


def enumerate_walls(state, side):
    """All in-bounds anchors for every wall length ``side`` still holds."""
    counts = state.wall_counts[side - 1]
    for length in WALL_LENGTHS:
        if counts[length - 1] <= 0:
            continue
        for y in range(N - 1):
            for x in range(N - length + 1):
                yield WallPlacement(x, y, length, Orientation.HORIZONTAL)
        for y in range(N - length + 1):
            for x in range(N - 1):
                yield WallPlacement(x, y, length, Orientation.VERTICAL)


def wall_placements(
    state,
    side,
    cap=WALL_CANDIDATE_CAP,
    floor=WALL_SCORE_FLOOR,
    opp_weight=WALL_OPP_WEIGHT,
    own_weight=WALL_OWN_WEIGHT,
):
    """Scored legal walls for ``side``: [(score, WallPlacement), ...], best first.

    A wall is kept only if it is structurally legal and leaves both sides a
    path. Scores reward lengthening the opponent's path and penalize
    lengthening our own; the list is cut to ``cap`` entries and to scores
    of at least ``floor``.
    """
    t0 = time.time()
    opp = opponent(side)
    own_before = shortest_path(state, side).length
    opp_before = shortest_path(state, opp).length

    scored = []
    checked = 0
    for wall in enumerate_walls(state, side):
        if not is_structurally_legal(state, wall):
            continue
        checked += 1
        after = state.copy()
        apply_wall(after, side, wall)
        own_after = shortest_path(after, side)
        opp_after = shortest_path(after, opp)
        if not (own_after.reachable and opp_after.reachable):
            continue
        score = (opp_after.length - opp_before) * opp_weight - (own_after.length - own_before) * own_weight
        scored.append((score, wall))

    scored.sort(key=lambda item: item[0], reverse=True)
    if cap is not None:
        scored = scored[:cap]
    if floor is not None:
        scored = [item for item in scored if item[0] >= floor]
    vlog(f"wall_placements side {side}: {checked} structurally legal, returning {len(scored)}", t0)
    return scored
