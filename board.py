import random
from typing import Iterable, List, NamedTuple, Optional, Tuple

from colorama import Fore, Style
from utils import (
    N, WALL_LENGTHS, WALLS_PER_SIDE, Orientation, PRINT_LOCK,
    in_bounds, log_with_time, start_position,
)


class WallPlacement(NamedTuple):
    x: int
    y: int
    length: int
    orientation: Orientation

    @property
    def horizontal(self):
        return self.orientation == Orientation.HORIZONTAL

    def __str__(self):
        return f"({self.x},{self.y}){self.orientation.value} L{self.length}"


class BoardState:
    """
    Snapshot of one position: both tokens, each side's walls in hand and
    every blocked edge. Side numbers are 1 and 2; the per-side lists are
    indexed with ``side - 1``.

      h_blocked[y][x]  (8 x 9)  blocks (x, y) <-> (x, y + 1)
      v_blocked[y][x]  (9 x 8)  blocks (x, y) <-> (x + 1, y)

    Search code never mutates a state it did not copy itself.
    """

    __slots__ = ("positions", "wall_counts", "walls_remaining", "h_blocked", "v_blocked")

    def __init__(self, positions=None, wall_counts=None, h_blocked=None, v_blocked=None):
        self.positions = list(positions) if positions else [start_position(1), start_position(2)]
        self.wall_counts = [list(c) for c in wall_counts] if wall_counts else [[0, 0, 0], [0, 0, 0]]
        self.walls_remaining = [sum(c) for c in self.wall_counts]
        self.h_blocked = [row[:] for row in h_blocked] if h_blocked else [[False] * N for _ in range(N - 1)]
        self.v_blocked = [row[:] for row in v_blocked] if v_blocked else [[False] * (N - 1) for _ in range(N)]

    def copy(self):
        s = BoardState.__new__(BoardState)
        s.positions = self.positions[:]
        s.wall_counts = [self.wall_counts[0][:], self.wall_counts[1][:]]
        s.walls_remaining = self.walls_remaining[:]
        s.h_blocked = [row[:] for row in self.h_blocked]
        s.v_blocked = [row[:] for row in self.v_blocked]
        return s

    def pawn(self, side):
        return self.positions[side - 1]

    def walls_key(self):
        return (
            tuple(tuple(row) for row in self.h_blocked),
            tuple(tuple(row) for row in self.v_blocked),
        )

    def occupied(self, x, y):
        return (x, y) in self.positions

    def __eq__(self, other):
        if not isinstance(other, BoardState):
            return NotImplemented
        return (
            self.positions == other.positions
            and self.wall_counts == other.wall_counts
            and self.walls_remaining == other.walls_remaining
            and self.h_blocked == other.h_blocked
            and self.v_blocked == other.v_blocked
        )

    def __repr__(self):
        return f"BoardState(positions={self.positions}, wall_counts={self.wall_counts})"

    # pickling for worker processes (no __dict__ with __slots__)
    def __getstate__(self):
        return (self.positions, self.wall_counts, self.walls_remaining, self.h_blocked, self.v_blocked)

    def __setstate__(self, data):
        self.positions, self.wall_counts, self.walls_remaining, self.h_blocked, self.v_blocked = data


# ============== Construction ==============
def inventory_counts(lengths: Iterable[int]) -> List[int]:
    counts = [0, 0, 0]
    for length in lengths:
        if length in WALL_LENGTHS:
            counts[length - 1] += 1
        else:
            log_with_time(f"Ignoring wall of invalid length {length} in inventory", color=Fore.YELLOW)
    return counts


def random_inventory(count=WALLS_PER_SIDE, rng: Optional[random.Random] = None) -> List[int]:
    """Deal ``count`` walls with uniformly random lengths 1..3."""
    rng = rng or random.Random()
    return [rng.randint(1, 3) for _ in range(count)]


def new_state(inventory1=(), inventory2=()):
    return BoardState(wall_counts=[inventory_counts(inventory1), inventory_counts(inventory2)])


def snapshot(game):
    """
    Capture a live game handle as a BoardState. The handle must expose
    ``pawn_position(side)``, ``wall_inventory(side)`` (lengths still in
    hand) and ``occupied_wall_slots()`` yielding (x, y, orientation).
    """
    s = BoardState(
        positions=[tuple(game.pawn_position(1)), tuple(game.pawn_position(2))],
        wall_counts=[inventory_counts(game.wall_inventory(1)), inventory_counts(game.wall_inventory(2))],
    )
    for x, y, orientation in game.occupied_wall_slots():
        if orientation == Orientation.HORIZONTAL and 0 <= x < N and 0 <= y < N - 1:
            s.h_blocked[y][x] = True
        elif orientation == Orientation.VERTICAL and 0 <= x < N - 1 and 0 <= y < N:
            s.v_blocked[y][x] = True
        else:
            log_with_time(f"snapshot: ignoring out-of-range wall slot ({x},{y}) {orientation}", color=Fore.YELLOW)
    return s


def state_to_dict(state):
    return {
        "positions": [list(p) for p in state.positions],
        "wall_counts": [c[:] for c in state.wall_counts],
        "horizontal": [[x, y] for y in range(N - 1) for x in range(N) if state.h_blocked[y][x]],
        "vertical": [[x, y] for y in range(N) for x in range(N - 1) if state.v_blocked[y][x]],
    }


def state_from_dict(data):
    """Inverse of ``state_to_dict``. Raises ValueError for positions or wall
    slots that fall outside the board."""
    positions = [tuple(p) for p in data["positions"]]
    if len(positions) != 2 or not all(len(p) == 2 and in_bounds(*p) for p in positions):
        raise ValueError(f"token positions must be two on-board (x, y) pairs, got {data['positions']}")
    s = BoardState(positions=positions, wall_counts=data.get("wall_counts"))
    for x, y in data.get("horizontal", []):
        if not (0 <= x < N and 0 <= y < N - 1):
            raise ValueError(f"horizontal wall slot ({x},{y}) is off the board")
        s.h_blocked[y][x] = True
    for x, y in data.get("vertical", []):
        if not (0 <= x < N - 1 and 0 <= y < N):
            raise ValueError(f"vertical wall slot ({x},{y}) is off the board")
        s.v_blocked[y][x] = True
    return s


# ============== Edges ==============
def can_step(state, ax, ay, bx, by):
    """True if (bx, by) is an on-board orthogonal neighbour of (ax, ay) and
    the edge between them is open."""
    if not in_bounds(bx, by) or abs(bx - ax) + abs(by - ay) != 1:
        return False
    if bx == ax + 1:
        return not state.v_blocked[ay][ax]
    if bx == ax - 1:
        return not state.v_blocked[ay][bx]
    if by == ay + 1:
        return not state.h_blocked[ay][ax]
    if by == ay - 1:
        return not state.h_blocked[by][ax]
    return False


def wall_segments(wall) -> List[Tuple[int, int]]:
    """(x, y) grid cells covered by ``wall`` in its own blocked grid."""
    if wall.horizontal:
        return [(wall.x + i, wall.y) for i in range(wall.length)]
    return [(wall.x, wall.y + i) for i in range(wall.length)]


def wall_in_bounds(wall):
    if wall.length not in WALL_LENGTHS:
        return False
    if wall.horizontal:
        return 0 <= wall.y < N - 1 and 0 <= wall.x and wall.x + wall.length <= N
    return 0 <= wall.x < N - 1 and 0 <= wall.y and wall.y + wall.length <= N


# ============== Mutators (trusted, operate on copies) ==============
def apply_move(state, side, x, y):
    state.positions[side - 1] = (x, y)


def apply_wall(state, side, wall):
    idx = side - 1
    if wall.length not in WALL_LENGTHS:
        log_with_time(f"apply_wall: invalid wall length {wall.length} for side {side}", color=Fore.RED)
        return
    if state.wall_counts[idx][wall.length - 1] <= 0:
        log_with_time(f"apply_wall: side {side} has no wall of length {wall.length} left", color=Fore.RED)
        return
    grid = state.h_blocked if wall.horizontal else state.v_blocked
    for x, y in wall_segments(wall):
        grid[y][x] = True
    state.wall_counts[idx][wall.length - 1] -= 1
    state.walls_remaining[idx] -= 1


# ============== Display ==============
def print_board(state, highlight=None):
    """Thread-safe printing of a position. ``highlight`` is an optional
    iterable of tiles (e.g. a shortest path) drawn dimmed."""
    highlight = set(highlight or ())
    tokens = {state.positions[0]: Fore.GREEN + ' 1' + Style.RESET_ALL,
              state.positions[1]: Fore.RED + ' 2' + Style.RESET_ALL}
    wall = Fore.YELLOW
    with PRINT_LOCK:
        lines = []
        for y in range(N - 1, -1, -1):
            line = []
            for x in range(N):
                if (x, y) in tokens:
                    line.append(tokens[(x, y)])
                elif (x, y) in highlight:
                    line.append(Fore.CYAN + ' *' + Style.RESET_ALL)
                else:
                    line.append(Style.DIM + '··' + Style.RESET_ALL)
                if x < N - 1:
                    line.append(wall + '|' + Style.RESET_ALL if state.v_blocked[y][x] else ' ')
            lines.append(f"{y} " + ''.join(line))
            if y > 0:
                seps = [(wall + '--' + Style.RESET_ALL) if state.h_blocked[y - 1][x] else '  ' for x in range(N)]
                lines.append('  ' + ' '.join(seps))
        lines.append('   ' + '  '.join(str(x) for x in range(N)))
        print('\n'.join(lines), flush=True)
        print(f"Walls in hand: P1 {state.wall_counts[0]} ({state.walls_remaining[0]})  "
              f"P2 {state.wall_counts[1]} ({state.walls_remaining[1]})", flush=True)
        print(flush=True)
