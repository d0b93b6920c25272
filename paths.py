"""Shortest paths to the goal row under wall constraints (A*)."""

import heapq
from typing import List, NamedTuple, Tuple

from colorama import Fore
from board import can_step
from path_cache import cached_path, path_key
from utils import N, NO_PATH, UNREACHABLE, goal_row, in_bounds, log_with_time

DIRECTIONS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class PathResult(NamedTuple):
    length: int
    path: Tuple[Tuple[int, int], ...]

    @property
    def reachable(self):
        return self.length < UNREACHABLE

    @classmethod
    def unreachable(cls):
        return cls(NO_PATH, ())


def find_path(state, side) -> PathResult:
    """A* from ``side``'s token to its goal row.

    The heuristic is the row distance ``|goal - y|``: a step changes the
    row by at most one, so it never overestimates. Tokens are ignored;
    only walls constrain the path.
    """
    goal = goal_row(side)
    sx, sy = state.pawn(side)
    if not in_bounds(sx, sy):
        log_with_time(f"find_path: side {side} token out of bounds at ({sx},{sy})", color=Fore.RED)
        return PathResult.unreachable()
    if sy == goal:
        return PathResult(0, ((sx, sy),))

    g_cost = {(sx, sy): 0}
    came_from = {}
    closed = set()
    counter = 0
    open_heap = [(abs(goal - sy), counter, 0, sx, sy)]

    while open_heap:
        _, _, g, x, y = heapq.heappop(open_heap)
        if (x, y) in closed:
            continue
        closed.add((x, y))

        if y == goal:
            path: List[Tuple[int, int]] = [(x, y)]
            while path[-1] in came_from:
                path.append(came_from[path[-1]])
            path.reverse()
            return PathResult(g, tuple(path))

        for dx, dy in DIRECTIONS:
            nx, ny = x + dx, y + dy
            if (nx, ny) in closed or not can_step(state, x, y, nx, ny):
                continue
            ng = g + 1
            if ng < g_cost.get((nx, ny), N * N + 1):
                g_cost[(nx, ny)] = ng
                came_from[(nx, ny)] = (x, y)
                counter += 1
                heapq.heappush(open_heap, (ng + abs(goal - ny), counter, ng, nx, ny))

    return PathResult.unreachable()


def shortest_path(state, side) -> PathResult:
    """Cached entry point used by the generator, evaluator and search."""
    return cached_path(path_key(state, side, goal_row(side)), lambda: find_path(state, side))


def path_length(state, side) -> int:
    return shortest_path(state, side).length


def blocks_either_player(state) -> bool:
    return not (shortest_path(state, 1).reachable and shortest_path(state, 2).reachable)
