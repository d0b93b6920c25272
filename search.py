from collections import deque
import concurrent.futures
import time
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from colorama import Fore
import path_cache
import utils
from board import WallPlacement, apply_move, apply_wall
from evaluate import DEFAULT_WEIGHTS, Weights, evaluate
from movegen import (
    WALL_CANDIDATE_CAP, WALL_SCORE_FLOOR, WALL_OPP_WEIGHT, WALL_OWN_WEIGHT,
    pawn_moves, wall_placements,
)
from paths import blocks_either_player, shortest_path
from utils import format_coord, log_with_time, opponent, vlog

MIN_SCORE = -(10 ** 9)
MAX_SCORE = 10 ** 9

# ---- Anti-oscillation (root only) ----
HISTORY_CAPACITY = 4
REVERSAL_PENALTY = 1000
TWO_PLY_PENALTY = 500

ALGORITHMS = ("minimax", "alphabeta")


class ActionKind(Enum):
    MOVE = 'move'
    WALL = 'wall'
    INVALID = 'invalid'


class Action(NamedTuple):
    kind: ActionKind
    target: Optional[Tuple[int, int]] = None
    wall: Optional[WallPlacement] = None
    score: int = MIN_SCORE

    @classmethod
    def move(cls, x, y, score=MIN_SCORE):
        return cls(ActionKind.MOVE, target=(x, y), score=score)

    @classmethod
    def place(cls, wall, score=MIN_SCORE):
        return cls(ActionKind.WALL, wall=wall, score=score)

    @classmethod
    def invalid(cls):
        return cls(ActionKind.INVALID)

    @property
    def valid(self):
        return self.kind != ActionKind.INVALID

    def with_score(self, score):
        return self._replace(score=score)

    def __str__(self):
        if self.kind == ActionKind.MOVE:
            return f"move to {format_coord(self.target)}"
        if self.kind == ActionKind.WALL:
            return f"wall {self.wall}"
        return "invalid action"


class SearchConfig(NamedTuple):
    depth: int = 2
    weights: Weights = DEFAULT_WEIGHTS
    wall_cap: int = WALL_CANDIDATE_CAP
    wall_floor: int = WALL_SCORE_FLOOR
    history_capacity: int = HISTORY_CAPACITY
    max_workers: Optional[int] = None


DEFAULT_CONFIG = SearchConfig()


class MoveHistory:
    """Most recent token destinations of one side, oldest first."""

    def __init__(self, capacity=HISTORY_CAPACITY, entries=()):
        self._entries = deque(entries, maxlen=capacity)

    def record(self, target):
        self._entries.append(tuple(target))

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return f"MoveHistory({list(self._entries)})"


# ============== Helpers ==============
def candidate_actions(state, side, config=DEFAULT_CONFIG):
    actions = [Action.move(x, y) for x, y in pawn_moves(state, side)]
    if state.walls_remaining[side - 1] > 0:
        actions.extend(
            Action.place(wall)
            for _, wall in wall_placements(state, side, cap=config.wall_cap, floor=config.wall_floor)
        )
    return actions


def apply_action(state, side, action):
    after = state.copy()
    if action.kind == ActionKind.MOVE:
        apply_move(after, side, *action.target)
    elif action.kind == ActionKind.WALL:
        apply_wall(after, side, action.wall)
    return after


def _game_over(state):
    return shortest_path(state, 1).length == 0 or shortest_path(state, 2).length == 0


def immediate_gain(before, after, side):
    """Path differential an action buys right away."""
    opp = opponent(side)
    own_delta = shortest_path(after, side).length - shortest_path(before, side).length
    opp_delta = shortest_path(after, opp).length - shortest_path(before, opp).length
    return opp_delta * WALL_OPP_WEIGHT - own_delta * WALL_OWN_WEIGHT


def history_penalty(target, current, history):
    """Penalty for stepping back onto a recently left tile.

    ``history`` lists recent destinations oldest first; a trailing entry
    equal to the current tile is where we stand now and is skipped.
    """
    previous = list(history or ())
    if previous and previous[-1] == current:
        previous.pop()
    if previous and target == previous[-1]:
        return -REVERSAL_PENALTY
    if len(previous) > 1 and target == previous[-2]:
        return -TWO_PLY_PENALTY
    return 0


# ============== Recursive search ==============
def minimax(state, depth, root_side, to_move, config=DEFAULT_CONFIG):
    if depth <= 0 or _game_over(state):
        return evaluate(state, root_side, config.weights)

    actions = candidate_actions(state, to_move, config)
    if not actions:
        log_with_time(f"minimax: side {to_move} has no candidates, evaluating statically", color=Fore.YELLOW)
        return evaluate(state, root_side, config.weights)

    maximizing = to_move == root_side
    best = MIN_SCORE if maximizing else MAX_SCORE
    for action in actions:
        v = minimax(apply_action(state, to_move, action), depth - 1, root_side, opponent(to_move), config)
        best = max(best, v) if maximizing else min(best, v)
    return best


def alphabeta(state, depth, root_side, to_move, alpha=MIN_SCORE, beta=MAX_SCORE, config=DEFAULT_CONFIG):
    if depth <= 0 or _game_over(state):
        return evaluate(state, root_side, config.weights)

    actions = candidate_actions(state, to_move, config)
    if not actions:
        log_with_time(f"alphabeta: side {to_move} has no candidates, evaluating statically", color=Fore.YELLOW)
        return evaluate(state, root_side, config.weights)

    nxt = opponent(to_move)
    if to_move == root_side:
        best = MIN_SCORE
        for action in actions:
            best = max(best, alphabeta(apply_action(state, to_move, action), depth - 1, root_side, nxt, alpha, beta, config))
            alpha = max(alpha, best)
            if beta <= alpha:
                return alpha
        return best

    best = MAX_SCORE
    for action in actions:
        best = min(best, alphabeta(apply_action(state, to_move, action), depth - 1, root_side, nxt, alpha, beta, config))
        beta = min(beta, best)
        if beta <= alpha:
            return beta
    return best


# ============== Root selection ==============
def root_candidates(state, root_side, history=None, config=DEFAULT_CONFIG):
    """Root actions ordered by immediate gain plus history penalty (stable)."""
    current = state.pawn(root_side)
    scored = []
    for action in candidate_actions(state, root_side, config):
        after = apply_action(state, root_side, action)
        pre = immediate_gain(state, after, root_side) if not blocks_either_player(after) else MIN_SCORE
        if action.kind == ActionKind.MOVE:
            pre += history_penalty(action.target, current, history)
        scored.append((pre, action))
    scored.sort(key=lambda item: item[0], reverse=True)
    return [action for _, action in scored]


def score_root_action(state, action, depth, root_side, history=(), algorithm="alphabeta", config=DEFAULT_CONFIG):
    """Recursive score of one root action plus its immediate bonus and
    history penalty. Walls that would cut off either side score MIN_SCORE."""
    after = apply_action(state, root_side, action)
    if action.kind == ActionKind.WALL and blocks_either_player(after):
        return MIN_SCORE

    opp = opponent(root_side)
    if algorithm == "minimax":
        value = minimax(after, depth - 1, root_side, opp, config)
    else:
        value = alphabeta(after, depth - 1, root_side, opp, MIN_SCORE, MAX_SCORE, config)

    value += immediate_gain(state, after, root_side)
    if action.kind == ActionKind.MOVE:
        value += history_penalty(action.target, state.pawn(root_side), history)
    return value


def _record(history, action):
    if history is not None and action.kind == ActionKind.MOVE:
        history.record(action.target)


def _init_worker(verbose, cache_disabled, start_time):
    """Carry the parent's process-wide toggles into a pool worker."""
    utils.VERBOSE = verbose
    utils.start_time = start_time
    path_cache.CACHE_DISABLED = cache_disabled


def _check_depth(depth):
    if depth < 1:
        log_with_time(f"search depth {depth} is below 1, using 1", color=Fore.YELLOW)
        return 1
    return depth


def solve(state, depth, root_side, history=None, algorithm="alphabeta", config=DEFAULT_CONFIG):
    """Pick ``root_side``'s action sequentially. ``history`` is the side's
    MoveHistory; it is appended to when a token move is chosen."""
    t0 = time.time()
    depth = _check_depth(depth)
    candidates = root_candidates(state, root_side, history, config)
    if not candidates:
        log_with_time(f"solve: side {root_side} has no legal candidates", color=Fore.RED)
        return Action.invalid()

    recent = tuple(history) if history is not None else ()
    best = Action.invalid()
    for idx, action in enumerate(candidates):
        score = score_root_action(state, action, depth, root_side, recent, algorithm, config)
        vlog(f"root {idx+1}/{len(candidates)}: {action} -> {score}")
        if score > best.score:
            best = action.with_score(score)

    if not best.valid:
        log_with_time(f"solve: every candidate for side {root_side} was rejected", color=Fore.RED)
    _record(history, best)
    vlog(f"solve[{algorithm}] side {root_side} depth {depth}: {best} (score {best.score})", t0)
    return best


def solve_parallel(state, depth, root_side, history=None, algorithm="minimax", config=DEFAULT_CONFIG):
    """Same candidates and scoring as ``solve``; each root candidate is
    scored in its own worker process on a private copy of ``state``.
    Selection and the history update happen after every task finished."""
    t0 = time.time()
    depth = _check_depth(depth)
    candidates = root_candidates(state, root_side, history, config)
    if not candidates:
        log_with_time(f"solve_parallel: side {root_side} has no legal candidates", color=Fore.RED)
        return Action.invalid()

    recent = tuple(history) if history is not None else ()
    scores = [MIN_SCORE] * len(candidates)

    with concurrent.futures.ProcessPoolExecutor(
        max_workers=config.max_workers,
        initializer=_init_worker,
        initargs=(utils.VERBOSE, path_cache.CACHE_DISABLED, utils.start_time),
    ) as executor:
        future_to_info = {
            executor.submit(
                score_root_action,
                state.copy(),
                action,
                depth,
                root_side,
                recent,
                algorithm,
                config,
            ): (time.time(), idx)
            for idx, action in enumerate(candidates)
        }
        for future in concurrent.futures.as_completed(future_to_info):
            start, idx = future_to_info[future]
            scores[idx] = future.result()
            vlog(f"root {idx+1}/{len(candidates)}: {candidates[idx]} -> {scores[idx]}", start)

    best = Action.invalid()
    for action, score in zip(candidates, scores):
        if score > best.score:
            best = action.with_score(score)

    if not best.valid:
        log_with_time(f"solve_parallel: every candidate for side {root_side} was rejected", color=Fore.RED)
    _record(history, best)
    vlog(f"solve_parallel[{algorithm}] side {root_side} depth {depth}: {best} (score {best.score})", t0)
    return best


class SearchSession:
    """One side's engine: search settings plus its own move history."""

    def __init__(self, side, config=DEFAULT_CONFIG, algorithm="alphabeta", parallel=False):
        if algorithm not in ALGORITHMS:
            raise ValueError(f"unknown search algorithm {algorithm!r}")
        self.side = side
        self.config = config
        self.algorithm = algorithm
        self.parallel = parallel
        self.history = MoveHistory(config.history_capacity)
        self.thinking_time = 0.0
        self.decisions = 0

    @property
    def name(self):
        return f"{self.algorithm}{'-parallel' if self.parallel else ''}"

    def decide(self, state):
        t0 = time.time()
        solver = solve_parallel if self.parallel else solve
        action = solver(state, self.config.depth, self.side, self.history, self.algorithm, self.config)
        self.thinking_time += time.time() - t0
        self.decisions += 1
        return action
