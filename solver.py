import argparse
import json
import random
import time

from colorama import Fore
import path_cache
import utils
from utils import WALLS_PER_SIDE, Orientation, goal_row, log_with_time, opponent, start_position, vlog
from board import (
    apply_wall, print_board, random_inventory, snapshot, state_from_dict, wall_segments,
)
from movegen import is_structurally_legal, pawn_moves
from paths import blocks_either_player, shortest_path
from search import ALGORITHMS, ActionKind, SearchConfig, SearchSession

DEFAULT_DEPTH = 2
DEFAULT_MAX_TURNS = 200


class Match:
    """Headless live game for AI-vs-AI play.

    Holds the authoritative token positions, each side's walls in hand (a
    list of lengths) and the occupied wall slots. Engines only ever see a
    ``snapshot`` of it; ``execute`` validates an action before applying it.
    """

    def __init__(self, inventories=None, positions=None, slots=(), turn=1):
        inventories = inventories or {1: [], 2: []}
        self.inventories = {side: list(inventories[side]) for side in (1, 2)}
        self.positions = dict(positions) if positions else {1: start_position(1), 2: start_position(2)}
        self.slots = set(slots)
        self.turn = turn
        self.turn_count = 0

    @classmethod
    def from_state(cls, state, turn=1):
        inventories = {}
        for side in (1, 2):
            counts = state.wall_counts[side - 1]
            inventories[side] = [length for length in (1, 2, 3) for _ in range(counts[length - 1])]
        slots = {(x, y, Orientation.HORIZONTAL)
                 for y, row in enumerate(state.h_blocked) for x, blocked in enumerate(row) if blocked}
        slots |= {(x, y, Orientation.VERTICAL)
                  for y, row in enumerate(state.v_blocked) for x, blocked in enumerate(row) if blocked}
        return cls(inventories, {1: state.pawn(1), 2: state.pawn(2)}, slots, turn)

    # ---- live game handle read by board.snapshot ----
    def pawn_position(self, side):
        return self.positions[side]

    def wall_inventory(self, side):
        return list(self.inventories[side])

    def occupied_wall_slots(self):
        return sorted(self.slots, key=lambda s: (s[2].value, s[1], s[0]))

    def winner(self):
        for side in (1, 2):
            if self.positions[side][1] == goal_row(side):
                return side
        return None

    def execute(self, side, action):
        state = snapshot(self)
        if action.kind == ActionKind.MOVE:
            if action.target not in pawn_moves(state, side):
                log_with_time(f"Rejected move to {action.target} for P{side}: not a legal destination", color=Fore.RED)
                return False
            self.positions[side] = action.target
        elif action.kind == ActionKind.WALL:
            wall = action.wall
            if wall.length not in self.inventories[side]:
                log_with_time(f"Rejected wall {wall} for P{side}: no wall of length {wall.length} in hand", color=Fore.RED)
                return False
            if not is_structurally_legal(state, wall):
                log_with_time(f"Rejected wall {wall} for P{side}: overlaps or crosses an existing wall", color=Fore.RED)
                return False
            after = state.copy()
            apply_wall(after, side, wall)
            if blocks_either_player(after):
                log_with_time(f"Rejected wall {wall} for P{side}: would cut off a player", color=Fore.RED)
                return False
            self.inventories[side].remove(wall.length)
            self.slots.update((x, y, wall.orientation) for x, y in wall_segments(wall))
        else:
            log_with_time(f"P{side} returned an invalid action", color=Fore.RED)
            return False
        self.turn = opponent(side)
        self.turn_count += 1
        return True


def play_match(match, sessions, max_turns=DEFAULT_MAX_TURNS, show_board=True):
    """Alternate ``sessions`` ({side: SearchSession}) until someone reaches
    their goal row, an engine fails to produce a playable action, or
    ``max_turns`` actions have been played. Returns the winning side or None."""
    while match.turn_count < max_turns and match.winner() is None:
        side = match.turn
        session = sessions[side]
        t0 = time.time()
        action = session.decide(snapshot(match))
        if not match.execute(side, action):
            log_with_time(f"P{side} ({session.name}) has no playable action; stopping the match.", color=Fore.RED)
            return None
        log_with_time(
            f"Turn {match.turn_count}: P{side} ({session.name}) {action} [score {action.score}]",
            color=Fore.GREEN if side == 1 else Fore.MAGENTA,
        )
        vlog(f"P{side} decision", t0)
        if show_board:
            state = snapshot(match)
            print_board(state, highlight=shortest_path(state, opponent(side)).path)
    return match.winner()


def print_match_summary(match, sessions, winner):
    if winner is None:
        log_with_time(f"No winner after {match.turn_count} turns.", color=Fore.YELLOW)
    else:
        log_with_time(f"P{winner} ({sessions[winner].name}) wins after {match.turn_count} turns!", color=Fore.GREEN)
    for side in (1, 2):
        s = sessions[side]
        avg = s.thinking_time / s.decisions if s.decisions else 0.0
        log_with_time(
            f"P{side} {s.name}: {s.decisions} decisions, thinking {s.thinking_time:.3f}s (avg {avg:.3f}s), "
            f"walls left {match.inventories[side]}",
            color=Fore.CYAN,
        )


def load_match(path):
    with open(path, "r") as f:
        data = json.load(f)
    state = state_from_dict(data)
    return Match.from_state(state, turn=data.get("turn", 1))


def run_solver(argv=None):
    parser = argparse.ArgumentParser(description="Wall-race minimax solver (AI vs AI)")
    parser.add_argument("--depth", type=int, default=DEFAULT_DEPTH, help=f"Search depth in plies (default: {DEFAULT_DEPTH})")
    parser.add_argument("--p1-search", choices=ALGORITHMS, default="alphabeta", help="Search used by player 1 (default: alphabeta)")
    parser.add_argument("--p2-search", choices=ALGORITHMS, default="alphabeta", help="Search used by player 2 (default: alphabeta)")
    parser.add_argument("--parallel", action="store_true", help="Score root candidates in parallel worker processes")
    parser.add_argument("--workers", type=int, default=None, help="Worker processes for --parallel (default: CPU count)")
    parser.add_argument("--walls", type=int, default=WALLS_PER_SIDE, help=f"Walls dealt to each side (default: {WALLS_PER_SIDE})")
    parser.add_argument("--seed", type=int, default=None, help="Seed for dealing random wall lengths")
    parser.add_argument("--max-turns", type=int, default=DEFAULT_MAX_TURNS, help=f"Stop after this many actions (default: {DEFAULT_MAX_TURNS})")
    parser.add_argument("--load-state", type=str, default=None, help="Path to a JSON position to start from")
    parser.add_argument("--quiet-board", action="store_true", help="Do not print the board after every turn")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--no-cache", action="store_true", help="Disable path caching")
    args = parser.parse_args(argv)

    utils.start_time = time.time()
    utils.VERBOSE = args.verbose
    path_cache.CACHE_DISABLED = args.no_cache

    if args.depth < 1:
        log_with_time(f"--depth must be at least 1 (got {args.depth})", color=Fore.RED)
        return None

    if args.load_state:
        try:
            match = load_match(args.load_state)
        except FileNotFoundError:
            log_with_time(f"Could not find state file: {args.load_state}", color=Fore.RED)
            return None
        except (ValueError, KeyError, TypeError) as e:
            log_with_time(f"Error loading state file: {e}", color=Fore.RED)
            return None
    else:
        rng = random.Random(args.seed)
        match = Match({1: random_inventory(args.walls, rng), 2: random_inventory(args.walls, rng)})

    config = SearchConfig(depth=args.depth, max_workers=args.workers)
    sessions = {
        1: SearchSession(1, config, args.p1_search, args.parallel),
        2: SearchSession(2, config, args.p2_search, args.parallel),
    }

    print("Starting position:")
    print_board(snapshot(match))
    log_with_time(f"P1 walls: {sorted(match.inventories[1])}  P2 walls: {sorted(match.inventories[2])}", color=Fore.CYAN)

    winner = play_match(match, sessions, max_turns=args.max_turns, show_board=not args.quiet_board)
    print_match_summary(match, sessions, winner)

    if utils.VERBOSE:
        path_cache.print_cache_summary()
    total_elapsed = time.time() - utils.start_time
    log_with_time(f"Total time: {total_elapsed:.3f}s", color=Fore.CYAN)
    return winner
