import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pickle
import random
import re

import pytest
from board import (
    BoardState, WallPlacement, apply_move, apply_wall, can_step, inventory_counts,
    new_state, print_board, random_inventory, snapshot, state_from_dict, state_to_dict,
    wall_in_bounds, wall_segments,
)
from utils import Orientation

H = Orientation.HORIZONTAL
V = Orientation.VERTICAL


class FakeGame:
    def __init__(self, positions, inventories, slots):
        self.positions = positions
        self.inventories = inventories
        self.slots = slots

    def pawn_position(self, side):
        return self.positions[side]

    def wall_inventory(self, side):
        return self.inventories[side]

    def occupied_wall_slots(self):
        return iter(self.slots)


def test_new_state_defaults():
    s = new_state([1, 1, 3], [2])
    assert s.positions == [(4, 0), (4, 8)]
    assert s.wall_counts == [[2, 0, 1], [0, 1, 0]]
    assert s.walls_remaining == [3, 1]
    assert len(s.h_blocked) == 8 and all(len(row) == 9 for row in s.h_blocked)
    assert len(s.v_blocked) == 9 and all(len(row) == 8 for row in s.v_blocked)
    assert not any(any(row) for row in s.h_blocked + s.v_blocked)


def test_inventory_counts_skips_bad_lengths(capsys):
    assert inventory_counts([1, 4, 2, 0, 2]) == [1, 2, 0]
    out = capsys.readouterr().out
    assert "invalid length 4" in out


def test_random_inventory_is_seeded():
    a = random_inventory(10, random.Random(7))
    b = random_inventory(10, random.Random(7))
    assert a == b
    assert len(a) == 10
    assert set(a) <= {1, 2, 3}


def test_copy_is_independent():
    s = new_state([1, 2])
    c = s.copy()
    apply_move(c, 1, 4, 1)
    apply_wall(c, 1, WallPlacement(0, 0, 2, H))
    assert s.positions[0] == (4, 0)
    assert s.wall_counts[0] == [1, 1, 0]
    assert s.walls_remaining[0] == 2
    assert not s.h_blocked[0][0]
    assert c != s


def test_apply_wall_marks_segments():
    s = new_state([2, 3], [])
    apply_wall(s, 1, WallPlacement(3, 4, 2, H))
    assert s.h_blocked[4][3] and s.h_blocked[4][4]
    assert not s.h_blocked[4][5]
    apply_wall(s, 1, WallPlacement(6, 2, 3, V))
    assert s.v_blocked[2][6] and s.v_blocked[3][6] and s.v_blocked[4][6]
    assert s.wall_counts[0] == [0, 0, 0]
    assert s.walls_remaining[0] == 0


def test_apply_wall_rejects_invalid_length(capsys):
    s = new_state([1, 2, 3])
    before = s.copy()
    apply_wall(s, 1, WallPlacement(0, 0, 4, H))
    assert s == before
    assert "invalid wall length 4" in capsys.readouterr().out


def test_apply_wall_rejects_empty_inventory(capsys):
    s = new_state([1], [3])
    before = s.copy()
    apply_wall(s, 1, WallPlacement(0, 0, 3, H))
    assert s == before
    assert "no wall of length 3 left" in capsys.readouterr().out


def test_can_step_respects_walls_and_edges():
    s = new_state()
    s.h_blocked[2][5] = True   # (5,2) | (5,3)
    s.v_blocked[6][1] = True   # (1,6) | (2,6)
    assert not can_step(s, 5, 2, 5, 3)
    assert not can_step(s, 5, 3, 5, 2)
    assert not can_step(s, 1, 6, 2, 6)
    assert not can_step(s, 2, 6, 1, 6)
    assert can_step(s, 5, 2, 6, 2)
    assert not can_step(s, 0, 0, -1, 0)
    assert not can_step(s, 8, 8, 8, 9)
    assert not can_step(s, 0, 0, 1, 1)


def test_can_step_only_orthogonal_neighbours():
    s = new_state()
    assert can_step(s, 3, 3, 4, 3)
    assert not can_step(s, 3, 3, 4, 4)
    assert not can_step(s, 3, 3, 2, 2)
    assert not can_step(s, 3, 3, 5, 3)
    assert not can_step(s, 3, 3, 3, 5)
    assert not can_step(s, 3, 3, 3, 3)


def test_wall_geometry_helpers():
    assert wall_segments(WallPlacement(2, 3, 3, H)) == [(2, 3), (3, 3), (4, 3)]
    assert wall_segments(WallPlacement(2, 3, 2, V)) == [(2, 3), (2, 4)]
    assert wall_in_bounds(WallPlacement(6, 7, 3, H))
    assert not wall_in_bounds(WallPlacement(7, 7, 3, H))
    assert not wall_in_bounds(WallPlacement(0, 8, 1, H))
    assert wall_in_bounds(WallPlacement(7, 6, 3, V))
    assert not wall_in_bounds(WallPlacement(8, 0, 1, V))
    assert not wall_in_bounds(WallPlacement(0, 7, 3, V))


def test_snapshot_reads_game_handle(capsys):
    game = FakeGame(
        positions={1: (2, 3), 2: [6, 5]},
        inventories={1: [1, 3, 3], 2: []},
        slots=[(0, 0, H), (1, 0, H), (7, 8, V), (9, 0, H)],
    )
    s = snapshot(game)
    assert s.positions == [(2, 3), (6, 5)]
    assert s.wall_counts == [[1, 0, 2], [0, 0, 0]]
    assert s.walls_remaining == [3, 0]
    assert s.h_blocked[0][0] and s.h_blocked[0][1]
    assert s.v_blocked[8][7]
    assert "out-of-range wall slot (9,0)" in capsys.readouterr().out


def test_state_dict_and_pickle():
    s = new_state([1, 2], [3])
    apply_move(s, 2, 4, 6)
    apply_wall(s, 1, WallPlacement(1, 1, 2, V))
    data = state_to_dict(s)
    assert data["vertical"] == [[1, 1], [1, 2]]
    assert data["horizontal"] == []
    assert state_from_dict(data) == s
    assert pickle.loads(pickle.dumps(s)) == s


def test_state_from_dict_requires_positions():
    with pytest.raises(KeyError):
        state_from_dict({"wall_counts": [[0, 0, 0], [0, 0, 0]]})


@pytest.mark.parametrize("data", [
    {"positions": [[4, 0], [4, 9]]},
    {"positions": [[-1, 0], [4, 8]]},
    {"positions": [[4, 0]]},
    {"positions": [[4, 0], [4, 8]], "horizontal": [[9, 0]]},
    {"positions": [[4, 0], [4, 8]], "horizontal": [[0, 8]]},
    {"positions": [[4, 0], [4, 8]], "vertical": [[-1, 3]]},
    {"positions": [[4, 0], [4, 8]], "vertical": [[8, 3]]},
])
def test_state_from_dict_rejects_off_board(data):
    with pytest.raises(ValueError):
        state_from_dict(data)


def test_print_board(capsys):
    s = new_state()
    s.h_blocked[3][3] = True
    print_board(s, highlight=[(4, 1), (4, 2)])
    out = capsys.readouterr().out
    clean = re.sub(r'\x1b\[[0-9;]*[a-zA-Z]', '', out)
    lines = clean.splitlines()
    assert lines[0].startswith("8 ")
    assert " 2" in lines[0]
    assert clean.count(" *") == 2
    assert "--" in clean
    assert "Walls in hand: P1 [0, 0, 0] (0)" in clean
