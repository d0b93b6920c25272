# --- utils.py ---

import time
import threading
from enum import Enum
from colorama import Fore, Style, init

init()

# Board dimension
N = 9

WALL_LENGTHS = (1, 2, 3)
WALLS_PER_SIDE = 10

# Path length sentinel for "no path". Anything at or above UNREACHABLE is
# treated as no path; no real path on a 9x9 board can be that long.
NO_PATH = 100
UNREACHABLE = N * N


class Orientation(Enum):
    HORIZONTAL = 'H'
    VERTICAL = 'V'


START_POSITIONS = {1: (4, 0), 2: (4, N - 1)}
GOAL_ROWS = {1: N - 1, 2: 0}


def opponent(side):
    return 3 - side


def goal_row(side):
    return GOAL_ROWS[side]


def start_position(side):
    return START_POSITIONS[side]


def in_bounds(x, y):
    return 0 <= x < N and 0 <= y < N


VERBOSE = False
start_time = None

# Lock used for synchronized printing across threads
PRINT_LOCK = threading.Lock()

def log_with_time(msg, color=Fore.LIGHTBLUE_EX):
    """Print ``msg`` with a timestamp."""
    global start_time
    if start_time is None:
        start_time = time.time()
    elapsed = time.time() - start_time
    mins = int(elapsed // 60)
    secs = elapsed % 60
    timestamp = Style.DIM + f"[{mins:02}:{secs:06.3f}]" + Style.RESET_ALL
    with PRINT_LOCK:
        print(f"{timestamp} {color}{msg}{Style.RESET_ALL}", flush=True)

def vlog(msg, t0=None):
    if VERBOSE:
        if t0 is not None:
            elapsed = time.time() - t0
            log_with_time(f"{msg} (took {elapsed:.3f}s)")
        else:
            log_with_time(msg)

def format_coord(coord):
    x, y = coord
    return f"({x},{y})"
