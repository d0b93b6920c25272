from collections import OrderedDict

_actual_hits = 0
_actual_misses = 0
CACHE_DISABLED = False

# LRU cache using OrderedDict
MAX_CACHE_SIZE = 50000
class LRUCache(OrderedDict):
    def __init__(self, maxsize=MAX_CACHE_SIZE, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.maxsize = maxsize
    def __getitem__(self, key):
        value = super().__getitem__(key)
        self.move_to_end(key)
        return value
    def __setitem__(self, key, value):
        if key in self:
            self.move_to_end(key)
        super().__setitem__(key, value)
        if len(self) > self.maxsize:
            oldest = next(iter(self))
            del self[oldest]


def path_key(state, side, goal):
    """Cache key for a path query. The other token does not affect paths,
    so only the querying side's tile, its goal row and the walls matter."""
    return (state.pawn(side), goal) + state.walls_key()


def cached_path(key, compute, cache=None):
    """Compute or retrieve a cached path result.

    The cache is per process; worker processes of the parallel root search
    each build their own. When CACHE_DISABLED is True, always recomputes
    without touching the cache counters.
    """
    global _actual_hits, _actual_misses

    if CACHE_DISABLED:
        return compute()

    if cache is None:
        cache = getattr(cached_path, "_cache", None)
        if cache is None:
            cache = LRUCache(MAX_CACHE_SIZE)
            cached_path._cache = cache

    if key in cache:
        _actual_hits += 1
        return cache[key]

    _actual_misses += 1
    val = compute()
    cache[key] = val
    return val


def clear_cache():
    global _actual_hits, _actual_misses
    cache = getattr(cached_path, "_cache", None)
    if cache is not None:
        cache.clear()
    _actual_hits = 0
    _actual_misses = 0


def cache_stats():
    cache = getattr(cached_path, "_cache", None)
    return {"hits": _actual_hits, "misses": _actual_misses, "size": len(cache) if cache is not None else 0}


def print_cache_summary():
    stats = cache_stats()
    print(f"[CACHE SUMMARY] Cached path queries: {stats['size']}")
    print(f"[CACHE SUMMARY] Actual cache hits: {stats['hits']}")
    print(f"[CACHE SUMMARY] Actual cache misses: {stats['misses']}")
