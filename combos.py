"""
Tile combination tables for Shut the Box.

Pure functions over tile values: enumerating every way to close tiles for
a dice total, and ranking those ways to pick an advisory best move.
No dependency on the turn state machine.
"""


def sum_tiles(tiles):
    """Sum of tile values."""
    return sum(tiles)


def generate_tile_combos(tiles, target):
    """
    Enumerate every subset of tiles summing exactly to target.

    Depth-first over the tiles sorted ascending. A branch is abandoned as
    soon as the running sum passes the target, since every tile is positive.

    Args:
        tiles: Open tile values (distinct positive ints)
        target: Dice total to match

    Returns:
        List of ascending lists, in exploration order. Empty if target <= 0.
    """
    if target <= 0:
        return []

    ordered = sorted(set(tiles))
    results = []
    path = []

    def backtrack(start, running):
        if running == target:
            results.append(list(path))
            return
        for i in range(start, len(ordered)):
            tile = ordered[i]
            if running + tile > target:
                # Later tiles are larger still
                break
            path.append(tile)
            backtrack(i + 1, running + tile)
            path.pop()

    backtrack(0, 0)
    return results


def is_same_combo(a, b):
    """Order-insensitive comparison of two combos."""
    return sorted(a) == sorted(b)


def combo_rank_key(combo, open_tiles):
    """
    Sort key for ranking combos; the smallest key is the best move.

    Order: highest single tile, then highest combo sum, then fewest tiles,
    then lowest remainder left open. Remaining ties go to the combo whose
    tiles, read from the top down, are highest.
    """
    tiles = sorted(combo, reverse=True)
    remainder = sum_tiles(open_tiles) - sum_tiles(combo)
    return (
        -tiles[0],
        -sum_tiles(combo),
        len(tiles),
        remainder,
        tuple(-t for t in tiles),
    )


def select_best_move(combos, open_tiles):
    """
    Return the advisory best combo for the current roll, or None.

    Args:
        combos: Legal combos for the roll
        open_tiles: Tiles open before the combo is closed

    Returns:
        Ascending tuple of the best combo, or None if there are no combos
    """
    candidates = [c for c in combos if c]
    if not candidates:
        return None
    best = min(candidates, key=lambda c: combo_rank_key(c, open_tiles))
    return tuple(sorted(best))
