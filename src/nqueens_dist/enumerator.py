"""Level-bounded backtracking search for the n-queens problem."""
from typing import Callable, List, MutableSequence, Sequence

SolutionFn = Callable[[List[int]], None]


def is_safe(board: Sequence[int], row: int, col: int) -> bool:
    """Check whether a queen at (row, col) is attacked by any queen in rows [0, row)."""
    for placed_row in range(row):
        placed_col = board[placed_row]
        if placed_col == col:
            return False
        if row - placed_row == abs(col - placed_col):
            return False
    return True


def search(
    board: Sequence[int],
    start_level: int,
    max_level: int,
    on_solution: SolutionFn,
) -> None:
    """
    Enumerate every placement of rows [start_level, max_level) on top of the
    placement already held in board[0:start_level].

    The board length is the problem size n. For every assignment where rows
    [0, max_level) are mutually non-attacking, on_solution receives a fresh
    list of max_level column indices. Solutions arrive in lexicographic order.
    The caller's board is never modified.
    """
    size = len(board)
    if not 0 <= start_level <= max_level <= size:
        raise ValueError(f"invalid level range [{start_level}, {max_level}) for board of size {size}")

    pos: MutableSequence[int] = list(board)

    if start_level == max_level:
        # Nothing left to place; the given prefix is the only solution.
        on_solution(pos[:max_level])
        return

    # cursor[row] is the next column to try in that row.
    cursor = [0] * max_level
    row = start_level
    while True:
        col = cursor[row]
        if col >= size:
            # Row exhausted. Ascending from start_level means the whole range is done.
            if row == start_level:
                return
            row -= 1
            cursor[row] += 1
            continue

        if not is_safe(pos, row, col):
            cursor[row] += 1
            continue

        pos[row] = col
        if row == max_level - 1:
            on_solution(pos[:max_level])
            cursor[row] += 1
        else:
            row += 1
            cursor[row] = 0


def solve_sequential(n: int) -> List[int]:
    """Return all solutions for an n x n board as one flat list (n entries per solution)."""
    solutions: List[int] = []
    search([0] * n, 0, n, solutions.extend)
    return solutions


def count_solutions(n: int) -> int:
    found = 0

    def tally(_solution: List[int]) -> None:
        nonlocal found
        found += 1

    search([0] * n, 0, n, tally)
    return found
