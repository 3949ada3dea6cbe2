from typing import Iterable, List, Sequence, Tuple

from nqueens_dist.errors import ProtocolViolation


def split_batch(flat: Sequence[int], n: int) -> List[Tuple[int, ...]]:
    """Split a flat solution batch into boards of n columns each."""
    if n <= 0:
        raise ValueError("board size must be positive")
    if len(flat) % n != 0:
        raise ProtocolViolation(f"batch of length {len(flat)} is not a multiple of n={n}")
    return [tuple(flat[i:i + n]) for i in range(0, len(flat), n)]


class SolutionSink:
    """Accumulates complete solutions as one flat, ordered list of column indices."""

    def __init__(self, n: int) -> None:
        self.n = n
        self._flat: List[int] = []

    def accept(self, solution: Sequence[int]) -> None:
        """Append one complete solution of exactly n columns."""
        if len(solution) != self.n:
            raise ValueError(f"solution has {len(solution)} columns, expected {self.n}")
        self._flat.extend(solution)

    # Lets a sink be passed straight to the enumerator as its callback.
    __call__ = accept

    def extend_batch(self, batch: Iterable[int]) -> int:
        """Append a received flat batch after validating it. Returns the number of solutions added."""
        batch = list(batch)
        if len(batch) % self.n != 0:
            raise ProtocolViolation(f"batch of length {len(batch)} is not a multiple of n={self.n}")
        for col in batch:
            if not 0 <= col < self.n:
                raise ProtocolViolation(f"column {col} outside [0, {self.n})")
        self._flat.extend(batch)
        return len(batch) // self.n

    def drain(self) -> List[int]:
        """Return the accumulated flat batch and clear the sink."""
        batch = self._flat
        self._flat = []
        return batch

    def flat(self) -> List[int]:
        return list(self._flat)

    def solutions(self) -> List[Tuple[int, ...]]:
        return split_batch(self._flat, self.n)

    def __len__(self) -> int:
        return len(self._flat) // self.n
