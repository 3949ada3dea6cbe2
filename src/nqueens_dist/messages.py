from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence, Tuple


class MessageKind(IntEnum):
    """Message tags of the master/worker protocol."""

    PARAMS = 0
    RESULT = 1
    PARTIAL = 2
    TERMINATE = 3
    READINESS = 4


class Readiness(IntEnum):
    """What a worker announces when it asks for more work."""

    INITIAL = 1
    SOLUTION_READY = 2
    NO_SOLUTION_READY = 3


@dataclass(frozen=True, slots=True)
class Message:
    """One protocol message. The payload is always a tuple of non-negative ints."""

    kind: MessageKind
    source: int
    payload: Tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def params(cls, source: int, n: int, k: int) -> "Message":
        return cls(MessageKind.PARAMS, source, (n, k))

    @classmethod
    def readiness(cls, source: int, status: Readiness) -> "Message":
        return cls(MessageKind.READINESS, source, (int(status),))

    @classmethod
    def partial(cls, source: int, columns: Sequence[int]) -> "Message":
        return cls(MessageKind.PARTIAL, source, tuple(columns))

    @classmethod
    def result(cls, source: int, batch: Sequence[int]) -> "Message":
        return cls(MessageKind.RESULT, source, tuple(batch))

    @classmethod
    def terminate(cls, source: int) -> "Message":
        return cls(MessageKind.TERMINATE, source)

    @property
    def status(self) -> Readiness:
        """Readiness carried by a READINESS message."""
        if self.kind != MessageKind.READINESS:
            raise TypeError(f"{self.kind.name} message carries no readiness status")
        if len(self.payload) != 1:
            raise ValueError(f"readiness payload must hold one value, got {self.payload!r}")
        return Readiness(self.payload[0])
