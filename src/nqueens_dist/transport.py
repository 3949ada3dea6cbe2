"""
Point-to-point message passing between ranked participants.

Every rank owns one inbox. Senders put messages straight into the
receiver's inbox, so messages from one sender arrive in the order they
were sent. Receivers match on message kind and source, keeping anything
that does not match buffered for a later receive.
"""
from __future__ import annotations

import time
from queue import Empty, Queue
from typing import Any, Collection, List, Optional, Protocol, Sequence

from nqueens_dist.messages import Message, MessageKind

MASTER_RANK = 0
ANY_SOURCE = -1


class Inbox(Protocol):
    def put(self, item: Message) -> None: ...
    def get(self, block: bool = True, timeout: Optional[float] = None) -> Message: ...


class Endpoint:
    """One participant's view of the transport."""

    def __init__(self, rank: int, inboxes: Sequence[Inbox]) -> None:
        if not 0 <= rank < len(inboxes):
            raise ValueError(f"rank {rank} outside [0, {len(inboxes)})")
        self.rank = rank
        self._inboxes = list(inboxes)
        self._pending: List[Message] = []

    @property
    def size(self) -> int:
        """Total number of participants, master included."""
        return len(self._inboxes)

    def send(self, dest: int, message: Message) -> None:
        if dest == self.rank:
            raise ValueError("cannot send to self")
        self._inboxes[dest].put(message)

    def broadcast(self, message: Message) -> None:
        """Send the same message to every other rank."""
        for dest in range(self.size):
            if dest != self.rank:
                self.send(dest, message)

    def recv(
        self,
        kinds: Collection[MessageKind],
        source: int = ANY_SOURCE,
        timeout: Optional[float] = None,
    ) -> Optional[Message]:
        """
        Receive the earliest-arrived message of one of the given kinds from source.

        Blocks forever when timeout is None. Returns None when the timeout
        expires first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            message = self._take_pending(kinds, source)
            if message is not None:
                return message

            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
            try:
                incoming = self._inboxes[self.rank].get(timeout=remaining)
            except Empty:
                return None
            self._pending.append(incoming)

    def poll(self, kinds: Collection[MessageKind], source: int = ANY_SOURCE) -> Optional[Message]:
        """Non-blocking receive."""
        self._pull_available()
        return self._take_pending(kinds, source)

    def discard_pending(self) -> List[Message]:
        """Drop everything delivered but not yet received and return it."""
        self._pull_available()
        dropped, self._pending = self._pending, []
        return dropped

    def _pull_available(self) -> None:
        inbox = self._inboxes[self.rank]
        while True:
            try:
                self._pending.append(inbox.get(block=False))
            except Empty:
                return

    def _take_pending(self, kinds: Collection[MessageKind], source: int) -> Optional[Message]:
        for idx, message in enumerate(self._pending):
            if message.kind in kinds and (source == ANY_SOURCE or message.source == source):
                return self._pending.pop(idx)
        return None


def local_transport(size: int) -> List[Endpoint]:
    """Endpoints for participants running as threads of one process."""
    inboxes = [Queue() for _ in range(size)]
    return [Endpoint(rank, inboxes) for rank in range(size)]


def process_transport(size: int, ctx: Any) -> List[Endpoint]:
    """Endpoints backed by queues of a multiprocessing context; pass them as Process args."""
    inboxes = [ctx.Queue() for _ in range(size)]
    return [Endpoint(rank, inboxes) for rank in range(size)]
