from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

import structlog

from nqueens_dist.config import validate_params
from nqueens_dist.enumerator import search
from nqueens_dist.errors import ProtocolViolation
from nqueens_dist.messages import Message, MessageKind, Readiness
from nqueens_dist.sink import SolutionSink
from nqueens_dist.state_queue import SingleSlotQueue
from nqueens_dist.transport import Endpoint

log = structlog.get_logger()


class MasterState(Enum):
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    TERMINATING = "terminating"
    DONE = "done"


@dataclass
class MasterStats:
    units_dispatched: int = 0
    reports_received: int = 0
    batches_received: int = 0
    terminations_sent: int = 0
    leftover_messages: int = 0
    units_per_worker: Dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RunSnapshot:
    """Immutable view of the master's progress, published for the UI."""

    version: int
    state: MasterState
    n: int
    k: int
    workers: int
    units_dispatched: int
    reports_received: int
    live_workers: int
    solutions: int
    units_per_worker: Tuple[Tuple[int, int], ...] = field(default_factory=tuple)

    @property
    def complete(self) -> bool:
        return self.state is MasterState.DONE


class Master:
    """
    Coordinates one run: enumerates the first k rows itself and hands each
    partial placement to whichever worker reports in next.

    Each call of the enumerator's callback blocks until some worker signals
    readiness, collects that worker's previous results if it announced any,
    and then sends it the new partial placement. Once the master's own
    search space is exhausted it drains the outstanding work, terminates
    every worker and returns the collected solutions as one flat list.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        n: int,
        k: int,
        *,
        progress: Optional[SingleSlotQueue[RunSnapshot]] = None,
    ) -> None:
        self.endpoint = endpoint
        self.n = n
        self.k = k
        self.progress = progress
        self.state: Optional[MasterState] = None
        self.live_workers = 0
        self.stats = MasterStats()
        self.sink = SolutionSink(n)
        self._busy: Set[int] = set()
        self._version = 0
        self.log = log.bind(role="master", rank=endpoint.rank)

    @property
    def worker_ranks(self) -> List[int]:
        return [r for r in range(self.endpoint.size) if r != self.endpoint.rank]

    def run(self) -> List[int]:
        validate_params(self.n, self.k)
        if not self.worker_ranks:
            raise ProtocolViolation("no workers to distribute to")

        self.endpoint.broadcast(Message.params(self.endpoint.rank, self.n, self.k))
        self.log.info("params broadcast", n=self.n, k=self.k, workers=len(self.worker_ranks))

        self._enter(MasterState.DISPATCHING)
        board = [0] * self.n
        if self.k == self.n:
            # The master's own placements are already complete boards.
            search(board, 0, self.n, self.sink.accept)
        else:
            search(board, 0, self.k, self._dispatch)

        self._enter(MasterState.DRAINING)
        while self.live_workers > 0:
            self._receive_report()

        self._enter(MasterState.TERMINATING)
        for rank in self.worker_ranks:
            self.endpoint.send(rank, Message.terminate(self.endpoint.rank))
            self.stats.terminations_sent += 1

        leftovers = self.endpoint.discard_pending()
        self.stats.leftover_messages = len(leftovers)
        if leftovers:
            self.log.debug("discarded unconsumed messages", count=len(leftovers))
        for message in leftovers:
            if message.kind != MessageKind.READINESS or message.payload != (Readiness.INITIAL,):
                self.log.warning("unexpected leftover message", kind=message.kind.name, source=message.source)

        self._enter(MasterState.DONE)
        return self.sink.flat()

    def _dispatch(self, partial: List[int]) -> None:
        """Enumerator callback: hand one partial placement to the next ready worker."""
        worker = self._receive_report()
        self.endpoint.send(worker, Message.partial(self.endpoint.rank, partial))
        self.live_workers += 1
        self._busy.add(worker)
        self.stats.units_dispatched += 1
        self.stats.units_per_worker[worker] = self.stats.units_per_worker.get(worker, 0) + 1
        self.log.debug("dispatched", worker=worker, partial=partial, live_workers=self.live_workers)
        self._publish()

    def _receive_report(self) -> int:
        """Block until any worker signals readiness, take its results, and return its rank."""
        message = self.endpoint.recv({MessageKind.READINESS, MessageKind.RESULT})
        source = message.source
        if message.kind == MessageKind.RESULT:
            raise ProtocolViolation(f"worker {source} sent a result batch without announcing it")
        try:
            status = message.status
        except ValueError as e:
            raise ProtocolViolation(f"worker {source} sent unknown readiness {message.payload!r}") from e

        if status == Readiness.INITIAL:
            if source in self._busy:
                raise ProtocolViolation(f"worker {source} sent initial readiness while holding work")
            return source

        if source not in self._busy:
            raise ProtocolViolation(f"worker {source} reported without holding work")

        found = 0
        if status == Readiness.SOLUTION_READY:
            batch = self.endpoint.recv(tuple(MessageKind), source=source)
            if batch.kind != MessageKind.RESULT:
                raise ProtocolViolation(f"worker {source} announced results but sent {batch.kind.name}")
            found = self.sink.extend_batch(batch.payload)
            self.stats.batches_received += 1

        self._busy.discard(source)
        self.live_workers -= 1
        self.stats.reports_received += 1
        self.log.debug("report", worker=source, solutions=found, live_workers=self.live_workers)
        self._publish()
        return source

    def _enter(self, state: MasterState) -> None:
        self.state = state
        self.log.info("state", state=state.value, live_workers=self.live_workers, solutions=len(self.sink))
        self._publish()

    def snapshot(self) -> RunSnapshot:
        self._version += 1
        return RunSnapshot(
            version=self._version,
            state=self.state,
            n=self.n,
            k=self.k,
            workers=len(self.worker_ranks),
            units_dispatched=self.stats.units_dispatched,
            reports_received=self.stats.reports_received,
            live_workers=self.live_workers,
            solutions=len(self.sink),
            units_per_worker=tuple(sorted(self.stats.units_per_worker.items())),
        )

    def _publish(self) -> None:
        if self.progress is not None:
            self.progress.publish(self.snapshot())
