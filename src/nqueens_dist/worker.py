from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

import structlog

from nqueens_dist.enumerator import search
from nqueens_dist.logs import configure_logging
from nqueens_dist.messages import Message, MessageKind, Readiness
from nqueens_dist.sink import SolutionSink
from nqueens_dist.transport import MASTER_RANK, Endpoint

log = structlog.get_logger()

WORK_OR_STOP = (MessageKind.PARTIAL, MessageKind.TERMINATE)


class WorkerState(Enum):
    AWAITING_PARAMS = "awaiting_params"
    IDLE = "idle"
    COMPUTING = "computing"
    TERMINATED = "terminated"


@dataclass
class WorkerStats:
    units_processed: int = 0
    solutions_found: int = 0
    idle_polls: int = 0
    aborted: bool = False


class Worker:
    """
    Completes partial placements handed out by the master.

    While idle the worker waits on its inbox for either a partial placement
    or the termination signal, re-checking both (and the abort event) every
    poll_interval seconds. A unit of work always runs to completion before
    the next message is looked at.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        *,
        poll_interval: float = 0.01,
        abort: Optional[Any] = None,
    ) -> None:
        self.endpoint = endpoint
        self.poll_interval = poll_interval
        self.abort = abort
        self.state = WorkerState.AWAITING_PARAMS
        self.stats = WorkerStats()
        self.n = 0
        self.k = 0
        self.board: List[int] = []
        self.log = log.bind(role="worker", rank=endpoint.rank)

    def run(self) -> WorkerStats:
        params = self._wait((MessageKind.PARAMS,))
        if params is None:
            return self._stop_aborted()
        self.n, self.k = params.payload
        self.board = [0] * self.n
        self.log.debug("params received", n=self.n, k=self.k)

        self._send_readiness(Readiness.INITIAL)
        self.state = WorkerState.IDLE

        while self.state is WorkerState.IDLE:
            message = self._wait(WORK_OR_STOP)
            if message is None:
                return self._stop_aborted()
            if message.kind == MessageKind.TERMINATE:
                self._terminate()
                break
            self._compute(message.payload)

        return self.stats

    def _compute(self, partial: tuple) -> None:
        self.state = WorkerState.COMPUTING
        self.board[:len(partial)] = partial
        sink = SolutionSink(self.n)
        self.log.debug("unit started", partial=list(partial))
        search(self.board, self.k, self.n, sink.accept)

        found = len(sink)
        batch = sink.drain()
        self.stats.units_processed += 1
        self.stats.solutions_found += found
        if batch:
            self._send_readiness(Readiness.SOLUTION_READY)
            self.endpoint.send(MASTER_RANK, Message.result(self.endpoint.rank, batch))
        else:
            self._send_readiness(Readiness.NO_SOLUTION_READY)
        self.log.debug("unit finished", partial=list(partial), solutions=found)
        self.state = WorkerState.IDLE

    def _wait(self, kinds) -> Optional[Message]:
        """Bounded-wait loop on the inbox. Returns None once the run is aborted."""
        while True:
            message = self.endpoint.recv(kinds, source=MASTER_RANK, timeout=self.poll_interval)
            if message is not None:
                return message
            self.stats.idle_polls += 1
            if self.abort is not None and self.abort.is_set():
                return None

    def _send_readiness(self, status: Readiness) -> None:
        self.endpoint.send(MASTER_RANK, Message.readiness(self.endpoint.rank, status))

    def _terminate(self) -> None:
        self.state = WorkerState.TERMINATED
        for message in self.endpoint.discard_pending():
            if message.kind == MessageKind.PARTIAL:
                self.log.warning("dropping work received after termination", partial=list(message.payload))
        self.log.info("terminated", units=self.stats.units_processed, solutions=self.stats.solutions_found)

    def _stop_aborted(self) -> WorkerStats:
        self.state = WorkerState.TERMINATED
        self.stats.aborted = True
        self.endpoint.discard_pending()
        self.log.warning("aborted", units=self.stats.units_processed)
        return self.stats


def worker_main(
    endpoint: Endpoint,
    poll_interval: float,
    abort: Any,
    log_level: str = "WARNING",
    json_logs: bool = False,
) -> None:
    """Entry point of a spawned worker process."""
    configure_logging(log_level, json_logs)
    Worker(endpoint, poll_interval=poll_interval, abort=abort).run()
