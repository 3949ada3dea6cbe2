"""Bootstraps a run: assigns ranks, starts the workers and drives the master."""
import multiprocessing
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog

from nqueens_dist.config import Backend, RunConfig, validate_params
from nqueens_dist.enumerator import solve_sequential
from nqueens_dist.master import Master, MasterStats, RunSnapshot
from nqueens_dist.sink import split_batch
from nqueens_dist.state_queue import SingleSlotQueue
from nqueens_dist.transport import MASTER_RANK, local_transport, process_transport
from nqueens_dist.worker import Worker, worker_main

log = structlog.get_logger()

# Seconds surviving workers get to notice an abort before they are killed.
ABORT_GRACE = 5.0


@dataclass
class RunResult:
    n: int
    k: int
    workers: int
    solutions: List[int]
    elapsed: float
    stats: Optional[MasterStats] = None
    backend: str = "sequential"

    @property
    def count(self) -> int:
        return len(self.solutions) // self.n

    def boards(self) -> List[Tuple[int, ...]]:
        return split_batch(self.solutions, self.n)


def run_sequential(n: int) -> RunResult:
    validate_params(n, n)
    started = time.perf_counter()
    solutions = solve_sequential(n)
    return RunResult(n=n, k=n, workers=0, solutions=solutions, elapsed=time.perf_counter() - started)


def run_distributed(
    config: RunConfig,
    progress: Optional[SingleSlotQueue[RunSnapshot]] = None,
) -> RunResult:
    """Run the master in the calling thread against config.workers workers."""
    try:
        if config.backend is Backend.THREAD:
            return _run_threads(config, progress)
        return _run_processes(config, progress)
    finally:
        # Always close the queue so the UI can exit.
        if progress is not None:
            progress.close()


def _run_master(config: RunConfig, master: Master) -> RunResult:
    started = time.perf_counter()
    solutions = master.run()
    elapsed = time.perf_counter() - started
    log.info("run finished", n=config.n, k=config.k, solutions=len(solutions) // config.n, elapsed=round(elapsed, 4))
    return RunResult(
        n=config.n,
        k=config.k,
        workers=config.workers,
        solutions=solutions,
        elapsed=elapsed,
        stats=master.stats,
        backend=config.backend.value,
    )


def _run_threads(config: RunConfig, progress: Optional[SingleSlotQueue[RunSnapshot]]) -> RunResult:
    endpoints = local_transport(config.workers + 1)
    abort = threading.Event()
    master = Master(endpoints[MASTER_RANK], config.n, config.k, progress=progress)

    with ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="nqueens-worker") as executor:
        futures = [
            executor.submit(Worker(endpoint, poll_interval=config.poll_interval, abort=abort).run)
            for endpoint in endpoints[1:]
        ]
        try:
            result = _run_master(config, master)
        except BaseException:
            abort.set()
            raise
        for future in futures:
            future.result()
    return result


def _run_processes(config: RunConfig, progress: Optional[SingleSlotQueue[RunSnapshot]]) -> RunResult:
    ctx = multiprocessing.get_context("spawn")
    endpoints = process_transport(config.workers + 1, ctx)
    abort = ctx.Event()

    processes = [
        ctx.Process(
            target=worker_main,
            args=(endpoint, config.poll_interval, abort, config.log_level, config.json_logs),
            name=f"nqueens-worker-{endpoint.rank}",
        )
        for endpoint in endpoints[1:]
    ]
    for process in processes:
        process.start()

    master = Master(endpoints[MASTER_RANK], config.n, config.k, progress=progress)
    try:
        result = _run_master(config, master)
    except BaseException:
        abort.set()
        for process in processes:
            process.join(ABORT_GRACE)
            if process.is_alive():
                log.warning("killing worker", worker=process.name)
                process.terminate()
                process.join()
        raise

    for process in processes:
        process.join()
        if process.exitcode != 0:
            log.warning("worker exited abnormally", worker=process.name, exitcode=process.exitcode)
    return result
