import threading
from concurrent.futures import ThreadPoolExecutor

from nqueens_dist.messages import Message, MessageKind, Readiness
from nqueens_dist.transport import local_transport
from nqueens_dist.worker import Worker, WorkerState

TIMEOUT = 10


class TestWorker:
    """Test suite for the worker agent driven by a scripted master"""

    def test_work_cycle(self):
        """Readiness precedes every batch and termination ends the loop"""
        master, worker_ep = local_transport(2)
        worker = Worker(worker_ep, poll_interval=0.005)
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(worker.run)
            master.broadcast(Message.params(0, 4, 1))
            assert master.recv({MessageKind.READINESS}, timeout=TIMEOUT).status == Readiness.INITIAL

            master.send(1, Message.partial(0, [1]))
            assert master.recv({MessageKind.READINESS}, timeout=TIMEOUT).status == Readiness.SOLUTION_READY
            assert master.recv({MessageKind.RESULT}, timeout=TIMEOUT).payload == (1, 3, 0, 2)

            master.send(1, Message.partial(0, [0]))
            assert master.recv({MessageKind.READINESS}, timeout=TIMEOUT).status == Readiness.NO_SOLUTION_READY

            master.send(1, Message.terminate(0))
            stats = future.result(timeout=TIMEOUT)

        assert worker.state is WorkerState.TERMINATED
        assert stats.units_processed == 2
        assert stats.solutions_found == 1
        assert not stats.aborted
        assert master.poll(tuple(MessageKind)) is None

    def test_batch_from_empty_prefix(self):
        """With k=0 one unit covers the whole board"""
        master, worker_ep = local_transport(2)
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(Worker(worker_ep, poll_interval=0.005).run)
            master.broadcast(Message.params(0, 6, 0))
            master.recv({MessageKind.READINESS}, timeout=TIMEOUT)
            master.send(1, Message.partial(0, []))
            assert master.recv({MessageKind.READINESS}, timeout=TIMEOUT).status == Readiness.SOLUTION_READY
            batch = master.recv({MessageKind.RESULT}, timeout=TIMEOUT).payload
            master.send(1, Message.terminate(0))
            future.result(timeout=TIMEOUT)
        assert len(batch) == 6 * 4

    def test_terminate_while_idle(self):
        """A worker that never gets work stops on termination"""
        master, worker_ep = local_transport(2)
        master.broadcast(Message.params(0, 8, 2))
        master.send(1, Message.terminate(0))
        stats = Worker(worker_ep, poll_interval=0.005).run()
        assert stats.units_processed == 0
        assert master.recv({MessageKind.READINESS}, timeout=TIMEOUT).status == Readiness.INITIAL

    def test_duplicate_terminate_is_ignored(self):
        """A second termination signal is simply dropped"""
        master, worker_ep = local_transport(2)
        master.broadcast(Message.params(0, 4, 1))
        master.send(1, Message.terminate(0))
        master.send(1, Message.terminate(0))
        worker = Worker(worker_ep, poll_interval=0.005)
        worker.run()
        assert worker.state is WorkerState.TERMINATED
        assert worker_ep.poll(tuple(MessageKind)) is None

    def test_abort_before_params(self):
        """The abort event releases a worker still waiting for params"""
        _, worker_ep = local_transport(2)
        abort = threading.Event()
        abort.set()
        stats = Worker(worker_ep, poll_interval=0.005, abort=abort).run()
        assert stats.aborted
        assert stats.idle_polls >= 1
