import threading

import pytest
from nqueens_dist.messages import Message, MessageKind, Readiness
from nqueens_dist.transport import ANY_SOURCE, Endpoint, local_transport


class TestEndpoint:
    """Test suite for Endpoint over in-process queues"""

    def test_send_and_recv(self):
        """A sent message is received by its destination"""
        master, worker = local_transport(2)
        master.send(1, Message.partial(0, [2, 0]))
        message = worker.recv({MessageKind.PARTIAL})
        assert message == Message(MessageKind.PARTIAL, 0, (2, 0))

    def test_size(self):
        """Size counts every participant"""
        endpoints = local_transport(4)
        assert [e.rank for e in endpoints] == [0, 1, 2, 3]
        assert endpoints[2].size == 4

    def test_invalid_rank(self):
        """A rank outside the participant range is rejected"""
        with pytest.raises(ValueError):
            Endpoint(3, [])

    def test_send_to_self(self):
        """Sending to one's own rank is rejected"""
        master, _ = local_transport(2)
        with pytest.raises(ValueError):
            master.send(0, Message.terminate(0))

    def test_broadcast(self):
        """Broadcast reaches every other rank but not the sender"""
        endpoints = local_transport(3)
        endpoints[0].broadcast(Message.params(0, 8, 3))
        for endpoint in endpoints[1:]:
            assert endpoint.recv({MessageKind.PARAMS}).payload == (8, 3)
        assert endpoints[0].poll({MessageKind.PARAMS}) is None

    def test_kind_matching_keeps_others_buffered(self):
        """Receiving one kind leaves earlier messages of other kinds in order"""
        master, worker = local_transport(2)
        master.send(1, Message.partial(0, [1]))
        master.send(1, Message.partial(0, [2]))
        master.send(1, Message.terminate(0))
        assert worker.recv({MessageKind.TERMINATE}).kind == MessageKind.TERMINATE
        assert worker.recv({MessageKind.PARTIAL}).payload == (1,)
        assert worker.recv({MessageKind.PARTIAL}).payload == (2,)

    def test_source_matching(self):
        """A receive for one source skips messages from other sources"""
        master, first, second = local_transport(3)
        first.send(0, Message.readiness(1, Readiness.INITIAL))
        second.send(0, Message.readiness(2, Readiness.INITIAL))
        assert master.recv({MessageKind.READINESS}, source=2).source == 2
        assert master.recv({MessageKind.READINESS}, source=ANY_SOURCE).source == 1

    def test_fifo_per_sender(self):
        """Messages from one sender arrive in send order"""
        master, worker = local_transport(2)
        for i in range(20):
            worker.send(0, Message.result(1, [i]))
        received = [master.recv({MessageKind.RESULT}).payload[0] for _ in range(20)]
        assert received == list(range(20))

    def test_recv_timeout(self):
        """A finite timeout returns None when nothing matches"""
        master, worker = local_transport(2)
        master.send(1, Message.partial(0, [0]))
        assert worker.recv({MessageKind.TERMINATE}, timeout=0.05) is None
        assert worker.poll({MessageKind.PARTIAL}).payload == (0,)

    def test_recv_blocks_until_delivery(self):
        """A blocking receive wakes when another thread sends"""
        master, worker = local_transport(2)
        timer = threading.Timer(0.05, worker.send, args=(0, Message.readiness(1, Readiness.INITIAL)))
        timer.start()
        message = master.recv({MessageKind.READINESS}, timeout=5)
        timer.join()
        assert message.status == Readiness.INITIAL

    def test_discard_pending(self):
        """Discarding returns buffered and undelivered messages and empties the inbox"""
        master, worker = local_transport(2)
        master.send(1, Message.partial(0, [0]))
        master.send(1, Message.terminate(0))
        worker.recv({MessageKind.TERMINATE})
        dropped = worker.discard_pending()
        assert [m.kind for m in dropped] == [MessageKind.PARTIAL]
        assert worker.poll(tuple(MessageKind)) is None


def test_message_status():
    assert Message.readiness(3, Readiness.NO_SOLUTION_READY).status == Readiness.NO_SOLUTION_READY
    with pytest.raises(TypeError):
        Message.terminate(0).status
    with pytest.raises(ValueError):
        Message(MessageKind.READINESS, 1, ()).status
    with pytest.raises(ValueError):
        Message(MessageKind.READINESS, 1, (1, 1)).status
