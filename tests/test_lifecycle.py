import threading
import time

from wick import lifecycle
from wick.protocol import fields

from conftest import FakeSession


def test_interrupt():
    sessions = [FakeSession(1), FakeSession(2), FakeSession(3)]
    interrupt = threading.Event()

    timer = threading.Timer(0.1, interrupt.set)
    timer.start()

    outcome = lifecycle.supervise(sessions, interrupt)

    assert outcome == 'interrupt'
    assert all(session.closed for session in sessions)


def test_remote_closure():
    sessions = [FakeSession(1), FakeSession(2)]

    def end_all():
        sessions[0].end(fields.SYSTEM_SHUTDOWN)
        time.sleep(0.05)
        sessions[1].end(fields.CLOSE_REALM)

    threading.Timer(0.05, end_all).start()

    outcome = lifecycle.supervise(sessions, threading.Event())

    assert outcome == 'done'
    assert all(session.closed for session in sessions)


def test_partial_closure_waits():
    sessions = [FakeSession(1), FakeSession(2)]
    interrupt = threading.Event()

    # One session ends early; the other stays up until the interrupt.

    sessions[0].end()
    threading.Timer(0.2, interrupt.set).start()

    begin = time.monotonic()
    outcome = lifecycle.supervise(sessions, interrupt)
    elapsed = time.monotonic() - begin

    assert outcome == 'interrupt'
    assert elapsed >= 0.2
    assert sessions[1].closed


def test_before_close_hook():
    sessions = [FakeSession(1)]
    interrupt = threading.Event()
    interrupt.set()
    seen = list()

    def hook(hooked):
        seen.append([session.closed for session in hooked])

    lifecycle.supervise(sessions, interrupt, hook)

    assert seen == [[False]]
    assert sessions[0].closed


def test_no_sessions():
    assert lifecycle.supervise([], threading.Event()) == 'done'


def test_classify():
    session = FakeSession(1)

    session.goodbye_reason = fields.SYSTEM_SHUTDOWN
    assert lifecycle.classify(session) == 'router gone'

    session.goodbye_reason = None
    assert lifecycle.classify(session) == 'disconnected unexpectedly'

    session.goodbye_reason = fields.CLOSE_REALM
    assert lifecycle.classify(session) == 'disconnected'

    # Closed by this client, with no GOODBYE reason from the router.

    session.goodbye_reason = None
    session.closed_locally = True
    assert lifecycle.classify(session) == 'disconnected'


def test_signal_handlers_restored():
    import signal

    previous = signal.getsignal(signal.SIGINT)
    fired = threading.Event()

    with lifecycle.SignalHandlers(lambda signum, frame: fired.set()):
        assert signal.getsignal(signal.SIGINT) is not previous
        signal.raise_signal(signal.SIGINT)

    assert fired.is_set()
    assert signal.getsignal(signal.SIGINT) is previous


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
