""" Supervise a pool of sessions until either every one of them has ended,
    or the user interrupts. Either way, every session is then closed before
    control returns to the caller.
"""

import concurrent.futures
import contextlib
import signal
import threading

import structlog

from .pool import close_sessions
from .protocol import fields


logger = structlog.get_logger(__name__)

INTERRUPT = 'interrupt'
DONE = 'done'

poll_interval = 0.1


class SignalHandlers:
    """ Context manager that routes SIGINT and SIGTERM to *handler* for the
        duration of the block, restoring the previous handlers on exit.
    """

    signals = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, handler):
        self.handler = handler
        self.previous = dict()


    def __enter__(self):

        for signum in self.signals:
            try:
                self.previous[signum] = signal.signal(signum, self.handler)
            except ValueError as e:
                # Only the main thread may install signal handlers.
                logger.debug("signal handler not installed", signal=signum, error=str(e))

        return self


    def __exit__(self, exc_type, exc, tb):

        for signum, previous in self.previous.items():
            signal.signal(signum, previous)

        self.previous = dict()
        return False


# end of class SignalHandlers



def classify(session):
    """ Log why *session* ended, and return the classification.
    """

    reason = session.goodbye_reason

    if session.closed_locally:
        logger.info("disconnected", session=session.id, reason=reason)
        return 'disconnected'

    if reason == fields.SYSTEM_SHUTDOWN:
        logger.warning("router gone", session=session.id)
        return 'router gone'

    if reason is None:
        logger.warning("disconnected unexpectedly", session=session.id)
        return 'disconnected unexpectedly'

    logger.info("disconnected", session=session.id, reason=reason)
    return 'disconnected'



class _Countdown:
    """ Set *event* once :func:`tick` has been called *count* times.
    """

    def __init__(self, count, event):
        self.remaining = count
        self.event = event
        self.lock = threading.Lock()


    def tick(self):
        with self.lock:
            self.remaining -= 1
            if self.remaining <= 0:
                self.event.set()



def _wait(session, stop, countdown):

    while not session.done.wait(poll_interval):
        if stop.is_set():
            countdown.tick()
            return None

    countdown.tick()

    if stop.is_set():
        return None

    return classify(session)



def supervise(sessions, interrupt=None, before_close=None):
    """ Block until every session in *sessions* has ended, or until the
        *interrupt* event is set; if no event is provided, SIGINT and SIGTERM
        set one for the duration of the call. Every session is closed before
        returning, after calling *before_close* with the sessions, if it is
        provided. Returns 'interrupt' or 'done' depending on which
        occurred first.
    """

    if interrupt is None:
        interrupt = threading.Event()
        handlers = SignalHandlers(lambda signum, frame: interrupt.set())
    else:
        handlers = contextlib.nullcontext()

    sessions = list(sessions)
    all_done = threading.Event()
    stop = threading.Event()

    if len(sessions) == 0:
        return DONE

    countdown = _Countdown(len(sessions), all_done)
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=len(sessions))

    try:
        for session in sessions:
            executor.submit(_wait, session, stop, countdown)

        with handlers:
            while True:
                if interrupt.wait(poll_interval):
                    outcome = INTERRUPT
                    break
                if all_done.is_set():
                    outcome = DONE
                    break

        # Waiters still blocked on a live session stop classifying; the
        # closures below end those sessions locally.

        stop.set()
        logger.debug("shutting down", outcome=outcome, sessions=len(sessions))
        if before_close is not None:
            before_close(sessions)

        close_sessions(sessions)

    finally:
        stop.set()
        executor.shutdown(wait=True)

    return outcome


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
