""" The per-session operations behind the subscribe, publish, register, and
    call commands, plus helpers to run one of them across every session in
    a pool. Results are printed to stdout; everything else is logged.
"""

import concurrent.futures
import subprocess
import sys
import threading
import time

import structlog

from . import dispatch
from . import render
from .errors import OperationError, aggregate


logger = structlog.get_logger(__name__)

# Keeps the lines of one rendered result together when several iterations
# print at once.

output_lock = threading.Lock()

close_delay = 1.0


def _print(text):
    with output_lock:
        print(text, flush=True)



def _write_raw(args, index):
    with output_lock:
        stream = sys.stdout.buffer
        render.dump_raw(args, index, stream)
        stream.flush()



def _elapsed(start):
    return int((time.monotonic() - start) * 1000)



def for_each_session(sessions, concurrency, operation):
    """ Run *operation* once for each session in *sessions*, with at most
        *concurrency* running at a time, and raise an
        :class:`wick.errors.AggregateError` naming every failure once all of
        them have finished.
    """

    workers = max(1, min(concurrency, len(sessions)))
    futures = list()

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        for session in sessions:
            futures.append(executor.submit(operation, session))

    error = aggregate([future.exception() for future in futures])
    if error is not None:
        raise error



def subscribe(session, topic, options=None, details=False, log_time=False, on_event=None):
    """ Subscribe *session* to *topic*, printing every event received. If
        provided, *on_event* is called with no arguments after each event
        is printed.
    """

    def handler(payload):
        shown = payload.details if details else None
        _print(render.render(payload.args, payload.kwargs, shown))

        if on_event is not None:
            on_event()

    start = time.monotonic()
    subscription = session.subscribe(topic, handler, options)

    if log_time:
        logger.info("subscribed", topic=topic, elapsed_ms=_elapsed(start))
    else:
        logger.info("subscribed", topic=topic)

    return subscription



def publish(session, topic, args, kwargs, options=None, repeat=1, delay=0, concurrency=1, log_time=False):
    """ Publish to *topic* *repeat* times from *session*, waiting *delay*
        milliseconds before each publication.
    """

    request = dispatch.OperationRequest(topic, list(args or ()), dict(kwargs or {}), dict(options or {}), repeat, concurrency, delay)

    def perform(iteration):
        session.publish(request.target, request.args, request.kwargs, request.options)

    start = time.monotonic()
    result = dispatch.run(request, perform)
    result.raise_for_errors()

    if log_time:
        logger.info("publish finished", count=repeat, elapsed_ms=_elapsed(start))



def shell_out(command):
    """ Run *command* with bash and return its stdout. A non-zero exit is
        logged, and whatever the command printed is still returned.
    """

    completed = subprocess.run(['bash', '-c', command], capture_output=True, text=True)

    if completed.returncode != 0:
        logger.error("command failed", command=command, returncode=completed.returncode, stderr=completed.stderr.strip())

    return completed.stdout



def register(session, procedure, command=None, delay=0, invoke_count=0, options=None, log_time=False):
    """ Register *procedure* on *session*. Each invocation is printed, and
        answered with the stdout of *command* (or an empty string if there is
        no command). If *invoke_count* is positive, the procedure is
        unregistered after that many invocations, and the session closed a
        second later.
    """

    if delay > 0:
        logger.info("procedure will be registered after delay", procedure=procedure, delay_ms=delay)
        time.sleep(delay / 1000.0)

    state = {'remaining': invoke_count, 'registration': None}
    lock = threading.Lock()

    # An invocation may arrive before register() returns the id.

    registered = threading.Event()

    def handler(payload):
        _print(render.render(payload.args, payload.kwargs))

        result = ''
        if command:
            result = shell_out(command)

        if invoke_count > 0:
            with lock:
                state['remaining'] -= 1
                finished = state['remaining'] == 0

            if finished:
                registered.wait()
                session.unregister(state['registration'])
                timer = threading.Timer(close_delay, _close_after_invocations, args=(session,))
                timer.daemon = True
                timer.start()

        return [result], None

    start = time.monotonic()
    registration = session.register(procedure, handler, options)
    state['registration'] = registration
    registered.set()

    if log_time:
        logger.info("registered", procedure=procedure, elapsed_ms=_elapsed(start))
    else:
        logger.info("registered", procedure=procedure)

    return registration



def _close_after_invocations(session):
    logger.info("session closing", session=session.id)
    session.close()



def call(session, procedure, args, kwargs, options=None, repeat=1, delay=0, concurrency=1, log_time=False, raw_index=None, details=False):
    """ Call *procedure* *repeat* times from *session*, waiting *delay*
        milliseconds before each call. Non-empty results are printed; if
        *raw_index* is set, only that result argument is written to stdout,
        as raw bytes. If the options request progressive results, each one
        is printed as it arrives.
    """

    options = dict(options or {})
    request = dispatch.OperationRequest(procedure, list(args or ()), dict(kwargs or {}), options, repeat, concurrency, delay)

    progressive = options.get('receive_progress') == True

    def on_progress(payload):
        if raw_index is None:
            _print(render.render_progress(payload.args, payload.kwargs))
        else:
            _write_raw(payload.args, raw_index)

    def perform(iteration):
        callback = on_progress if progressive else None
        result = session.call(request.target, request.args, request.kwargs, request.options, callback)

        if raw_index is not None:
            # A progressive stream may end with an empty final result.
            if result.args or not progressive:
                _write_raw(result.args, raw_index)
        elif result.args or result.kwargs:
            shown = result.details if details else None
            _print(render.render(result.args, result.kwargs, shown))

    start = time.monotonic()
    result = dispatch.run(request, perform)
    result.raise_for_errors()

    if log_time:
        logger.info("calls finished", count=repeat, elapsed_ms=_elapsed(start))



def _best_effort(sessions, teardown, label):

    if len(sessions) == 0:
        return

    with concurrent.futures.ThreadPoolExecutor(max_workers=len(sessions)) as executor:
        futures = [executor.submit(teardown, session) for session in sessions]

    for session, future in zip(sessions, futures):
        exception = future.exception()
        if exception is not None:
            logger.warning(label + " failed", session=session.id, error=str(exception))



def _unsubscribe(session):
    if session.done.is_set():
        return

    errors = list()

    for subscription in session.subscriptions:
        try:
            session.unsubscribe(subscription)
        except OperationError as e:
            errors.append(e)

    error = aggregate(errors)
    if error is not None:
        raise error



def _unregister(session):
    if session.done.is_set():
        return

    errors = list()

    for registration in session.registrations:
        try:
            session.unregister(registration)
        except OperationError as e:
            errors.append(e)

    error = aggregate(errors)
    if error is not None:
        raise error



def unsubscribe_all(sessions):
    """ Remove every subscription held by *sessions*; failures are logged.
    """

    _best_effort(sessions, _unsubscribe, 'unsubscribe')



def unregister_all(sessions):
    """ Remove every registration held by *sessions*; failures are logged.
    """

    _best_effort(sessions, _unregister, 'unregister')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
