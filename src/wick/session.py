""" A WAMP session on top of a :class:`wick.transport.Transport`. The
    :class:`Session` performs the join handshake in the calling thread, then
    hands the transport to a background reader thread that correlates
    replies with the requests awaiting them, delivers events to subscription
    handlers, and farms invocations out to a small pool of worker threads.

    All public methods are thread-safe: any number of threads may issue
    calls, publications, and the like through one session concurrently.
"""

from __future__ import annotations

import concurrent.futures
import enum
import functools
import itertools
import threading
from typing import Callable, Dict, Optional

import structlog

from .errors import ConnectError, OperationError
from .identity import Challenge
from .protocol import fields
from .protocol import message as wamp
from .protocol.message import Payload
from .transport import TransportError


logger = structlog.get_logger(__name__)


class State(enum.Enum):
    CONNECTING = 'connecting'
    ESTABLISHED = 'established'
    ACTIVE = 'active'
    CLOSING = 'closing'
    CLOSED = 'closed'
    FAILED = 'failed'


terminal = (State.CLOSED, State.FAILED)

# Messages that answer a request the client issued, with the request id at
# position 1.

replies = (fields.RESULT, fields.PUBLISHED, fields.SUBSCRIBED, fields.UNSUBSCRIBED, fields.REGISTERED, fields.UNREGISTERED)


class PendingRequest:
    """ Caller-side synchronization for one outstanding request. The reader
        thread completes it with the reply, or fails it with an exception;
        the issuing thread blocks in :func:`wait` until one or the other
        occurs.
    """

    def __init__(self, request_id: int, handler=None, on_progress=None):
        self.id = request_id
        self.handler = handler
        self.on_progress = on_progress
        self.response = None
        self.error: Optional[Exception] = None
        self.event = threading.Event()

    def wait(self, timeout: Optional[float] = None):
        if not self.event.wait(timeout):
            raise OperationError(f"request {self.id}: no response in {timeout:.1f} sec")

        if self.error is not None:
            raise self.error

        return self.response

    def _complete(self, response) -> None:
        self.response = response
        self.event.set()

    def _fail(self, error: Exception) -> None:
        self.error = error
        self.event.set()


def error_from_message(message: list) -> OperationError:
    """ Build an :class:`OperationError` from a received ERROR message.
    """

    uri = message[4]
    payload = Payload.from_message(message, 3, 5)

    text = uri
    if payload.args:
        text += ': ' + ', '.join(str(arg) for arg in payload.args)

    return OperationError(text, uri, payload.args, payload.kwargs)


class Session:
    """ One WAMP session. The *transport* must already be connected; call
        :func:`join` to attach to a realm. If *keepalive* is positive, a ping
        is sent every *keepalive* seconds while the session is open.

        Once the session ends, for any reason, :attr:`done` is set. If the
        router ended it with a GOODBYE, :attr:`goodbye_reason` holds the
        reason URI; otherwise it remains None. If this client ended it with
        :func:`close`, :attr:`closed_locally` is True.
    """

    close_timeout = 2
    invocation_workers = 8

    def __init__(self, transport, keepalive: float = 0):
        self.transport = transport
        self.keepalive = keepalive

        self.state = State.CONNECTING
        self.id = None
        self.realm = None
        self.authid = None
        self.authrole = None
        self.authmethod = None

        self.done = threading.Event()
        self.goodbye_reason: Optional[str] = None
        self.closed_locally = False

        self._lock = threading.RLock()
        self._send_lock = threading.Lock()
        self._ids = itertools.count(1)
        self._pending: Dict[int, PendingRequest] = dict()
        self._subscriptions: Dict[int, Callable] = dict()
        self._registrations: Dict[int, Callable] = dict()
        self._goodbye_received = threading.Event()

        self.workers = concurrent.futures.ThreadPoolExecutor(max_workers=self.invocation_workers)
        self.reader = None
        self.pinger = None


    def __repr__(self):
        return f"Session(id={self.id!r}, state={self.state.value})"


    def join(self, realm: str, hello_details: dict, variant) -> 'Session':
        """ Send HELLO for *realm* and run the handshake to completion. Any
            CHALLENGE is answered by the authentication *variant*. Raises
            :class:`ConnectError` if the router aborts, or if the challenge
            cannot be answered.
        """

        details = dict(hello_details)
        details['roles'] = fields.roles
        details['authmethods'] = [variant.method]

        try:
            self._send(wamp.hello(realm, details))

            established = False
            while not established:
                for received in self.transport.recv():
                    established = self._handshake(received, variant)
                    if established:
                        break

        except TransportError as e:
            self._fail_join(ConnectError(f"join {realm}: {e}"), e)
        except ConnectError as e:
            self._fail_join(e)
        except Exception as e:
            self._fail_join(ConnectError(f"join {realm}: {type(e).__name__}: {e}"), e)

        self.realm = realm

        logger.debug("session joined", session=self.id, realm=realm, authid=self.authid, authrole=self.authrole, authmethod=self.authmethod)

        self.reader = threading.Thread(target=self.run, daemon=True)
        self.reader.start()

        if self.keepalive and self.keepalive > 0:
            self.pinger = threading.Thread(target=self._ping, daemon=True)
            self.pinger.start()

        return self


    def _handshake(self, received: list, variant) -> bool:
        """ Handle one message received while joining. Returns True when the
            session is established.
        """

        code = received[0]

        if code == fields.WELCOME:
            details = received[2] if len(received) > 2 else dict()
            self.id = received[1]
            self.authid = details.get('authid')
            self.authrole = details.get('authrole')
            self.authmethod = details.get('authmethod', variant.method)
            with self._lock:
                self.state = State.ESTABLISHED
            return True

        if code == fields.ABORT:
            details = received[1] if len(received) > 1 else dict()
            reason = received[2] if len(received) > 2 else 'wamp.error.unknown'
            text = details.get('message')
            if text:
                reason = f"{reason}: {text}"
            raise ConnectError(reason)

        if code == fields.CHALLENGE:
            method = received[1]
            extra = received[2] if len(received) > 2 else dict()

            respond = getattr(variant, 'respond', None)
            if respond is None or method != variant.method:
                raise ConnectError(f"unexpected {method} challenge for authmethod {variant.method}")

            signature, extra = respond(Challenge(method, dict(extra)))
            self._send(wamp.authenticate(signature, extra))
            return False

        raise ConnectError(f"unexpected {wamp.name(received)} message while joining")


    def _fail_join(self, error: ConnectError, cause: Optional[Exception] = None) -> None:

        with self._lock:
            self.state = State.FAILED

        try:
            self.transport.close()
        except TransportError as e:
            logger.debug("transport close failed", error=str(e))

        self.workers.shutdown(wait=False)
        self.done.set()

        if cause is not None:
            raise error from cause
        raise error


    def run(self) -> None:
        """ Reader loop, run in a background thread until the transport is
            closed.
        """

        while True:
            try:
                messages = self.transport.recv()
            except TransportError as e:
                if self.state == State.CLOSING:
                    logger.debug("transport closed", session=self.id)
                else:
                    logger.warning("connection lost", session=self.id, error=str(e))
                self._terminate()
                return

            for received in messages:
                try:
                    finished = self._dispatch(received)
                except (IndexError, TypeError, KeyError, ValueError) as e:
                    logger.exception("malformed message", session=self.id, message=wamp.name(received))
                    self._fail_malformed(received, e)
                    continue

                if finished:
                    return


    def _dispatch(self, received: list) -> bool:
        """ Handle one message received on an established session. Returns
            True when the session has ended.
        """

        code = received[0]

        if code == fields.RESULT:
            self._result(received)

        elif code in (fields.PUBLISHED, fields.UNSUBSCRIBED, fields.UNREGISTERED):
            pending = self._pop(received[1])
            if pending is not None:
                pending._complete(received)

        elif code == fields.SUBSCRIBED:
            pending = self._pop(received[1])
            if pending is not None:
                self._subscriptions[received[2]] = pending.handler
                pending._complete(received[2])

        elif code == fields.REGISTERED:
            pending = self._pop(received[1])
            if pending is not None:
                self._registrations[received[2]] = pending.handler
                pending._complete(received[2])

        elif code == fields.ERROR:
            error = error_from_message(received)
            pending = self._pop(received[2])
            if pending is not None:
                pending._fail(error)

        elif code == fields.EVENT:
            self._event(received)

        elif code == fields.INVOCATION:
            self._invocation(received)

        elif code == fields.GOODBYE:
            return self._goodbye(received)

        elif code == fields.ABORT:
            logger.warning("session aborted", session=self.id, reason=received[2])
            self._close_transport()
            self._terminate()
            return True

        else:
            logger.debug("ignoring message", session=self.id, message=wamp.name(received))

        return False


    def _pop(self, request_id) -> Optional[PendingRequest]:

        with self._lock:
            pending = self._pending.pop(request_id, None)

        if pending is None:
            logger.debug("no pending request", session=self.id, request=request_id)

        return pending


    def _fail_malformed(self, received, error: Exception) -> None:
        """ Fail the pending request a reply that could not be decoded was
            meant for, if it names one.
        """

        try:
            code = received[0]
            if code == fields.ERROR:
                request_id = received[2]
            elif code in replies:
                request_id = received[1]
            else:
                return
        except (IndexError, TypeError):
            return

        try:
            pending = self._pop(request_id)
        except TypeError:
            return

        if pending is not None:
            pending._fail(OperationError(f"malformed {wamp.name(received)} reply to request {request_id}: {error}"))


    def _result(self, received: list) -> None:

        request_id = received[1]
        payload = Payload.from_message(received, 2)

        if payload.progress:
            with self._lock:
                pending = self._pending.get(request_id)

            if pending is not None and pending.on_progress is not None:
                try:
                    pending.on_progress(payload)
                except Exception:
                    logger.exception("progress handler failed", session=self.id, request=request_id)
            return

        pending = self._pop(request_id)
        if pending is not None:
            pending._complete(payload)


    def _event(self, received: list) -> None:

        subscription = received[1]
        handler = self._subscriptions.get(subscription)

        if handler is None:
            logger.debug("event for unknown subscription", session=self.id, subscription=subscription)
            return

        payload = Payload.from_message(received, 3)

        try:
            handler(payload)
        except Exception:
            logger.exception("event handler failed", session=self.id, subscription=subscription)


    def _invocation(self, received: list) -> None:

        request_id = received[1]
        registration = received[2]
        handler = self._registrations.get(registration)

        if handler is None:
            error = wamp.error(fields.INVOCATION, request_id, fields.NO_SUCH_REGISTRATION)
            self._send_quietly(error)
            return

        payload = Payload.from_message(received, 3)
        self.workers.submit(self._invoke, request_id, handler, payload)


    def _invoke(self, request_id: int, handler: Callable, payload: Payload) -> None:
        """ Run an invocation *handler* in a worker thread, and send the
            YIELD or ERROR reply. The handler returns a tuple of (args,
            kwargs), or None for an empty result.
        """

        try:
            result = handler(payload)
        except Exception as e:
            logger.exception("invocation handler failed", session=self.id, request=request_id)
            reply = wamp.error(fields.INVOCATION, request_id, fields.RUNTIME_ERROR, [str(e)])
        else:
            if result is None:
                result = (None, None)
            args, kwargs = result
            reply = wamp.yield_(request_id, args, kwargs)

        self._send_quietly(reply)


    def _goodbye(self, received: list) -> bool:

        reason = received[2] if len(received) > 2 else None

        with self._lock:
            closing = self.state == State.CLOSING

        if closing:
            # The router acknowledged our own GOODBYE.
            self._goodbye_received.set()
            return False

        self.goodbye_reason = reason
        logger.debug("router said goodbye", session=self.id, reason=reason)

        self._send_quietly(wamp.goodbye(fields.GOODBYE_AND_OUT))
        self._close_transport()
        self._terminate()
        return True


    def _ping(self) -> None:

        while not self.done.wait(self.keepalive):
            try:
                self.transport.ping()
            except TransportError as e:
                logger.debug("keepalive ping failed", session=self.id, error=str(e))
                return


    def _send(self, outbound: list) -> None:
        with self._send_lock:
            self.transport.send(outbound)


    def _send_quietly(self, outbound: list) -> None:
        """ Send a reply that nobody waits on; a failure is logged, and the
            reader thread will notice the dead transport on its own.
        """

        try:
            self._send(outbound)
        except TransportError as e:
            logger.warning("send failed", session=self.id, message=wamp.name(outbound), error=str(e))


    def _close_transport(self) -> None:

        try:
            self.transport.close()
        except TransportError as e:
            logger.debug("transport close failed", session=self.id, error=str(e))


    def _terminate(self) -> None:
        """ Mark the session closed, and fail every request still waiting
            for a reply.
        """

        with self._lock:
            if self.state in terminal:
                return

            self.state = State.CLOSED
            pending = list(self._pending.values())
            self._pending.clear()

        for request in pending:
            request._fail(OperationError(f"session {self.id} closed before request {request.id} completed"))

        self.workers.shutdown(wait=False)
        self.done.set()


    def _issue(self, build: Callable, handler=None, on_progress=None) -> PendingRequest:
        """ Register a new pending request, and send the message returned by
            *build* for its request id.
        """

        with self._lock:
            if self.state in terminal or self.state == State.CLOSING:
                raise OperationError(f"session {self.id} is {self.state.value}")
            if self.state == State.CONNECTING:
                raise OperationError('session has not joined a realm')
            if self.state == State.ESTABLISHED:
                self.state = State.ACTIVE

            request_id = next(self._ids)
            pending = PendingRequest(request_id, handler, on_progress)
            self._pending[request_id] = pending

        try:
            self._send(build(request_id))
        except TransportError as e:
            with self._lock:
                self._pending.pop(request_id, None)
            raise OperationError(f"send failed: {e}") from e

        return pending


    def call(self, procedure: str, args=None, kwargs=None, options=None, on_progress=None) -> Payload:
        """ Call *procedure* and return the final result as a
            :class:`wick.protocol.Payload`. If *on_progress* is provided,
            progressive results are requested and each one is passed to it,
            in the reader thread, before the final result arrives.
        """

        options = dict(options or {})
        if on_progress is not None:
            options['receive_progress'] = True

        build = functools.partial(wamp.call, procedure=procedure, args=args, kwargs=kwargs, options=options)
        pending = self._issue(build, on_progress=on_progress)
        return pending.wait()


    def publish(self, topic: str, args=None, kwargs=None, options=None):
        """ Publish to *topic*. Only when the options request an
            acknowledgement is there a reply to wait for; the publication id
            is returned in that case, None otherwise.
        """

        options = dict(options or {})
        build = functools.partial(wamp.publish, topic=topic, args=args, kwargs=kwargs, options=options)
        pending = self._issue(build)

        if options.get('acknowledge'):
            published = pending.wait()
            return published[2]

        with self._lock:
            self._pending.pop(pending.id, None)

        return None


    def subscribe(self, topic: str, handler: Callable, options=None) -> int:
        """ Subscribe to *topic*; *handler* is called with a
            :class:`wick.protocol.Payload` for every event, in the reader
            thread. Returns the subscription id.
        """

        build = functools.partial(wamp.subscribe, topic=topic, options=options)
        pending = self._issue(build, handler=handler)
        return pending.wait()


    def unsubscribe(self, subscription: int) -> None:

        build = functools.partial(wamp.unsubscribe, subscription=subscription)
        pending = self._issue(build)
        pending.wait()
        self._subscriptions.pop(subscription, None)


    def register(self, procedure: str, handler: Callable, options=None) -> int:
        """ Register *procedure*; *handler* is called with a
            :class:`wick.protocol.Payload` for every invocation, in a worker
            thread, and returns a tuple of (args, kwargs) to yield. Returns
            the registration id.
        """

        build = functools.partial(wamp.register, procedure=procedure, options=options)
        pending = self._issue(build, handler=handler)
        return pending.wait()


    def unregister(self, registration: int) -> None:

        build = functools.partial(wamp.unregister, registration=registration)
        pending = self._issue(build)
        pending.wait()
        self._registrations.pop(registration, None)


    @property
    def subscriptions(self):
        return list(self._subscriptions.keys())


    @property
    def registrations(self):
        return list(self._registrations.keys())


    def close(self) -> None:
        """ Leave the realm and close the transport. Closing a session that
            already ended is a no-op.
        """

        with self._lock:
            if self.state in terminal or self.state == State.CLOSING:
                return
            self.state = State.CLOSING
            self.closed_locally = True

        try:
            self._send(wamp.goodbye(fields.CLOSE_REALM))
        except TransportError as e:
            logger.debug("goodbye not sent", session=self.id, error=str(e))
        else:
            self._goodbye_received.wait(self.close_timeout)
        finally:
            self._close_transport()
            self._terminate()


# end of class Session


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
