import pytest
import queue
import threading

import wick
import wick.log
from wick.protocol import fields
from wick.transport import Transport, TransportClosed


# Route structlog through the standard library so that pytest captures the
# log output separately from stdout.

wick.log.configure(debug=True)


class FakeSession:
    """ Stands in for a joined :class:`wick.session.Session` wherever only
        the lifecycle attributes matter.
    """

    def __init__(self, id, close_error=None):
        self.id = id
        self.done = threading.Event()
        self.goodbye_reason = None
        self.closed = False
        self.closed_locally = False
        self.close_error = close_error
        self.subscriptions = list()
        self.registrations = list()

    def close(self):
        self.closed = True
        self.closed_locally = True
        self.done.set()
        if self.close_error is not None:
            raise self.close_error

    def end(self, reason=None):
        """ Simulate the router ending the session.
        """

        self.goodbye_reason = reason
        self.done.set()


class MemoryTransport(Transport):
    """ An in-memory transport whose peer is a :class:`MemoryRouter`. Every
        message sent is answered synchronously by the router; replies queue
        up for :func:`recv`.
    """

    def __init__(self, router):
        self.router = router
        self.inbox = queue.Queue()
        self.sent = list()
        self.pings = 0
        self._open = True
        router.attach(self)

    def send(self, message):
        if not self._open:
            raise TransportClosed('transport is closed')

        self.sent.append(message)
        for reply in self.router.handle(self, message):
            self.deliver(reply)

    def deliver(self, message):
        self.inbox.put(message)

    def recv(self):
        message = self.inbox.get()
        if message is None:
            raise TransportClosed('transport is closed')
        return [message]

    def ping(self):
        self.pings += 1

    def close(self):
        if self._open:
            self._open = False
            self.inbox.put(None)

    @property
    def is_open(self):
        return self._open


class MemoryRouter:
    """ Just enough of a WAMP router to exercise a session: it welcomes
        joins (optionally after a challenge), answers calls by echoing the
        arguments, delivers publications to subscribers, and routes calls
        to registered procedures.
    """

    def __init__(self, challenge=None, verify=None, abort=None):
        self.challenge = challenge
        self.verify = verify
        self.abort = abort
        self.hello = None
        self.authenticate = None
        self.transports = list()
        self.subscriptions = dict()
        self.registrations = dict()
        self.invocations = dict()
        self.progress = dict()
        self.errors = dict()
        self.malformed = set()
        self.eager = set()
        self.ids = iter(range(1000, 100000))
        self.lock = threading.Lock()

    def attach(self, transport):
        self.transports.append(transport)

    def handle(self, transport, message):
        code = message[0]
        handler = getattr(self, 'on_' + fields.names[code].lower())
        with self.lock:
            return handler(transport, message)

    def welcome(self):
        details = {'authid': 'tester', 'authrole': 'user', 'authmethod': 'anonymous'}
        if self.challenge is not None:
            details['authmethod'] = self.challenge[0]
        return [fields.WELCOME, 42, details]

    def on_hello(self, transport, message):
        self.hello = message

        if self.abort is not None:
            return [[fields.ABORT, {'message': 'go away'}, self.abort]]

        if self.challenge is not None:
            method, extra = self.challenge
            return [[fields.CHALLENGE, method, extra]]

        return [self.welcome()]

    def on_authenticate(self, transport, message):
        self.authenticate = message

        if self.verify is not None and not self.verify(message[1]):
            return [[fields.ABORT, {}, 'wamp.error.authentication_failed']]

        return [self.welcome()]

    def on_goodbye(self, transport, message):
        return [[fields.GOODBYE, {}, fields.GOODBYE_AND_OUT]]

    def on_call(self, transport, message):
        request = message[1]
        options = message[2]
        procedure = message[3]
        args = message[4] if len(message) > 4 else []
        kwargs = message[5] if len(message) > 5 else {}

        if procedure in self.errors:
            return [[fields.ERROR, fields.CALL, request, {}, self.errors[procedure], ['it broke']]]

        if procedure in self.malformed:
            return [[fields.RESULT, request, {}, [], 'not a dictionary']]

        if procedure in self.registrations:
            registration, callee = self.registrations[procedure]
            invocation = next(self.ids)
            self.invocations[invocation] = (transport, request)
            callee.deliver([fields.INVOCATION, invocation, registration, {}, args, kwargs])
            return []

        replies = list()

        if options.get('receive_progress'):
            for chunk in self.progress.get(procedure, ()):
                replies.append([fields.RESULT, request, {'progress': True}, [chunk]])

        replies.append([fields.RESULT, request, {}, args, kwargs])
        return replies

    def on_yield(self, transport, message):
        caller, request = self.invocations.pop(message[1])
        args = message[3] if len(message) > 3 else []
        caller.deliver([fields.RESULT, request, {}, args])
        return []

    def on_error(self, transport, message):
        caller, request = self.invocations.pop(message[2])
        caller.deliver([fields.ERROR, fields.CALL, request, {}, message[4]] + message[5:])
        return []

    def on_subscribe(self, transport, message):
        subscription = next(self.ids)
        self.subscriptions.setdefault(message[3], list()).append((subscription, transport))
        return [[fields.SUBSCRIBED, message[1], subscription]]

    def on_unsubscribe(self, transport, message):
        for topic, subscribers in self.subscriptions.items():
            self.subscriptions[topic] = [entry for entry in subscribers if entry[0] != message[2]]
        return [[fields.UNSUBSCRIBED, message[1]]]

    def on_publish(self, transport, message):
        request = message[1]
        options = message[2]
        topic = message[3]
        args = message[4] if len(message) > 4 else []
        kwargs = message[5] if len(message) > 5 else {}
        publication = next(self.ids)

        for subscription, subscriber in self.subscriptions.get(topic, ()):
            subscriber.deliver([fields.EVENT, subscription, publication, {'topic': topic}, args, kwargs])

        if options.get('acknowledge'):
            return [[fields.PUBLISHED, request, publication]]

        return []

    def on_register(self, transport, message):
        registration = next(self.ids)
        self.registrations[message[3]] = (registration, transport)
        replies = [[fields.REGISTERED, message[1], registration]]

        # An eager procedure is invoked right behind its REGISTERED reply.

        if message[3] in self.eager:
            invocation = next(self.ids)
            self.invocations[invocation] = (MemoryTransport(self), 0)
            replies.append([fields.INVOCATION, invocation, registration, {}])

        return replies

    def on_unregister(self, transport, message):
        for procedure, entry in list(self.registrations.items()):
            if entry[0] == message[2]:
                del self.registrations[procedure]
        return [[fields.UNREGISTERED, message[1]]]

    def shutdown(self, transport, reason=fields.SYSTEM_SHUTDOWN):
        transport.deliver([fields.GOODBYE, {}, reason])


@pytest.fixture
def router():
    return MemoryRouter()


@pytest.fixture
def joined(router):
    """ Return a function that joins a new session to the in-memory router.
    """

    sessions = list()

    def join(keepalive=0):
        transport = MemoryTransport(router)
        session = wick.Session(transport, keepalive)
        session.join('realm1', {}, wick.auth.Anonymous())
        sessions.append(session)
        return session

    yield join

    for session in sessions:
        session.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
