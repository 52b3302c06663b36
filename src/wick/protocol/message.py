""" Construction and inspection of WAMP messages. On the wire a message is a
    list whose first element is the integer message type; the helpers here
    build those lists for every message this client sends, and pick apart
    the ones it receives.
"""

from . import fields


class Payload:
    """ The application data carried by a RESULT, EVENT, or INVOCATION
        message (or an ERROR): the positional *args*, the keyword *kwargs*,
        and the message *details*. Missing arguments are represented as an
        empty list and an empty dictionary, respectively.
    """

    def __init__(self, args=None, kwargs=None, details=None):

        if args is None:
            args = list()
        if kwargs is None:
            kwargs = dict()
        if details is None:
            details = dict()

        self.args = list(args)
        self.kwargs = dict(kwargs)
        self.details = dict(details)


    def __repr__(self):
        return 'Payload(args=%r, kwargs=%r, details=%r)' % (self.args, self.kwargs, self.details)


    @classmethod
    def from_message(cls, message, offset, arguments=None):
        """ Build a :class:`Payload` from a received *message*, where the
            details dictionary is at position *offset*. The optional
            arguments and keyword arguments start at position *arguments*,
            which defaults to immediately after the details; an ERROR
            message carries its URI in between.
        """

        if arguments is None:
            arguments = offset + 1

        details = _get(message, offset)
        args = _get(message, arguments)
        kwargs = _get(message, arguments + 1)

        return cls(args, kwargs, details)


    @property
    def progress(self):
        return self.details.get('progress', False) == True


# end of class Payload



def _get(message, index):
    try:
        return message[index]
    except IndexError:
        return None



def _append_arguments(message, args, kwargs):
    """ Arguments are omitted entirely when empty; an empty argument list is
        only sent when keyword arguments follow it.
    """

    if kwargs:
        message.append(list(args or ()))
        message.append(dict(kwargs))
    elif args:
        message.append(list(args))

    return message



def name(message):
    """ Return a readable name for the type of *message*.
    """

    try:
        code = message[0]
    except (IndexError, TypeError):
        return '???'

    return fields.names.get(code, str(code))



def hello(realm, details):
    return [fields.HELLO, realm, details]


def authenticate(signature, extra=None):
    return [fields.AUTHENTICATE, signature, extra or dict()]


def goodbye(reason, details=None):
    return [fields.GOODBYE, details or dict(), reason]


def publish(request, topic, args=None, kwargs=None, options=None):
    message = [fields.PUBLISH, request, options or dict(), topic]
    return _append_arguments(message, args, kwargs)


def subscribe(request, topic, options=None):
    return [fields.SUBSCRIBE, request, options or dict(), topic]


def unsubscribe(request, subscription):
    return [fields.UNSUBSCRIBE, request, subscription]


def call(request, procedure, args=None, kwargs=None, options=None):
    message = [fields.CALL, request, options or dict(), procedure]
    return _append_arguments(message, args, kwargs)


def register(request, procedure, options=None):
    return [fields.REGISTER, request, options or dict(), procedure]


def unregister(request, registration):
    return [fields.UNREGISTER, request, registration]


def yield_(request, args=None, kwargs=None, options=None):
    message = [fields.YIELD, request, options or dict()]
    return _append_arguments(message, args, kwargs)


def error(request_type, request, uri, args=None, kwargs=None, details=None):
    message = [fields.ERROR, request_type, request, details or dict(), uri]
    return _append_arguments(message, args, kwargs)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
