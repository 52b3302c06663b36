"""WAMP message type codes and well-known URIs.

Keep these in one place to avoid magic numbers in message handling.
"""

HELLO = 1
WELCOME = 2
ABORT = 3
CHALLENGE = 4
AUTHENTICATE = 5
GOODBYE = 6
ERROR = 8

PUBLISH = 16
PUBLISHED = 17

SUBSCRIBE = 32
SUBSCRIBED = 33
UNSUBSCRIBE = 34
UNSUBSCRIBED = 35
EVENT = 36

CALL = 48
CANCEL = 49
RESULT = 50

REGISTER = 64
REGISTERED = 65
UNREGISTER = 66
UNREGISTERED = 67
INVOCATION = 68
INTERRUPT = 69
YIELD = 70

names = {
    HELLO: 'HELLO',
    WELCOME: 'WELCOME',
    ABORT: 'ABORT',
    CHALLENGE: 'CHALLENGE',
    AUTHENTICATE: 'AUTHENTICATE',
    GOODBYE: 'GOODBYE',
    ERROR: 'ERROR',
    PUBLISH: 'PUBLISH',
    PUBLISHED: 'PUBLISHED',
    SUBSCRIBE: 'SUBSCRIBE',
    SUBSCRIBED: 'SUBSCRIBED',
    UNSUBSCRIBE: 'UNSUBSCRIBE',
    UNSUBSCRIBED: 'UNSUBSCRIBED',
    EVENT: 'EVENT',
    CALL: 'CALL',
    CANCEL: 'CANCEL',
    RESULT: 'RESULT',
    REGISTER: 'REGISTER',
    REGISTERED: 'REGISTERED',
    UNREGISTER: 'UNREGISTER',
    UNREGISTERED: 'UNREGISTERED',
    INVOCATION: 'INVOCATION',
    INTERRUPT: 'INTERRUPT',
    YIELD: 'YIELD',
}

# Close reasons.

CLOSE_REALM = 'wamp.close.close_realm'
GOODBYE_AND_OUT = 'wamp.close.goodbye_and_out'
SYSTEM_SHUTDOWN = 'wamp.close.system_shutdown'

# Error URIs sent by this client.

RUNTIME_ERROR = 'wamp.error.runtime_error'
NO_SUCH_REGISTRATION = 'wamp.error.no_such_registration'

# Roles announced in HELLO.

roles = {
    'caller': {'features': {'progressive_call_results': True}},
    'callee': {'features': {}},
    'publisher': {'features': {'publisher_exclusion': True}},
    'subscriber': {'features': {}},
}


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
