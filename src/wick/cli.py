""" Command line front end. Every command joins one or more sessions with the
    configured identity, performs its operation across all of them, and
    closes them again; join, subscribe, and register keep the sessions open
    until interrupted, or until the router ends them.
"""

import argparse
import functools
import threading
import time

import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from . import config
from . import identity
from . import lifecycle
from . import log
from . import operations
from . import pool
from . import values
from .errors import ConfigError, WickError


logger = structlog.get_logger(__name__)

version = '0.6.0'

string_hint = "To force a string, quote the value, e.g. \"'1'\" or '\"true\"'."


def _session_flags(parser, action):
    """ Add the flags shared by every command that joins sessions.
    """

    parser.add_argument('--parallel', type=int, default=1,
        help='Join the requested number of WAMP sessions.')
    parser.add_argument('--concurrency', type=int, default=1,
        help=action + ' concurrently. Only effective with --parallel or --repeat.')
    parser.add_argument('--keepalive', type=int, default=0,
        help='Interval between pings, in seconds.')
    parser.add_argument('--time', action='store_true',
        help='Log how long the operation took, in milliseconds.')



def _option_flag(parser, kind):
    parser.add_argument('-o', '--option', action='append', default=[], metavar='KEY=VALUE',
        help='WAMP ' + kind + ' option. May be provided multiple times.')



def build_parser():

    parser = argparse.ArgumentParser(prog='wick', description='WAMP command line client.')

    parser.add_argument('-v', '--version', action='version', version='%(prog)s ' + version)
    parser.add_argument('--url', help='WAMP URL to connect to (WICK_URL; default %s).' % (identity.default_url))
    parser.add_argument('--realm', help='The WAMP realm to join (WICK_REALM; default %s).' % (identity.default_realm))
    parser.add_argument('--authmethod', choices=identity.methods, help='The authentication method to use (WICK_AUTHMETHOD).')
    parser.add_argument('--authid', help='The authid to use, if authenticating (WICK_AUTHID).')
    parser.add_argument('--authrole', help='The authrole to use, if authenticating (WICK_AUTHROLE).')
    parser.add_argument('--secret', help='The secret to use in challenge-response auth (WICK_SECRET).')
    parser.add_argument('--private-key', dest='private_key', help='The ed25519 private key hex for cryptosign (WICK_PRIVATE_KEY).')
    parser.add_argument('--ticket', help='The ticket when using ticket authentication (WICK_TICKET).')
    parser.add_argument('--serializer', choices=config.serializers, help='The serializer to use (WICK_SERIALIZER; default json).')
    parser.add_argument('--profile', help="Read settings from a profile in '$HOME/.wick/config' (WICK_PROFILE).")
    parser.add_argument('--debug', action='store_true', help='Enable debug logging.')

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    join = commands.add_parser('join', help='Start WAMP sessions.')
    _session_flags(join, 'Join sessions')

    subscribe = commands.add_parser('subscribe', help='Subscribe to a topic.')
    subscribe.add_argument('topic', help='Topic to subscribe to.')
    _option_flag(subscribe, 'subscribe')
    subscribe.add_argument('--details', action='store_true', help='Print event details.')
    subscribe.add_argument('--event-count', dest='event_count', type=int, default=0,
        help='Wait for the given number of events, then exit.')
    _session_flags(subscribe, 'Subscribe')

    publish = commands.add_parser('publish', help='Publish to a topic.')
    publish.add_argument('topic', help='Topic URI to publish on.')
    publish.add_argument('args', nargs='*', help='Positional arguments for the publication. ' + string_hint)
    publish.add_argument('-k', '--kwarg', action='append', default=[], metavar='KEY=VALUE',
        help='Keyword argument for the publication. May be provided multiple times. ' + string_hint)
    _option_flag(publish, 'publish')
    publish.add_argument('--repeat', type=int, default=1, help='Publish the requested number of times.')
    publish.add_argument('--delay', type=int, default=0, help='Delay before each publication, in milliseconds.')
    _session_flags(publish, 'Publish')

    register = commands.add_parser('register', help='Register a procedure.')
    register.add_argument('procedure', help='Procedure URI.')
    register.add_argument('command', nargs='?', default=None,
        help="Shell command to run on invocation; its output is the result.")
    register.add_argument('--delay', type=int, default=0, help='Register the procedure after a delay, in milliseconds.')
    register.add_argument('--invoke-count', dest='invoke_count', type=int, default=0,
        help='Leave the session after the procedure is invoked this many times.')
    _option_flag(register, 'register')
    _session_flags(register, 'Register')

    call = commands.add_parser('call', help='Call a procedure.')
    call.add_argument('procedure', help='Procedure to call.')
    call.add_argument('args', nargs='*', help='Positional arguments for the call. ' + string_hint)
    call.add_argument('-k', '--kwarg', action='append', default=[], metavar='KEY=VALUE',
        help='Keyword argument for the call. May be provided multiple times. ' + string_hint)
    _option_flag(call, 'call')
    call.add_argument('--repeat', type=int, default=1, help='Call the procedure the requested number of times.')
    call.add_argument('--delay', type=int, default=0, help='Delay before each call, in milliseconds.')
    call.add_argument('--raw-output-arg', dest='raw_output_arg', type=int, default=-1,
        help='Write this result argument directly to stdout.')
    call.add_argument('--details', action='store_true', help='Print result details.')
    _session_flags(call, 'Call')

    commands.add_parser('keygen', help='Generate a WAMP cryptosign ed25519 key pair.')

    return parser



def _join(arguments):
    """ Resolve the identity and establish the sessions for a command.
    """

    client = config.resolve(arguments)

    start = time.monotonic()
    sessions = pool.establish(client, arguments.parallel, arguments.concurrency, arguments.keepalive)

    if arguments.time:
        elapsed = int((time.monotonic() - start) * 1000)
        logger.info("joined", sessions=len(sessions), realm=client.realm, elapsed_ms=elapsed)
    else:
        logger.info("joined", sessions=len(sessions), realm=client.realm)

    return sessions



def _across(sessions, arguments, operation):
    """ Run *operation* across *sessions*; if it fails on any of them, close
        every session before the error propagates.
    """

    try:
        operations.for_each_session(sessions, arguments.concurrency, operation)
    except WickError:
        pool.close_sessions(sessions)
        raise



def _supervise(sessions, interrupt, before_close=None):

    with lifecycle.SignalHandlers(lambda signum, frame: interrupt.set()):
        return lifecycle.supervise(sessions, interrupt, before_close)



def join(arguments):
    sessions = _join(arguments)
    _supervise(sessions, threading.Event())



def subscribe(arguments):

    if arguments.event_count < 0:
        raise ConfigError('event count must not be negative')

    interrupt = threading.Event()
    limit = arguments.event_count
    counter = {'events': 0}
    lock = threading.Lock()

    def on_event():
        with lock:
            counter['events'] += 1
            if limit > 0 and counter['events'] >= limit:
                interrupt.set()

    operation = functools.partial(operations.subscribe,
        topic=arguments.topic,
        options=values.coerce_dict(arguments.option),
        details=arguments.details,
        log_time=arguments.time,
        on_event=on_event)

    sessions = _join(arguments)
    _across(sessions, arguments, operation)
    _supervise(sessions, interrupt, operations.unsubscribe_all)



def publish(arguments):

    operation = functools.partial(operations.publish,
        topic=arguments.topic,
        args=values.coerce_list(arguments.args),
        kwargs=values.coerce_dict(arguments.kwarg),
        options=values.coerce_dict(arguments.option),
        repeat=arguments.repeat,
        delay=arguments.delay,
        concurrency=arguments.concurrency,
        log_time=arguments.time)

    _check_repeat(arguments)
    sessions = _join(arguments)

    try:
        operations.for_each_session(sessions, arguments.concurrency, operation)
    finally:
        pool.close_sessions(sessions)



def register(arguments):

    if arguments.invoke_count < 0:
        raise ConfigError('invoke count must not be negative')

    operation = functools.partial(operations.register,
        procedure=arguments.procedure,
        command=arguments.command,
        delay=arguments.delay,
        invoke_count=arguments.invoke_count,
        options=values.coerce_dict(arguments.option),
        log_time=arguments.time)

    sessions = _join(arguments)
    _across(sessions, arguments, operation)
    _supervise(sessions, threading.Event(), operations.unregister_all)



def call(arguments):

    raw_index = arguments.raw_output_arg
    if raw_index == -1:
        raw_index = None

    operation = functools.partial(operations.call,
        procedure=arguments.procedure,
        args=values.coerce_list(arguments.args),
        kwargs=values.coerce_dict(arguments.kwarg),
        options=values.coerce_dict(arguments.option),
        repeat=arguments.repeat,
        delay=arguments.delay,
        concurrency=arguments.concurrency,
        log_time=arguments.time,
        raw_index=raw_index,
        details=arguments.details)

    _check_repeat(arguments)
    sessions = _join(arguments)

    try:
        operations.for_each_session(sessions, arguments.concurrency, operation)
    finally:
        pool.close_sessions(sessions)



def _check_repeat(arguments):

    if arguments.repeat < 1:
        raise ConfigError('repeat count must be greater than zero')
    if arguments.delay < 0:
        raise ConfigError('delay must not be negative')



def keygen(arguments):

    private = ed25519.Ed25519PrivateKey.generate()
    public = private.public_key()

    seed = private.private_bytes(serialization.Encoding.Raw, serialization.PrivateFormat.Raw, serialization.NoEncryption())
    public = public.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)

    print('Public Key: ' + public.hex())
    print('Private Key: ' + seed.hex())


commands = {
    'join': join,
    'subscribe': subscribe,
    'publish': publish,
    'register': register,
    'call': call,
    'keygen': keygen,
}



def main(argv=None):
    """ Entry point for the wick console script. Returns the exit status.
    """

    parser = build_parser()
    arguments = parser.parse_args(argv)

    log.configure(arguments.debug)

    try:
        commands[arguments.command](arguments)
    except WickError as e:
        logger.error(str(e))
        return 1

    return 0


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
