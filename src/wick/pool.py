""" Establish, and tear down, a pool of independent sessions against one
    router. Every connection attempt runs to completion; if any of them
    fail, the ones that succeeded are closed again and the failures are
    raised together as a single :class:`wick.errors.AggregateError`.
"""

import concurrent.futures
import dataclasses
import urllib.parse

import structlog

from . import auth
from . import client
from .errors import ConfigError, aggregate


logger = structlog.get_logger(__name__)

schemes = ('ws', 'wss', 'rs', 'rss', 'tcp', 'tcps')

rewrites = {
    'rs': 'tcp',
    'rss': 'tcps',
}

rawsocket_schemes = ('tcp', 'tcps')


def normalize_url(url):
    """ Validate the scheme of *url*, and rewrite the rs:// and rss://
        aliases to tcp:// and tcps://. Only the scheme is ever changed.
    """

    scheme, separator, remainder = url.partition('://')

    if separator == '' or scheme not in schemes:
        raise ConfigError("invalid url: scheme must be one of 'ws', 'wss', 'rs', 'rss', 'tcp', 'tcps'")

    scheme = rewrites.get(scheme, scheme)
    normalized = scheme + separator + remainder

    if scheme in rawsocket_schemes:
        parsed = urllib.parse.urlsplit(normalized)
        if parsed.path not in ('', '/') or parsed.query or parsed.fragment:
            logger.warning("raw socket urls carry no path, query or fragment", url=normalized)

    return normalized



def establish(identity, session_count, concurrency, keepalive=0, connector=None):
    """ Open *session_count* sessions for *identity*, at most *concurrency*
        at a time, and return them as a list in submission order. The
        *connector* defaults to the connect function matching the negotiated
        authentication method; it is called with the identity, the
        *keepalive* interval, and the (details, variant) tuple negotiated
        once for every session.
    """

    if session_count < 1:
        raise ConfigError('parallel must be at least 1, not %d' % (session_count))
    if concurrency < 1:
        raise ConfigError('concurrency must be at least 1, not %d' % (concurrency))
    if keepalive < 0:
        raise ConfigError('keepalive must not be negative, not %s' % (keepalive))

    identity = dataclasses.replace(identity, url=normalize_url(identity.url))

    # Negotiate once, here, so that configuration and key errors surface
    # before any connection is attempted.

    negotiated = auth.negotiate(identity)
    variant = negotiated[1]

    if connector is None:
        connector = client.connectors[variant.method]

    workers = min(concurrency, session_count)
    futures = list()

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        for index in range(session_count):
            futures.append(executor.submit(connector, identity, keepalive, negotiated))

    sessions = list()
    errors = list()

    for future in futures:
        try:
            sessions.append(future.result())
        except Exception as e:
            errors.append(e)

    error = aggregate(errors)

    if error is not None:
        logger.debug("closing sessions after failed establish", opened=len(sessions), failed=len(error.errors))
        close_sessions(sessions)
        raise error

    logger.debug("sessions established", count=len(sessions), authmethod=variant.method)
    return sessions



def close_sessions(sessions):
    """ Close every session in *sessions* concurrently, and wait for all of
        them. A failure to close one session is logged and does not prevent
        the others from closing.
    """

    if len(sessions) == 0:
        return

    with concurrent.futures.ThreadPoolExecutor(max_workers=len(sessions)) as executor:
        futures = [executor.submit(session.close) for session in sessions]

    for session, future in zip(sessions, futures):
        try:
            future.result()
        except Exception as e:
            logger.error("failed to close session", session=getattr(session, 'id', None), error=str(e))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
