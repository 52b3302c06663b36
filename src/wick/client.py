""" Open a transport and join a realm with one of the supported
    authentication methods. Each of the connect functions takes a
    :class:`wick.identity.ClientIdentity` and a keepalive interval, in
    seconds, and returns a joined :class:`wick.session.Session`; any failure
    to connect or to authenticate is raised as a
    :class:`wick.errors.ConnectError`.

    The HELLO details and the authentication variant come from
    :func:`wick.auth.negotiate`. A caller opening many sessions for one
    identity negotiates once and passes the result along as *negotiated*,
    so that the details, and any derived public key, are computed only
    once.
"""

import dataclasses

import structlog

from . import auth
from . import identity
from .errors import ConfigError, ConnectError
from .session import Session
from .transport import TransportError, open_transport


logger = structlog.get_logger(__name__)


def _join(client, keepalive, details, variant):

    try:
        transport = open_transport(client.url, client.serializer)
    except TransportError as e:
        raise ConnectError(str(e)) from e

    session = Session(transport, keepalive)
    return session.join(client.realm, details, variant)



def _connect(client, keepalive, negotiated, method):
    """ Join with the *method* variant, negotiating it for *client* unless
        a (details, variant) tuple was *negotiated* already.
    """

    if negotiated is None:
        if method == identity.ANONYMOUS:
            client = dataclasses.replace(client, authmethod=method, ticket='', secret='', private_key='')
        else:
            client = dataclasses.replace(client, authmethod=method)

        negotiated = auth.negotiate(client)

    details, variant = negotiated

    if variant.method != method:
        raise ConfigError('negotiated authmethod %s, not %s' % (variant.method, method))

    return _join(client, keepalive, details, variant)



def connect_anonymous(client, keepalive=0, negotiated=None):
    return _connect(client, keepalive, negotiated, identity.ANONYMOUS)


def connect_ticket(client, keepalive=0, negotiated=None):
    return _connect(client, keepalive, negotiated, identity.TICKET)


def connect_challenge_response(client, keepalive=0, negotiated=None):
    return _connect(client, keepalive, negotiated, identity.WAMPCRA)


def connect_cryptosign(client, keepalive=0, negotiated=None):
    return _connect(client, keepalive, negotiated, identity.CRYPTOSIGN)


connectors = {
    identity.ANONYMOUS: connect_anonymous,
    identity.TICKET: connect_ticket,
    identity.WAMPCRA: connect_challenge_response,
    identity.CRYPTOSIGN: connect_cryptosign,
}



def connect(client, keepalive=0):
    """ Negotiate the authentication method for the *client* identity, then
        connect with it. Configuration problems are raised as
        :class:`ConfigError` before any network activity.
    """

    negotiated = auth.negotiate(client)
    variant = negotiated[1]

    logger.debug("connecting", url=client.url, realm=client.realm, authmethod=variant.method)
    return connectors[variant.method](client, keepalive, negotiated)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
