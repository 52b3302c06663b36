"""
Transport Layer
===============

Transports move whole WAMP messages between this client and a router. The
WebSocket transport handles ws:// and wss:// URLs; the RawSocket transport
handles tcp:// and tcps:// URLs. Both encode messages with one of the
serializers in :mod:`wick.transport.codec`.
"""

from __future__ import annotations

import urllib.parse

from . import codec
from .base import Transport, TransportError, TransportClosed
from ..errors import ConfigError


websocket_schemes = ('ws', 'wss')
rawsocket_schemes = ('tcp', 'tcps')


def open_transport(url: str, serializer: str = 'json') -> Transport:
    """Open and return a transport for the (already normalized) *url*,
    speaking the named *serializer*."""

    scheme = urllib.parse.urlsplit(url).scheme
    serializer = codec.get(serializer)

    if scheme in websocket_schemes:
        from .websocket import WebSocketTransport
        return WebSocketTransport(url, serializer)

    if scheme in rawsocket_schemes:
        from .rawsocket import RawSocketTransport
        return RawSocketTransport(url, serializer)

    raise ConfigError(f"invalid url: unsupported scheme '{scheme}'")


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
