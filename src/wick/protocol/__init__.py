"""
WAMP Protocol Layer
===================

Message type codes, well-known URIs, and the construction of the message
lists exchanged with a router. Nothing here touches a socket; encoding the
lists to bytes is the job of :mod:`wick.transport.codec`, and moving the bytes
is the job of the transports.

Session Layer (wick.session)
    Join handshake, request/response correlation, event and invocation
    dispatch.

Codec Layer (wick.transport.codec)
    Maps message lists <-> JSON or msgpack frames.

Transport Layer (wick.transport)
    Moves frames over WebSocket or RawSocket.
"""

from . import fields
from . import message

from .message import Payload


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
