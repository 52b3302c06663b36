"""Transport interface.

This is the (small) contract that the WebSocket and RawSocket transports
follow. It lives outside :mod:`wick.protocol` so the message handling remains
transport-agnostic: a transport moves whole WAMP messages (lists), already
decoded, and knows nothing about their meaning.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportClosed(TransportError):
    """The connection was closed, locally or by the peer."""


class Transport(ABC):
    """Minimal contract for a wire-level transport."""

    @abstractmethod
    def send(self, message: list) -> None:
        """Encode and send one WAMP message."""

    @abstractmethod
    def recv(self) -> List[list]:
        """Block until at least one WAMP message arrives, and return the
        decoded messages. Raises :class:`TransportClosed` when the connection
        is gone."""

    @abstractmethod
    def ping(self) -> None:
        """Send a keepalive ping."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
