"""WebSocket transport, for ws:// and wss:// router URLs."""

from __future__ import annotations

from typing import List

import structlog
import websockets.exceptions
import websockets.sync.client

from .base import Transport, TransportClosed, TransportError
from .codec import Serializer


logger = structlog.get_logger(__name__)


class WebSocketTransport(Transport):
    """One WebSocket connection speaking the WAMP subprotocol that matches
    the *serializer*. The connection is opened in the constructor."""

    open_timeout = 10

    def __init__(self, url: str, serializer: Serializer):
        self.url = url
        self.serializer = serializer

        try:
            self.connection = websockets.sync.client.connect(
                url,
                subprotocols=[serializer.subprotocol],
                open_timeout=self.open_timeout,
                max_size=None,
            )
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise TransportError(f"cannot connect to {url}: {e}") from e

        if self.connection.subprotocol != serializer.subprotocol:
            self.connection.close()
            raise TransportError(f"router at {url} did not accept subprotocol {serializer.subprotocol}")

        self._open = True
        logger.debug("websocket open", url=url, subprotocol=serializer.subprotocol)

    def send(self, message: list) -> None:
        frame = self.serializer.encode(message)
        if not self.serializer.binary:
            frame = frame.decode()

        try:
            self.connection.send(frame)
        except websockets.exceptions.ConnectionClosed as e:
            self._open = False
            raise TransportClosed(str(e)) from e

    def recv(self) -> List[list]:
        try:
            frame = self.connection.recv()
        except websockets.exceptions.ConnectionClosed as e:
            self._open = False
            raise TransportClosed(str(e)) from e

        if isinstance(frame, str):
            frame = frame.encode()

        return [self.serializer.decode(frame)]

    def ping(self) -> None:
        try:
            self.connection.ping()
        except websockets.exceptions.ConnectionClosed as e:
            self._open = False
            raise TransportClosed(str(e)) from e

    def close(self) -> None:
        self._open = False
        self.connection.close()

    @property
    def is_open(self) -> bool:
        return self._open


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
