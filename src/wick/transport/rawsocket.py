"""RawSocket transport, for tcp:// and tcps:// router URLs.

After a four byte handshake, every frame is a one byte frame type followed by
a three byte big-endian payload length. Pings from the router are answered
with a pong carrying the same payload.
"""

from __future__ import annotations

import socket
import ssl
import struct
import threading
import urllib.parse
from typing import List

import structlog

from .base import Transport, TransportClosed, TransportError
from .codec import Serializer


logger = structlog.get_logger(__name__)

MAGIC = 0x7F

# Maximum frame length requested from the router, as a power of two: 2**(9 + 15).
LENGTH_EXPONENT = 15

MESSAGE = 0
PING = 1
PONG = 2

handshake_errors = {
    0: 'illegal error code',
    1: 'serializer unsupported',
    2: 'maximum message length unacceptable',
    3: 'use of reserved bits (unsupported feature)',
    4: 'maximum connection count reached',
}


class RawSocketTransport(Transport):

    open_timeout = 10
    default_port = 8080

    def __init__(self, url: str, serializer: Serializer):
        self.url = url
        self.serializer = serializer

        parsed = urllib.parse.urlsplit(url)
        host = parsed.hostname or 'localhost'
        port = parsed.port or self.default_port

        try:
            sock = socket.create_connection((host, port), timeout=self.open_timeout)
        except OSError as e:
            raise TransportError(f"cannot connect to {url}: {e}") from e

        try:
            if parsed.scheme == 'tcps':
                context = ssl.create_default_context()
                sock = context.wrap_socket(sock, server_hostname=host)
            self.socket = sock
            self._handshake()
        except (OSError, TransportError) as e:
            sock.close()
            raise TransportError(f"cannot connect to {url}: {e}") from e

        self.socket.settimeout(None)
        self.send_lock = threading.Lock()
        self._open = True
        logger.debug("rawsocket open", url=url, serializer=serializer.name)

    def _handshake(self) -> None:
        request = bytes((MAGIC, (LENGTH_EXPONENT << 4) | self.serializer.serializer_id, 0, 0))
        self.socket.sendall(request)
        reply = self._read_exactly(4)

        if reply[0] != MAGIC:
            raise TransportError(f"not a WAMP rawsocket router: first handshake byte 0x{reply[0]:02x}")

        if reply[1] & 0x0F == 0:
            code = reply[1] >> 4
            reason = handshake_errors.get(code, f"unknown error {code}")
            raise TransportError(f"router rejected rawsocket handshake: {reason}")

        self.max_length = 2 ** (9 + (reply[1] >> 4))

    def _read_exactly(self, count: int) -> bytes:
        chunks = list()
        remaining = count

        while remaining > 0:
            chunk = self.socket.recv(remaining)
            if chunk == b'':
                raise TransportClosed('connection closed by router')
            chunks.append(chunk)
            remaining -= len(chunk)

        return b''.join(chunks)

    def _send_frame(self, frame_type: int, payload: bytes) -> None:
        header = struct.pack('>I', len(payload))
        header = bytes((frame_type,)) + header[1:]

        with self.send_lock:
            try:
                self.socket.sendall(header + payload)
            except OSError as e:
                self._open = False
                raise TransportClosed(str(e)) from e

    def send(self, message: list) -> None:
        payload = self.serializer.encode(message)

        if len(payload) > self.max_length:
            raise TransportError(f"message of {len(payload)} bytes exceeds router maximum of {self.max_length}")

        self._send_frame(MESSAGE, payload)

    def recv(self) -> List[list]:
        while True:
            try:
                header = self._read_exactly(4)
                length = struct.unpack('>I', b'\0' + header[1:])[0]
                payload = self._read_exactly(length)
            except OSError as e:
                self._open = False
                raise TransportClosed(str(e)) from e
            except TransportClosed:
                self._open = False
                raise

            frame_type = header[0] & 0x07

            if frame_type == MESSAGE:
                return [self.serializer.decode(payload)]
            elif frame_type == PING:
                self._send_frame(PONG, payload)
            elif frame_type == PONG:
                continue
            else:
                raise TransportError(f"unknown rawsocket frame type {frame_type}")

    def ping(self) -> None:
        self._send_frame(PING, b'')

    def close(self) -> None:
        self._open = False

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("rawsocket shutdown failed", url=self.url, error=str(e))

        self.socket.close()

    @property
    def is_open(self) -> bool:
        return self._open


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
