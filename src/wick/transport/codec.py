"""Serializers mapping WAMP message lists to and from frame bytes."""

from __future__ import annotations

import base64
from typing import Any

import msgpack

from .. import json
from ..errors import ConfigError


class Serializer:
    """Common attributes of a serializer: the *name* used on the command
    line, the WebSocket *subprotocol*, the RawSocket *serializer_id*, and
    whether frames are *binary* (as opposed to UTF-8 text)."""

    name = None
    subprotocol = None
    serializer_id = None
    binary = True

    def encode(self, message: list) -> bytes:
        raise NotImplementedError('encode() must be implemented by subclasses')

    def decode(self, frame: bytes) -> list:
        raise NotImplementedError('decode() must be implemented by subclasses')


class JsonSerializer(Serializer):
    """JSON has no binary type; byte strings are carried as a string with a
    leading NUL character followed by the base64 encoding of the bytes."""

    name = 'json'
    subprotocol = 'wamp.2.json'
    serializer_id = 1
    binary = False

    def encode(self, message: list) -> bytes:
        return json.dumps(_escape_binary(message))

    def decode(self, frame: bytes) -> list:
        return _unescape_binary(json.loads(frame))


class MsgpackSerializer(Serializer):

    name = 'msgpack'
    subprotocol = 'wamp.2.msgpack'
    serializer_id = 2
    binary = True

    def encode(self, message: list) -> bytes:
        return msgpack.packb(message, use_bin_type=True)

    def decode(self, frame: bytes) -> list:
        return msgpack.unpackb(frame, raw=False)


serializers = {
    JsonSerializer.name: JsonSerializer,
    MsgpackSerializer.name: MsgpackSerializer,
}


def get(name: str) -> Serializer:
    """Return a serializer instance for *name*."""

    try:
        factory = serializers[name]
    except KeyError:
        raise ConfigError('invalid serializer: value must be one of ' + ', '.join(repr(key) for key in serializers))

    return factory()


def _escape_binary(value: Any) -> Any:

    if isinstance(value, (bytes, bytearray, memoryview)):
        return '\0' + base64.b64encode(bytes(value)).decode()
    if isinstance(value, list) or isinstance(value, tuple):
        return [_escape_binary(item) for item in value]
    if isinstance(value, dict):
        return {key: _escape_binary(item) for key, item in value.items()}

    return value


def _unescape_binary(value: Any) -> Any:

    if isinstance(value, str):
        if value.startswith('\0'):
            return base64.b64decode(value[1:])
        return value
    if isinstance(value, list):
        return [_unescape_binary(item) for item in value]
    if isinstance(value, dict):
        return {key: _unescape_binary(item) for key, item in value.items()}

    return value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
