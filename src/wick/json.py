""" Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`, along with
    the two human-readable encodings used when printing results: an indented
    form and a compact single-line form.
"""

import base64

# The business about conditionally importing the libraries is intended to
# avoid importing less efficient libraries if they are not available. With
# the right build process this could be determined at build time, instead
# of at run time.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


def _default(value):
    """ Fallback encoder for values the JSON libraries do not handle natively.
        Byte sequences are represented as base64 text.
    """

    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode()

    raise TypeError('cannot JSON encode ' + type(value).__name__)


# The msgspec 'encode' operation returns bytes, as does orjson.dumps. To
# maintain alignment all 'dumps' methods need to do so as well.

def json_dumps(*args, **kwargs):
    return json.dumps(*args, **kwargs).encode()


if msgspec is not None:
    encoder = msgspec.json.Encoder()
    sorted_encoder = msgspec.json.Encoder(order='sorted')
    decoder = msgspec.json.Decoder()
    dumps = encoder.encode
    loads = decoder.decode
    DecodeError = (ValueError, msgspec.DecodeError)

    def pretty(value):
        encoded = msgspec.json.format(sorted_encoder.encode(value), indent=2)
        return encoded.decode()

    def compact(value):
        return sorted_encoder.encode(value).decode()

elif orjson is not None:
    dumps = orjson.dumps
    loads = orjson.loads
    DecodeError = ValueError

    _pretty_options = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS
    _compact_options = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS

    def pretty(value):
        return orjson.dumps(value, default=_default, option=_pretty_options).decode()

    def compact(value):
        return orjson.dumps(value, default=_default, option=_compact_options).decode()

else:
    dumps = json_dumps
    loads = json.loads
    DecodeError = ValueError

    def pretty(value):
        return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False, default=_default)

    def compact(value):
        return json.dumps(value, separators=(',', ':'), sort_keys=True, ensure_ascii=False, default=_default)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
