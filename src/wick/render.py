""" Text and binary formatting of call results, event payloads, and
    invocation arguments. The output is deterministic: JSON sections are
    indented by two spaces with dictionary keys sorted.
"""

from . import json
from .errors import RawIndexError, RawTypeError


empty = 'args: []\nkwargs: {}'
empty_progress = 'args: [] kwargs: {}'


def render(args, kwargs, details=None):
    """ Return the multi-line text form of a payload. The optional *details*
        section comes first, followed by the *args* and *kwargs* sections for
        whichever of them is non-empty; if both are empty the latter part
        is the literal "args: []" and "kwargs: {}" on two lines.
    """

    sections = list()

    if details:
        sections.append('details:\n' + json.pretty(details))

    if not args and not kwargs:
        sections.append(empty)
        return '\n'.join(sections)

    if args:
        sections.append('args:\n' + json.pretty(list(args)))

    if kwargs:
        sections.append('kwargs:\n' + json.pretty(dict(kwargs)))

    return '\n'.join(sections)



def render_progress(args, kwargs):
    """ Return the single-line form of a progressive result.
    """

    if not args and not kwargs:
        return empty_progress

    parts = list()

    if args:
        parts.append('args: ' + json.compact(list(args)))

    if kwargs:
        parts.append('kwargs: ' + json.compact(dict(kwargs)))

    return '  '.join(parts)



def dump_raw(args, index, writer):
    """ Write ``args[index]`` to *writer*, a binary stream, with no framing
        and no trailing newline. Strings are UTF-8 encoded; byte sequences
        are written as is; None writes nothing.
    """

    if index < 0 or index >= len(args):
        raise RawIndexError('index out of range: %d (args has length %d)' % (index, len(args)))

    value = args[index]

    if value is None:
        return

    if isinstance(value, str):
        writer.write(value.encode('utf-8'))
    elif isinstance(value, (bytes, bytearray, memoryview)):
        writer.write(bytes(value))
    else:
        raise RawTypeError('argument at index %d is %s, not a string or bytes' % (index, type(value).__name__))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
