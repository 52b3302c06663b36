""" Convert command-line strings into typed WAMP values. Integers, floats,
    booleans, JSON objects, and JSON lists are recognized; a string wrapped
    in matching quotes is unwrapped and kept as a string; anything else is
    passed through unchanged.
"""

import math

from . import json
from .errors import ConfigError


true_words = ('1', 't', 'T', 'TRUE', 'true', 'True')
false_words = ('0', 'f', 'F', 'FALSE', 'false', 'False')


def coerce(text):
    """ Return the typed value for the command-line string *text*.
    """

    try:
        return int(text)
    except ValueError:
        pass

    try:
        number = float(text)
    except ValueError:
        pass
    else:
        if math.isfinite(number):
            return number

    if text in true_words:
        return True
    if text in false_words:
        return False

    if len(text) >= 2 and text[0] == text[-1] and text[0] in ('"', "'"):
        return text[1:-1]

    if text[:1] in ('{', '['):
        try:
            return json.loads(text)
        except json.DecodeError:
            return text

    return text



def coerce_list(items):
    return [coerce(item) for item in items]



def coerce_dict(pairs):
    """ Convert a sequence of 'key=value' strings into a dictionary, with
        each value coerced.
    """

    result = dict()

    for pair in pairs:
        key, separator, value = pair.partition('=')
        if separator == '' or key == '':
            raise ConfigError('invalid key/value pair %r: expected key=value' % (pair))

        result[key] = coerce(value)

    return result


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
