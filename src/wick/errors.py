""" Exceptions raised by wick. Configuration problems are raised immediately,
    before any network activity; connection and operation failures are
    collected by the fan-out machinery and surfaced together as a single
    :class:`AggregateError`.
"""


class WickError(Exception):
    """Base class for all wick errors."""


class ConfigError(WickError):
    """Invalid or conflicting client configuration."""


class KeyLengthError(ConfigError):
    """A cryptosign private key is not 32 or 64 bytes long."""


class ConnectError(WickError):
    """A single session failed to connect or authenticate."""


class OperationError(WickError):
    """ A single call, publish, register, or subscribe failed. If the router
        responded with a WAMP error the *uri* and any error arguments are
        retained alongside the message text.
    """

    def __init__(self, message, uri=None, args=None, kwargs=None):
        WickError.__init__(self, message)
        self.uri = uri
        self.error_args = list(args or ())
        self.error_kwargs = dict(kwargs or {})


class FormatError(WickError):
    """Raw output of a result argument failed."""


class RawIndexError(FormatError, IndexError):
    """The requested result argument does not exist."""


class RawTypeError(FormatError, TypeError):
    """The requested result argument is not a string or byte sequence."""


class AggregateError(WickError):
    """ One or more independent units of work failed. The message lists each
        failure on its own line, prefixed with a dash; the original exceptions
        are available as *errors*, in the order the work was submitted.
    """

    header = 'got error[s]:'

    def __init__(self, errors):
        self.errors = list(errors)
        lines = [self.header]
        for error in self.errors:
            lines.append('- ' + str(error))

        WickError.__init__(self, '\n'.join(lines))



def aggregate(errors):
    """ Return an :class:`AggregateError` for the non-None entries in
        *errors*, or None if there are none. Nested aggregates are flattened
        so that every distinct failure gets exactly one line.
    """

    flattened = list()

    for error in errors:
        if error is None:
            continue

        if isinstance(error, AggregateError):
            flattened.extend(error.errors)
        else:
            flattened.append(error)

    if len(flattened) == 0:
        return None

    return AggregateError(flattened)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
