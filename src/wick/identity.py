""" Data types describing who a client is and what a router asks of it
    during authentication.
"""

import dataclasses

from .errors import ConfigError


ANONYMOUS = 'anonymous'
TICKET = 'ticket'
WAMPCRA = 'wampcra'
CRYPTOSIGN = 'cryptosign'

methods = (ANONYMOUS, TICKET, WAMPCRA, CRYPTOSIGN)

default_url = 'ws://localhost:8080/ws'
default_realm = 'realm1'
default_serializer = 'json'


@dataclasses.dataclass
class ClientIdentity:
    """ Everything required to open one session: the router *url*, the
        *realm* to join, the *serializer* to speak, and the credentials to
        present. At most one of *ticket*, *secret*, and *private_key* may be
        set; the *authmethod*, if left empty or set to 'anonymous', is
        inferred from whichever credential is present.
    """

    url: str = default_url
    realm: str = default_realm
    serializer: str = default_serializer
    authid: str = ''
    authrole: str = ''
    authmethod: str = ANONYMOUS
    ticket: str = ''
    secret: str = ''
    private_key: str = ''

    def __post_init__(self):

        check_exclusive(self.ticket, self.secret, self.private_key)

        if self.authmethod is None or self.authmethod == '':
            self.authmethod = ANONYMOUS

        if self.authmethod == ANONYMOUS:
            self.authmethod = infer_method(self.ticket, self.secret, self.private_key)
        elif self.authmethod not in methods:
            raise ConfigError("invalid authmethod: value must be one of 'anonymous', 'ticket', 'wampcra', 'cryptosign'")



@dataclasses.dataclass
class Challenge:
    """ A CHALLENGE received from the router: the authentication *method*
        being exercised, and any *extra* details. The *extra* dictionary may
        include the 'challenge' itself, and for WAMP-CRA the 'salt',
        'iterations', and 'keylen' for key derivation.
    """

    method: str
    extra: dict = dataclasses.field(default_factory=dict)



def check_exclusive(ticket, secret, private_key):
    """ Raise a :class:`ConfigError` if more than one credential is set.
    """

    populated = [value for value in (ticket, secret, private_key) if value]

    if len(populated) > 1:
        raise ConfigError('provide only one of private key, ticket or secret')



def infer_method(ticket, secret, private_key):
    """ Return the authentication method implied by the populated credential.
    """

    if private_key:
        return CRYPTOSIGN
    if ticket:
        return TICKET
    if secret:
        return WAMPCRA

    return ANONYMOUS


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
