""" Authentication variants and the negotiation that selects one of them.
    Each variant holds its own credential and computes the response for a
    router :class:`wick.identity.Challenge`; :func:`negotiate` turns a
    :class:`wick.identity.ClientIdentity` into the details announced in the
    HELLO message plus the variant that will answer any challenge.
"""

import base64
import binascii
import hashlib
import hmac

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from . import identity
from .errors import ConfigError, ConnectError, KeyLengthError


# Defaults applied to WAMP-CRA key derivation when the router leaves the
# parameters unset (or sets them to zero).

default_iterations = 1000
default_keylen = 32


class AuthVariant:
    """ Base class for the authentication variants. The *method* is the name
        of the WAMP authentication method, as listed in the HELLO message.
    """

    method = None

    def __repr__(self):
        return self.__class__.__name__ + '()'


class Anonymous(AuthVariant):
    """ No credentials. An anonymous session has no challenge handler; any
        challenge received is a failure.
    """

    method = identity.ANONYMOUS


class Ticket(AuthVariant):

    method = identity.TICKET

    def __init__(self, ticket):
        self.ticket = ticket


    def respond(self, challenge):
        return self.ticket, dict()



class ChallengeResponse(AuthVariant):
    """ WAMP-CRA: sign the router's challenge string with HMAC-SHA256, keyed
        by the shared *secret*. If the router supplies a salt, the key is
        derived from the secret with PBKDF2 instead.
    """

    method = identity.WAMPCRA

    def __init__(self, secret):
        self.secret = secret


    def respond(self, challenge):

        extra = challenge.extra

        try:
            text = extra['challenge']
        except KeyError:
            raise ConnectError('wampcra challenge is missing the challenge string')

        salt = extra.get('salt')

        if salt:
            key = derive_key(self.secret, salt, extra.get('iterations'), extra.get('keylen'))
        else:
            key = self.secret.encode()

        return sign_challenge(text, key), dict()



class CryptoSign(AuthVariant):
    """ Sign the router's challenge with an Ed25519 key. The *private_key*
        is hex-encoded, and is either the 32 byte seed, or 64 bytes where the
        first 32 are the seed. The hex-encoded public key is computed once,
        here, and is announced in the HELLO message.
    """

    method = identity.CRYPTOSIGN

    def __init__(self, private_key):
        self.signing_key = load_signing_key(private_key)

        public = self.signing_key.public_key()
        public = public.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
        self.public_key = public.hex()


    def __repr__(self):
        return "CryptoSign(public_key='%s')" % (self.public_key)


    def respond(self, challenge):

        try:
            challenge_hex = challenge.extra['challenge']
        except KeyError:
            raise ConnectError('cryptosign challenge is missing the challenge string')

        try:
            challenge_bytes = bytes.fromhex(challenge_hex)
        except (TypeError, ValueError):
            raise ConnectError('cryptosign challenge is not valid hex: ' + repr(challenge_hex))

        signature = self.signing_key.sign(challenge_bytes)

        # The response is the signature followed by the signed data, both
        # hex-encoded, with no separator.

        return signature.hex() + challenge_bytes.hex(), dict()



def derive_key(secret, salt, iterations=None, keylen=None):
    """ Derive a WAMP-CRA signing key from *secret* via PBKDF2-HMAC-SHA256.
        The derived bytes are base64-encoded, and it is the base64 text that
        is used as the HMAC key; the reference router implementations do the
        same, and signatures will not match otherwise.
    """

    if not iterations:
        iterations = default_iterations
    if not keylen:
        keylen = default_keylen

    derived = hashlib.pbkdf2_hmac('sha256', secret.encode(), salt.encode(), int(iterations), int(keylen))
    return base64.b64encode(derived)



def sign_challenge(challenge, key):
    """ Return the base64-encoded HMAC-SHA256 of the *challenge* string.
    """

    digest = hmac.new(key, challenge.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()



def load_signing_key(private_key):
    """ Return an Ed25519 private key for the hex-encoded *private_key*.
    """

    try:
        raw = binascii.unhexlify(private_key)
    except (binascii.Error, TypeError, ValueError) as e:
        raise ConfigError('invalid private key: ' + str(e))

    if len(raw) == 32:
        seed = raw
    elif len(raw) == 64:
        seed = raw[:32]
    else:
        raise KeyLengthError('invalid private key: private key must have length of 32 or 64, not %d' % (len(raw)))

    return ed25519.Ed25519PrivateKey.from_private_bytes(seed)



def negotiate(client):
    """ Select the authentication variant for the *client* identity, and
        build the details to include in the HELLO message. Returns a tuple
        of (details, variant). A :class:`ConfigError` is raised if the
        credentials conflict, or if the selected method lacks its credential.
    """

    identity.check_exclusive(client.ticket, client.secret, client.private_key)

    method = client.authmethod
    if not method or method == identity.ANONYMOUS:
        method = identity.infer_method(client.ticket, client.secret, client.private_key)

    details = dict()

    if client.authid:
        details['authid'] = client.authid

    if client.authrole:
        details['authrole'] = client.authrole

    if method == identity.ANONYMOUS:
        variant = Anonymous()

    elif method == identity.TICKET:
        if not client.ticket:
            raise ConfigError('must provide ticket when authmethod is ticket')
        variant = Ticket(client.ticket)

    elif method == identity.WAMPCRA:
        if not client.secret:
            raise ConfigError('must provide secret when authmethod is wampcra')
        variant = ChallengeResponse(client.secret)

    elif method == identity.CRYPTOSIGN:
        if not client.private_key:
            raise ConfigError('must provide private key when authmethod is cryptosign')
        variant = CryptoSign(client.private_key)
        details['authextra'] = {'pubkey': variant.public_key}

    else:
        raise ConfigError('unsupported authmethod: ' + repr(method))

    return details, variant


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
