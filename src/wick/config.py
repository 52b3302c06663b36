""" Client configuration: validation of the individual settings, defaults
    taken from WICK_* environment variables, and named profiles stored in
    an ini file, by default ``$HOME/.wick/config``. A profile is a section
    named ``[profile NAME]``::

        [profile local]
        url = ws://localhost:8080/ws
        realm = realm1
        authmethod = cryptosign
        private-key = 0123...
"""

import configparser
import os
import re

from . import identity
from .errors import ConfigError, KeyLengthError


environment_prefix = 'WICK_'

# Keys recognized in a profile section, and the ClientIdentity attribute
# each one populates.

profile_keys = {
    'url': 'url',
    'realm': 'realm',
    'serializer': 'serializer',
    'authid': 'authid',
    'authrole': 'authrole',
    'authmethod': 'authmethod',
    'private-key': 'private_key',
    'ticket': 'ticket',
    'secret': 'secret',
}

serializers = ('json', 'msgpack')
url_schemes = ('ws', 'wss', 'rs', 'rss', 'tcp', 'tcps')

realm_pattern = re.compile(r'^([^\s\.#]+\.)*([^\s\.#]+)$')


def default_path():
    return os.path.join(os.path.expanduser('~'), '.wick', 'config')



def environment(name, default=None):
    """ Return the value of the WICK_* environment variable for the setting
        *name*, or *default* if it is unset or empty.
    """

    variable = environment_prefix + name.upper().replace('-', '_')
    value = os.environ.get(variable, '')

    if value == '':
        return default

    return value



def validate_url(url):

    scheme, separator, remainder = url.partition('://')

    if separator == '' or scheme not in url_schemes:
        raise ConfigError("invalid url: scheme must be one of 'ws', 'wss', 'rs', 'rss', 'tcp', 'tcps'")

    if remainder == '':
        raise ConfigError('invalid url: no host in ' + repr(url))

    return url



def validate_realm(realm):

    if realm is None or realm_pattern.match(realm) is None:
        raise ConfigError('invalid realm: ' + repr(realm))

    return realm



def validate_serializer(serializer):

    if serializer not in serializers:
        raise ConfigError("invalid serializer: value must be one of 'json', 'msgpack'")

    return serializer



def validate_authmethod(authmethod):

    if authmethod not in identity.methods:
        raise ConfigError("invalid authmethod: value must be one of 'anonymous', 'ticket', 'wampcra', 'cryptosign'")

    return authmethod



def validate_private_key(private_key):
    """ Check that *private_key* is hex-encoded and of an acceptable length,
        without constructing the key.
    """

    try:
        raw = bytes.fromhex(private_key)
    except ValueError:
        raise ConfigError('invalid private key: not a hex string')

    if len(raw) not in (32, 64):
        raise KeyLengthError('invalid private key: private key must have length of 32 or 64, not %d' % (len(raw)))

    return private_key



def read_profile(name, path=None):
    """ Return a dictionary of the ClientIdentity attributes set in profile
        *name* of the ini file at *path*. A missing file, or a missing
        section, is a :class:`ConfigError`.
    """

    if path is None:
        path = default_path()

    parser = configparser.ConfigParser()

    try:
        found = parser.read(path)
    except configparser.Error as e:
        raise ConfigError('unable to parse %s: %s' % (path, e))

    if len(found) == 0:
        raise ConfigError('unable to read profile file: ' + path)

    section = 'profile ' + name

    try:
        values = parser[section]
    except KeyError:
        raise ConfigError('unable to load profile %s from %s' % (repr(name), path))

    settings = dict()

    for key, attribute in profile_keys.items():
        value = values.get(key, '')
        if value != '':
            settings[attribute] = value

    return settings



def resolve(arguments, path=None):
    """ Build a :class:`wick.identity.ClientIdentity` from parsed command
        line *arguments*. An explicit profile takes the place of the flags
        and environment; otherwise each setting falls back from the command
        line to the environment to the built-in default.
    """

    profile = getattr(arguments, 'profile', None) or environment('profile')

    if profile:
        settings = read_profile(profile, path)
    else:
        settings = dict()
        for attribute in profile_keys.values():
            value = getattr(arguments, attribute, None)
            if value is None or value == '':
                value = environment(attribute)
            if value is not None and value != '':
                settings[attribute] = value

    if 'url' in settings:
        validate_url(settings['url'])
    if 'realm' in settings:
        validate_realm(settings['realm'])
    if 'serializer' in settings:
        validate_serializer(settings['serializer'])
    if 'authmethod' in settings:
        validate_authmethod(settings['authmethod'])
    if 'private_key' in settings:
        validate_private_key(settings['private_key'])

    return identity.ClientIdentity(**settings)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
