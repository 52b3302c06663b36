""" Python implementation of wick, a command line client for WAMP routers.
    This includes the authentication negotiation for every WAMP
    authentication method, and the machinery to open many sessions at once
    and drive repeated calls and publications across them.
"""

# Utility components.

from . import json
from . import errors
from . import values

# Submodules used by multiple other components.

from . import identity
from . import auth
from . import protocol
from . import transport
from . import session
from . import render

# Primary public-facing interfaces.

from . import client
from . import pool
from . import dispatch
from . import lifecycle
from . import operations

connect = client.connect
establish = pool.establish
supervise = lifecycle.supervise

from .identity import ClientIdentity
from .session import Session
from .errors import WickError, ConfigError, ConnectError, OperationError, AggregateError

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
