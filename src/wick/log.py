""" Logging setup. Log records go to stderr through the standard library
    logging backend, rendered by structlog; stdout is reserved for results.
"""

import logging
import sys

import structlog


def configure(debug=False):
    """ Configure logging for the command line client. Called once, at
        startup; *debug* lowers the threshold from INFO to DEBUG.
    """

    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=level,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
