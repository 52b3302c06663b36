""" Repeat one operation a number of times under bounded concurrency. This is
    the engine behind the repeated call and publish operations: every
    iteration runs to completion regardless of how the others fare, and the
    failures are gathered, in submission order, into one
    :class:`AggregatedResult`.
"""

import concurrent.futures
import dataclasses
import time

import structlog

from .errors import ConfigError, aggregate


logger = structlog.get_logger(__name__)


@dataclasses.dataclass
class OperationRequest:
    """ One operation to repeat: the *target* procedure or topic, the
        arguments to pass, and how to repeat it. Each of the *repeat_count*
        iterations waits *delay_ms* milliseconds before performing the
        operation, with at most *concurrency* iterations in flight.
    """

    target: str
    args: list = dataclasses.field(default_factory=list)
    kwargs: dict = dataclasses.field(default_factory=dict)
    options: dict = dataclasses.field(default_factory=dict)
    repeat_count: int = 1
    concurrency: int = 1
    delay_ms: int = 0

    def __post_init__(self):

        if self.repeat_count < 1:
            raise ConfigError('repeat count must be at least 1, not %d' % (self.repeat_count))
        if self.concurrency < 1:
            raise ConfigError('concurrency must be at least 1, not %d' % (self.concurrency))
        if self.delay_ms < 0:
            raise ConfigError('delay must not be negative, not %d' % (self.delay_ms))



class AggregatedResult:
    """ The outcome of a dispatched operation: the *errors* raised by the
        failed iterations, in the order the iterations were submitted.
    """

    def __init__(self, errors=None):
        self.errors = list(errors or ())


    def __repr__(self):
        return 'AggregatedResult(errors=%r)' % (self.errors,)


    @property
    def success(self):
        return len(self.errors) == 0


    def raise_for_errors(self):
        """ Raise an :class:`wick.errors.AggregateError` if any iteration
            failed.
        """

        error = aggregate(self.errors)
        if error is not None:
            raise error


# end of class AggregatedResult



def _iterate(request, perform, iteration):

    if request.delay_ms > 0:
        time.sleep(request.delay_ms / 1000.0)

    perform(iteration)



def run(request, perform):
    """ Invoke *perform* once per iteration of the :class:`OperationRequest`,
        passing the zero-based iteration index, and return an
        :class:`AggregatedResult` once every iteration has finished.
    """

    futures = list()

    with concurrent.futures.ThreadPoolExecutor(max_workers=request.concurrency) as executor:
        for iteration in range(request.repeat_count):
            futures.append(executor.submit(_iterate, request, perform, iteration))

    errors = list()

    for future in futures:
        exception = future.exception()
        if exception is not None:
            errors.append(exception)

    if errors:
        logger.debug("dispatch finished with errors", target=request.target, repeat=request.repeat_count, failed=len(errors))

    return AggregatedResult(errors)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
