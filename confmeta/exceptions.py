"""Exceptions and warnings raised by confmeta."""


class ConfMetaError(Exception):
    """Base exception for all errors raised by confmeta."""


class InvalidInputError(ConfMetaError, ValueError):
    """Raised when arguments fail validation.

    Examples are mismatched lengths, non-positive standard errors, an empty
    study set, unknown option values or a confidence level outside (0, 1).
    """


class OptimizationFailure(ConfMetaError, RuntimeError):
    """Raised when a bounded scalar optimizer does not converge.

    Parameters
    ----------
    interval : :obj:`tuple` of :obj:`float`
        The ``(lower, upper)`` bounds of the search interval.
    message : :obj:`str`, optional
        Message returned by the optimizer.
    """

    def __init__(self, interval, message=None):
        self.interval = tuple(interval)
        msg = "Optimizer failed to converge on interval [{:.6g}, {:.6g}]".format(*self.interval)
        if message:
            msg += ": {}".format(message)
        super().__init__(msg)


class BoundaryNotFound(ConfMetaError, RuntimeError):
    """Raised when the outward search for a confidence set boundary gives up.

    Parameters
    ----------
    last_x : :obj:`float`
        The last point visited by the search.
    steps : :obj:`int`
        Number of steps taken.
    direction : {"lower", "upper", None}, optional
        Direction of the search.
    """

    def __init__(self, last_x, steps, direction=None):
        self.last_x = last_x
        self.steps = steps
        self.direction = direction
        where = "{} boundary".format(direction) if direction else "boundary"
        super().__init__(
            "Could not locate the {} after {} steps (last x = {:.6g}). The p-value "
            "function may not decrease towards the tails.".format(where, steps, last_x)
        )


class UndefinedStatisticWarning(RuntimeWarning):
    """Warning emitted when a derived statistic is undefined and set to NaN."""
