"""Scalar search routines used to invert p-value functions.

The functions here work on any continuous scalar function ``f``. In
practice ``f(mu) = p(mu) - alpha``, whose zero crossings are the limits of
the confidence set.
"""

import logging

import numpy as np
from scipy.optimize import brentq, minimize_scalar

from .exceptions import BoundaryNotFound, InvalidInputError, OptimizationFailure
from .results import EvaluatedPoint, PointKind

LGR = logging.getLogger(__name__)

#: Absolute x-tolerance of the bounded optimizer.
XATOL = 1e-9
#: Maximum number of function evaluations of the bounded optimizer.
MAXITER = 500
#: Maximum number of outward steps when searching for a boundary.
MAX_STEPS = 10_000
#: Maximum number of halvings used to recover a bracket in find_root.
MAX_HALVINGS = 60


def find_extrema(f, anchors, maximum=True, xatol=XATOL, maxiter=MAXITER):
    """Locate one local extremum of ``f`` strictly between consecutive anchors.

    Parameters
    ----------
    f : callable
        Scalar function of one variable.
    anchors : array_like
        Sorted, distinct x-values.
    maximum : :obj:`bool`, optional
        Search for maxima if True, otherwise for minima. Default = True.
    xatol : :obj:`float`, optional
        Absolute tolerance on the location of the extremum.
    maxiter : :obj:`int`, optional
        Maximum number of iterations per interval.

    Returns
    -------
    :obj:`list` of :obj:`~confmeta.results.EvaluatedPoint`
        One point per interval, in anchor order.

    Raises
    ------
    OptimizationFailure
        If the optimizer does not converge on one of the intervals.
    """
    anchors = np.asarray(anchors, dtype=float)
    if np.any(np.diff(anchors) <= 0):
        raise InvalidInputError("anchors must be sorted and distinct.")

    kind = PointKind.LOCAL_MAX if maximum else PointKind.LOCAL_MIN
    sign = -1.0 if maximum else 1.0

    out = []
    for a, b in zip(anchors[:-1], anchors[1:]):
        res = minimize_scalar(
            lambda x: sign * f(x),
            bounds=(a, b),
            method="bounded",
            options={"xatol": xatol, "maxiter": maxiter},
        )
        if not res.success:
            raise OptimizationFailure((a, b), getattr(res, "message", None))
        out.append(EvaluatedPoint(float(res.x), float(f(res.x)), kind))
    return out


def is_relevant(f_anchors, f_extrema, maximum=True):
    """Determine which interior extrema exceed both neighboring anchors.

    Parameters
    ----------
    f_anchors : array_like of shape (N,)
        Function values at the anchors.
    f_extrema : array_like of shape (N - 1,)
        Function values at the extrema between consecutive anchors.
    maximum : :obj:`bool`, optional
        If True, an extremum is relevant when it is strictly greater than both
        neighbors; otherwise when it is strictly less. Default = True.

    Returns
    -------
    :obj:`numpy.ndarray` of :obj:`bool`
    """
    f_anchors = np.asarray(f_anchors, dtype=float)
    f_extrema = np.asarray(f_extrema, dtype=float)
    lower, upper = f_anchors[:-1], f_anchors[1:]
    if maximum:
        return (f_extrema > lower) & (f_extrema > upper)
    return (f_extrema < lower) & (f_extrema < upper)


def find_root(f, a, b, max_halvings=MAX_HALVINGS):
    """Find a zero crossing of ``f`` in ``[a, b]``.

    Uses :func:`scipy.optimize.brentq`. If the endpoints do not bracket a sign
    change, the interval is repeatedly bisected towards a sub-interval with
    a sign change before giving up.

    Raises
    ------
    BoundaryNotFound
        If no bracketing sub-interval is found.
    """
    a, b = float(min(a, b)), float(max(a, b))
    fa, fb = f(a), f(b)
    if fa == 0:
        return a
    if fb == 0:
        return b
    if np.sign(fa) != np.sign(fb):
        return brentq(f, a, b)

    # Overshoot: look for a point of opposite sign inside [a, b]
    grid = np.array([a, b])
    for _ in range(max_halvings):
        mids = (grid[:-1] + grid[1:]) / 2
        f_mids = np.array([f(m) for m in mids])
        flipped = np.flatnonzero(np.sign(f_mids) != np.sign(fa))
        if flipped.size:
            m = mids[flipped[0]]
            LGR.debug("Recovered bracket at x=%.6g in [%.6g, %.6g]", m, a, b)
            return brentq(f, a, m) if f(m) != 0 else m
        grid = np.sort(np.r_[grid, mids])
        if grid.size > 2**12:
            break
    raise BoundaryNotFound(b, grid.size)


def _find_boundary(f, x_start, step, max_steps, direction):
    step = float(step)
    if not np.isfinite(step) or step <= 0:
        raise InvalidInputError(f"step must be finite and strictly positive; got {step}.")
    sign = -1.0 if direction == "lower" else 1.0

    inner = float(x_start)
    outer = inner + sign * step
    n_steps = 1
    while f(outer) > 0:
        if n_steps >= max_steps:
            raise BoundaryNotFound(outer, n_steps, direction)
        inner = outer
        outer = outer + sign * step
        n_steps += 1

    LGR.debug("%s boundary bracketed in [%.6g, %.6g] after %d steps",
              direction, min(inner, outer), max(inner, outer), n_steps)
    return find_root(f, inner, outer)


def find_lower_boundary(f, x_start, step, max_steps=MAX_STEPS):
    """Search outwards to the left for the lower limit of a positive region.

    Parameters
    ----------
    f : callable
        Scalar function with ``f(x_start) > 0``.
    x_start : :obj:`float`
        Smallest anchor where ``f`` is positive.
    step : :obj:`float`
        Step size, e.g. the largest standard error.
    max_steps : :obj:`int`, optional
        Maximum number of steps. Default = 10000.

    Returns
    -------
    :obj:`float`
        The zero crossing of ``f`` left of ``x_start``.

    Raises
    ------
    BoundaryNotFound
        If ``f`` is still positive after ``max_steps`` steps.
    """
    return _find_boundary(f, x_start, step, max_steps, "lower")


def find_upper_boundary(f, x_start, step, max_steps=MAX_STEPS):
    """Search outwards to the right for the upper limit of a positive region.

    See :func:`find_lower_boundary`.
    """
    return _find_boundary(f, x_start, step, max_steps, "upper")
