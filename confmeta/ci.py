"""Confidence sets obtained by inverting p-value functions."""

import inspect
import logging
from functools import partial

import numpy as np

from .exceptions import InvalidInputError
from .optimize import (
    MAX_STEPS,
    find_extrema,
    find_lower_boundary,
    find_root,
    find_upper_boundary,
    is_relevant,
)
from .options import Alternative
from .results import ConfidenceSetResults, EvaluatedPoint, PointKind
from .stats import harmonic_mean, hmean_chisq_pvalue
from .utils import check_estimates, check_level, check_se

LGR = logging.getLogger(__name__)

#: Relative tolerance under which two anchors are considered equal.
TIE_RTOL = np.sqrt(np.finfo(float).eps)


def make_function(y, se, alpha, p_value_fn=hmean_chisq_pvalue, p_value_kwargs=None):
    """Build ``f(mu) = p(mu) - alpha`` for a p-value function.

    Parameters
    ----------
    y, se : :obj:`numpy.ndarray`
        Study-level estimates and standard errors, always passed to
        ``p_value_fn``.
    alpha : :obj:`float`
        Significance level.
    p_value_fn : callable, optional
        Function with signature ``p_value_fn(y, se, mu=..., **kwargs)``
        returning one p-value per element of ``mu``.
    p_value_kwargs : :obj:`dict`, optional
        Additional keyword arguments for ``p_value_fn``. The keys "y", "se"
        and "mu" are ignored.

    Returns
    -------
    callable
        Scalar function of ``mu``. Undefined (NaN) p-values count as 0.
    """
    pfun = _bind_pvalue(y, se, p_value_fn, p_value_kwargs)

    def f(mu):
        p = np.asarray(pfun(mu=mu), dtype=float)
        p = np.where(np.isnan(p), 0.0, p)
        return float(p.ravel()[0]) - alpha if p.size == 1 else p - alpha

    return f


def _bind_pvalue(y, se, p_value_fn, p_value_kwargs=None):
    kwargs = {
        k: v for k, v in (p_value_kwargs or {}).items() if k not in ("y", "se", "mu")
    }
    return partial(p_value_fn, y, se, **kwargs)


def _accepts(func, name):
    try:
        params = inspect.signature(func).parameters
    except (TypeError, ValueError):
        return False
    return name in params or any(p.kind is p.VAR_KEYWORD for p in params.values())


def _unique_sorted(x, *others):
    """Drop (near-)duplicates of ``x`` keeping first occurrences, then sort."""
    x = np.asarray(x, dtype=float)
    keep = np.ones(x.size, dtype=bool)
    for i in range(1, x.size):
        prev = x[:i][keep[:i]]
        tol = TIE_RTOL * np.maximum(1.0, np.abs(prev))
        if np.any(np.abs(prev - x[i]) <= tol):
            keep[i] = False
    order = np.argsort(x[keep], kind="stable")
    return (x[keep][order],) + tuple(np.asarray(o)[keep][order] for o in others)


def get_search_intervals(x_anchor, y_anchor, x_min, y_min):
    """Find the positive anchors enclosing each negative local minimum.

    Parameters
    ----------
    x_anchor, y_anchor : :obj:`numpy.ndarray`
        Anchor locations and shifted p-values, sorted by location.
    x_min, y_min : :obj:`numpy.ndarray`
        Locations and shifted values of the local minima.

    Returns
    -------
    :obj:`numpy.ndarray` of shape (J, 3)
        Rows of ``(lower, upper, minimum)``: the closest anchor below the
        minimum with a positive value, the closest one above it, and the
        location of the minimum. Rows sharing ``(lower, upper)`` are dropped.
    """
    x_anchor = np.asarray(x_anchor, dtype=float)
    y_anchor = np.asarray(y_anchor, dtype=float)
    pos = y_anchor > 0

    rows = []
    seen = set()
    for minimum in np.asarray(x_min, dtype=float)[np.asarray(y_min, dtype=float) < 0]:
        below = np.flatnonzero(pos & (x_anchor < minimum))
        above = np.flatnonzero(pos & (x_anchor > minimum))
        if below.size == 0 or above.size == 0:
            continue
        lower, upper = x_anchor[below[-1]], x_anchor[above[0]]
        if (lower, upper) in seen:
            continue
        seen.add((lower, upper))
        rows.append((lower, upper, minimum))
    return np.array(rows, dtype=float).reshape(-1, 3)


def get_ci(
    y,
    se,
    level=0.95,
    alternative="none",
    p_value_fn=hmean_chisq_pvalue,
    p_value_kwargs=None,
    check_inputs=True,
    max_steps=MAX_STEPS,
):
    """Calculate the confidence set by inverting a p-value function.

    The confidence set contains all ``mu`` where ``p_value_fn`` is at least
    ``1 - level``. It may be empty, a single interval, or a union of
    disjoint intervals.

    Parameters
    ----------
    y : :obj:`numpy.ndarray` of shape (K,)
        Study-level estimates.
    se : :obj:`numpy.ndarray` of shape (K,) or :obj:`float`
        Study-level standard errors.
    level : :obj:`float`, optional
        Confidence level. Default = 0.95.
    alternative : {"none", "less", "greater", "two.sided"}, optional
        Passed on to ``p_value_fn`` if it accepts an ``alternative`` argument
        and ``p_value_kwargs`` does not set one. Any value other than "none"
        raises an InvalidInputError if ``p_value_fn`` cannot take it.
        Default = "none".
    p_value_fn : callable, optional
        p-value function with signature ``p_value_fn(y, se, mu=..., **kwargs)``.
        Default = :func:`~confmeta.stats.hmean_chisq_pvalue`.
    p_value_kwargs : :obj:`dict`, optional
        Additional keyword arguments for ``p_value_fn``.
    check_inputs : :obj:`bool`, optional
        Whether to validate the inputs. Default = True.
    max_steps : :obj:`int`, optional
        Maximum number of outward steps in the boundary search.

    Returns
    -------
    :obj:`~confmeta.results.ConfidenceSetResults`

    Notes
    -----
    The search proceeds as follows:

    1. Evaluate ``f = p - alpha`` at the unique, sorted estimates.
    2. Add every local maximum between two estimates that exceeds both of
       them to the anchors.
    3. If ``f <= 0`` at all anchors, the confidence set is empty.
    4. Otherwise, step outwards from the smallest and largest positive anchors
       (by the largest standard error) and root-find the outer limits.
    5. Find the minima (gamma) between the anchors in between. Wherever a
       minimum is negative, root-find the two crossings between the closest
       positive anchors, which splits the set into disjoint intervals.

    Undefined (NaN) p-values count as 0 during the search, but the reported
    gamma p-values are evaluated again without that mapping, so an undefined
    minimum is reported as NaN.
    """
    if check_inputs:
        level = check_level(level)
        y = check_estimates(y)
        se = check_se(se, y.size)
        alternative = Alternative.coerce(alternative, "alternative")
    else:
        y = np.asarray(y, dtype=float).ravel()
        se = np.broadcast_to(np.asarray(se, dtype=float).ravel(), y.shape)
    alpha = 1 - level

    p_value_kwargs = dict(p_value_kwargs or {})
    if "alternative" not in p_value_kwargs:
        if _accepts(p_value_fn, "alternative"):
            p_value_kwargs["alternative"] = alternative
        elif Alternative.coerce(alternative, "alternative") is not Alternative.NONE:
            raise InvalidInputError(
                "alternative={!r} cannot be passed on because {} does not accept an "
                "'alternative' argument.".format(
                    getattr(alternative, "value", alternative),
                    getattr(p_value_fn, "__name__", repr(p_value_fn)),
                )
            )
    f = make_function(y, se, alpha, p_value_fn, p_value_kwargs)

    # remove duplicates and sort
    thetahat, se_u = _unique_sorted(y, se)
    points = [EvaluatedPoint(x, f(x), PointKind.ESTIMATE) for x in thetahat]

    # add the local maxima that exceed both neighboring estimates
    if len(points) > 1:
        maxima = find_extrema(f, thetahat, maximum=True)
        relevant = is_relevant([p.y for p in points], [m.y for m in maxima], maximum=True)
        points.extend(m for m, keep in zip(maxima, relevant) if keep)
        points.sort(key=lambda p: p.x)
    LGR.debug("Anchors: %s", [(round(p.x, 6), round(p.y, 6)) for p in points])

    x_anchor = np.array([p.x for p in points])
    f_anchor = np.array([p.y for p in points])

    if not np.any(f_anchor > 0):
        idx = int(np.argmax(f_anchor))
        LGR.info("No confidence set exists at level %s; max p-value %.4g at %.4g",
                 level, f_anchor[idx] + alpha, x_anchor[idx])
        return ConfidenceSetResults(
            ci=np.empty((0, 2)),
            gamma=np.full((1, 2), np.nan),
            gamma_mean=np.nan,
            gamma_hmean=np.nan,
            forest_plot_thetahat=x_anchor[idx],
            forest_plot_f_thetahat=f_anchor[idx] + alpha,
            level=level,
            points=points,
        )

    # 1. smallest and largest anchors inside the confidence set
    pos = np.flatnonzero(f_anchor > 0)
    idx_min, idx_max = pos[0], pos[-1]
    step = np.max(se_u)

    # 2. outer limits
    lower = find_lower_boundary(f, x_anchor[idx_min], step, max_steps=max_steps)
    upper = find_upper_boundary(f, x_anchor[idx_max], step, max_steps=max_steps)
    LGR.debug("Outer limits: [%.6g, %.6g]", lower, upper)

    # 3. minima between the anchors within the outer limits
    x_in, f_in = _unique_sorted(x_anchor[idx_min:idx_max + 1], f_anchor[idx_min:idx_max + 1])
    if x_in.size > 1:
        minima = find_extrema(f, x_in, maximum=False)
        gam = np.array([[m.x, m.y] for m in minima])
    else:
        minima = []
        gam = np.full((1, 2), np.nan)

    if np.any(gam[:, 1] < 0):
        intervals = get_search_intervals(x_in, f_in, gam[:, 0], gam[:, 1])
        bounds = [lower]
        for below, above, minimum in intervals:
            bounds.append(find_root(f, below, minimum))
            bounds.append(find_root(f, minimum, above))
        bounds.append(upper)
        ci = np.array(bounds).reshape(-1, 2)
    else:
        ci = np.array([[lower, upper]])
    LGR.debug("Confidence set: %s", ci.tolist())

    points = points + minima + [
        EvaluatedPoint(x, f(x), PointKind.BOUNDARY) for x in ci.ravel()
    ]
    points.sort(key=lambda p: p.x)

    if x_in.size > 1:
        # report the p-values themselves, undefined ones stay NaN
        pfun = _bind_pvalue(y, se, p_value_fn, p_value_kwargs)
        gam[:, 1] = [np.asarray(pfun(mu=x), dtype=float).ravel()[0] for x in gam[:, 0]]
        gamma_hmean = harmonic_mean(gam[:, 1], stacklevel=3)
    else:
        gamma_hmean = np.nan
    gamma_mean = np.mean(gam[:, 1])

    return ConfidenceSetResults(
        ci=ci,
        gamma=gam,
        gamma_mean=gamma_mean,
        gamma_hmean=gamma_hmean,
        forest_plot_thetahat=x_in,
        forest_plot_f_thetahat=f_in + alpha,
        level=level,
        points=points,
    )
