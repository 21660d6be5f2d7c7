"""Test statistics and p-value functions for combining study-level estimates."""

import warnings

import numpy as np
import scipy.stats as ss

from .exceptions import InvalidInputError, UndefinedStatisticWarning
from .options import Alternative, Distribution, Heterogeneity
from .utils import check_estimates, check_mu, check_positive_scalar, check_se, check_weights


def ensure_2d(arr):
    """Ensure the passed array has 2 dimensions."""
    if arr is None:
        return arr

    arr = np.asarray(arr)

    if arr.ndim == 0:
        arr = arr[None, None]
    elif arr.ndim == 1:
        arr = arr[:, None]

    return arr


def adjust_se(se, heterogeneity="none", phi=None, tau2=None):
    """Inflate standard errors according to a heterogeneity model.

    Parameters
    ----------
    se : :obj:`numpy.ndarray`
        1d array of study-level standard errors.
    heterogeneity : {"none", "additive", "multiplicative"}, optional
        Heterogeneity model. With "additive", the between-study variance
        ``tau2`` is added to each sampling variance. With "multiplicative",
        standard errors are scaled by ``sqrt(phi)``. Default = "none".
    phi : :obj:`float`, optional
        Multiplicative dispersion parameter. Required if
        ``heterogeneity="multiplicative"``.
    tau2 : :obj:`float`, optional
        Additive between-study variance. Required if
        ``heterogeneity="additive"``.

    Returns
    -------
    :obj:`numpy.ndarray`
        Adjusted standard errors.
    """
    heterogeneity = Heterogeneity.coerce(heterogeneity, "heterogeneity")
    se = np.asarray(se, dtype=float)
    if heterogeneity is Heterogeneity.ADDITIVE:
        tau2 = check_positive_scalar(tau2, "tau2")
        return np.sqrt(se**2 + tau2)
    if heterogeneity is Heterogeneity.MULTIPLICATIVE:
        phi = check_positive_scalar(phi, "phi")
        return se * np.sqrt(phi)
    return se


def get_z(y, se, mu):
    """Calculate standardized residuals for each study and null value.

    Returns
    -------
    :obj:`numpy.ndarray` of shape (K, M)
        ``(y[k] - mu[m]) / se[k]``.
    """
    y = np.asarray(y, dtype=float)[:, None]
    se = np.asarray(se, dtype=float)[:, None]
    mu = np.atleast_1d(np.asarray(mu, dtype=float))[None, :]
    return (y - mu) / se


def hmean_chisq_pvalue(
    y,
    se,
    mu=0.0,
    phi=None,
    tau2=None,
    heterogeneity="none",
    alternative="none",
    check_inputs=True,
    w=None,
    distr="chisq",
):
    """Calculate p-values from the harmonic mean chi-squared test.

    The test statistic for the null hypothesis ``mu`` is

    .. math::
        X^2(\\mu) = \\frac{(\\sum_i \\sqrt{w_i})^2}{\\sum_i w_i / z_i(\\mu)^2},
        \\quad z_i(\\mu) = \\frac{y_i - \\mu}{se_i},

    which follows a chi-squared distribution with one degree of freedom
    under the null. The function is vectorized over ``mu``.

    Parameters
    ----------
    y : :obj:`numpy.ndarray` of shape (K,)
        1d array of study-level estimates.
    se : :obj:`numpy.ndarray` of shape (K,) or :obj:`float`
        Study-level standard errors. A scalar is used for every study.
    mu : :obj:`float` or :obj:`numpy.ndarray` of shape (M,), optional
        Null value(s) to test. Default = 0.
    phi : :obj:`float`, optional
        Multiplicative heterogeneity parameter. Default = None.
    tau2 : :obj:`float`, optional
        Additive heterogeneity parameter. Default = None.
    heterogeneity : {"none", "additive", "multiplicative"}, optional
        How to adjust ``se`` for between-study heterogeneity. Default = "none".
    alternative : {"none", "less", "greater", "two.sided"}, optional
        If not "none", the p-value is only defined where all residuals share
        the same sign. There it is divided by ``2**K`` ("less", "greater") or
        ``2**(K - 1)`` ("two.sided"); elsewhere it is NaN. Default = "none".
    check_inputs : :obj:`bool`, optional
        Whether to validate the inputs. Default = True.
    w : :obj:`numpy.ndarray` of shape (K,), optional
        Non-negative study weights. Default = unit weights.
    distr : {"chisq", "f"}, optional
        Reference distribution. "f" uses an F(1, K - 1) distribution as a
        small-sample correction. Default = "chisq".

    Returns
    -------
    :obj:`numpy.ndarray` of shape (M,)
        p-values, one for each element of ``mu``.

    Notes
    -----
    A null value equal to one of the estimates gives a zero residual, an
    infinite term in the denominator, a statistic of 0 and hence a p-value
    of 1. This follows IEEE-754 semantics and does not raise.
    """
    heterogeneity = Heterogeneity.coerce(heterogeneity, "heterogeneity")
    alternative = Alternative.coerce(alternative, "alternative")
    distr = Distribution.coerce(distr, "distr")

    if check_inputs:
        y = check_estimates(y)
        se = check_se(se, y.size)
        w = check_weights(w, y.size)
        mu = check_mu(mu)
    else:
        y = np.asarray(y, dtype=float).ravel()
        se = np.asarray(se, dtype=float).ravel()
        if se.size == 1:
            se = np.repeat(se, y.size)
        w = np.ones(y.size) if w is None else np.asarray(w, dtype=float).ravel()
        mu = np.atleast_1d(np.asarray(mu, dtype=float)).ravel()

    n = y.size
    if distr is Distribution.F and n < 2:
        raise InvalidInputError("The F distribution requires at least 2 studies.")

    se = adjust_se(se, heterogeneity=heterogeneity, phi=phi, tau2=tau2)

    sw = np.sqrt(w).sum() ** 2
    z = get_z(y, se, mu)
    with np.errstate(divide="ignore", invalid="ignore"):
        # zero-weight studies drop out even where their residual is 0
        terms = np.where(w[:, None] > 0, w[:, None] / z**2, 0.0)
        zh2 = sw / terms.sum(0)

    if distr is Distribution.CHISQ:
        res = ss.chi2.sf(zh2, df=1)
    else:
        res = ss.f.sf(zh2, dfn=1, dfd=n - 1)

    if alternative is not Alternative.NONE:
        cond = (z.min(0) >= 0) | (z.max(0) <= 0)
        if alternative is Alternative.TWO_SIDED:
            res = np.where(cond, res / 2 ** (n - 1), np.nan)
        else:
            res = np.where(cond, res / 2**n, np.nan)

    return res


def se_to_ci(y, se, level=0.95):
    """Convert standard errors to Wald confidence intervals.

    Parameters
    ----------
    y : array_like
        Estimates.
    se : array_like
        Standard errors.
    level : :obj:`float`, optional
        Confidence level. Default = 0.95.

    Returns
    -------
    :obj:`tuple` of :obj:`numpy.ndarray`
        Lower and upper bounds.
    """
    term = ss.norm.ppf((1 + level) / 2) * np.asarray(se, dtype=float)
    y = np.asarray(y, dtype=float)
    return y - term, y + term


def harmonic_mean(values, stacklevel=2):
    """Calculate ``n / sum(n / values)`` as reported for the gamma minima.

    If one of the values is undefined (NaN) or exactly 0, the result is NaN
    and an :class:`UndefinedStatisticWarning` names the cause. ``stacklevel``
    is passed on to :func:`warnings.warn`.
    """
    values = np.asarray(values, dtype=float).ravel()
    if values.size == 0:
        return np.nan

    n = values.size
    if np.any(np.isnan(values)):
        warnings.warn(
            "Harmonic mean of gamma is undefined because at least one gamma is "
            "undefined (NaN); returning NaN.",
            UndefinedStatisticWarning,
            stacklevel=stacklevel,
        )
        return np.nan
    if np.any(values == 0):
        warnings.warn(
            "Harmonic mean of gamma is undefined because at least one gamma is 0; "
            "returning NaN.",
            UndefinedStatisticWarning,
            stacklevel=stacklevel,
        )
        return np.nan

    return n / np.sum(n / values)
