"""Tools for representing and manipulating confidence set results."""

from collections import namedtuple
from enum import Enum

import numpy as np
import pandas as pd


class PointKind(Enum):
    """Role of an evaluated point on the p-value function."""

    ESTIMATE = 0
    LOCAL_MAX = 1
    LOCAL_MIN = 2
    BOUNDARY = 3


EvaluatedPoint = namedtuple("EvaluatedPoint", ["x", "y", "kind"])
EvaluatedPoint.__doc__ = """A point ``(x, f(x))`` on the shifted p-value function.

``y`` holds ``p(x) - alpha`` and ``kind`` is a :class:`PointKind`.
"""


class ConfidenceSetResults:
    """Confidence set obtained by inverting a p-value function.

    Parameters
    ----------
    ci : :obj:`numpy.ndarray` of shape (K, 2)
        Sorted, non-overlapping ``(lower, upper)`` intervals. An empty set has
        K = 0.
    gamma : :obj:`numpy.ndarray` of shape (M, 2)
        Local minima of the p-value function between the positive anchors,
        as ``(x, p-value)`` rows. A single NaN row if there are none.
    gamma_mean : :obj:`float`
        Arithmetic mean of the gamma p-values.
    gamma_hmean : :obj:`float`
        Harmonic mean of the gamma p-values (NaN if undefined).
    forest_plot_thetahat : :obj:`numpy.ndarray`
        x-values of the anchors annotated in a forest plot.
    forest_plot_f_thetahat : :obj:`numpy.ndarray`
        p-values at ``forest_plot_thetahat``.
    level : :obj:`float`
        Confidence level.
    points : :obj:`list` of :obj:`~confmeta.results.EvaluatedPoint`, optional
        All anchors and boundaries visited by the search, sorted by x.
    """

    def __init__(
        self,
        ci,
        gamma,
        gamma_mean,
        gamma_hmean,
        forest_plot_thetahat,
        forest_plot_f_thetahat,
        level,
        points=None,
    ):
        self.ci = np.asarray(ci, dtype=float).reshape(-1, 2)
        self.gamma = np.asarray(gamma, dtype=float).reshape(-1, 2)
        self.gamma_mean = gamma_mean
        self.gamma_hmean = gamma_hmean
        self.forest_plot_thetahat = np.atleast_1d(np.asarray(forest_plot_thetahat, dtype=float))
        self.forest_plot_f_thetahat = np.atleast_1d(
            np.asarray(forest_plot_f_thetahat, dtype=float)
        )
        self.level = level
        self.points = list(points) if points is not None else []

    @property
    def alpha(self):
        return 1 - self.level

    @property
    def exists(self):
        """Whether the confidence set is non-empty."""
        return self.ci.shape[0] > 0

    @property
    def n_intervals(self):
        return self.ci.shape[0]

    @property
    def forest_plot_point(self):
        """The ``(x, p-value)`` pair with the largest p-value among the forest plot points."""
        idx = int(np.nanargmax(self.forest_plot_f_thetahat))
        return self.forest_plot_thetahat[idx], self.forest_plot_f_thetahat[idx]

    @property
    def p_max(self):
        """Location and value of the largest p-value among the anchors."""
        anchors = [
            p for p in self.points if p.kind in (PointKind.ESTIMATE, PointKind.LOCAL_MAX)
        ]
        if not anchors:
            return self.forest_plot_point
        best = max(anchors, key=lambda p: p.y)
        return best.x, best.y + self.alpha

    def contains(self, mu):
        """Check whether null value(s) ``mu`` fall inside the confidence set."""
        mu = np.atleast_1d(np.asarray(mu, dtype=float))
        if not self.exists:
            return np.zeros(mu.shape, dtype=bool)
        lower, upper = self.ci[:, 0][:, None], self.ci[:, 1][:, None]
        return ((mu[None, :] >= lower) & (mu[None, :] <= upper)).any(0)

    def to_dict(self):
        """Return the results as a plain dictionary."""
        x, p = self.forest_plot_point
        return {
            "ci": self.ci.copy(),
            "gamma": self.gamma.copy(),
            "gamma_mean": self.gamma_mean,
            "gamma_hmean": self.gamma_hmean,
            "forest_plot_point": (x, p),
        }

    def to_df(self):
        """Convert the intervals to a pandas DataFrame.

        Returns
        -------
        :obj:`pandas.DataFrame`
            One row per interval, with columns "lower" and "upper".
        """
        return pd.DataFrame(self.ci, columns=["lower", "upper"])

    def __repr__(self):
        if not self.exists:
            return "<{} (empty, level={})>".format(self.__class__.__name__, self.level)
        ivals = ", ".join("[{:.4g}, {:.4g}]".format(l, u) for l, u in self.ci)
        return "<{} {} level={}>".format(self.__class__.__name__, ivals, self.level)


class ConfMetaResults:
    """Container for the output of a harmonic mean chi-squared analysis.

    Parameters
    ----------
    estimator : :obj:`~confmeta.estimators.HarmonicMeanChiSquaredTest`
        The fitted estimator.
    dataset : None or :obj:`~confmeta.core.StudySet`
        The StudySet the estimator was fitted to, if any.
    y, se : :obj:`numpy.ndarray` of shape (K, D)
        Study-level estimates and standard errors for D parallel study sets.
    conf_sets : :obj:`list` of :obj:`~confmeta.results.ConfidenceSetResults`
        One confidence set for each parallel study set.
    w : :obj:`numpy.ndarray` of shape (K, D), optional
        Study weights.
    comparison_cis : None or :obj:`pandas.DataFrame`, optional
        Externally computed intervals of reference methods, indexed by method
        name with columns "lower" and "upper". Only used for display.
    fun_name : :obj:`str`, optional
        Label of the p-value function. Default = "Harmonic mean".
    """

    def __init__(
        self,
        estimator,
        dataset,
        y,
        se,
        conf_sets,
        w=None,
        comparison_cis=None,
        fun_name="Harmonic mean",
    ):
        self.estimator = estimator
        self.dataset = dataset
        self.y = y
        self.se = se
        self.w = w
        self.conf_sets = conf_sets
        self.comparison_cis = _check_comparison_cis(comparison_cis)
        self.fun_name = fun_name

    @property
    def level(self):
        return self.estimator.level

    @property
    def study_names(self):
        if self.dataset is not None and self.dataset.names is not None:
            return list(self.dataset.names)
        return ["Study {}".format(i + 1) for i in range(self.y.shape[0])]

    @property
    def joint_cis(self):
        """List of (K, 2) interval arrays, one per parallel study set."""
        return [cs.ci for cs in self.conf_sets]

    @property
    def individual_cis(self):
        """Per-study Wald intervals at the analysis level, shape (K, 2, D)."""
        from .stats import se_to_ci

        lower, upper = se_to_ci(self.y, self.se, self.level)
        return np.stack([lower, upper], axis=1)

    def p_value(self, mu, i_set=0):
        """Evaluate the p-value function of one study set at ``mu``."""
        w = None if self.w is None else self.w[:, i_set]
        return self.estimator.p_value(self.y[:, i_set], self.se[:, i_set], mu, w=w)

    @property
    def p_0(self):
        """p-value at the null ``mu = 0`` for each study set."""
        return np.array([self.p_value(0.0, i)[0] for i in range(self.y.shape[1])])

    @property
    def p_max(self):
        """``(x, p-value)`` of the largest p-value for each study set, shape (D, 2)."""
        return np.array([cs.p_max for cs in self.conf_sets], dtype=float)

    def get_ci_df(self):
        """Return all joint intervals as a long DataFrame."""
        rows = []
        for i_set, cs in enumerate(self.conf_sets):
            if not cs.exists:
                rows.append({"set": i_set, "interval": np.nan, "lower": np.nan, "upper": np.nan})
            for i_int, (lower, upper) in enumerate(cs.ci):
                rows.append({"set": i_set, "interval": i_int, "lower": lower, "upper": upper})
        return pd.DataFrame(rows, columns=["set", "interval", "lower", "upper"])

    def get_gamma_df(self):
        """Return the gamma diagnostics as a long DataFrame."""
        rows = []
        for i_set, cs in enumerate(self.conf_sets):
            for x, p in cs.gamma:
                rows.append(
                    {
                        "set": i_set,
                        "minimum": x,
                        "gamma": p,
                        "gamma_mean": cs.gamma_mean,
                        "gamma_hmean": cs.gamma_hmean,
                    }
                )
        return pd.DataFrame(rows, columns=["set", "minimum", "gamma", "gamma_mean", "gamma_hmean"])

    def summary(self):
        """Return a dictionary of the main statistics for each study set."""
        p_0, p_max = self.p_0, self.p_max
        return [
            {
                "ci": cs.ci,
                "p_0": p_0[i],
                "p_max": tuple(p_max[i]),
                "gamma_mean": cs.gamma_mean,
                "gamma_hmean": cs.gamma_hmean,
            }
            for i, cs in enumerate(self.conf_sets)
        ]

    def to_df(self):
        """Convert the per-study estimates and the joint result to a DataFrame.

        Only available for a single study set. Study rows hold the estimate,
        standard error and Wald interval; one row per joint interval follows,
        labelled with ``fun_name``.
        """
        if self.y.shape[1] != 1:
            raise ValueError(
                "to_df() is only available for a single study set; use get_ci_df() instead."
            )
        ci_l = "ci_{:.6g}".format((1 - self.level) / 2)
        ci_u = "ci_{:.6g}".format(1 - (1 - self.level) / 2)
        ind = self.individual_cis[:, :, 0]
        df = pd.DataFrame(
            {
                "name": self.study_names,
                "estimate": self.y[:, 0],
                "se": self.se[:, 0],
                ci_l: ind[:, 0],
                ci_u: ind[:, 1],
            }
        )
        cs = self.conf_sets[0]
        joint = pd.DataFrame(
            {
                "name": [self.fun_name] * max(cs.n_intervals, 1),
                "estimate": [cs.p_max[0]] * max(cs.n_intervals, 1),
                "se": np.nan,
                ci_l: cs.ci[:, 0] if cs.exists else [np.nan],
                ci_u: cs.ci[:, 1] if cs.exists else [np.nan],
            }
        )
        return pd.concat([df, joint], axis=0, ignore_index=True)

    def plot(self, type=("p", "forest"), **kwargs):
        """Plot the p-value function and/or a forest plot.

        See :func:`confmeta.plotting.plot_results` for details.
        """
        from .plotting import plot_results

        return plot_results(self, type=type, **kwargs)


def _check_comparison_cis(comparison_cis):
    if comparison_cis is None:
        return None
    if isinstance(comparison_cis, pd.DataFrame):
        df = comparison_cis
    else:
        df = pd.DataFrame.from_dict(dict(comparison_cis), orient="index", columns=["lower", "upper"])
    missing = {"lower", "upper"} - set(df.columns)
    if missing:
        raise ValueError("comparison_cis is missing column(s): {}".format(sorted(missing)))
    return df.loc[:, ["lower", "upper"]].astype(float)
