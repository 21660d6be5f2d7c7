"""Core classes and functions."""

import numpy as np
import pandas as pd

from .ci import get_ci
from .estimators import HarmonicMeanChiSquaredTest
from .exceptions import InvalidInputError
from .optimize import MAX_STEPS
from .stats import ensure_2d, hmean_chisq_pvalue, se_to_ci
from .utils import _check_inputs_shape, _listify


class StudySet:
    """Container for study-level estimates and their standard errors.

    Parameters
    ----------
    y : None or :obj:`numpy.ndarray` of shape (K,) or :obj:`str`, optional
        1d array of study-level estimates with length K, or the name of the column in data
        containing the y values.
        Default = None.
    se : None or :obj:`numpy.ndarray` of shape (K,) or :obj:`str`, optional
        1d array of study-level standard errors with length K, or the name of the column in
        data containing se values.
        Default = None.
    w : None or :obj:`numpy.ndarray` of shape (K,) or :obj:`str`, optional
        1d array of non-negative study weights, or the name of the corresponding column in
        ``data``. Default = None (unit weights).
    names : None or :obj:`list` of :obj:`str` or :obj:`str`, optional
        Study labels (length K), or the name of the column in ``data`` containing them.
        Labels are only used for display. Default = None.
    data : None or :obj:`pandas.DataFrame`, optional
        A pandas DataFrame containing y, se, w and/or names values.
        By default, columns are expected to have the same names as arguments
        (e.g., the y values will be expected in the 'y' column).
        This can be modified by passing strings giving column names to any of the ``y``,
        ``se``, ``w`` or ``names`` arguments.
        Default = None.

    Notes
    -----
    As with the estimators, y, se and w may be 2d arrays whose columns hold parallel,
    independent study sets.
    """

    def __init__(self, y=None, se=None, w=None, names=None, data=None):
        if y is None and data is None:
            raise InvalidInputError(
                "If no y values are provided, a pandas DataFrame "
                "containing a 'y' column must be passed to the "
                "data argument."
            )

        # Extract columns from DataFrame
        if data is not None:
            y = _get_column(data, y, "y")
            se = _get_column(data, se, "se")

            # w and names are optional
            if (w is not None) or ("w" in data.columns):
                w = _get_column(data, w, "w")
            if isinstance(names, str) or ("names" in data.columns and names is None):
                names = _get_column(data, names, "names")

        if se is None:
            raise InvalidInputError("Standard errors (se) must be provided.")

        self.y = ensure_2d(np.asarray(y, dtype=float))
        se = ensure_2d(np.asarray(se, dtype=float))
        if se.shape == (1, 1) and self.y.shape[0] > 1:
            se = np.full(self.y.shape, se[0, 0])
        self.se = se
        self.w = ensure_2d(None if w is None else np.asarray(w, dtype=float))
        self.names = None if names is None else [str(n) for n in _listify(names)]

        _check_inputs_shape(self.y, self.se, "y", "se", row=True, column=True)
        _check_inputs_shape(self.y, self.w, "y", "w", row=True)
        self._validate()

    def _validate(self):
        if self.y.shape[0] < 1:
            raise InvalidInputError("A StudySet must contain at least one study.")
        if not np.all(np.isfinite(self.y)):
            raise InvalidInputError("All estimates (y) must be finite.")
        if not np.all(np.isfinite(self.se)) or np.any(self.se <= 0):
            raise InvalidInputError("All standard errors (se) must be finite and > 0.")
        if self.w is not None:
            if np.any(self.w < 0) or not np.all(np.isfinite(self.w)):
                raise InvalidInputError("All weights (w) must be finite and >= 0.")
            if np.any(~(self.w > 0).any(0)):
                raise InvalidInputError("At least one weight (w) must be > 0.")
        if self.names is not None and len(self.names) != self.y.shape[0]:
            raise InvalidInputError(
                "names should have one entry per study. You provided {} names for "
                "{} studies.".format(len(self.names), self.y.shape[0])
            )

    @property
    def n_studies(self):
        return self.y.shape[0]

    def individual_cis(self, level=0.95):
        """Calculate Wald confidence intervals for each study.

        Returns
        -------
        :obj:`numpy.ndarray` of shape (K, 2, D)
            Lower and upper bounds for each study and parallel study set.
        """
        lower, upper = se_to_ci(self.y, self.se, level)
        return np.stack([lower, upper], axis=1)

    def to_df(self):
        """Convert the study set to a pandas DataFrame.

        Returns
        -------
        :obj:`pandas.DataFrame`
            A DataFrame containing the y, se, w, and names values.
        """
        if self.y.shape[1] == 1:
            df = pd.DataFrame({"y": self.y[:, 0], "se": self.se[:, 0]})

            if self.w is not None:
                df["w"] = self.w[:, 0]

            if self.names is not None:
                df.insert(0, "names", self.names)

        else:
            all_dfs = []
            for i_set in range(self.y.shape[1]):
                df = pd.DataFrame(
                    {
                        "set": np.full(self.y.shape[0], i_set),
                        "y": self.y[:, i_set],
                        "se": self.se[:, i_set],
                    }
                )

                if self.w is not None:
                    df["w"] = self.w[:, i_set] if self.w.shape[1] > 1 else self.w[:, 0]

                # names are the same across sets
                if self.names is not None:
                    df.insert(1, "names", self.names)

                all_dfs.append(df)

            df = pd.concat(all_dfs, axis=0, ignore_index=True)

        return df


def _get_column(data, name, default):
    col = name or default
    if col not in data.columns:
        raise InvalidInputError("Column '{}' not found in data.".format(col))
    return data.loc[:, col].values


def confidence_set(
    y,
    se,
    level=0.95,
    alternative="none",
    p_value_fn=hmean_chisq_pvalue,
    p_value_kwargs=None,
    max_steps=MAX_STEPS,
):
    """Calculate the confidence set of a combined p-value function.

    This is a thin wrapper around :func:`~confmeta.ci.get_ci` for a single study set.

    Parameters
    ----------
    y : :obj:`numpy.ndarray` of shape (K,)
        Study-level estimates.
    se : :obj:`numpy.ndarray` of shape (K,) or :obj:`float`
        Study-level standard errors.
    level : :obj:`float`, optional
        Confidence level. Default = 0.95.
    alternative : {"none", "less", "greater", "two.sided"}, optional
        Sign restriction, forwarded to ``p_value_fn``. Default = "none".
    p_value_fn : callable, optional
        p-value function called as ``p_value_fn(y, se, mu=mu, **p_value_kwargs)``.
        Default = :func:`~confmeta.stats.hmean_chisq_pvalue`.
    p_value_kwargs : :obj:`dict`, optional
        Additional keyword arguments for ``p_value_fn`` (e.g., ``w``, ``distr``,
        ``heterogeneity``).
    max_steps : :obj:`int`, optional
        Maximum number of outward steps in the boundary search.

    Returns
    -------
    :obj:`~confmeta.results.ConfidenceSetResults`
    """
    return get_ci(
        y,
        se,
        level=level,
        alternative=alternative,
        p_value_fn=p_value_fn,
        p_value_kwargs=p_value_kwargs,
        max_steps=max_steps,
    )


def conf_meta(
    y=None,
    se=None,
    w=None,
    names=None,
    data=None,
    level=0.95,
    heterogeneity="none",
    phi=None,
    tau2=None,
    alternative="none",
    distr="chisq",
    fun_name="Harmonic mean",
    comparison_cis=None,
    **kwargs,
):
    """Combine study-level estimates with the harmonic mean chi-squared test.

    Parameters
    ----------
    y : None or :obj:`numpy.ndarray` of shape (K,) or :obj:`str`, optional
        1d array of study-level estimates with length K, or the name of the column in data
        containing the y values.
    se : None or :obj:`numpy.ndarray` of shape (K,) or :obj:`str`, optional
        1d array of study-level standard errors, or the name of the corresponding column.
    w : None or :obj:`numpy.ndarray` of shape (K,) or :obj:`str`, optional
        Study weights, or the name of the corresponding column.
    names : None or :obj:`list` of :obj:`str` or :obj:`str`, optional
        Study labels, or the name of the corresponding column.
    data : None or :obj:`pandas.DataFrame` or :obj:`~confmeta.core.StudySet`, optional
        If a StudySet instance is passed, the y, se, w and names arguments are ignored.
        If a pandas DataFrame, values are taken from its columns.
    level : :obj:`float`, optional
        Confidence level. Default = 0.95.
    heterogeneity : {"none", "additive", "multiplicative"}, optional
        Heterogeneity model. Default = "none".
    phi, tau2 : :obj:`float`, optional
        Heterogeneity parameters for the multiplicative and additive models.
    alternative : {"none", "less", "greater", "two.sided"}, optional
        Sign restriction of the test. Default = "none".
    distr : {"chisq", "f"}, optional
        Reference distribution. Default = "chisq".
    fun_name : :obj:`str`, optional
        Label used for the combined result in tables and plots.
    comparison_cis : None or :obj:`pandas.DataFrame` or :obj:`dict`, optional
        Externally computed intervals of reference methods (e.g., random
        effects), keyed by method name. Only used for display.
    **kwargs
        Optional keyword arguments to pass onto the estimator.

    Returns
    -------
    :obj:`~confmeta.results.ConfMetaResults`
    """
    if data is None or not isinstance(data, StudySet):
        data = StudySet(y, se, w, names, data)

    est = HarmonicMeanChiSquaredTest(
        level=level,
        heterogeneity=heterogeneity,
        phi=phi,
        tau2=tau2,
        alternative=alternative,
        distr=distr,
        **kwargs,
    )
    est.fit_dataset(data)
    return est.summary(comparison_cis=comparison_cis, fun_name=fun_name)
