"""Estimators that invert combined p-value functions into confidence sets."""

from abc import ABCMeta, abstractmethod
from inspect import getfullargspec
from warnings import warn

import numpy as np
import wrapt

from .ci import get_ci
from .optimize import MAX_STEPS
from .options import Alternative, Distribution, Heterogeneity
from .results import ConfMetaResults
from .stats import ensure_2d, hmean_chisq_pvalue
from .utils import _check_inputs_shape, check_level, check_positive_scalar


@wrapt.decorator
def _loopable(wrapped, instance, args, kwargs):
    # Decorator for fit() method of Estimator classes to handle naive looping
    # over the 2nd dimension of y/se/w inputs, and collection of outputs.
    n_iter = kwargs["y"].shape[1]
    if n_iter > 10:
        warn(
            "Input contains {} parallel study sets (in 2nd dim of y and se). The "
            "confidence sets are computed one study set at a time, which may be "
            "slow for large numbers of study sets.".format(n_iter)
        )

    conf_sets = []
    for i in range(n_iter):
        iter_kwargs = {"y": kwargs["y"][:, i]}
        iter_kwargs["se"] = kwargs["se"][:, i] if kwargs["se"].shape[1] > 1 else kwargs["se"][:, 0]
        w = kwargs.get("w")
        if w is not None:
            iter_kwargs["w"] = w[:, i] if w.shape[1] > 1 else w[:, 0]
        wrapped(**iter_kwargs)
        conf_sets.append(instance.params_["conf_set"])

    instance.params_ = {"conf_sets": conf_sets}
    return instance


class BaseEstimator(metaclass=ABCMeta):
    """Base class for estimators fitted to study-level estimates."""

    # A class-level mapping from StudySet attributes to fit() arguments. Used by
    # fit_dataset() for estimators that take non-standard arguments. Keys are
    # fit() argument names and values are StudySet attribute names.
    _dataset_attr_map = {}

    @abstractmethod
    def fit(self, *args, **kwargs):
        """Fit the estimator to data."""
        pass

    def fit_dataset(self, dataset, *args, **kwargs):
        """Apply the current estimator to the passed StudySet container.

        A convenience interface that wraps fit() and automatically aligns the
        variables held in a StudySet with the required arguments.

        Parameters
        ----------
        dataset : :obj:`~confmeta.core.StudySet`
            A StudySet instance holding the data.
        *args
            Optional positional arguments to pass onto the :meth:`~fit` method.
        **kwargs
            Optional keyword arguments to pass onto the :meth:`~fit` method.
        """
        all_kwargs = {}
        spec = getfullargspec(self.fit)
        n_kw = len(spec.defaults) if spec.defaults else 0
        n_args = len(spec.args) - n_kw - 1

        for i, name in enumerate(spec.args[1:]):
            # Check for remapped name
            attr_name = self._dataset_attr_map.get(name, name)
            if i >= n_args:
                all_kwargs[name] = getattr(dataset, attr_name, spec.defaults[i - n_args])
            else:
                all_kwargs[name] = getattr(dataset, attr_name)

        all_kwargs.update(kwargs)
        self.fit(*args, **all_kwargs)
        self.dataset_ = dataset

        return self

    @abstractmethod
    def summary(self):
        """Generate a results object."""
        pass


class HarmonicMeanChiSquaredTest(BaseEstimator):
    """Confidence sets from the harmonic mean chi-squared test.

    Inverts the p-value function of the harmonic mean chi-squared test
    (:func:`~confmeta.stats.hmean_chisq_pvalue`) at the requested level. The
    resulting confidence set may consist of several disjoint intervals, or
    may be empty.

    Parameters
    ----------
    level : :obj:`float`, optional
        Confidence level. Default = 0.95.
    heterogeneity : {"none", "additive", "multiplicative"}, optional
        Heterogeneity model used to inflate the standard errors.
        Default = "none".
    phi : :obj:`float`, optional
        Multiplicative dispersion parameter (for "multiplicative").
    tau2 : :obj:`float`, optional
        Between-study variance (for "additive").
    alternative : {"none", "less", "greater", "two.sided"}, optional
        Sign restriction of the test. Default = "none".
    distr : {"chisq", "f"}, optional
        Reference distribution. Default = "chisq".
    max_steps : :obj:`int`, optional
        Maximum number of outward steps in the boundary search.

    Notes
    -----
    This estimator accepts 2-D inputs for y and se--i.e., it can produce
    confidence sets for multiple independent sets of y/se values (use the
    2nd dimension for the parallel iterates). Study sets are processed one
    after another.
    """

    def __init__(
        self,
        level=0.95,
        heterogeneity="none",
        phi=None,
        tau2=None,
        alternative="none",
        distr="chisq",
        max_steps=MAX_STEPS,
    ):
        self.level = check_level(level)
        self.heterogeneity = Heterogeneity.coerce(heterogeneity, "heterogeneity")
        if self.heterogeneity is Heterogeneity.ADDITIVE:
            tau2 = check_positive_scalar(tau2, "tau2")
        elif self.heterogeneity is Heterogeneity.MULTIPLICATIVE:
            phi = check_positive_scalar(phi, "phi")
        self.phi = phi
        self.tau2 = tau2
        self.alternative = Alternative.coerce(alternative, "alternative")
        self.distr = Distribution.coerce(distr, "distr")
        self.max_steps = max_steps

    @property
    def p_value_kwargs(self):
        return {
            "phi": self.phi,
            "tau2": self.tau2,
            "heterogeneity": self.heterogeneity,
            "alternative": self.alternative,
            "distr": self.distr,
        }

    def p_value(self, y, se, mu, w=None):
        """Evaluate the p-value function at null value(s) ``mu``."""
        return hmean_chisq_pvalue(y, se, mu, w=w, **self.p_value_kwargs)

    def fit(self, y, se, w=None):
        """Compute the confidence set(s) for the given estimates.

        Parameters
        ----------
        y : :obj:`numpy.ndarray` of shape (K[, D])
            Study-level estimates.
        se : :obj:`numpy.ndarray` of shape (K[, D])
            Study-level standard errors.
        w : :obj:`numpy.ndarray` of shape (K[, D]), optional
            Study weights.
        """
        # This resets the Estimator's dataset_ attribute. fit_dataset will overwrite if called.
        self.dataset_ = None

        y, se, w = ensure_2d(y), ensure_2d(se), ensure_2d(w)
        if se.shape == (1, 1) and y.shape[0] > 1:
            se = np.full(y.shape, se[0, 0], dtype=float)
        _check_inputs_shape(y, se, "y", "se", row=True)
        _check_inputs_shape(y, w, "y", "w", row=True)

        self._fit(y=y, se=se, w=w)
        self.y_, self.se_, self.w_ = y, se, w
        return self

    @_loopable
    def _fit(self, y, se, w=None):
        kwargs = self.p_value_kwargs
        kwargs["w"] = w
        conf_set = get_ci(
            y,
            se,
            level=self.level,
            alternative=self.alternative,
            p_value_fn=hmean_chisq_pvalue,
            p_value_kwargs=kwargs,
            max_steps=self.max_steps,
        )
        self.params_ = {"conf_set": conf_set}
        return self

    def summary(self, comparison_cis=None, fun_name="Harmonic mean"):
        """Generate a ConfMetaResults object for the fitted estimator.

        Parameters
        ----------
        comparison_cis : None or :obj:`pandas.DataFrame` or :obj:`dict`, optional
            Externally computed intervals of reference methods, for display.
        fun_name : :obj:`str`, optional
            Label of the p-value function.
        """
        if not hasattr(self, "params_"):
            name = self.__class__.__name__
            raise ValueError(
                "This {} instance hasn't been fitted yet. Please "
                "call fit() before summary().".format(name)
            )
        se = self.se_
        if se.shape[1] == 1 and self.y_.shape[1] > 1:
            se = np.repeat(se, self.y_.shape[1], axis=1)
        w = self.w_
        if w is not None and w.shape[1] == 1 and self.y_.shape[1] > 1:
            w = np.repeat(w, self.y_.shape[1], axis=1)
        return ConfMetaResults(
            self,
            self.dataset_,
            self.y_,
            se,
            self.params_["conf_sets"],
            w=w,
            comparison_cis=comparison_cis,
            fun_name=fun_name,
        )
