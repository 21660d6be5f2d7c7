"""Tests for confmeta.estimators."""

import numpy as np
import pytest

from confmeta import HarmonicMeanChiSquaredTest, InvalidInputError, get_ci
from confmeta.options import Alternative, Distribution, Heterogeneity


def test_hmean_estimator(variables):
    """Test HarmonicMeanChiSquaredTest estimator."""
    y, se = variables
    est = HarmonicMeanChiSquaredTest().fit(y=y, se=se)
    assert est.dataset_ is None
    conf_sets = est.params_["conf_sets"]
    assert len(conf_sets) == 1
    assert np.allclose(conf_sets[0].ci, get_ci(y, se).ci)

    results = est.summary()
    assert results.y.shape == (5, 1)
    assert results.estimator is est


def test_hmean_estimator_options():
    est = HarmonicMeanChiSquaredTest(
        level=0.9, heterogeneity="tau2", tau2=0.1, alternative="two-sided", distr="F"
    )
    assert est.level == 0.9
    assert est.heterogeneity is Heterogeneity.ADDITIVE
    assert est.alternative is Alternative.TWO_SIDED
    assert est.distr is Distribution.F
    assert est.p_value_kwargs["tau2"] == 0.1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"level": 1.5},
        {"heterogeneity": "additive"},
        {"heterogeneity": "multiplicative", "phi": 0},
        {"alternative": "up"},
        {"distr": "normal"},
    ],
)
def test_hmean_estimator_invalid(kwargs):
    with pytest.raises(InvalidInputError):
        HarmonicMeanChiSquaredTest(**kwargs)


def test_hmean_estimator_fit_dataset(dataset):
    est = HarmonicMeanChiSquaredTest().fit_dataset(dataset)
    assert est.dataset_ is dataset
    results = est.summary()
    assert results.study_names == ["A", "B", "C", "D", "E"]

    # fit() resets the dataset
    est.fit(y=dataset.y, se=dataset.se)
    assert est.dataset_ is None


def test_hmean_estimator_2d(dataset_2d):
    """Parallel study sets are handled one at a time."""
    est = HarmonicMeanChiSquaredTest().fit_dataset(dataset_2d)
    conf_sets = est.params_["conf_sets"]
    assert len(conf_sets) == 3

    # shifting all estimates shifts the confidence set
    assert conf_sets[0].ci.shape == conf_sets[1].ci.shape
    assert np.allclose(conf_sets[0].ci + 1.0, conf_sets[1].ci, atol=1e-6)

    for i, cs in enumerate(conf_sets):
        expected = get_ci(dataset_2d.y[:, i], dataset_2d.se[:, i])
        assert np.allclose(cs.ci, expected.ci)

    results = est.summary()
    assert len(results.joint_cis) == 3
    assert results.p_0.shape == (3,)


def test_hmean_estimator_shared_se(variables):
    y, se = variables
    y2 = np.c_[y, y * 2]
    est = HarmonicMeanChiSquaredTest().fit(y=y2, se=se)
    assert len(est.params_["conf_sets"]) == 2
    assert est.summary().se.shape == (5, 2)


def test_hmean_estimator_many_sets_warns(variables):
    y, se = variables
    y2 = np.tile(y[:, None], (1, 11))
    with pytest.warns(UserWarning, match="parallel study sets"):
        HarmonicMeanChiSquaredTest().fit(y=y2, se=se)


def test_hmean_estimator_weights():
    y = np.array([0.0, 5.0])
    se = np.array([1.0, 1.0])
    est = HarmonicMeanChiSquaredTest().fit(y=y, se=se, w=np.array([1.0, 0.0]))
    # the zero-weight study has no influence
    assert np.allclose(est.params_["conf_sets"][0].ci, get_ci([0.0], [1.0]).ci, atol=1e-8)


def test_hmean_estimator_summary_unfitted():
    with pytest.raises(ValueError):
        HarmonicMeanChiSquaredTest().summary()
