"""Tests for confmeta.results."""

import numpy as np
import pandas as pd
import pytest

from confmeta import ConfidenceSetResults, HarmonicMeanChiSquaredTest, get_ci
from confmeta.stats import hmean_chisq_pvalue


@pytest.fixture
def results(dataset):
    """A fitted result for a single study set."""
    return HarmonicMeanChiSquaredTest().fit_dataset(dataset).summary()


@pytest.fixture
def results_2d(dataset_2d):
    """A fitted result for three parallel study sets."""
    return HarmonicMeanChiSquaredTest().fit_dataset(dataset_2d).summary()


def test_confidence_set_results(bimodal):
    cs = get_ci(*bimodal)
    assert cs.exists
    assert cs.alpha == pytest.approx(0.05)
    assert list(cs.contains([-3.0, -1.5, 0.0, 10.0])) == [True, False, True, False]

    df = cs.to_df()
    assert list(df.columns) == ["lower", "upper"]
    assert df.shape == (3, 2)

    d = cs.to_dict()
    assert set(d) == {"ci", "gamma", "gamma_mean", "gamma_hmean", "forest_plot_point"}
    assert "level=0.95" in repr(cs)


def test_confidence_set_results_empty():
    cs = ConfidenceSetResults(
        ci=np.empty((0, 2)),
        gamma=np.full((1, 2), np.nan),
        gamma_mean=np.nan,
        gamma_hmean=np.nan,
        forest_plot_thetahat=[0.5],
        forest_plot_f_thetahat=[0.01],
        level=0.95,
    )
    assert not cs.exists
    assert cs.n_intervals == 0
    assert not cs.contains([0.5]).any()
    assert cs.to_df().shape == (0, 2)
    assert cs.p_max == (0.5, 0.01)
    assert "empty" in repr(cs)


def test_conf_meta_results(results, dataset):
    """Test ConfMetaResults attributes."""
    y, se = dataset.y[:, 0], dataset.se[:, 0]
    assert results.level == 0.95
    assert results.individual_cis.shape == (5, 2, 1)
    assert np.allclose(results.p_value([0.0, 0.5]), hmean_chisq_pvalue(y, se, [0.0, 0.5]))
    assert np.allclose(results.p_0, hmean_chisq_pvalue(y, se, 0.0))
    assert results.p_max.shape == (1, 2)
    assert results.p_max[0, 1] == pytest.approx(1.0)

    summary = results.summary()
    assert len(summary) == 1
    assert set(summary[0]) == {"ci", "p_0", "p_max", "gamma_mean", "gamma_hmean"}


def test_conf_meta_results_dfs(results):
    ci_df = results.get_ci_df()
    assert list(ci_df.columns) == ["set", "interval", "lower", "upper"]
    assert ci_df.shape[0] == results.conf_sets[0].n_intervals

    gamma_df = results.get_gamma_df()
    assert list(gamma_df.columns) == ["set", "minimum", "gamma", "gamma_mean", "gamma_hmean"]

    df = results.to_df()
    assert list(df.columns) == ["name", "estimate", "se", "ci_0.025", "ci_0.975"]
    assert list(df["name"].iloc[:5]) == ["A", "B", "C", "D", "E"]


def test_conf_meta_results_2d(results_2d):
    assert len(results_2d.joint_cis) == 3
    assert results_2d.p_0.shape == (3,)
    assert results_2d.p_max.shape == (3, 2)
    assert set(results_2d.get_ci_df()["set"]) == {0, 1, 2}
    assert results_2d.study_names[0] == "Study 1"

    with pytest.raises(ValueError):
        results_2d.to_df()


def test_comparison_cis(dataset):
    est = HarmonicMeanChiSquaredTest().fit_dataset(dataset)
    results = est.summary(comparison_cis={"Random effects": (0.0, 0.8)})
    assert list(results.comparison_cis.index) == ["Random effects"]
    assert results.comparison_cis.loc["Random effects", "upper"] == 0.8

    df = pd.DataFrame({"lower": [0.1], "upper": [0.6]}, index=["Fixed effect"])
    assert results.comparison_cis is not None
    assert est.summary(comparison_cis=df).comparison_cis.shape == (1, 2)

    with pytest.raises(ValueError):
        est.summary(comparison_cis=pd.DataFrame({"lower": [0.1]}))
