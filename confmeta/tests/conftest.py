"""Shared fixtures for confmeta tests."""

import numpy as np
import pandas as pd
import pytest

from confmeta import StudySet


@pytest.fixture(scope="package")
def variables():
    """Estimates and standard errors of five studies."""
    y = np.array([-0.3, 0.15, 0.4, 0.55, 1.1])
    se = np.array([0.25, 0.3, 0.2, 0.35, 0.4])
    return (y, se)


@pytest.fixture(scope="package")
def dataset(variables):
    """A StudySet with study names."""
    return StudySet(*variables, names=["A", "B", "C", "D", "E"])


@pytest.fixture(scope="package")
def dataset_2d(variables):
    """A StudySet with three parallel study sets."""
    y, se = variables
    y = np.c_[y, y + 1.0, y[::-1]]
    se = np.c_[se, se, se * 2]
    return StudySet(y, se)


@pytest.fixture(scope="package")
def bimodal():
    """Three studies whose p-value function has three separate peaks."""
    return np.array([-3.0, 0.0, 3.0]), np.array([1.0, 1.0, 1.0])


@pytest.fixture(scope="package")
def study_df():
    """A DataFrame with non-default column names."""
    return pd.DataFrame(
        {
            "study": ["s1", "s2", "s3"],
            "yi": [0.2, 0.5, 0.9],
            "sei": [0.1, 0.2, 0.15],
            "w": [1.0, 2.0, 1.0],
        }
    )
