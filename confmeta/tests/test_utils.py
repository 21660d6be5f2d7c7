"""Tests for confmeta.utils."""

import numpy as np
import pytest

from confmeta import InvalidInputError
from confmeta import utils


def test_check_inputs_shape():
    """Test confmeta.utils._check_inputs_shape."""
    y = np.random.randint(1, 100, size=(5, 4)).astype(float)
    se = np.random.uniform(0.1, 1, size=(6, 4))
    w = np.random.randint(1, 100, size=(5, 1)).astype(float)

    utils._check_inputs_shape(y, w, "y", "w", row=True)
    utils._check_inputs_shape(y, y, "y", "se", row=True, column=True)

    # Raise error if the number of rows and columns of se don't match y
    with pytest.raises(InvalidInputError):
        utils._check_inputs_shape(y, se, "y", "se", row=True, column=True)

    # Raise error if neither row or column is True
    with pytest.raises(ValueError):
        utils._check_inputs_shape(y, y, "y", "se")

    # optional arrays may be None
    utils._check_inputs_shape(y, None, "y", "w", row=True)


def test_listify():
    assert utils._listify("a") == ["a"]
    assert utils._listify(["a", "b"]) == ["a", "b"]
    assert utils._listify(None) is None


def test_check_se_broadcast():
    assert np.array_equal(utils.check_se(2.0, 3), [2.0, 2.0, 2.0])
    with pytest.raises(InvalidInputError):
        utils.check_se([1.0, 2.0], 3)


def test_check_weights():
    assert np.array_equal(utils.check_weights(None, 2), [1.0, 1.0])
    assert np.array_equal(utils.check_weights([0.0, 2.0], 2), [0.0, 2.0])
    with pytest.raises(InvalidInputError):
        utils.check_weights([1.0, np.nan], 2)


@pytest.mark.parametrize("level", [0, 1, -0.5, 95, [0.9, 0.95], "high"])
def test_check_level_invalid(level):
    with pytest.raises(InvalidInputError):
        utils.check_level(level)


def test_check_positive_scalar():
    assert utils.check_positive_scalar(np.float32(0.5), "tau2") == 0.5
    with pytest.raises(InvalidInputError, match="tau2"):
        utils.check_positive_scalar(None, "tau2")
    with pytest.raises(InvalidInputError):
        utils.check_positive_scalar(np.inf, "phi")
