"""Tests for confmeta.optimize."""

import numpy as np
import pytest

from confmeta import BoundaryNotFound, InvalidInputError, OptimizationFailure, PointKind
from confmeta import optimize


def test_find_extrema_maximum():
    """Test find_extrema on a single interval with an interior maximum."""
    res = optimize.find_extrema(lambda x: -((x - 1) ** 2), [0.0, 3.0], maximum=True)
    assert len(res) == 1
    assert np.isclose(res[0].x, 1.0, atol=1e-6)
    assert np.isclose(res[0].y, 0.0, atol=1e-10)
    assert res[0].kind is PointKind.LOCAL_MAX


def test_find_extrema_minimum():
    res = optimize.find_extrema(np.cos, [0.0, 2 * np.pi, 4 * np.pi], maximum=False)
    assert len(res) == 2
    assert np.allclose([r.x for r in res], [np.pi, 3 * np.pi], atol=1e-6)
    assert np.allclose([r.y for r in res], -1.0)
    assert all(r.kind is PointKind.LOCAL_MIN for r in res)


def test_find_extrema_errors():
    with pytest.raises(InvalidInputError):
        optimize.find_extrema(np.cos, [1.0, 0.0])

    with pytest.raises(OptimizationFailure) as exc:
        optimize.find_extrema(lambda x: -((x - 0.3) ** 2), [0.0, 1.0], maxiter=1)
    assert exc.value.interval == (0.0, 1.0)


def test_is_relevant():
    f_anchors = [0.5, 0.2, 0.9, 0.1]
    f_maxima = [0.6, 0.8, 0.95]
    assert list(optimize.is_relevant(f_anchors, f_maxima)) == [True, False, True]

    f_minima = [0.1, 0.3, 0.05]
    assert list(optimize.is_relevant(f_anchors, f_minima, maximum=False)) == [True, False, True]


def test_find_root():
    assert np.isclose(optimize.find_root(lambda x: x - 0.25, 0.0, 1.0), 0.25)
    # endpoints in either order
    assert np.isclose(optimize.find_root(lambda x: x - 0.25, 1.0, 0.0), 0.25)
    # exact zero at an endpoint
    assert optimize.find_root(lambda x: x, 0.0, 1.0) == 0.0


def test_find_root_recovers_bracket():
    """Both endpoints negative, but the function is positive in between."""
    root = optimize.find_root(lambda x: 1 - x**2, -2.0, 2.0)
    assert np.isclose(abs(root), 1.0)


def test_find_root_no_sign_change():
    with pytest.raises(BoundaryNotFound):
        optimize.find_root(lambda x: -1 - x**2, 0.0, 1.0, max_halvings=5)


def test_find_boundaries():
    f = lambda x: 1 - x**2  # noqa: E731
    assert np.isclose(optimize.find_lower_boundary(f, 0.0, 0.3), -1.0)
    assert np.isclose(optimize.find_upper_boundary(f, 0.0, 0.3), 1.0)
    # a step that overshoots the crossing by far
    assert np.isclose(optimize.find_upper_boundary(f, 0.5, 100.0), 1.0)


def test_find_boundary_gives_up():
    with pytest.raises(BoundaryNotFound) as exc:
        optimize.find_upper_boundary(lambda x: 1.0, 0.0, 1.0, max_steps=5)
    assert exc.value.steps == 5
    assert exc.value.direction == "upper"
    assert exc.value.last_x == 5.0


def test_find_boundary_invalid_step():
    with pytest.raises(InvalidInputError):
        optimize.find_lower_boundary(lambda x: 1 - x**2, 0.0, 0.0)
