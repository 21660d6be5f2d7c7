"""Miscellaneous utility and input-checking functions."""

import numpy as np

from .exceptions import InvalidInputError


def _listify(obj):
    """Wrap all non-list or tuple objects in a list.

    This provides a simple way to accept flexible arguments.
    """
    return obj if isinstance(obj, (list, tuple, type(None), np.ndarray)) else [obj]


def _check_inputs_shape(param1, param2, param1_name, param2_name, row=False, column=False):
    """Check whether 'param1' and 'param2' have the same shape.

    Parameters
    ----------
    param1 : array
    param2 : array
    param1_name : str
    param2_name : str
    row : bool, default to False.
    column : bool, default to False.
    """
    if (param1 is not None) and (param2 is not None):
        if row and not column:
            shape1 = param1.shape[0]
            shape2 = param2.shape[0]
            message = "rows"
        elif column and not row:
            shape1 = param1.shape[1]
            shape2 = param2.shape[1]
            message = "columns"
        elif row and column:
            shape1 = param1.shape
            shape2 = param2.shape
            message = "rows and columns"
        else:
            raise ValueError("At least one of the two parameters (row or column) should be True.")

        if shape1 != shape2:
            raise InvalidInputError(
                f"{param1_name} and {param2_name} should have the same number of {message}. "
                f"You provided {param1_name} with shape {param1.shape} and {param2_name} "
                f"with shape {param2.shape}."
            )


def _as_float_array(x, name):
    try:
        arr = np.asarray(x, dtype=float)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be numeric.") from None
    return arr


def check_estimates(y, name="y"):
    """Validate study-level estimates and return them as a 1d float array."""
    y = _as_float_array(y, name).ravel()
    if y.size == 0:
        raise InvalidInputError(f"{name} must contain at least one study.")
    if not np.all(np.isfinite(y)):
        raise InvalidInputError(f"{name} must only contain finite values.")
    return y


def check_se(se, n, name="se"):
    """Validate standard errors; a scalar is broadcast to length ``n``."""
    se = _as_float_array(se, name).ravel()
    if se.size == 1 and n > 1:
        se = np.repeat(se, n)
    if se.size != n:
        raise InvalidInputError(
            f"{name} must have length 1 or the same length as the estimates ({n}). "
            f"You provided {name} with length {se.size}."
        )
    if not np.all(np.isfinite(se)) or np.any(se <= 0):
        raise InvalidInputError(f"All values in {name} must be finite and strictly positive.")
    return se


def check_weights(w, n, name="w"):
    """Validate study weights, defaulting to unit weights."""
    if w is None:
        return np.ones(n)
    w = _as_float_array(w, name).ravel()
    if w.size != n:
        raise InvalidInputError(
            f"{name} must have the same length as the estimates ({n}). "
            f"You provided {name} with length {w.size}."
        )
    if not np.all(np.isfinite(w)) or np.any(w < 0):
        raise InvalidInputError(f"All values in {name} must be finite and non-negative.")
    if not np.any(w > 0):
        raise InvalidInputError(f"At least one value in {name} must be positive.")
    return w


def check_mu(mu, name="mu"):
    """Validate the null value(s) and return them as a 1d float array."""
    mu = np.atleast_1d(_as_float_array(mu, name)).ravel()
    if mu.size == 0:
        raise InvalidInputError(f"{name} must contain at least one value.")
    if np.any(np.isnan(mu)):
        raise InvalidInputError(f"{name} must not contain NaN.")
    return mu


def check_level(level):
    """Validate a confidence level, which must be a scalar in (0, 1)."""
    arr = _as_float_array(level, "level")
    if arr.ndim != 0 and arr.size != 1:
        raise InvalidInputError("level must be a single number.")
    level = float(arr.ravel()[0])
    if not 0 < level < 1:
        raise InvalidInputError(f"level must be strictly between 0 and 1; got {level}.")
    return level


def check_positive_scalar(x, name):
    """Validate a strictly positive, finite scalar parameter."""
    if x is None:
        raise InvalidInputError(f"Argument {name} must be provided.")
    arr = _as_float_array(x, name)
    if arr.size != 1:
        raise InvalidInputError(f"{name} must be a single number.")
    x = float(arr.ravel()[0])
    if not np.isfinite(x) or x <= 0:
        raise InvalidInputError(f"{name} must be finite and strictly positive; got {x}.")
    return x
