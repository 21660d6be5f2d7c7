"""Option values recognized by the p-value functions and the CI builder."""

from enum import Enum

from .exceptions import InvalidInputError


class _Option(str, Enum):
    """Base class for string-valued options.

    Members compare equal to their string values, and lookups are
    case-insensitive and honor the ``_aliases`` mapping of each subclass.
    """

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower()
            key = cls._aliases().get(key, key)
            for member in cls:
                if member.value == key:
                    return member
        return None

    @classmethod
    def _aliases(cls):
        return {}

    @classmethod
    def coerce(cls, value, name=None):
        """Convert ``value`` to a member, raising InvalidInputError if invalid."""
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join("'{}'".format(m.value) for m in cls)
            raise InvalidInputError(
                "Invalid value {!r} for {}; must be one of {}.".format(
                    value, name or cls.__name__, valid
                )
            ) from None


class Heterogeneity(_Option):
    """Model used to inflate study-level standard errors.

    - ``none``: standard errors are used as-is.
    - ``additive``: ``se = sqrt(se**2 + tau2)``.
    - ``multiplicative``: ``se = se * sqrt(phi)``.
    """

    NONE = "none"
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"

    @classmethod
    def _aliases(cls):
        return {
            "additive-tau2": "additive",
            "additive_tau2": "additive",
            "tau2": "additive",
            "additive-phi": "multiplicative",
            "additive_phi": "multiplicative",
            "phi": "multiplicative",
        }


class Alternative(_Option):
    """Sign restriction of the harmonic mean chi-squared test."""

    NONE = "none"
    LESS = "less"
    GREATER = "greater"
    TWO_SIDED = "two.sided"

    @classmethod
    def _aliases(cls):
        return {"two-sided": "two.sided", "two_sided": "two.sided"}


class Distribution(_Option):
    """Reference distribution of the test statistic."""

    CHISQ = "chisq"
    F = "f"

    @classmethod
    def _aliases(cls):
        return {"chi2": "chisq", "chisquare": "chisq"}
