"""confmeta: confidence sets from combined p-value functions."""

from .ci import get_ci
from .core import StudySet, conf_meta, confidence_set
from .estimators import HarmonicMeanChiSquaredTest
from .exceptions import (
    BoundaryNotFound,
    ConfMetaError,
    InvalidInputError,
    OptimizationFailure,
    UndefinedStatisticWarning,
)
from .info import VERSION as __version__
from .options import Alternative, Distribution, Heterogeneity
from .results import ConfidenceSetResults, ConfMetaResults, EvaluatedPoint, PointKind
from .stats import hmean_chisq_pvalue

__all__ = [
    "StudySet",
    "conf_meta",
    "confidence_set",
    "get_ci",
    "hmean_chisq_pvalue",
    "HarmonicMeanChiSquaredTest",
    "ConfidenceSetResults",
    "ConfMetaResults",
    "EvaluatedPoint",
    "PointKind",
    "Alternative",
    "Distribution",
    "Heterogeneity",
    "ConfMetaError",
    "InvalidInputError",
    "OptimizationFailure",
    "BoundaryNotFound",
    "UndefinedStatisticWarning",
]
