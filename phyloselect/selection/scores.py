"""Information-criterion scores for candidate models.

Every score wraps one model and a penalty parameter (the sample size) and
computes a single scalar in its constructor. Lower values rank better.
The log-likelihood and parameter count are read once, so mutating the model
afterwards leaves an existing score untouched.
"""

from __future__ import annotations
import logging
import math
from abc import ABC, abstractmethod
from numbers import Integral, Real
from typing import ClassVar, Dict, Type

from phyloselect.exceptions import InvalidScoreInputError
from phyloselect.selection.model import SupportsLikelihood

logger = logging.getLogger(__name__)


def _invalid(message: str) -> InvalidScoreInputError:
    logger.error(message)
    return InvalidScoreInputError(message)


def validate_sample_size(sample_size: float) -> float:
    if isinstance(sample_size, bool) or not isinstance(sample_size, Real):
        raise _invalid(f"Sample size must be a real number, got {sample_size!r}")
    if not math.isfinite(sample_size) or sample_size <= 0:
        raise _invalid(f"Sample size must be positive and finite, got {sample_size!r}")
    return float(sample_size)


def _validate_log_likelihood(log_likelihood: float) -> float:
    if isinstance(log_likelihood, bool) or not isinstance(log_likelihood, Real):
        raise _invalid(f"Log-likelihood must be a real number, got {log_likelihood!r}")
    if not math.isfinite(log_likelihood):
        raise _invalid(f"Log-likelihood must be finite, got {log_likelihood!r}")
    return float(log_likelihood)


def _validate_parameter_count(parameter_count: int) -> int:
    if isinstance(parameter_count, bool) or not isinstance(parameter_count, Integral):
        raise _invalid(f"Parameter count must be an integer, got {parameter_count!r}")
    if parameter_count < 0:
        raise _invalid(f"Parameter count must be non-negative, got {parameter_count!r}")
    return int(parameter_count)


class SelectionScore(ABC):
    """
    Model wrapper including the value of one information criterion.

    Subclasses only provide `_compute`.
    """

    criterion: ClassVar[str] = ""

    def __init__(self, model: SupportsLikelihood, sample_size: float):
        self._sample_size = validate_sample_size(sample_size)
        self._log_likelihood = _validate_log_likelihood(model.log_likelihood)
        self._parameter_count = _validate_parameter_count(model.parameter_count)
        self._model = model
        self._value = float(
            self._compute(self._log_likelihood, self._parameter_count, self._sample_size)
        )

    @abstractmethod
    def _compute(
        self, log_likelihood: float, parameter_count: int, sample_size: float
    ) -> float:
        """Criterion value, lower is better."""

    @property
    def value(self) -> float:
        return self._value

    @property
    def model(self) -> SupportsLikelihood:
        return self._model

    @property
    def sample_size(self) -> float:
        return self._sample_size

    def get_value(self) -> float:
        return self._value

    def get_model(self) -> SupportsLikelihood:
        return self._model

    def __lt__(self, other: "SelectionScore") -> bool:
        if not isinstance(other, SelectionScore):
            return NotImplemented
        return self._value < other._value

    def __repr__(self) -> str:
        name = getattr(self._model, "name", type(self._model).__name__)
        return f"{type(self).__name__}({name}, value={self._value:.4f})"


class BICScore(SelectionScore):
    """Bayesian Information Criterion: -2 lnL + K ln(n)."""

    criterion = "BIC"

    def _compute(
        self, log_likelihood: float, parameter_count: int, sample_size: float
    ) -> float:
        return -2 * log_likelihood + parameter_count * math.log(sample_size)


class AICScore(SelectionScore):
    """Akaike Information Criterion: -2 lnL + 2K."""

    criterion = "AIC"

    def _compute(
        self, log_likelihood: float, parameter_count: int, sample_size: float
    ) -> float:
        return -2 * log_likelihood + 2 * parameter_count


class AICcScore(SelectionScore):
    """
    Second order (small sample) Akaike Information Criterion:
    AIC + 2K(K + 1) / (n - K - 1).

    The correction is undefined when n <= K + 1.
    """

    criterion = "AICc"

    def _compute(
        self, log_likelihood: float, parameter_count: int, sample_size: float
    ) -> float:
        denominator = sample_size - parameter_count - 1
        if denominator <= 0:
            raise _invalid(
                f"AICc needs a sample size above K + 1 = {parameter_count + 1}, "
                f"got {sample_size}"
            )
        aic = -2 * log_likelihood + 2 * parameter_count
        return aic + (2 * parameter_count * (parameter_count + 1)) / denominator


class LnLScore(SelectionScore):
    """Negative log-likelihood, no complexity penalty."""

    criterion = "LnL"

    def _compute(
        self, log_likelihood: float, parameter_count: int, sample_size: float
    ) -> float:
        return -log_likelihood


SCORE_TYPES: Dict[str, Type[SelectionScore]] = {
    cls.criterion.upper(): cls for cls in (BICScore, AICScore, AICcScore, LnLScore)
}


def get_score_class(criterion: str) -> Type[SelectionScore]:
    """
    Look up a score class by criterion name (case insensitive).

    Raises:
        InvalidScoreInputError: For an unknown criterion
    """
    try:
        return SCORE_TYPES[criterion.upper()]
    except (KeyError, AttributeError):
        raise _invalid(
            f"Unknown criterion {criterion!r}; expected one of {sorted(SCORE_TYPES)}"
        ) from None
