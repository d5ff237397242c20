from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from phyloselect.exceptions import InvalidScoreInputError
from phyloselect.selection.model import SupportsLikelihood
from phyloselect.selection.scores import SelectionScore, get_score_class

logger = logging.getLogger(__name__)


def criterion_weights(values: Sequence[float]) -> NDArray[np.float64]:
    """Compute Akaike-style weights from criterion values.

    The weight of model k is

        w_k  ∝  exp(-0.5 * (value_k - min_k value_k))

    Parameters
    ----------
    values : Sequence[float]
        Criterion values, lower is better.

    Returns
    -------
    NDArray[np.float64]
        Normalized weights summing to 1, in the order of `values`.
    """
    values_arr = np.asarray(values, dtype=np.float64)
    if values_arr.size == 0:
        return values_arr
    # Subtract minimum for numerical stability before exponentiating
    delta = values_arr - np.min(values_arr)
    raw = np.exp(-0.5 * delta)
    return raw / np.sum(raw)


class InformationCriterion:
    """
    Ranks candidate models under one information criterion.

    One score is built per model; `scores` is sorted best first and keeps the
    input order among ties.
    """

    def __init__(
        self,
        models: Sequence[SupportsLikelihood],
        sample_size: float,
        criterion: str = "BIC",
        confidence_threshold: float = 0.95,
    ):
        if not models:
            message = "Cannot rank an empty set of models"
            logger.error(message)
            raise InvalidScoreInputError(message)
        self.score_class = get_score_class(criterion)
        self.criterion: str = self.score_class.criterion
        self.sample_size = sample_size
        self.confidence_threshold = confidence_threshold
        self.scores: List[SelectionScore] = sorted(
            self.score_class(model, sample_size) for model in models
        )
        logger.info(
            "Ranked %d models by %s, best: %r", len(self.scores), self.criterion, self.best
        )

    @property
    def best(self) -> SelectionScore:
        return self.scores[0]

    @property
    def values(self) -> NDArray[np.float64]:
        return np.array([score.value for score in self.scores], dtype=np.float64)

    @property
    def deltas(self) -> NDArray[np.float64]:
        values = self.values
        return values - values[0]

    @property
    def weights(self) -> NDArray[np.float64]:
        return criterion_weights(self.values)

    @property
    def cumulative_weights(self) -> NDArray[np.float64]:
        return np.cumsum(self.weights)

    def confidence_set(self, threshold: Optional[float] = None) -> List[SelectionScore]:
        """
        Smallest leading run of the ranking whose cumulative weight reaches
        `threshold`, by default the `confidence_threshold` of the criterion.
        """
        if threshold is None:
            threshold = self.confidence_threshold
        if not 0 < threshold <= 1:
            raise InvalidScoreInputError(
                f"Confidence threshold must lie in (0, 1], got {threshold!r}"
            )
        cumulative = self.cumulative_weights
        # Guard against the last cumulative weight rounding just below 1.0
        cutoff = int(np.searchsorted(cumulative, threshold - 1e-12)) + 1
        return self.scores[: min(cutoff, len(self.scores))]

    def summary(self) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for score, delta, weight, cumulative in zip(
            self.scores, self.deltas, self.weights, self.cumulative_weights
        ):
            rows.append(
                {
                    "model": getattr(score.model, "name", str(score.model)),
                    "value": score.value,
                    "delta": float(delta),
                    "weight": float(weight),
                    "cumulative_weight": float(cumulative),
                }
            )
        return rows
