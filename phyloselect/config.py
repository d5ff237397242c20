from __future__ import annotations
import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping, Sequence, Union

from phyloselect.distances.cache import DistanceMetric, PairDistanceCache
from phyloselect.exceptions import InvalidScoreInputError
from phyloselect.selection.criterion import InformationCriterion
from phyloselect.selection.model import SupportsLikelihood
from phyloselect.selection.scores import get_score_class

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionConfig:
    """Configuration for a model selection run."""

    criterion: str = "BIC"
    distance_type: Union[DistanceMetric, int, str] = DistanceMetric.ROBINSON_FOULDS
    confidence_threshold: float = 0.95
    show_progress: bool = False

    def __post_init__(self) -> None:
        # Fail on bad settings before any work starts
        get_score_class(self.criterion)
        object.__setattr__(self, "distance_type", DistanceMetric.coerce(self.distance_type))
        if not 0 < self.confidence_threshold <= 1:
            message = f"confidence_threshold must lie in (0, 1], got {self.confidence_threshold!r}"
            logger.error(message)
            raise InvalidScoreInputError(message)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SelectionConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidScoreInputError(f"Unknown configuration keys: {unknown}")
        return cls(**dict(data))

    def make_cache(self) -> PairDistanceCache:
        """Distance cache whose `distance_matrix` honours `show_progress`."""
        return PairDistanceCache(self.distance_type, show_progress=self.show_progress)

    def make_criterion(
        self, models: Sequence[SupportsLikelihood], sample_size: float
    ) -> InformationCriterion:
        """Ranking whose `confidence_set` defaults to `confidence_threshold`."""
        logger.debug(
            "Ranking %d models by %s at confidence %s",
            len(models),
            self.criterion,
            self.confidence_threshold,
        )
        return InformationCriterion(
            models,
            sample_size,
            criterion=self.criterion,
            confidence_threshold=self.confidence_threshold,
        )
