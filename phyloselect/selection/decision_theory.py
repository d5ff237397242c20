"""Decision-theoretic model selection (DT).

BIC weights stand in for the posterior probability of each model. The risk
of choosing model i is the expected topological distance between its tree
and the trees of all candidates:

    risk_i = sum_j d(T_i, T_j) * w_j

The model with the lowest risk is preferred. Distances come from a
`PairDistanceCache`, so repeated rankings over the same candidates reuse
every distance already computed.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Sequence

from phyloselect.distances.cache import PairDistanceCache
from phyloselect.exceptions import InvalidScoreInputError
from phyloselect.selection.criterion import InformationCriterion
from phyloselect.selection.model import Model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionTheoryScore:
    model: Model
    risk: float
    bic: float
    bic_weight: float


class DecisionTheoryCriterion:
    def __init__(
        self,
        models: Sequence[Model],
        sample_size: float,
        cache: PairDistanceCache,
    ):
        missing = [model.name for model in models if model.tree is None]
        if missing:
            message = f"Decision theory needs a tree for every model, missing: {missing}"
            logger.error(message)
            raise InvalidScoreInputError(message)

        self.cache = cache
        self.bic = InformationCriterion(models, sample_size, criterion="BIC")
        weights = self.bic.weights
        ranked_models = [score.model for score in self.bic.scores]

        scores: List[DecisionTheoryScore] = []
        for i, model in enumerate(ranked_models):
            risk = 0.0
            for j, other in enumerate(ranked_models):
                if i == j:
                    continue
                risk += cache.get_distance(model.tree, other.tree) * float(weights[j])
            scores.append(
                DecisionTheoryScore(
                    model=model,
                    risk=risk,
                    bic=self.bic.scores[i].value,
                    bic_weight=float(weights[i]),
                )
            )

        # Stable: ties keep BIC order
        self.scores: List[DecisionTheoryScore] = sorted(scores, key=lambda s: s.risk)
        logger.info(
            "DT ranking over %d models with %s distances, best: %s",
            len(self.scores),
            cache.get_distance_type().name,
            self.best.model,
        )

    @property
    def best(self) -> DecisionTheoryScore:
        return self.scores[0]

    def ranked_models(self) -> List[Model]:
        return [score.model for score in self.scores]
