from phyloselect.selection.model import Model, SupportsLikelihood
from phyloselect.selection.scores import (
    SelectionScore,
    BICScore,
    AICScore,
    AICcScore,
    LnLScore,
    SCORE_TYPES,
    get_score_class,
)
from phyloselect.selection.criterion import InformationCriterion, criterion_weights
from phyloselect.selection.decision_theory import (
    DecisionTheoryCriterion,
    DecisionTheoryScore,
)

__all__ = [
    "Model",
    "SupportsLikelihood",
    "SelectionScore",
    "BICScore",
    "AICScore",
    "AICcScore",
    "LnLScore",
    "SCORE_TYPES",
    "get_score_class",
    "InformationCriterion",
    "criterion_weights",
    "DecisionTheoryCriterion",
    "DecisionTheoryScore",
]
