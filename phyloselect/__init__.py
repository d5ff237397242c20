"""Information-criterion and decision-theoretic selection of substitution models."""

from phyloselect.tree import Node
from phyloselect.parser import parse_newick
from phyloselect.distances import DistanceMetric, PairDistanceCache
from phyloselect.selection import (
    Model,
    SelectionScore,
    BICScore,
    AICScore,
    AICcScore,
    LnLScore,
    InformationCriterion,
    DecisionTheoryCriterion,
)
from phyloselect.config import SelectionConfig
from phyloselect.exceptions import (
    PhyloSelectError,
    InvalidMetricKindError,
    InvalidScoreInputError,
    NewickParseError,
)

__all__ = [
    "Node",
    "parse_newick",
    "DistanceMetric",
    "PairDistanceCache",
    "Model",
    "SelectionScore",
    "BICScore",
    "AICScore",
    "AICcScore",
    "LnLScore",
    "InformationCriterion",
    "DecisionTheoryCriterion",
    "SelectionConfig",
    "PhyloSelectError",
    "InvalidMetricKindError",
    "InvalidScoreInputError",
    "NewickParseError",
]
