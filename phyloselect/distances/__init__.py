from phyloselect.distances.distances import (
    robinson_foulds_distance,
    relative_robinson_foulds_distance,
    weighted_robinson_foulds_distance,
    euclidean_tree_distance,
)
from phyloselect.distances.cache import DistanceMetric, PairDistanceCache, TreePair

__all__ = [
    "robinson_foulds_distance",
    "relative_robinson_foulds_distance",
    "weighted_robinson_foulds_distance",
    "euclidean_tree_distance",
    "DistanceMetric",
    "PairDistanceCache",
    "TreePair",
]
