"""Memoized pairwise tree distances.

Decision-theoretic model selection compares the tree of every candidate model
against the tree of every other candidate, usually several times per run.
`PairDistanceCache` computes each distance once per unordered tree pair and
serves every later request, in either operand order, from memory.
"""

from __future__ import annotations
import logging
import threading
from enum import Enum
from numbers import Integral
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray
from tqdm import tqdm

from phyloselect.distances import distances
from phyloselect.exceptions import InvalidMetricKindError

logger = logging.getLogger(__name__)

DistanceFunction = Callable[[Any, Any], float]


class DistanceMetric(Enum):
    """Supported tree distances. Values match the historical integer codes."""

    EUCLIDEAN = 1
    ROBINSON_FOULDS = 2

    @property
    def distance_function(self) -> DistanceFunction:
        # Resolved on each access so the module level functions stay patchable
        if self is DistanceMetric.EUCLIDEAN:
            return distances.euclidean_tree_distance
        return distances.robinson_foulds_distance

    @classmethod
    def coerce(cls, distance_type: Union["DistanceMetric", int, str]) -> "DistanceMetric":
        """
        Resolve a member, its integer code (any integral type but bool) or its
        (case insensitive) name.

        Raises:
            InvalidMetricKindError: If nothing matches
        """
        if isinstance(distance_type, cls):
            return distance_type
        if isinstance(distance_type, Integral) and not isinstance(distance_type, bool):
            for member in cls:
                if member.value == distance_type:
                    return member
        elif isinstance(distance_type, str):
            member = cls.__members__.get(distance_type.strip().upper())
            if member is not None:
                return member
        InvalidMetricKindError.raise_unsupported(distance_type)


class TreePair:
    """
    Unordered pair of trees used as cache key.

    Both trees go into a frozenset, so ``TreePair(a, b)`` and
    ``TreePair(b, a)`` are the same key for hashing and equality. Trees only
    need value equality and a hash consistent with it.
    """

    __slots__ = ("first", "second", "_members")

    def __init__(self, first: Hashable, second: Hashable):
        self.first = first
        self.second = second
        self._members = frozenset((first, second))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, TreePair):
            return NotImplemented
        return self._members == other._members

    def __hash__(self) -> int:
        return hash(self._members)

    def __repr__(self) -> str:
        return f"TreePair({self.first!r}, {self.second!r})"


class PairDistanceCache:
    """
    Caches the distance between every couple of trees in a set.

    The distance type is fixed at construction. Entries are written once and
    never evicted, so memory grows with the number of distinct pairs queried.
    Lookup, computation and insertion happen under one lock, which keeps the
    at-most-once computation per pair when a cache is shared between threads.
    """

    def __init__(
        self,
        distance_type: Union[DistanceMetric, int, str],
        distance_function: Optional[DistanceFunction] = None,
        show_progress: bool = False,
    ):
        self._distance_type: DistanceMetric = DistanceMetric.coerce(distance_type)
        self._distance_function = distance_function
        self.show_progress = show_progress
        self._distances: Dict[TreePair, float] = {}
        self._lock = threading.Lock()
        self.hits: int = 0
        self.misses: int = 0
        logger.info("Created %s distance cache", self._distance_type.name)

    @property
    def distance_type(self) -> DistanceMetric:
        return self._distance_type

    def get_distance_type(self) -> DistanceMetric:
        return self._distance_type

    def get_distance(self, tree1: Any, tree2: Any) -> float:
        """
        Gets the distance between two trees, computing it on first request.

        Errors raised by the distance function propagate and leave no entry.
        """
        pair = TreePair(tree1, tree2)
        with self._lock:
            if pair in self._distances:
                self.hits += 1
                return self._distances[pair]

            function = self._distance_function or self._distance_type.distance_function
            distance = float(function(tree1, tree2))
            self._distances[pair] = distance
            self.misses += 1
            logger.debug(
                "Computed %s distance %.6g for %r", self._distance_type.name, distance, pair
            )
            return distance

    def distance_matrix(
        self, trees: Sequence[Any], show_progress: Optional[bool] = None
    ) -> NDArray[np.float64]:
        """
        Build the symmetric distance matrix of `trees` through the cache.

        The diagonal is zero and is not computed. Each unordered pair is
        looked up once. `show_progress` defaults to the setting the cache
        was built with.
        """
        if show_progress is None:
            show_progress = self.show_progress
        n = len(trees)
        matrix: NDArray[np.float64] = np.zeros((n, n), dtype=np.float64)
        pairs: List[tuple[int, int]] = [(i, j) for i in range(n) for j in range(i)]
        for i, j in tqdm(
            pairs, desc="Tree distances", disable=not show_progress
        ):
            distance = self.get_distance(trees[i], trees[j])
            matrix[i, j] = distance
            matrix[j, i] = distance
        return matrix

    def __len__(self) -> int:
        return len(self._distances)

    def __contains__(self, pair: Any) -> bool:
        if isinstance(pair, tuple) and len(pair) == 2:
            pair = TreePair(*pair)
        return pair in self._distances

    def __repr__(self) -> str:
        return (
            f"PairDistanceCache({self._distance_type.name}, entries={len(self)}, "
            f"hits={self.hits}, misses={self.misses})"
        )
