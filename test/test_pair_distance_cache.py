import math
import threading
from itertools import islice, permutations

import numpy as np
import pytest

from phyloselect.distances import distances as distances_module
from phyloselect.distances.cache import DistanceMetric, PairDistanceCache, TreePair
from phyloselect.exceptions import InvalidMetricKindError, PhyloSelectError
from phyloselect.parser import parse_newick
from phyloselect.tree import Node


class CountingMetric:
    """Stub metric recording every pair it is asked for."""

    def __init__(self, distance=1.5):
        self.distance = distance
        self.calls = []

    def __call__(self, tree1, tree2):
        self.calls.append((tree1, tree2))
        return self.distance


@pytest.fixture
def counting_rf(monkeypatch):
    metric = CountingMetric(distance=2.0)
    monkeypatch.setattr(distances_module, "robinson_foulds_distance", metric)
    return metric


@pytest.fixture
def counting_euclidean(monkeypatch):
    metric = CountingMetric(distance=0.25)
    monkeypatch.setattr(distances_module, "euclidean_tree_distance", metric)
    return metric


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "identifier, expected",
    [
        (DistanceMetric.EUCLIDEAN, DistanceMetric.EUCLIDEAN),
        (DistanceMetric.ROBINSON_FOULDS, DistanceMetric.ROBINSON_FOULDS),
        (1, DistanceMetric.EUCLIDEAN),
        (2, DistanceMetric.ROBINSON_FOULDS),
        (np.int64(2), DistanceMetric.ROBINSON_FOULDS),
        (np.int32(1), DistanceMetric.EUCLIDEAN),
        ("robinson_foulds", DistanceMetric.ROBINSON_FOULDS),
        ("EUCLIDEAN", DistanceMetric.EUCLIDEAN),
    ],
)
def test_construct_with_supported_types(identifier, expected):
    cache = PairDistanceCache(identifier)
    assert cache.get_distance_type() is expected
    assert cache.distance_type is expected
    assert len(cache) == 0


@pytest.mark.parametrize(
    "identifier",
    [0, 3, -1, True, np.bool_(True), np.int64(3), None, 1.0, "manhattan", ""],
)
def test_construct_with_unsupported_type_fails(identifier):
    with pytest.raises(InvalidMetricKindError):
        PairDistanceCache(identifier)


def test_invalid_metric_error_hierarchy():
    with pytest.raises(PhyloSelectError):
        PairDistanceCache(42)
    with pytest.raises(ValueError):
        PairDistanceCache(42)


# ---------------------------------------------------------------------------
# Unordered key
# ---------------------------------------------------------------------------


def test_tree_pair_is_symmetric(four_taxon_trees):
    a, b, c, a_copy = four_taxon_trees
    assert TreePair(a, b) == TreePair(b, a)
    assert hash(TreePair(a, b)) == hash(TreePair(b, a))
    assert TreePair(a, b) == TreePair(b, a_copy)
    assert TreePair(a, b) != TreePair(a, c)
    assert TreePair(a, a) != TreePair(a, b)


# ---------------------------------------------------------------------------
# Lookup semantics
# ---------------------------------------------------------------------------


def test_symmetry_computes_once(counting_rf, four_taxon_trees):
    a, b, _, _ = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)

    assert cache.get_distance(a, b) == cache.get_distance(b, a)
    assert len(counting_rf.calls) == 1
    assert len(cache) == 1
    assert (cache.hits, cache.misses) == (1, 1)


def test_repeated_calls_are_idempotent(counting_rf, four_taxon_trees):
    a, b, _, _ = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)

    first = cache.get_distance(a, b)
    for _ in range(5):
        assert cache.get_distance(a, b) == first
    assert len(counting_rf.calls) == 1


def test_equal_trees_share_entries(counting_rf, four_taxon_trees):
    a, b, _, a_copy = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)

    cache.get_distance(a, b)
    cache.get_distance(b, a_copy)
    assert len(counting_rf.calls) == 1
    assert (a_copy, b) in cache


def test_stored_value_never_changes(counting_rf, four_taxon_trees):
    a, b, _, _ = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)

    first = cache.get_distance(a, b)
    counting_rf.distance = 99.0
    assert cache.get_distance(b, a) == first


def test_euclidean_cache_never_uses_robinson_foulds(
    counting_rf, counting_euclidean, four_taxon_trees
):
    a, b, c, _ = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.EUCLIDEAN)

    assert cache.get_distance(a, b) == 0.25
    cache.get_distance(b, c)
    assert len(counting_euclidean.calls) == 2
    assert counting_rf.calls == []


def test_robinson_foulds_cache_never_uses_euclidean(
    counting_rf, counting_euclidean, four_taxon_trees
):
    a, b, c, _ = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)

    assert cache.get_distance(a, b) == 2.0
    cache.get_distance(a, c)
    assert len(counting_rf.calls) == 2
    assert counting_euclidean.calls == []


def test_distinct_pairs_are_independent(counting_rf, four_taxon_trees):
    a, b, c, _ = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)

    cache.get_distance(a, b)
    assert (a, b) in cache
    assert (a, c) not in cache
    assert (b, c) not in cache

    cache.get_distance(a, c)
    cache.get_distance(c, b)
    assert len(counting_rf.calls) == 3
    assert len(cache) == 3


def test_custom_distance_function(four_taxon_trees):
    a, b, _, _ = four_taxon_trees
    metric = CountingMetric(distance=7)
    cache = PairDistanceCache(DistanceMetric.EUCLIDEAN, distance_function=metric)

    distance = cache.get_distance(a, b)
    assert distance == 7.0
    assert isinstance(distance, float)
    assert cache.get_distance_type() is DistanceMetric.EUCLIDEAN


def test_metric_errors_propagate_without_entry(four_taxon_trees):
    a, b, _, _ = four_taxon_trees
    attempts = []

    def failing(tree1, tree2):
        attempts.append((tree1, tree2))
        raise RuntimeError("topology mismatch")

    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS, distance_function=failing)
    with pytest.raises(RuntimeError, match="topology mismatch"):
        cache.get_distance(a, b)
    assert len(cache) == 0
    with pytest.raises(RuntimeError):
        cache.get_distance(b, a)
    assert len(attempts) == 2


# ---------------------------------------------------------------------------
# Real metrics
# ---------------------------------------------------------------------------


def test_real_metrics(four_taxon_trees):
    a, b, c, a_copy = four_taxon_trees
    rf_cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)
    eucl_cache = PairDistanceCache(DistanceMetric.EUCLIDEAN)

    assert rf_cache.get_distance(a, b) == 2.0
    assert rf_cache.get_distance(a, a_copy) == 0.0
    assert eucl_cache.get_distance(a, b) == pytest.approx(2.0)
    assert eucl_cache.get_distance(b, a_copy) == pytest.approx(2.0)
    assert len(eucl_cache) == 1


def test_branch_lengths_distinguish_keys(four_taxon_trees):
    a, b, _, _ = four_taxon_trees
    a_long = parse_newick("((A:1,B:1):4,(C:1,D:1):1);")
    cache = PairDistanceCache(DistanceMetric.EUCLIDEAN)

    assert cache.get_distance(a, b) == pytest.approx(2.0)
    assert cache.get_distance(a_long, b) == pytest.approx(math.sqrt(19))
    assert cache.get_distance(a, a_long) == pytest.approx(3.0)
    assert len(cache) == 3


def test_distance_matrix(counting_rf, four_taxon_trees):
    a, b, c, _ = four_taxon_trees
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS)

    matrix = cache.distance_matrix([a, b, c])
    assert matrix.shape == (3, 3)
    assert np.allclose(matrix, matrix.T)
    assert np.all(np.diag(matrix) == 0.0)
    assert matrix[0, 1] == 2.0
    assert len(counting_rf.calls) == 3

    cache.distance_matrix([c, b, a], show_progress=True)
    assert len(counting_rf.calls) == 3


def test_shared_cache_computes_each_pair_once(four_taxon_trees):
    a, b, c, _ = four_taxon_trees
    metric = CountingMetric()
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS, distance_function=metric)
    pairs = [(a, b), (b, a), (a, c), (c, b), (b, c)] * 20

    def worker():
        for tree1, tree2 in pairs:
            cache.get_distance(tree1, tree2)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(metric.calls) == 3
    assert cache.misses == 3
    assert cache.hits == 8 * len(pairs) - 3


def caterpillar(order):
    newick = f"({order[0]}:1,{order[1]}:1)"
    for position, taxon in enumerate(order[2:], start=2):
        newick = f"({newick}:{position},{taxon}:1)"
    return newick + ";"


@pytest.fixture
def same_taxa_trees():
    """24 distinct caterpillar trees over the same eight taxa."""
    orders = islice(permutations("CDEFG"), 24)
    return parse_newick("".join(caterpillar(("A", "B") + rest + ("H",)) for rest in orders))


def test_tree_pair_hashes_spread_over_same_taxa(same_taxa_trees):
    trees = same_taxa_trees
    assert len(set(trees)) == len(trees)

    hashes = {
        hash(TreePair(trees[i], trees[j]))
        for i in range(len(trees))
        for j in range(i)
    }
    pair_count = len(trees) * (len(trees) - 1) // 2
    assert len(hashes) > 0.9 * pair_count


def test_lookups_do_not_scan_entries(monkeypatch, same_taxa_trees):
    trees = same_taxa_trees
    comparisons = []
    original_eq = Node.__eq__

    def counting_eq(self, other):
        comparisons.append((self, other))
        return original_eq(self, other)

    monkeypatch.setattr(Node, "__eq__", counting_eq)
    cache = PairDistanceCache(DistanceMetric.ROBINSON_FOULDS, distance_function=CountingMetric())
    cache.distance_matrix(trees)
    cache.distance_matrix(trees)

    pair_count = len(trees) * (len(trees) - 1) // 2
    assert cache.misses == pair_count
    assert cache.hits == pair_count
    assert len(comparisons) < pair_count
