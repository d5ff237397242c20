import math
from typing import Dict, FrozenSet
from phyloselect.tree import Node
from phyloselect.elements.partition import Partition


def robinson_foulds_distance(tree1: Node, tree2: Node) -> float:
    splits1: FrozenSet[FrozenSet[str]] = tree1.named_splits()
    splits2: FrozenSet[FrozenSet[str]] = tree2.named_splits()
    return len(splits1 ^ splits2) / 2


def relative_robinson_foulds_distance(tree1: Node, tree2: Node) -> float:
    splits1: FrozenSet[FrozenSet[str]] = tree1.named_splits()
    splits2: FrozenSet[FrozenSet[str]] = tree2.named_splits()

    total_unique_differences: int = len(splits1 ^ splits2)
    total_unique_splits: int = len(splits1 | splits2)

    if total_unique_splits == 0:
        return 0.0
    return total_unique_differences / total_unique_splits


def _named_branch_lengths(tree: Node) -> Dict[FrozenSet[str], float]:
    weighted: Dict[Partition, float] = tree.to_weighted_splits()
    return {split.taxa: length for split, length in weighted.items()}


def weighted_robinson_foulds_distance(tree1: Node, tree2: Node) -> float:
    """
    Calculate the weighted Robinson-Foulds distance between two trees.

    Args:
        tree1 (Node): The first tree
        tree2 (Node): The second tree

    Returns:
        float: Sum of absolute branch length differences over all splits,
        leaf branches included. A split absent from a tree has length zero.
    """
    splits1 = _named_branch_lengths(tree1)
    splits2 = _named_branch_lengths(tree2)

    all_splits = set(splits1) | set(splits2)
    return sum(abs(splits1.get(split, 0) - splits2.get(split, 0)) for split in all_splits)


def euclidean_tree_distance(tree1: Node, tree2: Node) -> float:
    """
    Calculate the Euclidean (branch score) distance between two trees.

    Every branch is identified by the split below it. The distance is the
    square root of the summed squared branch length differences, a branch
    missing from one tree counting as length zero. The root has no branch
    and is left out.

    Args:
        tree1 (Node): The first tree
        tree2 (Node): The second tree

    Returns:
        float: The branch score distance, zero for identical trees.
    """
    splits1 = tree1.branch_lengths()
    splits2 = tree2.branch_lengths()

    all_splits = set(splits1) | set(splits2)
    return math.sqrt(
        sum((splits1.get(split, 0.0) - splits2.get(split, 0.0)) ** 2 for split in all_splits)
    )
