from __future__ import annotations
from typing import Optional, Any, Dict, FrozenSet, List

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self
from phyloselect.elements.partition import Partition


class Node:
    """
    Rooted tree node. The root node stands for the whole tree.

    Two trees are equal when they carry the same taxa, the same set of
    splits and the same branch lengths, whatever their child order or object
    identity. The hash is taken over the branch lengths keyed by taxon names,
    so it stays consistent with equality across trees parsed with different
    taxa encodings. Branch lengths and the hash are memoised: trees used as
    cache keys must not be restructured or have their lengths changed
    afterwards.
    """

    __slots__ = (
        "children",
        "parent",
        "name",
        "length",
        "values",
        "split_indices",
        "taxa_encoding",
        "depth",
        "list_index",
        "_traverse_cache",
        "_splits_cache",
        "_leaves_cache",
        "_lengths_cache",
        "_hash_cache",
    )

    children: List[Self]
    parent: Optional[Self]
    name: str
    length: Optional[float]
    values: Dict[str, Any]
    split_indices: Partition
    taxa_encoding: Dict[str, int]
    depth: Optional[int]
    list_index: Optional[int]
    _traverse_cache: Optional[List[Self]]
    _splits_cache: Optional[FrozenSet[Partition]]
    _leaves_cache: Optional[List[Self]]
    _lengths_cache: Optional[Dict[FrozenSet[str], float]]
    _hash_cache: Optional[int]

    def __init__(
        self,
        children: Optional[List[Self]] = None,
        name: str = "",
        length: Optional[float] = 0.00001,
        values: Optional[Dict[str, Any]] = None,
        split_indices: Optional[Partition] = None,
        taxa_encoding: Optional[Dict[str, int]] = None,
        depth: Optional[int] = None,
    ):
        self.children = list(children) if children is not None else []
        for child in self.children:
            child.parent = self
        self.parent = None
        self.name = name
        self.length = length
        self.values = dict(values) if values is not None else {}
        self.split_indices = (
            split_indices
            if split_indices is not None
            else Partition((), taxa_encoding or {})
        )
        self._traverse_cache = None
        self._splits_cache = None
        self._leaves_cache = None
        self._lengths_cache = None
        self._hash_cache = None
        self.list_index = None
        self.depth = depth

        if taxa_encoding is None:
            leaf_order = list(self.get_current_order())
            self.taxa_encoding = {name: i for i, name in enumerate(leaf_order)}
            # Children may still be attached after construction
            self._leaves_cache = None
        else:
            self.taxa_encoding = taxa_encoding

        if not self.taxa_encoding:
            raise ValueError("Encoding dictionary cannot be empty")

    # ------------------------------------------------------------------------
    # Equality & hashing
    # ------------------------------------------------------------------------
    def __eq__(self, other: Any) -> bool:
        """
        Check if two trees are the same value: same taxa, same splits and
        the same length on every branch. The root branch is ignored.

        Use `same_topology` to ignore branch lengths.
        """
        if not isinstance(other, Node):
            return NotImplemented
        if self is other:
            return True
        if hash(self) != hash(other):
            return False
        if not self.same_topology(other):
            return False
        return self.branch_lengths() == other.branch_lengths()

    def __hash__(self) -> int:
        if self._hash_cache is None:
            self._hash_cache = hash(frozenset(self.branch_lengths().items()))
        return self._hash_cache

    def __repr__(self) -> str:
        return f"Node('{self.name}')"

    def __str__(self):
        return str(tuple(sorted(self.get_current_order())))

    # ------------------------------------------------------------------------
    # Splits
    # ------------------------------------------------------------------------
    def to_splits(self) -> FrozenSet[Partition]:
        """
        Return the splits of the internal nodes of the subtree rooted here,
        the root split included.
        """
        if self._splits_cache is not None:
            return self._splits_cache

        root_bitmask = self.split_indices.bitmask
        self._splits_cache = frozenset(
            nd.split_indices
            for nd in self.traverse()
            if nd.children
            and nd.split_indices
            and (nd.split_indices.bitmask & root_bitmask) == nd.split_indices.bitmask
        )
        return self._splits_cache

    def named_splits(self) -> FrozenSet[FrozenSet[str]]:
        return frozenset(split.taxa for split in self.to_splits())

    def same_topology(self, other: "Node") -> bool:
        """
        With a shared taxa encoding the split bitmasks are compared directly.
        Otherwise the splits are compared by taxon names.
        """
        if self.taxa_encoding == other.taxa_encoding:
            if self.split_indices != other.split_indices:
                return False
            return self.to_splits() == other.to_splits()

        if self.leaf_names() != other.leaf_names():
            return False
        return self.named_splits() == other.named_splits()

    def branch_lengths(self) -> Dict[FrozenSet[str], float]:
        """Length of every branch below the root, keyed by the taxa under it."""
        if self._lengths_cache is None:
            self._lengths_cache = {
                nd.split_indices.taxa: (nd.length if nd.length is not None else 0.0)
                for nd in self.traverse()
                if nd is not self
            }
        return self._lengths_cache

    def to_weighted_splits(self) -> Dict[Partition, float]:
        return {
            nd.split_indices: (nd.length if nd.length is not None else 0.0)
            for nd in self.traverse()
        }

    def _initialize_split_indices(self, encoding: Dict[str, int]) -> None:
        self.taxa_encoding = encoding

        # Post-order: children first
        for child in self.children:
            child._initialize_split_indices(encoding)

        if not self.children:
            if self.name not in encoding:
                raise ValueError(f"Taxon '{self.name}' is missing from the encoding")
            self.split_indices = Partition.from_bitmask(
                1 << encoding[self.name], encoding
            )
        else:
            combined_mask = 0
            for ch in self.children:
                combined_mask |= ch.split_indices.bitmask
            self.split_indices = Partition.from_bitmask(combined_mask, encoding)

    def initialize_split_indices(self, encoding: Dict[str, int]) -> None:
        """
        Assign a Partition to every node of the tree under `encoding`.

        Raises:
            ValueError: If a leaf name is not part of the encoding
        """
        self._initialize_split_indices(encoding)
        self.invalidate_caches()

    # ------------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------------
    def traverse(self) -> List[Self]:
        """
        Return all nodes of the subtree rooted at this node in pre-order.
        """
        if self._traverse_cache is not None:
            return self._traverse_cache

        nodes: List[Self] = []
        stack: List[Self] = [self]
        while stack:
            current = stack.pop()
            nodes.append(current)
            for child in reversed(current.children):
                stack.append(child)

        self._traverse_cache = nodes
        return nodes

    def get_leaves(self) -> List[Self]:
        if self._leaves_cache is not None:
            return self._leaves_cache

        if not self.children:
            self._leaves_cache = [self]
            return self._leaves_cache

        leaves: List[Self] = []
        for child in self.children:
            leaves.extend(child.get_leaves())
        self._leaves_cache = leaves
        return leaves

    def get_current_order(self) -> tuple[str, ...]:
        return tuple(str(leaf.name) for leaf in self.get_leaves())

    def leaf_names(self) -> FrozenSet[str]:
        return frozenset(self.get_current_order())

    def fix_child_order(self) -> None:
        self.children.sort(
            key=lambda node: min(node.split_indices)
            if node.split_indices
            else float("inf")
        )
        for child in self.children:
            child.fix_child_order()
        self._traverse_cache = None
        self._leaves_cache = None

    def invalidate_caches(self) -> None:
        for nd in self.traverse():
            nd._traverse_cache = None
            nd._splits_cache = None
            nd._leaves_cache = None
            nd._lengths_cache = None
            nd._hash_cache = None

    # ------------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------------
    def to_newick(self, lengths: bool = True) -> str:
        return self._to_newick(lengths=lengths) + ";"

    def _to_newick(self, lengths: bool = True) -> str:
        label = self.name or ""
        if self.children:
            label = "(" + ",".join(ch._to_newick(lengths) for ch in self.children) + ")" + label
        if lengths:
            length = float(self.length) if self.length is not None else 0.0
            return f"{label}:{length:.6f}"
        return label
