"""
Newick format parser module for phylogenetic trees.
"""

from .newick_parser import (
    parse_newick,
    split_token,
    get_linear_order,
)

__all__ = [
    "parse_newick",
    "split_token",
    "get_linear_order",
]
