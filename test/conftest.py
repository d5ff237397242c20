import logging

import pytest

from phyloselect.parser import parse_newick
from phyloselect.selection.model import Model


def pytest_configure(config):
    """Set up test environment before tests run."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@pytest.fixture
def four_taxon_trees():
    """Three distinct topologies and an equal, separately parsed copy of the first."""
    ab_cd, ac_bd, ad_bc = parse_newick(
        "((A:1,B:1):1,(C:1,D:1):1);"
        "((A:1,C:1):1,(B:1,D:1):1);"
        "((A:1,D:1):1,(B:1,C:1):1);"
    )
    ab_cd_copy = parse_newick("((D:1,C:1):1,(B:1,A:1):1);")
    return ab_cd, ac_bd, ad_bc, ab_cd_copy


@pytest.fixture
def candidate_models(four_taxon_trees):
    ab_cd, ac_bd, ad_bc, _ = four_taxon_trees
    return [
        Model("JTT", log_likelihood=-1000.0, parameter_count=5, tree=ab_cd),
        Model("WAG+G", log_likelihood=-998.0, parameter_count=6, tree=ac_bd),
        Model("LG+I+G", log_likelihood=-990.0, parameter_count=7, tree=ab_cd),
        Model("Dayhoff", log_likelihood=-1010.0, parameter_count=5, tree=ad_bc),
    ]
