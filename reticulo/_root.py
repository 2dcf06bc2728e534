"""
_root.py
========
Root-placement check for a reticulation scenario.

Rooting the backbone tree at the outgroup orders the hybridization events:
a reticulate attached on an edge closer to the root happened before one
attached further down the same root-to-leaf path.  The precedence graph has
one node per reticulate taxon and an arc u -> v whenever u is attached on an
ancestor edge of an edge carrying v.  The root placement is consistent with
the scenario iff that graph is acyclic.

The tree walk is an explicit stack; each frame carries its own immutable
TaxaSet of reticulates seen above it, so sibling subtrees never see each
other's attachments.
"""

import logging
from typing import Dict, Iterable, List

import networkx as nx

from reticulo._graph import BackboneGraph
from reticulo._logging import log_root_cycle
from reticulo._taxa import TaxaSet


logger = logging.getLogger(__name__)


def build_precedence_graph(
    graph: BackboneGraph,
    tree_split_to_reticulations: Dict[TaxaSet, List[TaxaSet]],
    reticulates: Iterable[int],
    root_taxon: int,
) -> nx.DiGraph:
    """
    Directed precedence graph among *reticulates* for the backbone rooted at
    the leaf of *root_taxon*.

    Parameters
    ----------
    graph : BackboneGraph
    tree_split_to_reticulations : dict
        Canonical backbone side -> list of reticulate groups attached to the
        edge carrying that split.
    reticulates : iterable of int
        Original ids of the reticulate taxa; every one becomes a node.
    root_taxon : int
        Backbone id of the outgroup.

    Returns
    -------
    networkx.DiGraph
    """
    precedence = nx.DiGraph()
    precedence.add_nodes_from(int(r) for r in reticulates)

    root = graph.taxon_to_node(root_taxon)
    stack = [(root, -1, TaxaSet())]
    while stack:
        node, via, above = stack.pop()
        for e in graph.adjacent_edges(node):
            e = int(e)
            if e == via:
                continue
            below = above
            for group in tree_split_to_reticulations.get(graph.split_of(e), ()):
                for v in group:
                    for u in above:
                        if u != v:
                            precedence.add_edge(u, v)
                below = below | group
            stack.append((graph.opposite(node, e), e, below))
    return precedence


def root_is_consistent(
    graph: BackboneGraph,
    tree_split_to_reticulations: Dict[TaxaSet, List[TaxaSet]],
    reticulates: Iterable[int],
    root_taxon: int,
) -> bool:
    """
    True if rooting at *root_taxon* gives an acyclic precedence graph.

    A cycle is a rejection of this root placement, not an error: the cycle
    is logged at DEBUG and False is returned.
    """
    precedence = build_precedence_graph(
        graph, tree_split_to_reticulations, reticulates, root_taxon
    )
    try:
        cycle = nx.find_cycle(precedence, orientation="original")
    except nx.NetworkXNoCycle:
        return True
    log_root_cycle(root_taxon, [(u, v) for u, v, _ in cycle])
    return False
