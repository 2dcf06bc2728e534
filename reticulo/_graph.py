"""
_graph.py
=========
Unrooted backbone tree stored as parallel numpy arrays.

A ``BackboneGraph`` is an arena of integer node and edge ids.  Every edge
carries the split it represents; adjacency is kept in CSR form so that
``adjacent_edges(node)`` is a slice of one flat array.

Layout
------
  Leaf node of taxon t          t - 1           (taxa 1..ntax)
  Internal nodes                ntax, ntax+1, ...

  edge_source  : int32 [n_edges]   parent end (closer to taxon 1)
  edge_target  : int32 [n_edges]   child end
  edge_split   : int32 [n_edges]   index of the input split, -1 if the edge
                                   is a pendant edge added by the builder
  adj_offsets  : int64 [n_nodes + 1]
  adj_edges    : int32 [2 * n_edges]
      adj_edges[adj_offsets[v]:adj_offsets[v+1]] are the edges at node v,
      in ascending edge id.

Construction
------------
``build_backbone_graph`` orients every split away from taxon 1 and treats
the resulting sides as clusters.  A compatible split system gives a laminar
family of clusters: any two are nested or disjoint.  Each cluster hangs
below the smallest cluster strictly containing it, the cluster {2..ntax}
hangs below the leaf of taxon 1, and singleton clusters are leaves.  Missing
pendant splits (including {1} | {2..ntax}) are added so that every edge of
the resulting tree carries a split.
"""

import logging
from typing import Dict, List

import numpy as np

from reticulo._splits import SplitSystem
from reticulo._taxa import TaxaSet


logger = logging.getLogger(__name__)


class BackboneGraph:
    """
    Unrooted tree with one edge per split.

    Attributes
    ----------
    ntax        : int
    n_nodes     : int
    n_edges     : int
    sides       : list[TaxaSet]   canonical (taxon-1) side of each edge's split
    edge_source, edge_target, edge_split, adj_offsets, adj_edges : see module
    node_taxon  : int32 [n_nodes]  taxon at a leaf node, 0 for internal nodes
    """

    def __init__(
        self,
        ntax: int,
        edge_source: np.ndarray,
        edge_target: np.ndarray,
        edge_split: np.ndarray,
        sides: List[TaxaSet],
        n_nodes: int,
    ) -> None:
        self.ntax = int(ntax)
        self.n_nodes = int(n_nodes)
        self.n_edges = int(edge_source.shape[0])
        self.edge_source = edge_source
        self.edge_target = edge_target
        self.edge_split = edge_split
        self.sides = sides

        # CSR adjacency, edges ordered by id within each node.
        ends = np.concatenate([edge_source, edge_target]).astype(np.int64)
        eids = np.concatenate(
            [np.arange(self.n_edges, dtype=np.int32)] * 2
        )
        order = np.lexsort((eids, ends))
        counts = np.bincount(ends, minlength=self.n_nodes)
        self.adj_offsets = np.zeros(self.n_nodes + 1, dtype=np.int64)
        np.cumsum(counts, out=self.adj_offsets[1:])
        self.adj_edges = eids[order].astype(np.int32)

        self.node_taxon = np.zeros(self.n_nodes, dtype=np.int32)
        self.node_taxon[: self.ntax] = np.arange(1, self.ntax + 1, dtype=np.int32)

        self._edge_by_side: Dict[TaxaSet, int] = {
            side: e for e, side in enumerate(sides)
        }

    # ================================================================== #
    # Navigation                                                           #
    # ================================================================== #

    def adjacent_edges(self, node: int) -> np.ndarray:
        return self.adj_edges[self.adj_offsets[node] : self.adj_offsets[node + 1]]

    def opposite(self, node: int, edge: int) -> int:
        s = int(self.edge_source[edge])
        t = int(self.edge_target[edge])
        if node == s:
            return t
        if node == t:
            return s
        raise ValueError(f"Node {node} is not an endpoint of edge {edge}")

    def source(self, edge: int) -> int:
        return int(self.edge_source[edge])

    def target(self, edge: int) -> int:
        return int(self.edge_target[edge])

    def split_of(self, edge: int) -> TaxaSet:
        """Canonical side (containing taxon 1) of the split on *edge*."""
        return self.sides[edge]

    def split_index(self, edge: int) -> int:
        """Index of the input split on *edge*, or -1 for an added pendant."""
        return int(self.edge_split[edge])

    def common_edge(self, a: int, b: int) -> int:
        """Edge joining nodes *a* and *b*, or -1 if they are not adjacent."""
        for e in self.adjacent_edges(a):
            e = int(e)
            if self.opposite(a, e) == b:
                return e
        return -1

    def taxon_to_node(self, taxon: int) -> int:
        if not 1 <= taxon <= self.ntax:
            raise ValueError(f"Taxon {taxon} out of range 1..{self.ntax}")
        return taxon - 1

    def edge_for_split(self, side: TaxaSet) -> int:
        """Edge carrying the split *side* (either orientation), or -1."""
        if not side.get(1):
            side = side.complement(self.ntax)
        return self._edge_by_side.get(side, -1)

    def degree(self, node: int) -> int:
        return int(self.adj_offsets[node + 1] - self.adj_offsets[node])

    def __repr__(self) -> str:
        return (
            f"BackboneGraph(ntax={self.ntax}, n_nodes={self.n_nodes}, "
            f"n_edges={self.n_edges})"
        )


def build_backbone_graph(splits: SplitSystem) -> BackboneGraph:
    """
    Build the unique tree whose edges realise a compatible split system.

    Parameters
    ----------
    splits : SplitSystem
        Pairwise compatible splits over taxa 1..ntax with nothing hidden.

    Returns
    -------
    BackboneGraph

    Raises
    ------
    ValueError  if the system has hidden taxa, fewer than 2 taxa, or two
                splits that are not compatible.

    Examples
    --------
    >>> g = build_backbone_graph(SplitSystem.from_sides(4, [[1, 2]]))
    >>> g.n_nodes, g.n_edges
    (6, 5)
    """
    if splits.hidden:
        raise ValueError("build_backbone_graph needs a system without hidden taxa")
    ntax = splits.ntax
    if ntax < 2:
        raise ValueError(f"A backbone tree needs at least 2 taxa, got {ntax}")

    # Clusters are the sides not containing taxon 1.
    clusters: List[TaxaSet] = []
    split_index: List[int] = []
    seen = set()
    for i, split in enumerate(splits):
        c = split.side if not split.side.get(1) else split.side.complement(ntax)
        if c in seen:
            continue
        seen.add(c)
        clusters.append(c)
        split_index.append(i)
    for t in range(2, ntax + 1):
        c = TaxaSet([t])
        if c not in seen:
            seen.add(c)
            clusters.append(c)
            split_index.append(-1)
    top = TaxaSet.full(ntax).unset(1)
    if top not in seen:
        clusters.append(top)
        split_index.append(-1)

    n_edges = len(clusters)
    m = np.zeros((n_edges, ntax + 1), dtype=np.int32)
    for e, c in enumerate(clusters):
        for t in c:
            m[e, t] = 1
    size = m.sum(axis=1)
    inter = m @ m.T
    smaller = np.minimum(size[:, None], size[None, :])
    laminar = (inter == 0) | (inter == smaller)
    if not laminar.all():
        a, b = (int(x) for x in np.argwhere(~laminar)[0])
        raise ValueError(
            f"Splits {clusters[a]} and {clusters[b]} are not compatible; "
            f"no tree realises this split system"
        )

    # Node ids: leaves first, then one internal node per non-singleton cluster.
    node_of = np.empty(n_edges, dtype=np.int32)
    next_node = ntax
    for e, c in enumerate(clusters):
        if size[e] == 1:
            node_of[e] = c.first() - 1
        else:
            node_of[e] = next_node
            next_node += 1

    # Parent of a cluster: the smallest cluster strictly containing it.
    contains = (inter == size[:, None]) & (size[None, :] > size[:, None])
    big = np.iinfo(np.int32).max
    container_size = np.where(contains, size[None, :], big)
    parent = np.argmin(container_size, axis=1)
    has_parent = contains.any(axis=1)

    edge_source = np.empty(n_edges, dtype=np.int32)
    edge_target = node_of.copy()
    for e in range(n_edges):
        if has_parent[e]:
            edge_source[e] = node_of[parent[e]]
        else:
            # Only {2..ntax} has no container; it hangs below taxon 1.
            edge_source[e] = 0

    sides = [c.complement(ntax) for c in clusters]
    graph = BackboneGraph(
        ntax,
        edge_source,
        edge_target,
        np.asarray(split_index, dtype=np.int32),
        sides,
        next_node,
    )
    logger.debug(
        f"Backbone tree over {ntax} taxa: {graph.n_nodes} nodes, "
        f"{graph.n_edges} edges ({sum(1 for i in split_index if i < 0)} added pendants)"
    )
    return graph
