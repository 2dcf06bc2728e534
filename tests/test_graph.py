"""
tests/test_graph.py
===================
Tests for the backbone tree builder.

Reference trees
---------------
  quartet      splits over 1..4: {1,2}|{3,4}
      leaves 1..4 -> nodes 0..3; internal nodes 4 ({3,4}) and 5 ({2,3,4})
      edges: 0 = {3,4} (input split 0), 1..3 = pendants of 2, 3, 4,
             4 = pendant of 1

  caterpillar  splits over 1..5: {1,2}|{3,4,5}, {1,2,3}|{4,5}
      (1,(2,(3,(4,5))))  8 nodes, 7 edges
"""

import os
import sys
from collections import deque

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from reticulo._graph import build_backbone_graph
from reticulo._splits import SplitSystem
from reticulo._taxa import TaxaSet


@pytest.fixture(scope="module")
def quartet():
    return build_backbone_graph(SplitSystem.from_sides(4, [[1, 2]]))


@pytest.fixture(scope="module")
def caterpillar():
    return build_backbone_graph(SplitSystem.from_sides(5, [[1, 2], [1, 2, 3]]))


def side_of(graph, edge):
    """Taxa reachable from the source end of *edge* without crossing it."""
    start = graph.source(edge)
    seen = {start}
    queue = deque([start])
    taxa = set()
    while queue:
        v = queue.popleft()
        if v < graph.ntax:
            taxa.add(v + 1)
        for e in graph.adjacent_edges(v):
            e = int(e)
            if e == edge:
                continue
            w = graph.opposite(v, e)
            if w not in seen:
                seen.add(w)
                queue.append(w)
    return TaxaSet(taxa)


# ======================================================================== #
# Shape                                                                     #
# ======================================================================== #


class TestShape:
    def test_quartet_counts(self, quartet):
        assert quartet.n_nodes == 6
        assert quartet.n_edges == 5
        np.testing.assert_array_equal(quartet.edge_split, [0, -1, -1, -1, -1])

    def test_caterpillar_counts(self, caterpillar):
        assert caterpillar.n_nodes == 8
        assert caterpillar.n_edges == 7

    def test_is_a_tree(self, caterpillar):
        assert caterpillar.n_edges == caterpillar.n_nodes - 1
        for leaf in range(caterpillar.ntax):
            assert caterpillar.degree(leaf) == 1
        for v in range(caterpillar.ntax, caterpillar.n_nodes):
            assert caterpillar.degree(v) == 3

    def test_two_taxa(self):
        g = build_backbone_graph(SplitSystem.from_sides(2, [[1]]))
        assert g.n_nodes == 2 and g.n_edges == 1
        assert g.common_edge(0, 1) == 0
        assert g.split_index(0) == 0

    def test_csr_offsets(self, quartet):
        assert quartet.adj_offsets[0] == 0
        assert quartet.adj_offsets[-1] == 2 * quartet.n_edges
        for v in range(quartet.n_nodes):
            edges = quartet.adjacent_edges(v)
            assert list(edges) == sorted(edges)


# ======================================================================== #
# Edges realise their splits                                                #
# ======================================================================== #


class TestSplitsOnEdges:
    @pytest.mark.parametrize(
        "ntax,sides",
        [
            (4, [[1, 2]]),
            (5, [[1, 2], [1, 2, 3]]),
            (6, [[3, 4], [5, 6], [1, 2, 3, 4]]),
            (6, [[1]]),
        ],
    )
    def test_every_edge_carries_its_split(self, ntax, sides):
        g = build_backbone_graph(SplitSystem.from_sides(ntax, sides))
        for e in range(g.n_edges):
            assert g.split_of(e).get(1)
            assert side_of(g, e) == g.split_of(e)

    def test_input_splits_found(self, caterpillar):
        e = caterpillar.edge_for_split(TaxaSet([1, 2]))
        assert caterpillar.split_index(e) == 0
        assert caterpillar.edge_for_split(TaxaSet([3, 4, 5])) == e
        assert caterpillar.split_index(caterpillar.edge_for_split(TaxaSet([4, 5]))) == 1

    def test_missing_split(self, caterpillar):
        assert caterpillar.edge_for_split(TaxaSet([1, 4])) == -1


# ======================================================================== #
# Navigation                                                                #
# ======================================================================== #


class TestNavigation:
    def test_taxon_to_node(self, quartet):
        assert quartet.taxon_to_node(1) == 0
        assert quartet.taxon_to_node(4) == 3
        with pytest.raises(ValueError, match="out of range"):
            quartet.taxon_to_node(5)

    def test_opposite(self, quartet):
        e = quartet.adjacent_edges(0)[0]
        other = quartet.opposite(0, int(e))
        assert quartet.opposite(other, int(e)) == 0
        with pytest.raises(ValueError, match="not an endpoint"):
            quartet.opposite(1, int(e))

    def test_common_edge(self, quartet):
        e = quartet.edge_for_split(TaxaSet([1, 2]))
        a, b = quartet.source(e), quartet.target(e)
        assert quartet.common_edge(a, b) == e
        assert quartet.common_edge(b, a) == e
        assert quartet.common_edge(0, 1) == -1


# ======================================================================== #
# Invalid input                                                             #
# ======================================================================== #


class TestInvalid:
    def test_incompatible_splits(self):
        with pytest.raises(ValueError, match="not compatible"):
            build_backbone_graph(SplitSystem.from_sides(5, [[1, 2], [1, 3]]))

    def test_hidden_taxa(self):
        s = SplitSystem.from_sides(5, [[1, 2]]).restricted(TaxaSet([5]))
        with pytest.raises(ValueError, match="hidden"):
            build_backbone_graph(s)

    def test_single_taxon(self):
        with pytest.raises(ValueError, match="at least 2"):
            build_backbone_graph(SplitSystem(1))
