"""
tests/test_root.py
==================
Tests for the root-placement (precedence graph) check.

Reference scenario
------------------
  Backbone: 5-leaf caterpillar (1,(2,(3,(4,5)))) with internal splits
      e1 = {1,2}|{3,4,5}   and   e2 = {1,2,3}|{4,5}

  Reticulate 6 attaches on the pendant edges of 1 and 5.
  Reticulate 7 attaches on e1 and e2.

  Rooted at 1: 6 is met first (pendant of 1), then 7 on e1, then 6 again on
  the pendant of 5 below 7, giving arcs 6 -> 7 and 7 -> 6: a cycle.
  Rooted at 3: 7 is met on e1 and on e2 before 6 on either side, giving
  only 7 -> 6: acyclic.
"""

import os
import sys

import networkx as nx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from reticulo._graph import build_backbone_graph
from reticulo._root import build_precedence_graph, root_is_consistent
from reticulo._splits import SplitSystem
from reticulo._taxa import TaxaSet


@pytest.fixture(scope="module")
def caterpillar():
    return build_backbone_graph(SplitSystem.from_sides(5, [[1, 2], [1, 2, 3]]))


@pytest.fixture(scope="module")
def attachments():
    r6 = TaxaSet([6])
    r7 = TaxaSet([7])
    return {
        TaxaSet([1]): [r6],
        TaxaSet([1, 2, 3, 4]): [r6],
        TaxaSet([1, 2]): [r7],
        TaxaSet([1, 2, 3]): [r7],
    }


# ======================================================================== #
# Precedence graph                                                          #
# ======================================================================== #


class TestPrecedenceGraph:
    def test_nodes_are_reticulates(self, caterpillar, attachments):
        g = build_precedence_graph(caterpillar, attachments, [6, 7], 3)
        assert isinstance(g, nx.DiGraph)
        assert sorted(g.nodes) == [6, 7]

    def test_arcs_rooted_at_one(self, caterpillar, attachments):
        g = build_precedence_graph(caterpillar, attachments, [6, 7], 1)
        assert set(g.edges) == {(6, 7), (7, 6)}

    def test_arcs_rooted_at_three(self, caterpillar, attachments):
        g = build_precedence_graph(caterpillar, attachments, [6, 7], 3)
        assert set(g.edges) == {(7, 6)}

    def test_no_self_arcs(self, caterpillar):
        both = TaxaSet([6, 7])
        g = build_precedence_graph(
            caterpillar, {TaxaSet([1, 2]): [both]}, [6, 7], 1
        )
        assert g.number_of_edges() == 0

    def test_siblings_do_not_order_each_other(self, caterpillar):
        # 6 on the pendant of 4, 7 on the pendant of 5: neither lies above
        # the other when rooted at 1.
        g = build_precedence_graph(
            caterpillar,
            {TaxaSet([1, 2, 3, 5]): [TaxaSet([6])], TaxaSet([1, 2, 3, 4]): [TaxaSet([7])]},
            [6, 7],
            1,
        )
        assert g.number_of_edges() == 0

    def test_reticulate_without_attachment_is_isolated(self, caterpillar, attachments):
        g = build_precedence_graph(caterpillar, attachments, [6, 7, 8], 3)
        assert g.degree(8) == 0


# ======================================================================== #
# Consistency                                                               #
# ======================================================================== #


class TestRootConsistency:
    def test_inverted_order_rejected(self, caterpillar, attachments):
        assert not root_is_consistent(caterpillar, attachments, [6, 7], 1)

    def test_other_side_accepted(self, caterpillar, attachments):
        assert root_is_consistent(caterpillar, attachments, [6, 7], 3)

    def test_cycle_logged(self, caterpillar, attachments, caplog):
        with caplog.at_level("DEBUG", logger="reticulo"):
            root_is_consistent(caterpillar, attachments, [6, 7], 1)
        assert any("cycle" in r.getMessage() for r in caplog.records)

    def test_empty_attachment_map(self, caterpillar):
        assert root_is_consistent(caterpillar, {}, [6], 2)
