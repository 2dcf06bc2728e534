"""
tests/test_scenario.py
======================
Tests for ReticulationScenario bookkeeping and reticulate grouping, plus the
small helpers in _utils.
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from reticulo._backbone import map_to_backbone
from reticulo._scenario import ReticulationScenario, assign_reticulation_groups
from reticulo._splits import SplitSystem
from reticulo._taxa import TaxaSet
from reticulo._utils import format_split, n_candidates, validate_taxon


@pytest.fixture(scope="module")
def pair():
    return SplitSystem.from_sides(5, [[1, 2], [1, 3]])


@pytest.fixture
def scenario(pair):
    return ReticulationScenario(pair, TaxaSet([3]))


# ======================================================================== #
# Construction                                                              #
# ======================================================================== #


class TestConstruction:
    def test_partition(self, scenario):
        assert scenario.reticulates.tolist() == [3]
        assert scenario.backbones.tolist() == [1, 2, 4, 5]
        assert scenario.backbones.dtype == np.int32

    def test_positions_start_unset(self, scenario):
        assert scenario.first_position_covered == [None]
        assert scenario.last_position_covered == [None]
        assert scenario.tree_split_to_reticulations == {}

    def test_reticulate_out_of_range(self, pair):
        with pytest.raises(ValueError, match="out of range"):
            ReticulationScenario(pair, TaxaSet([6]))

    def test_index_of(self, pair):
        s = ReticulationScenario(pair, TaxaSet([2, 4]))
        assert s.index_of(4) == 1
        with pytest.raises(ValueError, match="not a reticulate"):
            s.index_of(3)


# ======================================================================== #
# Derived data                                                              #
# ======================================================================== #


class TestDerived:
    def test_determine_reticulates(self, scenario):
        scenario.backbones = np.array([1, 2, 5], dtype=np.int32)
        scenario.determine_reticulates()
        assert scenario.reticulates.tolist() == [3, 4]
        assert scenario.reticulation_taxa == TaxaSet([3, 4])

    def test_sort_key_prefers_long_backbones(self, pair):
        one = ReticulationScenario(pair, TaxaSet([3]))
        two = ReticulationScenario(pair, TaxaSet([2, 3]))
        other = ReticulationScenario(pair, TaxaSet([1]))
        ordered = sorted([two, one, other], key=ReticulationScenario.sort_key)
        assert [s.reticulates.tolist() for s in ordered] == [[3], [1], [2, 3]]

    def test_copy_is_independent(self, scenario):
        scenario.first_position_covered[0] = 1
        scenario.tree_split_to_reticulations[TaxaSet([1])] = [TaxaSet([3])]
        clone = scenario.copy()
        assert clone == scenario
        clone.first_position_covered[0] = 0
        clone.tree_split_to_reticulations[TaxaSet([1])].append(TaxaSet([4]))
        assert scenario.first_position_covered == [1]
        assert scenario.tree_split_to_reticulations[TaxaSet([1])] == [TaxaSet([3])]

    def test_unhashable(self, scenario):
        with pytest.raises(TypeError):
            hash(scenario)


# ======================================================================== #
# Grouping                                                                  #
# ======================================================================== #


class TestGroups:
    def test_boundaries_land_on_backbone_edges(self, pair, scenario):
        mapping = map_to_backbone(pair, TaxaSet([3]))
        scenario.first_position_covered[0] = 1
        scenario.last_position_covered[0] = 0
        assign_reticulation_groups(scenario, mapping)
        assert scenario.tree_split_to_reticulations == {
            TaxaSet([1]): [TaxaSet([3])],
            TaxaSet([1, 2]): [TaxaSet([3])],
        }

    def test_shared_edge_groups_reticulates(self):
        splits = SplitSystem.from_sides(5, [[1, 2], [1, 3]])
        s = ReticulationScenario(splits, TaxaSet([4, 5]))
        mapping = map_to_backbone(splits, TaxaSet([4, 5]))
        s.first_position_covered[:] = [1, 1]
        s.last_position_covered[:] = [0, 0]
        assign_reticulation_groups(s, mapping)
        assert s.tree_split_to_reticulations == {
            TaxaSet([1, 3]): [TaxaSet([4, 5])],
            TaxaSet([1, 2]): [TaxaSet([4, 5])],
        }

    def test_missing_boundary(self, pair, scenario):
        mapping = map_to_backbone(pair, TaxaSet([3]))
        with pytest.raises(ValueError, match="no recorded boundary"):
            assign_reticulation_groups(scenario, mapping)


# ======================================================================== #
# Utilities                                                                 #
# ======================================================================== #


class TestUtils:
    def test_n_candidates(self):
        assert n_candidates(5, 1) == 5
        assert n_candidates(5, 2, outgroup=1) == 6
        assert n_candidates(5, 6) == 0
        assert n_candidates(5, -1) == 0

    def test_validate_taxon(self):
        assert validate_taxon(np.int64(3), 5) == 3
        assert validate_taxon(0, 5, allow_zero=True) == 0
        with pytest.raises(ValueError, match="must be in 1..5"):
            validate_taxon(0, 5)
        with pytest.raises(TypeError, match="must be an int"):
            validate_taxon(True, 5)

    def test_format_split(self):
        assert format_split(TaxaSet([3, 4, 5]), 5) == "1 2 | 3 4 5"
        assert format_split(TaxaSet([2]), 3, labels=["a", "b", "c"]) == "a c | b"
