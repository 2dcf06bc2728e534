"""
tests/test_enumerate.py
=======================
Tests for candidate enumeration.

The enumerator must yield every k-subset of the taxa that avoids the
outgroup, exactly once, in exclude-first recursion order.
"""

import itertools
import math
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from reticulo._enumerate import enumerate_candidates
from reticulo._taxa import TaxaSet
from reticulo._utils import n_candidates


def as_lists(candidates):
    return [list(c) for c in candidates]


# ======================================================================== #
# Order                                                                     #
# ======================================================================== #


class TestOrder:
    def test_singletons_descend(self):
        got = as_lists(enumerate_candidates(TaxaSet.full(5), 0, 1))
        assert got == [[5], [4], [3], [2], [1]]

    def test_pairs_of_three(self):
        got = as_lists(enumerate_candidates(TaxaSet([1, 2, 3]), 0, 2))
        assert got == [[2, 3], [1, 3], [1, 2]]

    def test_outgroup_skipped(self):
        got = as_lists(enumerate_candidates(TaxaSet([1, 2, 3]), 3, 1))
        assert got == [[2], [1]]

    def test_plain_iterable_input(self):
        got = as_lists(enumerate_candidates([3, 1, 2], 0, 2))
        assert got == [[2, 3], [1, 3], [1, 2]]

    def test_is_lazy(self):
        gen = enumerate_candidates(TaxaSet.full(40), 0, 3)
        assert next(gen) == TaxaSet([38, 39, 40])


# ======================================================================== #
# Edge cases                                                                #
# ======================================================================== #


class TestEdgeCases:
    def test_k_zero_yields_empty_set_once(self):
        assert list(enumerate_candidates(TaxaSet.full(4), 0, 0)) == [TaxaSet()]

    def test_k_larger_than_pool(self):
        assert list(enumerate_candidates(TaxaSet.full(3), 0, 4)) == []
        assert list(enumerate_candidates(TaxaSet.full(3), 1, 3)) == []

    def test_negative_k(self):
        with pytest.raises(ValueError, match="non-negative"):
            list(enumerate_candidates(TaxaSet.full(3), 0, -1))


# ======================================================================== #
# Completeness                                                              #
# ======================================================================== #


class TestCompleteness:
    @pytest.mark.parametrize("ntax", [1, 2, 5, 7])
    @pytest.mark.parametrize("outgroup", [0, 1, 4])
    def test_counts_and_contents(self, ntax, outgroup):
        if outgroup > ntax:
            pytest.skip("outgroup outside taxon range")
        taxa = TaxaSet.full(ntax)
        for k in range(0, ntax + 1):
            got = list(enumerate_candidates(taxa, outgroup, k))
            pool = [t for t in range(1, ntax + 1) if t != outgroup]
            expected = {TaxaSet(c) for c in itertools.combinations(pool, k)}
            assert len(got) == len(set(got)), "duplicates"
            assert set(got) == expected
            assert all(len(c) == k for c in got)
            assert all(outgroup not in c for c in got)
            assert len(got) == n_candidates(ntax, k, outgroup)

    @pytest.mark.slow
    def test_large_counts(self):
        taxa = TaxaSet.full(16)
        for k in (1, 2, 3, 4):
            assert sum(1 for _ in enumerate_candidates(taxa, 7, k)) == math.comb(15, k)
