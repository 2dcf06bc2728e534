"""
_backbone.py
============
Projection of a split system onto the non-reticulate ("backbone") taxa.

Given the full split system over taxa 1..n and a candidate reticulate set R,
the backbone taxa are relabelled 1..n-|R| in ascending original order and
every split is projected by dropping the columns of R.  Projected sides are
stored in the taxon-1-inclusive orientation.  Several original splits may
collapse onto the same backbone split; the backbone system keeps one entry
per distinct side (weights summed, confidences averaged) and
``BackboneMapping.contributors`` records which original splits produced it.

A projected split with an empty side means R does not leave a well-formed
backbone tree behind, and ``map_to_backbone`` returns None for it.  That is
a policy rejection of the candidate, not an error.

Index maps
----------
  backbone_to_original : int32 [n_backbone + 1]   entry 0 unused (0)
  original_to_backbone : int32 [ntax + 1]         0 for reticulate taxa
"""

import logging
from typing import Dict, List, Optional

import numpy as np

from reticulo._splits import Split, SplitSystem
from reticulo._taxa import TaxaSet


logger = logging.getLogger(__name__)


class BackboneMapping:
    """
    Result of projecting a split system onto the backbone taxa.

    Attributes
    ----------
    original             : SplitSystem   the unrestricted input system
    reticulates          : TaxaSet       the hidden candidate set R
    n_backbone           : int           ntax - |R|
    backbone_to_original : int32 ndarray (n_backbone + 1,)
    original_to_backbone : int32 ndarray (ntax + 1,)
    splits               : SplitSystem   backbone splits over 1..n_backbone
    contributors         : dict[TaxaSet, list[int]]
        backbone side -> indices of the original splits projecting onto it
    projected            : list[TaxaSet]
        projected (canonical) backbone side of every original split
    """

    def __init__(
        self,
        original: SplitSystem,
        reticulates: TaxaSet,
        backbone_to_original: np.ndarray,
        original_to_backbone: np.ndarray,
        splits: SplitSystem,
        contributors: Dict[TaxaSet, List[int]],
        projected: List[TaxaSet],
    ) -> None:
        self.original = original
        self.reticulates = reticulates
        self.n_backbone = int(backbone_to_original.shape[0]) - 1
        self.backbone_to_original = backbone_to_original
        self.original_to_backbone = original_to_backbone
        self.splits = splits
        self.contributors = contributors
        self.projected = projected

    def project(self, side: TaxaSet) -> TaxaSet:
        """
        Map a side given in original taxon ids onto the backbone, dropping
        reticulate taxa, and orient it to contain backbone taxon 1.
        """
        o2b = self.original_to_backbone
        out = TaxaSet.from_bits(
            sum(1 << int(o2b[t]) for t in side if t < o2b.shape[0] and o2b[t] > 0)
        )
        if not out.get(1):
            out = out.complement(self.n_backbone)
        return out

    def to_original(self, side: TaxaSet) -> TaxaSet:
        """Map a backbone side back to original taxon ids."""
        b2o = self.backbone_to_original
        return TaxaSet(int(b2o[t]) for t in side)

    def __repr__(self) -> str:
        return (
            f"BackboneMapping(reticulates={list(self.reticulates)}, "
            f"n_backbone={self.n_backbone}, n_splits={self.splits.n_splits})"
        )


def map_to_backbone(
    splits: SplitSystem, reticulates: TaxaSet
) -> Optional[BackboneMapping]:
    """
    Project *splits* onto the taxa not in *reticulates*.

    Parameters
    ----------
    splits : SplitSystem
        The full (unrestricted) system.
    reticulates : TaxaSet
        Candidate reticulate taxa R.

    Returns
    -------
    BackboneMapping, or None when some split projects to an empty or full
    backbone side.

    Notes
    -----
    The projection is a column gather on the split matrix:
    ``matrix[:, backbone_to_original]`` with column 0 kept as padding.
    """
    ntax = splits.ntax
    keep = TaxaSet.full(ntax) - reticulates
    n_backbone = keep.cardinality()

    backbone_to_original = np.zeros(n_backbone + 1, dtype=np.int32)
    original_to_backbone = np.zeros(ntax + 1, dtype=np.int32)
    for position, t in enumerate(keep, start=1):
        backbone_to_original[position] = t
        original_to_backbone[t] = position

    if n_backbone < 2:
        logger.debug(
            f"Backbone for R={list(reticulates)} has {n_backbone} taxa; rejected"
        )
        return None

    projected_matrix = splits.matrix[:, backbone_to_original].copy()
    projected_matrix[:, 0] = False
    sizes = projected_matrix.sum(axis=1)
    degenerate = (sizes == 0) | (sizes == n_backbone)
    if degenerate.any():
        bad = int(np.flatnonzero(degenerate)[0])
        logger.debug(
            f"Split {bad} ({splits[bad].side}) collapses to a trivial backbone "
            f"side under R={list(reticulates)}"
        )
        return None

    # Orient every row to contain backbone taxon 1.
    flip = ~projected_matrix[:, 1]
    projected_matrix[flip, 1:] = ~projected_matrix[flip, 1:]

    merged: Dict[TaxaSet, Split] = {}
    contributors: Dict[TaxaSet, List[int]] = {}
    projected: List[TaxaSet] = []
    for i, row in enumerate(projected_matrix):
        side = TaxaSet.from_mask(row)
        projected.append(side)
        source = splits[i]
        if side in merged:
            prev = merged[side]
            merged[side] = Split(
                side, prev.weight + source.weight, prev.confidence + source.confidence
            )
            contributors[side].append(i)
        else:
            merged[side] = Split(side, source.weight, source.confidence)
            contributors[side] = [i]

    backbone_splits = SplitSystem(
        n_backbone,
        [
            Split(s.side, s.weight, s.confidence / len(contributors[key]))
            for key, s in merged.items()
        ],
        labels=(
            [splits.labels[int(t) - 1] for t in backbone_to_original[1:]]
            if splits.labels is not None
            else None
        ),
    )
    return BackboneMapping(
        splits,
        reticulates,
        backbone_to_original,
        original_to_backbone,
        backbone_splits,
        contributors,
        projected,
    )
