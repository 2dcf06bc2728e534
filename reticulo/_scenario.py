"""
_scenario.py
============
The ReticulationScenario record produced by the search.

A scenario is created for a candidate reticulate set, filled in as the
candidate passes each verification stage, and kept only if every stage
succeeds.  Downstream renderers read:

  reticulates                   int32 [k]          ascending original ids
  backbones                     int32 [ntax - k]   ascending original ids
  first_position_covered        list[int | None]   per reticulate, 0-based
  last_position_covered         list[int | None]   index into ``splits``
  tree_split_to_reticulations   dict[TaxaSet, list[TaxaSet]]
      canonical backbone side -> reticulate groups attached to that edge
  backbone_to_original          int32 [ntax - k + 1]
"""

from typing import Dict, List, Optional

import numpy as np

from reticulo._splits import SplitSystem
from reticulo._taxa import TaxaSet


class ReticulationScenario:
    """
    A candidate reticulate set together with its verified attachments.

    Parameters
    ----------
    splits : SplitSystem
        The full input system the scenario refers to.
    reticulation_taxa : TaxaSet
        The reticulate taxa.

    Examples
    --------
    >>> s = ReticulationScenario(SplitSystem(5, [[1, 2], [1, 3]]), TaxaSet([3]))
    >>> s.reticulates.tolist(), s.backbones.tolist()
    ([3], [1, 2, 4, 5])
    """

    def __init__(self, splits: SplitSystem, reticulation_taxa: TaxaSet) -> None:
        ntax = splits.ntax
        if reticulation_taxa.max() > ntax:
            raise ValueError(
                f"Reticulate taxon {reticulation_taxa.max()} out of range 1..{ntax}"
            )
        self.splits = splits
        self.ntax = ntax
        self.reticulation_taxa = reticulation_taxa
        self.reticulates = np.array(reticulation_taxa.members(), dtype=np.int32)
        self.backbones = np.array(
            reticulation_taxa.complement(ntax).members(), dtype=np.int32
        )
        k = len(self.reticulates)
        self.first_position_covered: List[Optional[int]] = [None] * k
        self.last_position_covered: List[Optional[int]] = [None] * k
        self.reticulation_to_splits: Dict[int, tuple] = {}
        self.gall_paths: Dict[int, tuple] = {}
        self.tree_split_to_reticulations: Dict[TaxaSet, List[TaxaSet]] = {}
        self.backbone_to_original: Optional[np.ndarray] = None
        self.backbone_splits: Optional[SplitSystem] = None

    # ================================================================== #
    # Filling in                                                           #
    # ================================================================== #

    def index_of(self, taxon: int) -> int:
        """Position of *taxon* in ``reticulates``."""
        hits = np.flatnonzero(self.reticulates == taxon)
        if hits.size == 0:
            raise ValueError(f"Taxon {taxon} is not a reticulate of this scenario")
        return int(hits[0])

    def record_gall(self, boundary) -> None:
        """Store a GallBoundary for its taxon."""
        i = self.index_of(boundary.taxon)
        self.first_position_covered[i] = boundary.first
        self.last_position_covered[i] = boundary.last
        self.reticulation_to_splits[boundary.taxon] = (
            boundary.start_set,
            boundary.stop_set,
        )
        self.gall_paths[boundary.taxon] = boundary.path

    def determine_reticulates(self, ntax: Optional[int] = None) -> None:
        """Recompute the reticulates as the complement of the backbone."""
        if ntax is None:
            ntax = self.ntax
        hyb = TaxaSet(int(t) for t in self.backbones).complement(ntax)
        self.ntax = ntax
        self.reticulation_taxa = hyb
        self.reticulates = np.array(hyb.members(), dtype=np.int32)

    # ================================================================== #
    # Copy / order / display                                               #
    # ================================================================== #

    def copy(self) -> "ReticulationScenario":
        other = ReticulationScenario(self.splits, self.reticulation_taxa)
        other.reticulates = self.reticulates.copy()
        other.backbones = self.backbones.copy()
        other.first_position_covered = list(self.first_position_covered)
        other.last_position_covered = list(self.last_position_covered)
        other.reticulation_to_splits = dict(self.reticulation_to_splits)
        other.gall_paths = dict(self.gall_paths)
        other.tree_split_to_reticulations = {
            k: list(v) for k, v in self.tree_split_to_reticulations.items()
        }
        if self.backbone_to_original is not None:
            other.backbone_to_original = self.backbone_to_original.copy()
        other.backbone_splits = self.backbone_splits
        return other

    def sort_key(self) -> tuple:
        """Longer backbones first, then lexicographic on the backbone ids."""
        return (-len(self.backbones), tuple(int(t) for t in self.backbones))

    def to_dict(self) -> dict:
        return {
            "ntax": self.ntax,
            "reticulates": self.reticulates.tolist(),
            "backbones": self.backbones.tolist(),
            "first_position_covered": list(self.first_position_covered),
            "last_position_covered": list(self.last_position_covered),
            "tree_split_to_reticulations": {
                tuple(side): [list(g) for g in groups]
                for side, groups in self.tree_split_to_reticulations.items()
            },
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, ReticulationScenario):
            return NotImplemented
        return (
            self.ntax == other.ntax
            and self.reticulation_taxa == other.reticulation_taxa
            and self.first_position_covered == other.first_position_covered
            and self.last_position_covered == other.last_position_covered
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"ReticulationScenario(reticulates={self.reticulates.tolist()}, "
            f"backbones={self.backbones.tolist()})"
        )

    def __str__(self) -> str:
        lines = [
            "reticulates " + ", ".join(str(t) for t in self.reticulates),
            "backbone: " + ", ".join(str(t) for t in self.backbones),
        ]
        for i, t in enumerate(self.reticulates):
            lines.append(
                f"ret: {t}\tfirstPos: {self.first_position_covered[i]}"
                f"\tlastPos: {self.last_position_covered[i]}"
            )
        return "\n".join(lines)


def assign_reticulation_groups(scenario: ReticulationScenario, mapping) -> None:
    """
    Attach every reticulate to the backbone edges of its two boundary splits.

    Each boundary split is projected onto the backbone; reticulates whose
    boundaries land on the same backbone split form one group, and
    ``scenario.tree_split_to_reticulations[side]`` becomes ``[group]``.

    Raises
    ------
    ValueError  if a boundary position has not been recorded.
    """
    groups: Dict[TaxaSet, TaxaSet] = {}
    for i, t in enumerate(scenario.reticulates):
        for position in (
            scenario.first_position_covered[i],
            scenario.last_position_covered[i],
        ):
            if position is None:
                raise ValueError(f"Reticulate {t} has no recorded boundary split")
            side = mapping.project(scenario.splits[position].side)
            groups[side] = groups.get(side, TaxaSet()).set(int(t))
    scenario.tree_split_to_reticulations = {
        side: [group] for side, group in groups.items()
    }
