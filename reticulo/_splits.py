"""
_splits.py
==========
Weighted splits, split systems, and the four-point compatibility test.

A split is an unordered bipartition {A, complement(A)} of the taxa 1..ntax.
A ``Split`` stores one side together with a weight and a confidence; the
orientation is whatever the caller supplied.  ``Split.canonical(ntax)``
returns the side containing taxon 1, which is the orientation used for
every split table keyed by TaxaSet.

Hiding taxa
-----------
``SplitSystem.restricted(hidden)`` is a pure transform: it returns a new
system in which the hidden taxa are cleared from every split, splits that
become trivial (an empty side) are dropped, and splits that coincide after
hiding are merged (weights summed, confidences averaged, labels joined with
``_``).  The restricted system keeps a reference to its unrestricted source,
returned by ``restore()``.  Nothing ever modifies a system in place, so the
search loop can hide a different candidate set on every iteration without
a save/restore discipline.

Compatibility kernel
--------------------
``SplitSystem.incompatibility_matrix`` evaluates the four-point condition for
all pairs of splits at once.  With ``M`` the (n_splits x ntax+1) boolean
split matrix and ``v`` the visible-taxa mask, splits i and j conflict iff
each of the four cells

    M[i] & M[j] & v    M[i] & ~M[j] & v    ~M[i] & M[j] & v    ~M[i] & ~M[j] & v

has a taxon.  The loop runs in the numba kernel ``_incompatibility_nb``
(``_cpu_kernels.py``), one prange iteration per row.
``_incompatibility_kernel`` takes only numpy arrays so the tests can call it
on any matrix.
"""

from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from reticulo._cpu_kernels import _incompatibility_nb
from reticulo._logging import log_kernel_status
from reticulo._taxa import TaxaSet


log_kernel_status()


# ======================================================================== #
# Pairwise test on TaxaSets                                                 #
# ======================================================================== #


def compatible(
    split_a: TaxaSet,
    split_b: TaxaSet,
    hidden: Optional[TaxaSet] = None,
    ntax: Optional[int] = None,
) -> bool:
    """
    Four-point compatibility of two splits after ignoring *hidden* taxa.

    Parameters
    ----------
    split_a, split_b : TaxaSet
        One side of each split.  Hidden taxa may or may not be present.
    hidden : TaxaSet or None
        Taxa to ignore.  Defaults to the empty set.
    ntax : int
        Number of taxa.  Required: the complements depend on it.

    Returns
    -------
    bool
        True if at least one of A∩C, A∩D, B∩C, B∩D is empty, where B and D
        are the complements of A and C within the visible taxa.

    Raises
    ------
    TypeError  if *ntax* is not given.
    """
    if ntax is None:
        raise TypeError("compatible() requires ntax")
    if hidden is None:
        hidden = TaxaSet()
    a = split_a - hidden
    b = split_a.complement(ntax) - hidden
    c = split_b - hidden
    d = split_b.complement(ntax) - hidden
    return not (
        a.intersects(c) and a.intersects(d) and b.intersects(c) and b.intersects(d)
    )


def remove_compatible_splits(
    sides: Sequence[TaxaSet], hidden: TaxaSet, ntax: int
) -> List[TaxaSet]:
    """
    Keep only the splits that are incompatible with at least one other.

    Every split is tested against the full input before anything is removed,
    so the result does not depend on iteration order.  A split compared with
    itself is always compatible and never causes a removal on its own.
    """
    kept = []
    for i, s1 in enumerate(sides):
        for j, s2 in enumerate(sides):
            if i != j and not compatible(s1, s2, hidden, ntax):
                kept.append(s1)
                break
    return kept


def _incompatibility_kernel(matrix: np.ndarray, visible: np.ndarray) -> np.ndarray:
    """
    **Private.**  Pairwise four-point incompatibility of the rows of *matrix*.

    Parameters
    ----------
    matrix  : bool array (n_splits, ntax + 1)   Split sides, column 0 unused.
    visible : bool array (ntax + 1,)            Taxa taking part in the test.

    Returns
    -------
    bool array (n_splits, n_splits)   True where the two splits conflict.
    """
    n = matrix.shape[0]
    out = np.zeros((n, n), dtype=np.bool_)
    if n == 0:
        return out
    _incompatibility_nb(
        np.ascontiguousarray(matrix, dtype=np.uint8),
        np.ascontiguousarray(visible, dtype=np.uint8),
        out,
    )
    return out


# ======================================================================== #
# Split                                                                     #
# ======================================================================== #


class Split:
    """
    One side of a bipartition plus its weight, confidence and label.

    Attributes
    ----------
    side       : TaxaSet
    weight     : float
    confidence : float
    label      : str or None
    """

    __slots__ = ("side", "weight", "confidence", "label")

    def __init__(
        self,
        side: Union[TaxaSet, Iterable[int]],
        weight: float = 1.0,
        confidence: float = 1.0,
        label: Optional[str] = None,
    ) -> None:
        self.side = side if isinstance(side, TaxaSet) else TaxaSet(side)
        self.weight = float(weight)
        self.confidence = float(confidence)
        self.label = label

    def complement(self, ntax: int) -> TaxaSet:
        return self.side.complement(ntax)

    def canonical(self, ntax: int) -> TaxaSet:
        """The side containing taxon 1."""
        if 1 in self.side:
            return self.side
        return self.side.complement(ntax)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Split):
            return NotImplemented
        return (
            self.side == other.side
            and self.weight == other.weight
            and self.confidence == other.confidence
            and self.label == other.label
        )

    def __hash__(self) -> int:
        return hash((self.side, self.weight, self.confidence, self.label))

    def __repr__(self) -> str:
        return (
            f"Split({list(self.side)}, weight={self.weight:g}, "
            f"confidence={self.confidence:g})"
        )


# ======================================================================== #
# SplitSystem                                                               #
# ======================================================================== #


class SplitSystem:
    """
    An ordered, immutable collection of splits over taxa 1..ntax.

    Parameters
    ----------
    ntax : int
        Number of taxa (>= 1).
    splits : iterable of Split, TaxaSet or iterable of int
        One side per split.  Sides must be non-empty proper subsets of the
        visible taxa.
    labels : sequence of str or None
        Optional taxon labels; ``labels[t - 1]`` names taxon t.
    hidden : TaxaSet or None
        Taxa that are hidden in this system (set by ``restricted``).
    source : SplitSystem or None
        The unrestricted system this one was derived from.

    Attributes
    ----------
    ntax      : int
    splits    : tuple[Split, ...]
    labels    : tuple[str, ...] or None
    hidden    : TaxaSet
    n_splits  : int
    matrix    : bool ndarray (n_splits, ntax + 1), built lazily

    Raises
    ------
    ValueError  on out-of-range taxa or empty/full split sides.
    """

    def __init__(
        self,
        ntax: int,
        splits: Iterable = (),
        labels: Optional[Sequence[str]] = None,
        hidden: Optional[TaxaSet] = None,
        source: Optional["SplitSystem"] = None,
    ) -> None:
        if ntax < 1:
            raise ValueError(f"ntax must be at least 1, got {ntax}")
        if labels is not None and len(labels) != ntax:
            raise ValueError(
                f"Expected {ntax} taxon labels, got {len(labels)}"
            )
        self.ntax = int(ntax)
        self.labels = tuple(labels) if labels is not None else None
        self.hidden = hidden if hidden is not None else TaxaSet()
        self._source = source

        visible = self.visible_taxa
        n_visible = visible.cardinality()
        normalized = []
        for s in splits:
            split = s if isinstance(s, Split) else Split(s)
            if split.side.max() > self.ntax:
                raise ValueError(
                    f"Split {split.side} mentions taxon {split.side.max()} "
                    f"but ntax = {self.ntax}"
                )
            k = (split.side & visible).cardinality()
            if k == 0 or k == n_visible:
                raise ValueError(
                    f"Split {split.side} has an empty side over the visible taxa"
                )
            normalized.append(split)
        self.splits = tuple(normalized)
        self.n_splits = len(self.splits)
        self._matrix = None

    # ================================================================== #
    # Construction helpers                                                 #
    # ================================================================== #

    @classmethod
    def from_sides(
        cls,
        ntax: int,
        sides: Iterable[Iterable[int]],
        weights: Optional[Sequence[float]] = None,
        confidences: Optional[Sequence[float]] = None,
        labels: Optional[Sequence[str]] = None,
    ) -> "SplitSystem":
        """
        Build a system from plain member lists.

        >>> SplitSystem.from_sides(5, [[1, 2], [1, 3]]).n_splits
        2
        """
        sides = [TaxaSet(s) for s in sides]
        if weights is None:
            weights = [1.0] * len(sides)
        if confidences is None:
            confidences = [1.0] * len(sides)
        if len(weights) != len(sides) or len(confidences) != len(sides):
            raise ValueError("weights and confidences must match the number of sides")
        return cls(
            ntax,
            [Split(s, w, c) for s, w, c in zip(sides, weights, confidences)],
            labels=labels,
        )

    # ================================================================== #
    # Sequence protocol                                                    #
    # ================================================================== #

    def __len__(self) -> int:
        return self.n_splits

    def __getitem__(self, index: int) -> Split:
        return self.splits[index]

    def __iter__(self):
        return iter(self.splits)

    def sides(self) -> List[TaxaSet]:
        return [s.side for s in self.splits]

    @property
    def visible_taxa(self) -> TaxaSet:
        return TaxaSet.full(self.ntax) - self.hidden

    @property
    def matrix(self) -> np.ndarray:
        """Boolean split matrix; row i is the side of split i."""
        if self._matrix is None:
            m = np.zeros((self.n_splits, self.ntax + 1), dtype=bool)
            for i, split in enumerate(self.splits):
                for t in split.side:
                    m[i, t] = True
            m.setflags(write=False)
            self._matrix = m
        return self._matrix

    def canonical_side(self, side: TaxaSet) -> TaxaSet:
        """
        Orient *side* (restricted to the visible taxa) so that it contains
        the smallest visible taxon.
        """
        visible = self.visible_taxa
        side = side & visible
        if side.get(visible.first()):
            return side
        return visible - side

    def split_set(self) -> frozenset:
        """Canonical sides of all splits; equal for equal split systems."""
        return frozenset(self.canonical_side(s.side) for s in self.splits)

    def same_splits(self, other: "SplitSystem") -> bool:
        return (
            self.ntax == other.ntax
            and self.hidden == other.hidden
            and self.split_set() == other.split_set()
        )

    # ================================================================== #
    # Hiding                                                               #
    # ================================================================== #

    def restricted(self, hidden: TaxaSet) -> "SplitSystem":
        """
        Return a new system with *hidden* taxa removed from every split.

        Hiding composes: the result hides ``self.hidden | hidden`` and its
        ``restore()`` returns the same unrestricted source as ``self``.
        """
        source = self.restore()
        all_hidden = self.hidden | hidden
        visible = TaxaSet.full(self.ntax) - all_hidden
        n_visible = visible.cardinality()
        ref = visible.first()

        merged = {}
        counts = {}
        for split in source.splits:
            side = split.side & visible
            if not side.get(ref):
                side = visible - side
            k = side.cardinality()
            if k == 0 or k == n_visible:
                continue
            if side in merged:
                prev = merged[side]
                label = (
                    f"{prev.label}_{split.label}"
                    if prev.label is not None and split.label is not None
                    else prev.label
                )
                merged[side] = Split(
                    side,
                    prev.weight + split.weight,
                    prev.confidence + split.confidence,
                    label,
                )
                counts[side] += 1
            else:
                merged[side] = Split(side, split.weight, split.confidence, split.label)
                counts[side] = 1

        splits = [
            Split(s.side, s.weight, s.confidence / counts[key], s.label)
            for key, s in merged.items()
        ]
        return SplitSystem(
            self.ntax, splits, labels=self.labels, hidden=all_hidden, source=source
        )

    def restore(self) -> "SplitSystem":
        """The unrestricted system this one was derived from (or self)."""
        return self._source if self._source is not None else self

    # ================================================================== #
    # Compatibility                                                        #
    # ================================================================== #

    def incompatibility_matrix(self, hidden: Optional[TaxaSet] = None) -> np.ndarray:
        """
        Pairwise incompatibility of all splits, ignoring ``self.hidden`` and
        *hidden*.  The diagonal is always False.
        """
        masked = self.hidden if hidden is None else self.hidden | hidden
        visible = (TaxaSet.full(self.ntax) - masked).to_mask(self.ntax)
        return _incompatibility_kernel(self.matrix, visible)

    def is_compatible(self, hidden: Optional[TaxaSet] = None) -> bool:
        """True if every pair of splits is compatible (the system is a tree)."""
        if self.n_splits < 2:
            return True
        return not bool(self.incompatibility_matrix(hidden).any())

    # ================================================================== #
    # Trivial splits                                                       #
    # ================================================================== #

    def with_trivial_splits(self, weight: float = 0.0) -> "SplitSystem":
        """
        Return a system that additionally contains every missing one-taxon
        split {t} | rest over the visible taxa, appended in taxon order.
        """
        visible = self.visible_taxa
        if visible.cardinality() < 2:
            return self
        present = self.split_set()
        extra = []
        for t in visible:
            side = self.canonical_side(TaxaSet([t]))
            if side not in present:
                extra.append(Split(TaxaSet([t]), weight, 1.0))
                present = present | {side}
        if not extra:
            return self
        return SplitSystem(
            self.ntax,
            list(self.splits) + extra,
            labels=self.labels,
            hidden=self.hidden,
            source=self._source,
        )

    def __repr__(self) -> str:
        hidden = f", hidden={list(self.hidden)}" if self.hidden else ""
        return f"SplitSystem(ntax={self.ntax}, n_splits={self.n_splits}{hidden})"
