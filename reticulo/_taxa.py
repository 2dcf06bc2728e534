"""
_taxa.py
========
Immutable taxon subsets backed by a Python integer bitmask.

Taxa are identified by the integers 1..ntax.  Bit 0 is never a valid taxon
and is rejected on construction, so two TaxaSets compare equal exactly when
they hold the same taxa.  The hash is computed once in the constructor,
which makes TaxaSet safe to use as a dictionary key (the backbone split
tables and the reticulation-group maps are keyed by TaxaSet).

Public API
----------
  TaxaSet(members=())
  TaxaSet.full(ntax)
  TaxaSet.from_bits(bits)
  TaxaSet.from_mask(mask)

  .set(t) / .unset(t)                   return new sets
  | & - ^                               union, intersection, difference, xor
  .complement(ntax)
  .cardinality() / len()
  .equals_as_split(other, ntax)
  .split_size(ntax)
  .to_mask(ntax)                        numpy boolean vector, column 0 False

Nothing in this module mutates a TaxaSet after construction.  "Cloning" is
therefore never needed: every operation returns a fresh value.
"""

from typing import Iterable, Iterator, Tuple

import numpy as np


class TaxaSet:
    """
    An immutable set of 1-based taxon ids.

    Parameters
    ----------
    members : iterable of int
        Taxon ids, each >= 1.  Duplicates are ignored.

    Raises
    ------
    TypeError   if a member is not an integer.
    ValueError  if a member is < 1.

    Examples
    --------
    >>> a = TaxaSet([1, 2])
    >>> a.complement(5)
    TaxaSet([3, 4, 5])
    >>> a | TaxaSet([4])
    TaxaSet([1, 2, 4])
    >>> a.equals_as_split(TaxaSet([1, 2, 7]), 5)
    True
    """

    __slots__ = ("_bits", "_hash")

    def __init__(self, members: Iterable[int] = ()) -> None:
        bits = 0
        for t in members:
            if isinstance(t, bool) or not isinstance(t, (int, np.integer)):
                raise TypeError(
                    f"Taxon ids must be int, got {type(t).__name__} ({t!r})"
                )
            t = int(t)
            if t < 1:
                raise ValueError(f"Taxon ids are 1-based; got {t}")
            bits |= 1 << t
        self._bits = bits
        self._hash = hash(bits)

    # ================================================================== #
    # Alternate constructors                                               #
    # ================================================================== #

    @classmethod
    def from_bits(cls, bits: int) -> "TaxaSet":
        """Wrap a raw bitmask.  Bit 0 must be clear."""
        bits = int(bits)
        if bits < 0:
            raise ValueError("bitmask must be non-negative")
        if bits & 1:
            raise ValueError("bit 0 is not a valid taxon")
        obj = cls.__new__(cls)
        obj._bits = bits
        obj._hash = hash(bits)
        return obj

    @classmethod
    def full(cls, ntax: int) -> "TaxaSet":
        """The set {1, ..., ntax}."""
        if ntax < 0:
            raise ValueError(f"ntax must be non-negative, got {ntax}")
        return cls.from_bits(((1 << ntax) - 1) << 1)

    @classmethod
    def from_mask(cls, mask) -> "TaxaSet":
        """
        Build a TaxaSet from a boolean vector indexed by taxon id.

        Index 0 of *mask* is ignored so that rows of a split matrix (where
        column 0 is a padding column) can be passed directly.
        """
        idx = np.flatnonzero(np.asarray(mask, dtype=bool))
        bits = 0
        for t in idx:
            if t > 0:
                bits |= 1 << int(t)
        return cls.from_bits(bits)

    # ================================================================== #
    # Queries                                                              #
    # ================================================================== #

    @property
    def bits(self) -> int:
        return self._bits

    def get(self, t: int) -> bool:
        return t > 0 and bool((self._bits >> t) & 1)

    def __contains__(self, t) -> bool:
        return isinstance(t, (int, np.integer)) and self.get(int(t))

    def cardinality(self) -> int:
        return bin(self._bits).count("1")

    def __len__(self) -> int:
        return self.cardinality()

    def __bool__(self) -> bool:
        return self._bits != 0

    def __iter__(self) -> Iterator[int]:
        bits = self._bits
        while bits:
            low = bits & -bits
            yield low.bit_length() - 1
            bits ^= low

    def members(self) -> Tuple[int, ...]:
        """Taxa in ascending order."""
        return tuple(self)

    def first(self) -> int:
        """Smallest member, or -1 if empty."""
        if not self._bits:
            return -1
        return (self._bits & -self._bits).bit_length() - 1

    def max(self) -> int:
        """Largest member, or -1 if empty."""
        return self._bits.bit_length() - 1 if self._bits else -1

    def intersects(self, other: "TaxaSet") -> bool:
        return (self._bits & other._bits) != 0

    def contains(self, other: "TaxaSet") -> bool:
        """True if *other* is a subset of this set."""
        return (other._bits & ~self._bits) == 0

    def equals_as_split(self, other: "TaxaSet", ntax: int) -> bool:
        """
        Bitwise equality restricted to taxa 1..ntax.

        Bits above *ntax* are ignored on both sides.  This does not consider
        the complement: callers that store splits in a canonical orientation
        compare canonical sides.
        """
        window = ((1 << ntax) - 1) << 1
        return (self._bits & window) == (other._bits & window)

    def split_size(self, ntax: int) -> int:
        """Size of the smaller side of the split this set defines."""
        k = (self & TaxaSet.full(ntax)).cardinality()
        return min(k, ntax - k)

    def to_mask(self, ntax: int) -> np.ndarray:
        """Boolean vector of length ntax + 1; entry 0 is always False."""
        mask = np.zeros(ntax + 1, dtype=bool)
        for t in self:
            if t <= ntax:
                mask[t] = True
        return mask

    # ================================================================== #
    # Set algebra (all return new values)                                  #
    # ================================================================== #

    def set(self, t: int) -> "TaxaSet":
        if t < 1:
            raise ValueError(f"Taxon ids are 1-based; got {t}")
        return TaxaSet.from_bits(self._bits | (1 << t))

    def unset(self, t: int) -> "TaxaSet":
        if t < 1:
            return self
        return TaxaSet.from_bits(self._bits & ~(1 << t))

    def complement(self, ntax: int) -> "TaxaSet":
        """The set {1..ntax} minus this set."""
        return TaxaSet.from_bits(TaxaSet.full(ntax)._bits & ~self._bits)

    def union(self, other: "TaxaSet") -> "TaxaSet":
        return TaxaSet.from_bits(self._bits | other._bits)

    def intersection(self, other: "TaxaSet") -> "TaxaSet":
        return TaxaSet.from_bits(self._bits & other._bits)

    def difference(self, other: "TaxaSet") -> "TaxaSet":
        return TaxaSet.from_bits(self._bits & ~other._bits)

    __or__ = union
    __and__ = intersection
    __sub__ = difference

    def __xor__(self, other: "TaxaSet") -> "TaxaSet":
        return TaxaSet.from_bits(self._bits ^ other._bits)

    # ================================================================== #
    # Comparison and display                                               #
    # ================================================================== #

    def __eq__(self, other) -> bool:
        if not isinstance(other, TaxaSet):
            return NotImplemented
        return self._bits == other._bits

    def __hash__(self) -> int:
        return self._hash

    def __lt__(self, other: "TaxaSet") -> bool:
        # Lexicographic on the ascending member lists; a proper prefix sorts
        # first.
        if not isinstance(other, TaxaSet):
            return NotImplemented
        return self.members() < other.members()

    def __le__(self, other: "TaxaSet") -> bool:
        if not isinstance(other, TaxaSet):
            return NotImplemented
        return self.members() <= other.members()

    def __repr__(self) -> str:
        return f"TaxaSet({list(self)})"

    def __str__(self) -> str:
        return " ".join(str(t) for t in self)
