"""
_enumerate.py
=============
Candidate reticulate-taxa sets: every k-subset of the taxa that avoids the
outgroup.

The enumeration is a binary recursion over the ascending taxon list.  At
each taxon the "exclude" branch is explored before the "include" branch,
so for taxa 1..5 and k = 1 the candidates come out as {5}, {4}, ..., {1}.
The order is fixed and is the order in which the search loop tests
candidates.

The recursion is driven by an explicit stack and yields lazily: the search
loop stops pulling candidates as soon as it has enough scenarios, and
nothing beyond that point is ever built.  Accumulated sets are immutable
TaxaSets, so the two branches never share mutable state.
"""

from typing import Iterable, Iterator, Union

from reticulo._taxa import TaxaSet


def enumerate_candidates(
    taxa: Union[TaxaSet, Iterable[int]], outgroup: int, k: int
) -> Iterator[TaxaSet]:
    """
    Yield every subset of *taxa* of size exactly *k* that excludes *outgroup*.

    Parameters
    ----------
    taxa : TaxaSet or iterable of int
        The taxa to draw from.
    outgroup : int
        Taxon that is never included; 0 disables the restriction.
    k : int
        Subset size.  ``k == 0`` yields the empty set once.

    Yields
    ------
    TaxaSet
        Distinct candidates, in exclude-first recursion order.

    Raises
    ------
    ValueError  if *k* is negative.

    Examples
    --------
    >>> [list(c) for c in enumerate_candidates(TaxaSet([1, 2, 3]), 0, 2)]
    [[2, 3], [1, 3], [1, 2]]
    >>> [list(c) for c in enumerate_candidates(TaxaSet([1, 2, 3]), 3, 1)]
    [[2], [1]]
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    order = sorted(taxa if not isinstance(taxa, TaxaSet) else taxa.members())
    n = len(order)

    # Each frame is (position in order, remaining k, accumulated set).  The
    # include branch is pushed first so the exclude branch is popped first.
    stack = [(0, k, TaxaSet())]
    while stack:
        pos, remaining, used = stack.pop()
        if remaining == 0:
            yield used
            continue
        if pos >= n or n - pos < remaining:
            continue
        taxon = order[pos]
        if taxon != outgroup:
            stack.append((pos + 1, remaining - 1, used.set(taxon)))
        stack.append((pos + 1, remaining, used))
