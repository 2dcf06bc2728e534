"""
_utils.py
=========
General-purpose helpers for reticulo.

These are standalone functions that don't depend on the search classes.
"""

import math
from typing import Optional, Sequence

import numpy as np

from reticulo._taxa import TaxaSet


def n_candidates(ntax: int, k: int, outgroup: int = 0) -> int:
    """
    Number of candidate reticulate sets of size *k*.

    Examples
    --------
    >>> n_candidates(5, 1)
    5
    >>> n_candidates(5, 2, outgroup=1)
    6
    """
    pool = ntax - 1 if outgroup else ntax
    if k < 0 or pool < 0:
        return 0
    return math.comb(pool, k)


def validate_taxon(taxon, ntax: int, name: str = "taxon", allow_zero: bool = False) -> int:
    """
    Check that *taxon* is an integer in 1..ntax (or 0 when *allow_zero*).

    Returns
    -------
    int
        The taxon as a plain Python int.

    Raises
    ------
    TypeError   if *taxon* is not an integer.
    ValueError  if it is out of range.
    """
    if isinstance(taxon, bool) or not isinstance(taxon, (int, np.integer)):
        raise TypeError(f"{name} must be an int, got {type(taxon).__name__}")
    taxon = int(taxon)
    lo = 0 if allow_zero else 1
    if not lo <= taxon <= ntax:
        raise ValueError(f"{name} must be in {lo}..{ntax}, got {taxon}")
    return taxon


def format_split(
    side: TaxaSet, ntax: int, labels: Optional[Sequence[str]] = None
) -> str:
    """
    Render a split as ``"A | B"`` with the taxon-1 side first.

    Examples
    --------
    >>> format_split(TaxaSet([3, 4, 5]), 5)
    '1 2 | 3 4 5'
    >>> format_split(TaxaSet([2]), 3, labels=['a', 'b', 'c'])
    'a c | b'
    """
    a = side if side.get(1) else side.complement(ntax)
    b = a.complement(ntax)
    if labels is None:
        return f"{a} | {b}"
    left = " ".join(labels[t - 1] for t in a)
    right = " ".join(labels[t - 1] for t in b)
    return f"{left} | {right}"
