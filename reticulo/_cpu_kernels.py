"""
_cpu_kernels.py
===============
Numba kernels for the split compatibility test.

This module contains ONLY numba-accelerated code and does not import other
project modules, so compilation problems surface at the call site rather than
at package import.

Exported Functions
------------------
_incompatibility_nb : njit function
    Parallel pairwise four-point test over the rows of a split matrix.

Notes
-----
- cache=True persists the compiled binary to disk for faster subsequent runs
- Inputs are uint8 so the same compiled signature serves bool and int masks
"""

from numba import njit, prange


@njit(cache=True, parallel=True)
def _incompatibility_nb(sides, visible, out):
    """
    Fill *out* with the pairwise four-point incompatibility of *sides*.

    Parameters
    ----------
    sides   : uint8[:, :]   (n_splits, ntax + 1), nonzero where the taxon is
                            on the stored side; column 0 unused.
    visible : uint8[:]      (ntax + 1,), nonzero for taxa taking part.
    out     : bool[:, :]    (n_splits, n_splits), written in full.

    Each row i is handled by one prange iteration and writes only out[i, :].
    """
    n = sides.shape[0]
    m = sides.shape[1]
    for i in prange(n):
        for j in range(n):
            aa = False
            ab = False
            ba = False
            bb = False
            for t in range(m):
                if visible[t] == 0:
                    continue
                a = sides[i, t] != 0
                c = sides[j, t] != 0
                if a and c:
                    aa = True
                elif a:
                    ab = True
                elif c:
                    ba = True
                else:
                    bb = True
                if aa and ab and ba and bb:
                    break
            out[i, j] = aa and ab and ba and bb
