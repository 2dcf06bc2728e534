"""
_errors.py
==========
Exception types raised on purpose by reticulo.

Candidate rejections (incompatible after hiding, not a simple gall, root
placement inconsistent) are ordinary search outcomes and never raise.  The
classes here cover the two ways a search can stop early: an internal mapping
failure, which indicates a bug, and a caller-requested cancellation.
"""

from typing import List, Optional


class ReticuloError(Exception):
    """Base class for errors raised by reticulo."""


class InternalInconsistencyError(ReticuloError):
    """
    A projection or boundary lookup that must succeed did not.

    Raised when a projected gall split is missing from the backbone split
    table, or when a verified gall's boundary splits cannot be matched back
    to the input split system.  The search stops and the error propagates
    unchanged.
    """

    def __init__(self, message: str, reticulates=None, taxon: Optional[int] = None):
        super().__init__(message)
        self.reticulates = reticulates
        self.taxon = taxon

    def __str__(self) -> str:
        msg = super().__str__()
        if self.reticulates is not None:
            msg += f" (reticulates={list(self.reticulates)}"
            if self.taxon is not None:
                msg += f", taxon={self.taxon}"
            msg += ")"
        return msg


class SearchCancelled(ReticuloError):
    """
    The caller's cancellation flag was set between two candidates.

    Attributes
    ----------
    partial_results : list[ReticulationScenario]
        Scenarios verified before the cancellation was observed.
    size : int
        Reticulation count being enumerated when the search stopped.
    """

    def __init__(self, partial_results: List, size: int) -> None:
        super().__init__(
            f"search cancelled at reticulation size {size} after "
            f"{len(partial_results)} scenario(s)"
        )
        self.partial_results = partial_results
        self.size = size
