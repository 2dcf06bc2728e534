"""
_logging.py
===========
Logging functions for the reticulation search.

All functions in this module have NO side effects except logging. They take
computed data as parameters and format/emit log messages, so the search loop
stays free of presentation code and tests can silence or capture output
through the standard logging machinery.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from reticulo._utils import n_candidates


logger = logging.getLogger(__name__)


# ============================================================================ #
# Kernel backend (called at module import time)
# ============================================================================ #


def log_kernel_status() -> None:
    """
    Log the numba version and thread count used by the compatibility kernel.

    Called once when ``reticulo._splits`` is imported.
    """
    import os
    import platform

    import numba

    logger.info(
        f"System: {platform.machine()} ({platform.system()}), "
        f"{os.cpu_count() or 1} CPU cores, Python {platform.python_version()}"
    )
    logger.info(
        f"Numba {numba.__version__} loaded, "
        f"{numba.get_num_threads()} thread(s) for the compatibility kernel"
    )


# ============================================================================ #
# Search lifecycle
# ============================================================================ #


def log_search_start(ntax: int, n_splits: int, options) -> None:
    """
    Log the search bounds at INFO level and the candidate space at DEBUG.

    Parameters
    ----------
    ntax : int
        Number of taxa in the input system.
    n_splits : int
        Number of input splits.
    options : SearchOptions
        The validated search configuration.
    """
    root = (
        f"root check at taxon {options.outgroup}"
        if options.check_root and options.outgroup
        else "no root check"
    )
    logger.info(
        f"Reticulation search: {ntax} taxa, {n_splits} splits, "
        f"up to {options.max_reticulations} reticulation(s), "
        f"stop after {options.max_to_find} scenario(s), {root}"
    )
    if logger.isEnabledFor(logging.DEBUG):
        for k in range(1, options.max_reticulations + 1):
            logger.debug(
                f"  size {k}: {n_candidates(ntax, k, options.outgroup)} candidates"
            )


def log_input_compatible(ntax: int, n_splits: int) -> None:
    """The input is already tree-like; every candidate is superfluous."""
    logger.info(
        f"Input splits are pairwise compatible ({n_splits} splits on {ntax} taxa); "
        f"no reticulation is needed"
    )


def log_candidate_rejected(candidate, reason: str) -> None:
    """DEBUG record for one rejected candidate."""
    logger.debug(f"Candidate {list(candidate)} rejected: {reason}")


def log_scenario_found(scenario, n_found: int) -> None:
    logger.info(
        f"Scenario {n_found}: reticulates {scenario.reticulates.tolist()} "
        f"on backbone {scenario.backbones.tolist()}"
    )


def log_size_summary(size: int, n_tested: int, n_compatible: int, n_found: int) -> None:
    """Per-size counts after the candidates of one size are exhausted."""
    logger.info(
        f"Size {size}: {n_tested} candidates tested, "
        f"{n_compatible} compatible after hiding, {n_found} scenario(s) so far"
    )


def log_search_summary(
    results: Sequence,
    candidates_by_size: Mapping[int, int],
    rejections: Mapping[str, int],
    elapsed: float,
) -> None:
    """
    Log the outcome of a finished search.

    Parameters
    ----------
    results : sequence of ReticulationScenario
    candidates_by_size : mapping
        Reticulation size -> number of candidates tested.
    rejections : mapping
        Rejection reason -> count.
    elapsed : float
        Wall-clock seconds.
    """
    total = sum(candidates_by_size.values())
    logger.info(
        f"Search finished in {elapsed:.3f}s: {len(results)} scenario(s) "
        f"from {total} candidate(s)"
    )
    if rejections:
        parts = ", ".join(f"{reason}={count}" for reason, count in sorted(rejections.items()))
        logger.info(f"  rejections: {parts}")


def log_search_cancelled(size: int, n_found: int) -> None:
    logger.warning(
        f"Reticulation search cancelled at size {size} "
        f"with {n_found} scenario(s) found"
    )


# ============================================================================ #
# Verification details
# ============================================================================ #


def log_root_cycle(root_taxon: int, cycle: List[Tuple[int, int]]) -> None:
    """DEBUG record of the precedence cycle that rejects a root placement."""
    arcs = " -> ".join(str(u) for u, _ in cycle)
    if cycle:
        arcs += f" -> {cycle[0][0]}"
    logger.debug(f"Rooting at backbone taxon {root_taxon} orders events in a cycle: {arcs}")


def log_gall_paths(paths: Dict[int, Iterable]) -> None:
    """DEBUG record of the backbone path covered by each reticulate."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for taxon, path in sorted(paths.items()):
        sides = " / ".join(str(side) for side in path)
        logger.debug(f"  taxon {taxon} covers {len(path)} backbone edge(s): {sides}")
