"""
_finder.py
==========
Top-level search for minimal reticulation scenarios.

For i = 1 .. max_reticulations every candidate set R of i taxa (never the
outgroup) is tested in enumeration order:

  1. hide R; the remaining splits must be pairwise compatible
  2. project the full system onto the backbone taxa
  3. build the backbone tree
  4. every taxon of R must be a simple gall on that tree
  5. group reticulates by the backbone edges of their boundary splits
  6. optionally, the outgroup root must order the events without a cycle

The first candidate to pass all stages becomes a scenario.  The search
returns as soon as ``max_to_find`` scenarios are collected, so a size is
never enumerated once enough scenarios of a smaller size exist.

Failures at stages 1-6 are rejections: counted in ``HybridFinder.rejections``
and logged at DEBUG.  ``InternalInconsistencyError`` from stage 4 ends the
search.  Cancellation is checked before each candidate and raises
``SearchCancelled`` carrying the scenarios found so far.
"""

import logging
import time
from collections import Counter
from typing import Callable, List, Optional

from reticulo._backbone import map_to_backbone
from reticulo._enumerate import enumerate_candidates
from reticulo._errors import SearchCancelled
from reticulo._gall import verify_simple_gall
from reticulo._graph import build_backbone_graph
from reticulo._logging import (
    log_candidate_rejected,
    log_gall_paths,
    log_input_compatible,
    log_scenario_found,
    log_search_cancelled,
    log_search_start,
    log_search_summary,
    log_size_summary,
)
from reticulo._root import root_is_consistent
from reticulo._scenario import ReticulationScenario, assign_reticulation_groups
from reticulo._splits import SplitSystem
from reticulo._taxa import TaxaSet
from reticulo._utils import validate_taxon


logger = logging.getLogger(__name__)


# Rejection reasons, as counted in HybridFinder.rejections.
INCOMPATIBLE = "incompatible"
DEGENERATE_BACKBONE = "degenerate_backbone"
NOT_SIMPLE_GALL = "not_simple_gall"
ROOT_CYCLE = "root_cycle"


class SearchOptions:
    """
    Configuration of a reticulation search.

    Parameters
    ----------
    max_reticulations : int, default 1
        Largest candidate size to enumerate.
    max_to_find : int, default 1
        Stop once this many scenarios have been found.
    outgroup : int, default 0
        Taxon never used as a reticulate and used as the root; 0 for none.
    check_root : bool, default False
        Reject scenarios whose events cannot be ordered from the outgroup.
        Ignored when ``outgroup`` is 0.
    tree_builder : callable, default build_backbone_graph
        ``(SplitSystem) -> BackboneGraph`` for the compatible backbone splits.
    cancel : callable or object with ``is_set()``, optional
        Polled before every candidate; a true value cancels the search.
        A ``threading.Event`` works directly.
    progress : callable, optional
        ``progress(size, index, candidate)`` called before every candidate.

    Raises
    ------
    TypeError   on non-integer bounds or non-callable hooks.
    ValueError  on negative bounds.
    """

    def __init__(
        self,
        max_reticulations: int = 1,
        max_to_find: int = 1,
        outgroup: int = 0,
        check_root: bool = False,
        tree_builder: Optional[Callable] = None,
        cancel=None,
        progress: Optional[Callable] = None,
    ) -> None:
        for name, value, lo in (
            ("max_reticulations", max_reticulations, 0),
            ("max_to_find", max_to_find, 1),
            ("outgroup", outgroup, 0),
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an int, got {type(value).__name__}")
            if value < lo:
                raise ValueError(f"{name} must be >= {lo}, got {value}")
        if tree_builder is None:
            tree_builder = build_backbone_graph
        if not callable(tree_builder):
            raise TypeError("tree_builder must be callable")
        if progress is not None and not callable(progress):
            raise TypeError("progress must be callable")
        if cancel is not None and not (callable(cancel) or hasattr(cancel, "is_set")):
            raise TypeError("cancel must be callable or provide is_set()")

        self.max_reticulations = max_reticulations
        self.max_to_find = max_to_find
        self.outgroup = outgroup
        self.check_root = bool(check_root)
        self.tree_builder = tree_builder
        self.cancel = cancel
        self.progress = progress

    def replace(self, **overrides) -> "SearchOptions":
        """A copy with some fields changed (and re-validated)."""
        fields = {
            "max_reticulations": self.max_reticulations,
            "max_to_find": self.max_to_find,
            "outgroup": self.outgroup,
            "check_root": self.check_root,
            "tree_builder": self.tree_builder,
            "cancel": self.cancel,
            "progress": self.progress,
        }
        unknown = set(overrides) - set(fields)
        if unknown:
            raise TypeError(f"Unknown search option(s): {', '.join(sorted(unknown))}")
        fields.update(overrides)
        return SearchOptions(**fields)

    @property
    def root_check_enabled(self) -> bool:
        return self.check_root and self.outgroup != 0

    def cancelled(self) -> bool:
        if self.cancel is None:
            return False
        if hasattr(self.cancel, "is_set"):
            return bool(self.cancel.is_set())
        return bool(self.cancel())

    def __repr__(self) -> str:
        return (
            f"SearchOptions(max_reticulations={self.max_reticulations}, "
            f"max_to_find={self.max_to_find}, outgroup={self.outgroup}, "
            f"check_root={self.check_root})"
        )


class HybridFinder:
    """
    Search driver; keeps statistics of its most recent run.

    Attributes
    ----------
    options            : SearchOptions
    candidates_by_size : Counter   size -> candidates tested
    compatible_by_size : Counter   size -> candidates compatible after hiding
    rejections         : Counter   reason -> count

    Examples
    --------
    >>> splits = SplitSystem.from_sides(5, [[1, 2], [1, 3]])
    >>> finder = HybridFinder(max_to_find=3)
    >>> [s.reticulates.tolist() for s in finder.apply(splits)]
    [[3], [2], [1]]
    """

    def __init__(self, options: Optional[SearchOptions] = None, **overrides) -> None:
        if options is None:
            options = SearchOptions()
        if overrides:
            options = options.replace(**overrides)
        self.options = options
        self._reset()

    def _reset(self) -> None:
        self.candidates_by_size = Counter()
        self.compatible_by_size = Counter()
        self.rejections = Counter()

    def apply(self, splits: SplitSystem) -> List[ReticulationScenario]:
        """
        Find up to ``max_to_find`` scenarios with as few reticulates as
        possible.

        Parameters
        ----------
        splits : SplitSystem
            Input splits with nothing hidden.

        Returns
        -------
        list[ReticulationScenario]
            Possibly empty; in enumeration order.

        Raises
        ------
        TypeError, ValueError
            On invalid input.
        SearchCancelled
            If the cancellation hook fires.
        InternalInconsistencyError
            If a projection that must succeed fails.
        """
        if not isinstance(splits, SplitSystem):
            raise TypeError(
                f"splits must be a SplitSystem, got {type(splits).__name__}"
            )
        if splits.hidden:
            raise ValueError("splits has hidden taxa; pass the unrestricted system")
        opts = self.options
        ntax = splits.ntax
        validate_taxon(opts.outgroup, ntax, "outgroup", allow_zero=True)

        self._reset()
        started = time.perf_counter()
        log_search_start(ntax, splits.n_splits, opts)
        if splits.is_compatible():
            log_input_compatible(ntax, splits.n_splits)

        results: List[ReticulationScenario] = []
        taxa = TaxaSet.full(ntax)
        for size in range(1, opts.max_reticulations + 1):
            candidates = enumerate_candidates(taxa, opts.outgroup, size)
            for index, candidate in enumerate(candidates):
                if opts.cancelled():
                    log_search_cancelled(size, len(results))
                    raise SearchCancelled(results, size)
                if opts.progress is not None:
                    opts.progress(size, index, candidate)
                self.candidates_by_size[size] += 1

                scenario = self._evaluate(splits, candidate, size)
                if scenario is None:
                    continue
                results.append(scenario)
                log_scenario_found(scenario, len(results))
                if len(results) >= opts.max_to_find:
                    log_search_summary(
                        results,
                        self.candidates_by_size,
                        self.rejections,
                        time.perf_counter() - started,
                    )
                    return results
            log_size_summary(
                size,
                self.candidates_by_size[size],
                self.compatible_by_size[size],
                len(results),
            )

        log_search_summary(
            results, self.candidates_by_size, self.rejections, time.perf_counter() - started
        )
        return results

    def _reject(self, candidate: TaxaSet, reason: str, detail: str = "") -> None:
        self.rejections[reason] += 1
        log_candidate_rejected(candidate, f"{reason} {detail}".strip())

    def _evaluate(
        self, splits: SplitSystem, candidate: TaxaSet, size: int
    ) -> Optional[ReticulationScenario]:
        """
        **Private.**  Run the verification stages for one candidate.

        Returns the scenario, or None after recording the rejection.
        """
        opts = self.options
        if not splits.restricted(candidate).is_compatible():
            self._reject(candidate, INCOMPATIBLE)
            return None
        self.compatible_by_size[size] += 1

        mapping = map_to_backbone(splits, candidate)
        if mapping is None:
            self._reject(candidate, DEGENERATE_BACKBONE)
            return None
        graph = opts.tree_builder(mapping.splits)

        scenario = ReticulationScenario(splits, candidate)
        scenario.backbone_to_original = mapping.backbone_to_original
        scenario.backbone_splits = mapping.splits
        for taxon in candidate:
            boundary = verify_simple_gall(mapping, graph, taxon)
            if boundary is None:
                self._reject(candidate, NOT_SIMPLE_GALL, f"(taxon {taxon})")
                return None
            scenario.record_gall(boundary)
        log_gall_paths(scenario.gall_paths)

        assign_reticulation_groups(scenario, mapping)

        if opts.root_check_enabled:
            root_taxon = int(mapping.original_to_backbone[opts.outgroup])
            if not root_is_consistent(
                graph,
                scenario.tree_split_to_reticulations,
                scenario.reticulates,
                root_taxon,
            ):
                self._reject(candidate, ROOT_CYCLE, f"(outgroup {opts.outgroup})")
                return None
        return scenario


def find_reticulations(
    splits: SplitSystem, options: Optional[SearchOptions] = None, **overrides
) -> List[ReticulationScenario]:
    """
    Find minimal reticulation scenarios for *splits*.

    Parameters
    ----------
    splits : SplitSystem
        The (possibly incompatible) input splits.
    options : SearchOptions, optional
        Search configuration; keyword *overrides* replace individual fields.

    Returns
    -------
    list[ReticulationScenario]

    Examples
    --------
    >>> splits = SplitSystem.from_sides(5, [[1, 2], [1, 3]])
    >>> [s.reticulates.tolist() for s in find_reticulations(splits)]
    [[3]]
    """
    return HybridFinder(options, **overrides).apply(splits)
