"""
reticulo
========

Minimal reticulation (hybridization) scenarios from incompatible splits.

Given a split system over taxa 1..n that no single tree can display,
*reticulo* searches for the smallest sets of reticulate taxa whose removal
leaves a tree-like backbone, checks that every reticulate attaches to that
backbone along a single path of edges (a simple gall), and optionally checks
that a chosen outgroup root orders the hybridization events consistently.

Main Classes
------------
TaxaSet : Immutable set of 1-based taxon ids
Split, SplitSystem : Weighted splits and ordered split collections
HybridFinder, SearchOptions : Search driver and its configuration
ReticulationScenario : One verified scenario
BackboneGraph : Backbone tree built from compatible splits

Functions
---------
find_reticulations : Run a search with default or overridden options
compatible : Four-point compatibility of two splits
enumerate_candidates : Candidate reticulate sets of a given size
map_to_backbone : Project a split system onto the non-reticulate taxa
build_backbone_graph : Tree realising a compatible split system
verify_simple_gall : Path check for one reticulate taxon
root_is_consistent : Acyclicity of the precedence graph for a root

Context Managers
----------------
quiet : Suppress reticulo logging
suppress_logger : Suppress a specific logger

Errors
------
ReticuloError, InternalInconsistencyError, SearchCancelled

Examples
--------
>>> from reticulo import SplitSystem, find_reticulations
>>> splits = SplitSystem.from_sides(5, [[1, 2], [1, 3]])
>>> [s.reticulates.tolist() for s in find_reticulations(splits)]
[[3]]

>>> from reticulo import HybridFinder, quiet
>>> with quiet():
...     finder = HybridFinder(max_reticulations=2, max_to_find=5)
...     scenarios = finder.apply(splits)
>>> finder.candidates_by_size[1]
5
"""

__version__ = "0.1.0"

from ._taxa import TaxaSet
from ._splits import Split, SplitSystem, compatible, remove_compatible_splits
from ._enumerate import enumerate_candidates
from ._backbone import BackboneMapping, map_to_backbone
from ._graph import BackboneGraph, build_backbone_graph
from ._gall import GallBoundary, gall_splits, verify_simple_gall
from ._root import build_precedence_graph, root_is_consistent
from ._scenario import ReticulationScenario, assign_reticulation_groups
from ._finder import HybridFinder, SearchOptions, find_reticulations
from ._errors import ReticuloError, InternalInconsistencyError, SearchCancelled

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
)

# Utilities
from ._utils import (
    format_split,
    n_candidates,
    validate_taxon,
)

# Public API
__all__ = [
    # Data model
    "TaxaSet",
    "Split",
    "SplitSystem",
    "compatible",
    "remove_compatible_splits",
    # Search stages
    "enumerate_candidates",
    "BackboneMapping",
    "map_to_backbone",
    "BackboneGraph",
    "build_backbone_graph",
    "GallBoundary",
    "gall_splits",
    "verify_simple_gall",
    "build_precedence_graph",
    "root_is_consistent",
    "ReticulationScenario",
    "assign_reticulation_groups",
    # Search
    "HybridFinder",
    "SearchOptions",
    "find_reticulations",
    # Errors
    "ReticuloError",
    "InternalInconsistencyError",
    "SearchCancelled",
    # Context managers
    "suppress_logger",
    "quiet",
    # Utilities
    "format_split",
    "n_candidates",
    "validate_taxon",
    # Version info
    "__version__",
]
