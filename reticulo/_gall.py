"""
_gall.py
========
Simple-gall test for one reticulate taxon.

For a candidate set R and a taxon t in R, the taxa R - {t} are hidden and
the splits that stay incompatible ("gall splits") describe where t attaches
to the backbone.  Projected onto the backbone (dropping t), the gall splits
must cover a contiguous path of tree edges: a taxon whose footprint branches
cannot be a single hybridization event.

Walk
----
The path search starts on the pending edge of minimum split cardinality and
walks outward from each endpoint.  At every node the first unvisited edge
whose split is still pending is consumed and the walk moves across it; edges
that are not pending are skipped.  A walk ends at a node with no pending
unvisited edge, and its terminal edge is the edge back to the node it came
from.  Whatever remains pending after both walks, apart from the start split
and single-split entries equal to a boundary split, means t is not a path.

Both walks are iterative and share one pending dict, so the second walk never
re-consumes an edge taken by the first.
"""

import logging
from typing import Dict, List, Optional, Tuple

from reticulo._backbone import BackboneMapping
from reticulo._errors import InternalInconsistencyError
from reticulo._graph import BackboneGraph
from reticulo._splits import SplitSystem, remove_compatible_splits
from reticulo._taxa import TaxaSet
from reticulo._utils import format_split


logger = logging.getLogger(__name__)


class GallBoundary:
    """
    Boundary record of a verified simple gall.

    Attributes
    ----------
    taxon       : int                 the reticulate taxon
    first       : int                 index of the start boundary split
    last        : int                 index of the stop boundary split
    start_split : TaxaSet             gall split at the start of the path
    stop_split  : TaxaSet             gall split at the end of the path
    start_set   : tuple[TaxaSet, ...] gall splits mapped to the start edge
    stop_set    : tuple[TaxaSet, ...] gall splits mapped to the stop edge
    path        : tuple[TaxaSet, ...] backbone sides covered, walk order
    """

    __slots__ = (
        "taxon",
        "first",
        "last",
        "start_split",
        "stop_split",
        "start_set",
        "stop_set",
        "path",
    )

    def __init__(
        self, taxon, first, last, start_split, stop_split, start_set, stop_set, path
    ):
        self.taxon = taxon
        self.first = first
        self.last = last
        self.start_split = start_split
        self.stop_split = stop_split
        self.start_set = tuple(start_set)
        self.stop_set = tuple(stop_set)
        self.path = tuple(path)

    def __repr__(self) -> str:
        return (
            f"GallBoundary(taxon={self.taxon}, first={self.first}, "
            f"last={self.last}, path_length={len(self.path)})"
        )


def gall_splits(splits: SplitSystem, hidden: TaxaSet) -> List[TaxaSet]:
    """
    Distinct sides of *splits* with *hidden* cleared, keeping only those
    incompatible with at least one other.

    A side is skipped when it or its complement (over the visible taxa) is
    already present, so each bipartition appears once, in the orientation of
    its first occurrence.
    """
    ntax = splits.ntax
    seen = set()
    sides = []
    for split in splits:
        side = split.side - hidden
        other = side.complement(ntax) - hidden
        if side in seen or other in seen:
            continue
        seen.add(side)
        sides.append(side)
    return remove_compatible_splits(sides, hidden, ntax)


def _walk(
    graph: BackboneGraph, node: int, seen: set, pending: Dict[TaxaSet, list]
) -> Tuple[int, List[TaxaSet]]:
    """
    **Private.**  Follow pending edges outward from *node*.

    *seen* holds the node on the far side of the start edge.  Consumed
    splits are deleted from *pending*.

    Returns
    -------
    (terminal edge id, consumed sides in walk order)
    """
    seen = set(seen)
    consumed = []
    while True:
        seen.add(node)
        known = -1
        step = -1
        for e in graph.adjacent_edges(node):
            e = int(e)
            other = graph.opposite(node, e)
            if other in seen:
                known = other
                continue
            side = graph.split_of(e)
            if side in pending:
                del pending[side]
                consumed.append(side)
                step = other
                break
        if step < 0:
            return graph.common_edge(node, known), consumed
        node = step


def verify_simple_gall(
    mapping: BackboneMapping, graph: BackboneGraph, taxon: int
) -> Optional[GallBoundary]:
    """
    Check that reticulate *taxon* attaches to the backbone along a path.

    Parameters
    ----------
    mapping : BackboneMapping
        Projection of the full system onto the backbone of the candidate.
    graph : BackboneGraph
        Tree built from ``mapping.splits``.
    taxon : int
        A member of ``mapping.reticulates``.

    Returns
    -------
    GallBoundary on success, None if *taxon* is not a simple gall.

    Raises
    ------
    InternalInconsistencyError
        If a gall split projects to a side absent from the backbone split
        table, if the path start has no edge in *graph*, or if a boundary
        split cannot be matched back to an input split.
    """
    splits = mapping.original
    ntax = splits.ntax
    reticulates = mapping.reticulates
    if taxon not in reticulates:
        raise ValueError(f"Taxon {taxon} is not in the reticulate set {reticulates}")
    hidden = reticulates.unset(taxon)

    # Map each gall split to the backbone side it projects onto.
    footprint: Dict[TaxaSet, List[TaxaSet]] = {}
    for g in gall_splits(splits, hidden):
        side = mapping.project(g.unset(taxon))
        if side not in mapping.contributors:
            raise InternalInconsistencyError(
                f"unable to map split {format_split(g, ntax, splits.labels)} to backbone "
                f"(projected to {side})",
                reticulates,
                taxon,
            )
        footprint.setdefault(side, []).append(g)

    start = None
    for side, members in footprint.items():
        if len(members) > 2:
            logger.debug(
                f"Taxon {taxon}: {len(members)} gall splits on backbone split {side}"
            )
            return None
        if members and (start is None or len(side) < len(start)):
            start = side
    if start is None:
        logger.debug(f"Taxon {taxon}: no incompatible splits, nothing to attach")
        return None

    start_edge = graph.edge_for_split(start)
    if start_edge < 0:
        raise InternalInconsistencyError(
            f"backbone split {start} has no edge in the backbone tree",
            reticulates,
            taxon,
        )

    pending = dict(footprint)
    src = graph.source(start_edge)
    tgt = graph.target(start_edge)
    start_point, left = _walk(graph, src, {tgt}, pending)
    stop_point, right = _walk(graph, tgt, {src}, pending)
    pending.pop(start, None)

    start_set = footprint.get(graph.split_of(start_point))
    stop_set = footprint.get(graph.split_of(stop_point))
    if start_set is None or stop_set is None:
        raise InternalInconsistencyError(
            "walk ended on an edge outside the gall footprint", reticulates, taxon
        )
    start_split = min(start_set)
    stop_split = max(stop_set) if stop_point == start_point else min(stop_set)

    for side, members in list(pending.items()):
        if len(members) == 1 and members[0] in (start_split, stop_split):
            del pending[side]
    if pending:
        logger.debug(
            f"Taxon {taxon}: footprint is not a path; "
            f"{len(pending)} backbone split(s) left off the walk"
        )
        return None

    first = last = None
    for i, split in enumerate(splits):
        side = split.side - hidden
        if start_split.equals_as_split(side, ntax):
            first = i
        elif stop_split.equals_as_split(side, ntax):
            last = i
    if first is None or last is None:
        raise InternalInconsistencyError(
            "unable to determine reticulation boundary", reticulates, taxon
        )

    path = list(reversed(left)) + [start] + right
    return GallBoundary(
        taxon, first, last, start_split, stop_split, start_set, stop_set, path
    )
