"""Lineage hierarchy construction and count aggregation."""

import weakref
import logging
import numbers
from typing import List, Dict, Tuple, Optional, Union, Any, Iterable, Mapping

from lineage_hierarchy.core.colors import lineage_color
from lineage_hierarchy.core.naming import ancestor_names, parse_lineage_name
from lineage_hierarchy.models.errors import HierarchyError
from lineage_hierarchy.models.lineage import (
    LineageForest, LineageNode, NodeKind, Observation, Prevalence
)

logger = logging.getLogger(__name__)

NODE_KIND_ALIASES = {
    'sample': NodeKind.SAMPLE,
    'leaf': NodeKind.SAMPLE,
    'tip': NodeKind.SAMPLE,
    'internal': NodeKind.INTERNAL,
}

ObservationLike = Union[Observation, Tuple, Mapping[str, Any]]

def coerce_node_kind(kind: Any) -> NodeKind:
    """
    Map a node-kind tag onto NodeKind.

    Args:
        kind: NodeKind, one of 'sample'/'leaf'/'tip'/'internal', or None

    Returns:
        NodeKind, SAMPLE when untagged

    Raises:
        HierarchyError: If the tag is not recognised
    """
    if kind is None:
        return NodeKind.SAMPLE
    if isinstance(kind, NodeKind):
        return kind
    try:
        return NODE_KIND_ALIASES[str(kind).strip().lower()]
    except KeyError:
        raise HierarchyError(f"Unknown node kind: {kind!r}")

def mapped_node_kind(value: Any) -> NodeKind:
    """
    Lenient reading of a node_types mapping value.

    Only values tagged internal count as internal; any other tag, known or
    not, counts as a sample so one odd entry cannot abort a build.
    """
    try:
        return coerce_node_kind(value)
    except HierarchyError:
        logger.debug(f"Treating unknown node type {value!r} as a sample")
        return NodeKind.SAMPLE

def _coerce_count(name: str, count: Any) -> int:
    if isinstance(count, bool):
        raise HierarchyError(f"Count for lineage {name} must be an integer, got {count!r}")
    if isinstance(count, numbers.Integral):
        value = int(count)
    elif isinstance(count, numbers.Real) and float(count).is_integer():
        value = int(count)
    else:
        raise HierarchyError(f"Count for lineage {name} must be an integer, got {count!r}")
    if value < 0:
        raise HierarchyError(f"Count for lineage {name} must be non-negative, got {value}")
    return value

def coerce_observation(record: ObservationLike) -> Observation:
    """
    Normalise one input record into an Observation.

    Accepts an Observation, a ``(name, count[, node_kind])`` tuple, or a
    mapping with ``name`` (or ``value``), ``count`` and optional
    ``node_kind`` keys.

    Raises:
        HierarchyError: If the record cannot be interpreted
    """
    if isinstance(record, Observation):
        name, count, kind = record.name, record.count, record.node_kind
    elif isinstance(record, Mapping):
        name = record.get('name', record.get('value'))
        count = record.get('count', 0)
        kind = record.get('node_kind')
    elif isinstance(record, tuple) and len(record) in (2, 3):
        name, count = record[0], record[1]
        kind = record[2] if len(record) == 3 else None
    else:
        raise HierarchyError(f"Cannot interpret observation record: {record!r}")

    name = '' if name is None else str(name)
    return Observation(name=name, count=_coerce_count(name, count), node_kind=coerce_node_kind(kind))

class _NodeArena:
    """Flat node storage with index-based parent links."""

    def __init__(self):
        self.names: List[str] = []
        self.index: Dict[str, int] = {}
        self.own: List[int] = []
        self.samples: List[int] = []
        self.internals: List[int] = []
        self.synthesized: List[bool] = []

    def slot(self, name: str, synthesized: bool = False) -> int:
        idx = self.index.get(name)
        if idx is None:
            idx = len(self.names)
            self.index[name] = idx
            self.names.append(name)
            self.own.append(0)
            self.samples.append(0)
            self.internals.append(0)
            self.synthesized.append(synthesized)
        return idx

    def __len__(self) -> int:
        return len(self.names)

def build_hierarchy(
    observations: Iterable[ObservationLike],
    node_types: Optional[Mapping[str, Any]] = None,
    color_by_prevalence: bool = False
) -> LineageForest:
    """
    Build a lineage forest from per-lineage observation counts.

    Every ancestor implied by an observed name is synthesized with zero own
    count, each node is linked to its parent, counts are aggregated bottom-up
    and children are sorted by descending total count (stable).

    Args:
        observations: Records of (name, count, node kind); duplicate names
            are summed and empty names are skipped
        node_types: Optional mapping of lineage name to 'leaf'/'sample' or
            'internal', overriding the kind carried by the observation;
            unrecognised tags count as samples
        color_by_prevalence: Color nodes by their share of the forest total
            instead of by name alone

    Returns:
        LineageForest whose roots are ordered by descending total count

    Raises:
        HierarchyError: If an observation has an invalid count or node kind
    """
    arena = _NodeArena()
    skipped = 0

    for record in observations:
        observation = coerce_observation(record)
        if not observation.name:
            skipped += 1
            continue

        kind = observation.node_kind
        if node_types is not None and observation.name in node_types:
            kind = mapped_node_kind(node_types[observation.name])

        idx = arena.slot(observation.name)
        arena.own[idx] += observation.count
        if kind is NodeKind.INTERNAL:
            arena.internals[idx] += observation.count
        else:
            arena.samples[idx] += observation.count

    if skipped:
        logger.debug(f"Skipped {skipped} observations without a lineage name")

    # Synthesize the ancestor closure of every observed lineage
    for name in list(arena.names):
        for ancestor in ancestor_names(name):
            if ancestor:
                arena.slot(ancestor, synthesized=True)

    n_nodes = len(arena)
    parents = [-1] * n_nodes
    depths = [0] * n_nodes
    for idx, name in enumerate(arena.names):
        parsed = parse_lineage_name(name)
        depths[idx] = parsed.depth
        if parsed.parent is not None:
            # Empty parents (e.g. '.1') are never slotted, so the node becomes a root
            parents[idx] = arena.index.get(parsed.parent, -1)

    totals = list(arena.own)
    samples = list(arena.samples)
    internals = list(arena.internals)

    # Parents are strictly shallower, so deepest-first is a post-order
    for idx in sorted(range(n_nodes), key=lambda i: depths[i], reverse=True):
        parent = parents[idx]
        if parent >= 0:
            totals[parent] += totals[idx]
            samples[parent] += samples[idx]
            internals[parent] += internals[idx]

    root_indices = [idx for idx in range(n_nodes) if parents[idx] < 0]
    grand_total = sum(totals[idx] for idx in root_indices)

    nodes: List[LineageNode] = []
    for idx, name in enumerate(arena.names):
        if color_by_prevalence:
            color = lineage_color(name, Prevalence(totals[idx], grand_total))
        else:
            color = lineage_color(name)
        nodes.append(LineageNode(
            name=name,
            depth=depths[idx],
            color=color,
            own_count=arena.own[idx],
            total_count=totals[idx],
            sample_count=samples[idx],
            internal_count=internals[idx],
            synthesized=arena.synthesized[idx],
        ))

    for idx, parent in enumerate(parents):
        if parent >= 0:
            nodes[parent].children.append(nodes[idx])
            nodes[idx]._parent_ref = weakref.ref(nodes[parent])

    def by_total(node: LineageNode) -> int:
        return -node.total_count

    for node in nodes:
        node.children.sort(key=by_total)
    roots = sorted((nodes[idx] for idx in root_indices), key=by_total)

    logger.debug(f"Built lineage hierarchy with {n_nodes} nodes and {len(roots)} roots")
    return LineageForest(roots, {node.name: node for node in nodes})
