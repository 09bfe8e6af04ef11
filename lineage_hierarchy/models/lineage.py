"""Data models for lineage hierarchies."""

import weakref
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Tuple, Optional, Iterator

import pandas as pd

RGB = Tuple[int, int, int]

class NodeKind(str, Enum):
    """Origin of an observation in the source phylogeny."""
    SAMPLE = "sample"
    INTERNAL = "internal"

class LineageGrammar(str, Enum):
    """Naming grammar a lineage name was classified under."""
    RECOMBINANT = "recombinant"
    MULTI_LETTER = "multi_letter"
    SINGLE_LETTER = "single_letter"
    EMPTY = "empty"

class LineageRelationship(str, Enum):
    """Relationship of one lineage relative to another."""
    SELF = "self"
    ANCESTOR = "ancestor"
    DESCENDANT = "descendant"
    UNRELATED = "unrelated"

    def inverse(self) -> 'LineageRelationship':
        """Return the relationship seen from the other lineage."""
        if self is LineageRelationship.ANCESTOR:
            return LineageRelationship.DESCENDANT
        if self is LineageRelationship.DESCENDANT:
            return LineageRelationship.ANCESTOR
        return self

@dataclass(frozen=True)
class Observation:
    """Number of observations carrying one lineage value."""
    name: str
    count: int
    node_kind: NodeKind = NodeKind.SAMPLE

@dataclass(frozen=True)
class ParsedLineage:
    """Canonical decomposition of a lineage name."""
    segments: Tuple[str, ...]
    parent: Optional[str]
    grammar: LineageGrammar

    @property
    def depth(self) -> int:
        return max(len(self.segments) - 1, 0)

    @property
    def root(self) -> Optional[str]:
        return self.segments[0] if self.segments else None

@dataclass(frozen=True)
class Prevalence:
    """Share of a node within the whole forest, used for color emphasis."""
    count: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.count / self.total

@dataclass(eq=False)
class LineageNode:
    """A lineage in a built forest, real or synthesized."""
    name: str
    depth: int
    color: RGB
    own_count: int = 0
    total_count: int = 0
    sample_count: int = 0
    internal_count: int = 0
    synthesized: bool = False  # implied ancestor absent from the input
    children: List['LineageNode'] = field(default_factory=list)
    _parent_ref: Optional[weakref.ref] = field(default=None, repr=False)

    @property
    def parent(self) -> Optional['LineageNode']:
        """Parent node, or None for roots."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def total_taxa(self) -> int:
        return self.sample_count + self.internal_count

class LineageForest:
    """Ordered roots of a lineage hierarchy plus a name index.

    The forest behaves like the sequence of its root nodes. It also keeps a
    strong reference to every node so that the weak parent references held
    by children stay valid for the lifetime of the forest.
    """

    def __init__(self, roots: List[LineageNode], nodes: Dict[str, LineageNode]):
        self._roots = list(roots)
        self._nodes = dict(nodes)

    def __iter__(self) -> Iterator[LineageNode]:
        return iter(self._roots)

    def __len__(self) -> int:
        return len(self._roots)

    def __getitem__(self, index):
        return self._roots[index]

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __repr__(self) -> str:
        return f"LineageForest(roots={len(self._roots)}, nodes={len(self._nodes)})"

    @property
    def roots(self) -> List[LineageNode]:
        return list(self._roots)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def grand_total(self) -> int:
        """Sum of root totals, i.e. every observation placed in the forest."""
        return sum(root.total_count for root in self._roots)

    def find(self, name: str) -> Optional[LineageNode]:
        """Look up a node by lineage name."""
        return self._nodes.get(name)

    def prevalence(self, name: str) -> Optional[Prevalence]:
        """Prevalence of a node's total count within the forest."""
        node = self._nodes.get(name)
        if node is None:
            return None
        return Prevalence(node.total_count, self.grand_total)

    def walk(self) -> Iterator[Tuple[LineageNode, int, List[str]]]:
        """Breadth-first traversal yielding (node, depth, path).

        ``path`` lists the names from the root down to and including the
        node. Depth is the BFS level, which equals ``node.depth`` except for
        nodes attached as roots by fallback.
        """
        queue = deque((root, 0, [root.name]) for root in self._roots)
        while queue:
            node, depth, path = queue.popleft()
            yield node, depth, path
            for child in node.children:
                queue.append((child, depth + 1, path + [child.name]))

    def to_dataframe(self) -> pd.DataFrame:
        """One row per node, in breadth-first order."""
        rows = []
        for node, level, _ in self.walk():
            parent = node.parent
            rows.append({
                "name": node.name,
                "parent": parent.name if parent is not None else None,
                "depth": node.depth,
                "level": level,
                "own_count": node.own_count,
                "total_count": node.total_count,
                "sample_count": node.sample_count,
                "internal_count": node.internal_count,
                "total_taxa": node.total_taxa,
                "color": node.color,
            })
        columns = ["name", "parent", "depth", "level", "own_count", "total_count",
                   "sample_count", "internal_count", "total_taxa", "color"]
        return pd.DataFrame(rows, columns=columns)
