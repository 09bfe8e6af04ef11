"""Lineage hierarchy engine for dotted lineage taxonomies."""

__version__ = "0.1.0"

from lineage_hierarchy.core.naming import (
    parse_lineage_name, lineage_root, is_lineage_like, ancestor_names
)
from lineage_hierarchy.core.hierarchy import build_hierarchy
from lineage_hierarchy.core.relationships import relate, is_direct_child
from lineage_hierarchy.core.colors import lineage_color
from lineage_hierarchy.models.lineage import (
    LineageForest, LineageNode, LineageRelationship, NodeKind, Observation, Prevalence
)
