"""Ancestor/descendant relationships between lineage names."""

import logging
from typing import Optional

from lineage_hierarchy.core.naming import parse_lineage_name
from lineage_hierarchy.models.lineage import LineageGrammar, LineageRelationship

logger = logging.getLogger(__name__)

def relate(a: Optional[str], b: Optional[str]) -> LineageRelationship:
    """
    Classify lineage ``a`` relative to lineage ``b``.

    ANCESTOR means ``a`` is a strict ancestor of ``b`` (``relate("AY",
    "AY.4.2")``); DESCENDANT is the inverse. Comparison is on the dotted
    names only, so no forest is needed.

    Args:
        a: Lineage being described
        b: Reference lineage (e.g. the current selection)

    Returns:
        LineageRelationship of ``a`` with respect to ``b``
    """
    if not a or not b:
        return LineageRelationship.UNRELATED
    if a == b:
        return LineageRelationship.SELF
    if b.startswith(a + '.'):
        return LineageRelationship.ANCESTOR
    if a.startswith(b + '.'):
        return LineageRelationship.DESCENDANT
    return LineageRelationship.UNRELATED

def is_in_lineage(name: Optional[str], reference: Optional[str]) -> bool:
    """True if ``name`` is ``reference`` or one of its descendants."""
    return relate(name, reference) in (LineageRelationship.SELF, LineageRelationship.DESCENDANT)

def is_direct_child(child: Optional[str], parent: Optional[str]) -> bool:
    """
    Check whether ``child`` sits exactly one level below ``parent``.

    Args:
        child: Candidate child lineage (e.g. "B.1.1")
        parent: Candidate parent lineage (e.g. "B.1")

    Returns:
        True if ``child`` is a direct child of ``parent``
    """
    if not child or not parent:
        return False

    child_parsed = parse_lineage_name(child)
    parent_parsed = parse_lineage_name(parent)

    if child_parsed.grammar in (LineageGrammar.MULTI_LETTER, LineageGrammar.RECOMBINANT):
        if child_parsed.root != parent_parsed.root:
            return False

    if len(child_parsed.segments) != len(parent_parsed.segments) + 1:
        return False
    return child_parsed.segments[:len(parent_parsed.segments)] == parent_parsed.segments
