"""Lineage name parsing."""

import re
import logging
from typing import List, Optional

from lineage_hierarchy.models.lineage import LineageGrammar, ParsedLineage

logger = logging.getLogger(__name__)

MULTI_LETTER_ROOT = re.compile(r'^[A-Za-z]{2,}(\.|$)')
LINEAGE_LIKE = re.compile(r'^[A-Za-z](\.\d+)*$')
LINEAGE_LIKE_ANY_ROOT = re.compile(r'^[A-Za-z]+(\.\d+)*$')
RECOMBINANT_PREFIX = 'X'

EMPTY_LINEAGE = ParsedLineage(segments=(), parent=None, grammar=LineageGrammar.EMPTY)

def classify_lineage(name: Optional[str]) -> LineageGrammar:
    """
    Classify a lineage name into one of the naming grammars.

    The first matching grammar wins: recombinant ("XBB.1.5"), then
    multi-letter root ("AY.4.2", "BA.2"), then single-letter root ("B.1.1.7").

    Args:
        name: Lineage name

    Returns:
        Grammar of the name, EMPTY for blank input
    """
    if not name:
        return LineageGrammar.EMPTY
    if name.startswith(RECOMBINANT_PREFIX) and len(name) > 1:
        return LineageGrammar.RECOMBINANT
    if MULTI_LETTER_ROOT.match(name):
        return LineageGrammar.MULTI_LETTER
    return LineageGrammar.SINGLE_LETTER

def _split_segments(name: str, grammar: LineageGrammar) -> List[str]:
    if grammar is LineageGrammar.SINGLE_LETTER:
        return name.split('.')

    dot_index = name.find('.')
    if dot_index < 0:
        return [name]
    root = name[:dot_index]
    return [root] + name[dot_index + 1:].split('.')

def parse_lineage_name(name: Optional[str]) -> ParsedLineage:
    """
    Parse a lineage name into its root and ordered path segments.

    Non-numeric segments (e.g. "B.x") are kept as opaque strings.

    Args:
        name: Lineage name such as "B.1.1.7", "AY.4" or "XBB.1.5"

    Returns:
        ParsedLineage with segments (root first), parent name and grammar
    """
    grammar = classify_lineage(name)
    if grammar is LineageGrammar.EMPTY:
        return EMPTY_LINEAGE

    segments = _split_segments(name, grammar)
    parent = '.'.join(segments[:-1]) if len(segments) > 1 else None
    return ParsedLineage(segments=tuple(segments), parent=parent, grammar=grammar)

def lineage_root(name: Optional[str]) -> Optional[str]:
    """Return the root component of a lineage name ("AY" for "AY.4.2")."""
    return parse_lineage_name(name).root

def lineage_depth(name: Optional[str]) -> int:
    """Return the nesting depth of a lineage name (0 for roots)."""
    return parse_lineage_name(name).depth

def ancestor_names(name: Optional[str]) -> List[str]:
    """
    List every ancestor of a lineage, root first, excluding the lineage itself.

    Example: "B.1.1.7" -> ["B", "B.1", "B.1.1"]
    """
    segments = parse_lineage_name(name).segments
    ancestors = []
    current = None
    for segment in segments[:-1]:
        current = segment if current is None else f"{current}.{segment}"
        ancestors.append(current)
    return ancestors

def is_lineage_like(name: Optional[str], strict: bool = True) -> bool:
    """
    Decide whether a category value should get hierarchical treatment.

    The strict form only accepts single-letter roots with numeric
    sub-segments ("B.1.1.7"). With ``strict=False`` any alphabetic root is
    accepted, which admits multi-letter and recombinant names ("AY.4.2",
    "XBB.1.5").

    Args:
        name: Category value
        strict: Whether to require a single-letter root

    Returns:
        True if the value looks like a lineage name
    """
    if not name:
        return False
    pattern = LINEAGE_LIKE if strict else LINEAGE_LIKE_ANY_ROOT
    return pattern.fullmatch(name) is not None
