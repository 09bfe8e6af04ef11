"""File format parsers for lineage_hierarchy."""

import logging
from pathlib import Path
from typing import List, Dict, Optional, Any
from abc import ABC, abstractmethod

import pandas as pd

from lineage_hierarchy.core.hierarchy import coerce_node_kind
from lineage_hierarchy.core.utils import TIME_COLUMN_CANDIDATES
from lineage_hierarchy.models.errors import InputError, HierarchyError
from lineage_hierarchy.models.lineage import NodeKind, Observation

logger = logging.getLogger(__name__)

TRUTHY = {'true', 't', 'yes', 'y', '1'}
FALSY = {'false', 'f', 'no', 'n', '0'}

class Parser(ABC):
    """Base parser class for different file formats."""

    @abstractmethod
    def parse(self, path: Path):
        """Parse file at the given path.

        Args:
            path: Path to file

        Returns:
            Parsed data
        """
        pass

class MetadataParser(Parser):
    """Parser for per-node metadata tables (CSV/TSV, optionally gzipped)."""

    def parse(self, path: Path, sep: Optional[str] = None) -> pd.DataFrame:
        """Parse a metadata table into a pandas DataFrame.

        Args:
            path: Path to metadata file
            sep: Optional column separator. If None, inferred from extension.

        Returns:
            DataFrame with all columns read as strings

        Raises:
            InputError: If there's an issue with the metadata file
        """
        path = Path(path)
        if sep is None:
            suffixes = [suffix.lower() for suffix in path.suffixes if suffix.lower() != '.gz']
            sep = ',' if suffixes and suffixes[-1] == '.csv' else '\t'
        try:
            return pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)
        except Exception as e:
            raise InputError(f"Error parsing metadata file: {str(e)}")

class NodeTypeParser(Parser):
    """Parser for two-column lineage to node type mapping files."""

    def parse(self, path: Path) -> Dict[str, str]:
        """Parse a mapping file into a dictionary.

        Args:
            path: Path to tab-separated lineage/node type file

        Returns:
            Dictionary mapping lineage name to node type

        Raises:
            InputError: If there's an issue with the mapping file
        """
        try:
            result = {}
            with open(path, encoding="utf8") as file:
                for line in file:
                    parts = line.rstrip().split("\t")
                    if len(parts) >= 2:
                        result[parts[0]] = parts[1]
            return result
        except Exception as e:
            raise InputError(f"Error parsing node type file: {str(e)}")

# Factory function to get appropriate parser
def get_parser(file_type: str) -> Parser:
    """Get appropriate parser for file type.

    Args:
        file_type: Type of file to parse

    Returns:
        Parser object

    Raises:
        InputError: If no parser exists for the file type
    """
    parsers = {
        'metadata': MetadataParser(),
        'node_types': NodeTypeParser(),
    }
    if file_type not in parsers:
        raise InputError(f"No parser for file type: {file_type}")
    return parsers[file_type]

def node_kind_from_value(value: Any) -> NodeKind:
    """
    Interpret a node-type cell.

    Boolean-like cells follow the ``is_tip`` convention (true = sample);
    anything else must be a node-kind tag such as 'leaf' or 'internal'.
    """
    text = str(value).strip().lower()
    if text in TRUTHY:
        return NodeKind.SAMPLE
    if text in FALSY:
        return NodeKind.INTERNAL
    if not text:
        return NodeKind.SAMPLE
    try:
        return coerce_node_kind(text)
    except HierarchyError as e:
        raise InputError(str(e))

def observations_from_metadata(
    df: pd.DataFrame,
    column: str,
    node_type_column: Optional[str] = None
) -> List[Observation]:
    """
    Aggregate a per-node table into lineage observations.

    Args:
        df: Metadata table, one row per tree node
        column: Column holding the lineage name
        node_type_column: Optional column marking tips vs internal nodes

    Returns:
        Observations in order of first appearance, blank lineages dropped

    Raises:
        InputError: If a requested column is missing
    """
    for required in filter(None, [column, node_type_column]):
        if required not in df.columns:
            raise InputError(f"Column '{required}' not found in metadata. Available: {list(df.columns)}")

    lineages = df[column].fillna('').astype(str).str.strip()
    if node_type_column:
        kinds = df[node_type_column].map(lambda value: node_kind_from_value(value).value)
    else:
        kinds = pd.Series(NodeKind.SAMPLE.value, index=df.index)

    table = pd.DataFrame({'name': lineages, 'node_kind': kinds})
    table = table.loc[table['name'] != '']
    dropped = len(df) - len(table)
    if dropped:
        logger.debug(f"Dropped {dropped} rows without a value in '{column}'")

    counts = table.groupby(['name', 'node_kind'], sort=False).size()
    observations = [
        Observation(name=name, count=int(count), node_kind=NodeKind(kind))
        for (name, kind), count in counts.items()
    ]
    logger.info(f"Read {len(observations)} lineage observations from {len(table)} rows")
    return observations

def find_time_column(df: pd.DataFrame, preferred: Optional[str] = None) -> str:
    """
    Pick the time column of a metadata table.

    Args:
        df: Metadata table
        preferred: Column to use if present

    Returns:
        Name of the first usable time column

    Raises:
        InputError: If no candidate column holds numeric values
    """
    candidates = ([preferred] if preferred else []) + TIME_COLUMN_CANDIDATES
    for candidate in candidates:
        if candidate in df.columns and pd.to_numeric(df[candidate], errors='coerce').notna().any():
            if preferred and candidate != preferred:
                logger.warning(f"Time column '{preferred}' unusable, falling back to '{candidate}'")
            return candidate
    raise InputError(f"No numeric time column found among: {candidates}")
