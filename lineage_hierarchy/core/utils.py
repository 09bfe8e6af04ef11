"""Utility functions for lineage_hierarchy."""

import logging

# Default lineage column in Taxonium-style metadata
DEFAULT_LINEAGE_COLUMN = 'pangolin_lineage'
LINEAGE_COLUMN_ENV = 'LINEAGE_HIERARCHY_COLUMN'
TIME_COLUMN_CANDIDATES = ['x_time', 'x_dist', 'div', 'num_date']

def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the lineage_hierarchy application.

    Args:
        verbose: Whether to enable verbose (DEBUG) logging

    Returns:
        Logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    return logging.getLogger('lineage_hierarchy')
