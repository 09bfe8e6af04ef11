"""File writers for lineage_hierarchy."""

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from lineage_hierarchy.core.colors import rgb_to_hex
from lineage_hierarchy.core.timeline import format_time_label
from lineage_hierarchy.models.errors import InputError
from lineage_hierarchy.models.lineage import LineageForest

logger = logging.getLogger(__name__)

def hierarchy_to_tsv(forest: LineageForest, tsv_output_path: Union[str, Path]) -> pd.DataFrame:
    """
    Write a built forest as a table, one node per row in breadth-first order.

    Args:
        forest: Built lineage forest
        tsv_output_path: Output path without the .tsv extension

    Returns:
        DataFrame that was written

    Raises:
        InputError: If there's an issue writing the output
    """
    try:
        df = forest.to_dataframe()
        df['color'] = df['color'].map(rgb_to_hex)
        output_file = f"{tsv_output_path}.tsv"
        df.to_csv(output_file, sep='\t', index=False)
        logger.info(f"Wrote lineage hierarchy to {output_file}")
        return df

    except Exception as e:
        raise InputError(f"Error writing lineage hierarchy: {str(e)}")

def timeline_to_tsv(
    timeline: pd.DataFrame,
    tsv_output_path: Union[str, Path],
    time_column: str = 'x_time'
) -> pd.DataFrame:
    """
    Write a lineage timeline with a human-readable time label per bucket.

    Args:
        timeline: Output of lineage_timeline
        tsv_output_path: Output path without the .tsv extension
        time_column: Name of the source time column, used for labels

    Returns:
        DataFrame that was written

    Raises:
        InputError: If there's an issue writing the output
    """
    try:
        df = timeline.reset_index()
        df.insert(1, 'time_label', [format_time_label(value, time_column) for value in df['time']])
        output_file = f"{tsv_output_path}.tsv"
        df.to_csv(output_file, sep='\t', index=False)
        logger.info(f"Wrote lineage timeline to {output_file}")
        return df

    except Exception as e:
        raise InputError(f"Error writing lineage timeline: {str(e)}")
