"""Lineage prevalence over time."""

import logging
from typing import List, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from lineage_hierarchy.models.errors import TimelineError
from lineage_hierarchy.models.lineage import LineageForest

logger = logging.getLogger(__name__)

DEFAULT_BUCKETS = 10
DEFAULT_MAX_LINEAGES = 10
EPOCH_THRESHOLD = 1_000_000_000

def select_lineages(
    forest: LineageForest,
    depth: int = 0,
    selected: Optional[str] = None,
    limit: int = DEFAULT_MAX_LINEAGES
) -> List[str]:
    """
    Pick the lineages to chart from a built forest.

    Without a selection this returns the lineages at BFS level ``depth``,
    or at the closest level that has any. With a selection it returns the
    descendants of ``selected`` that sit ``depth`` levels below it, falling
    back to the selection itself.

    Args:
        forest: Built lineage forest
        depth: Absolute level, or level relative to ``selected``
        selected: Optional lineage to drill into
        limit: Maximum number of lineages returned

    Returns:
        Lineage names in breadth-first order
    """
    flat = list(forest.walk())
    if not flat:
        return [selected] if selected else []

    if selected:
        levels = [level for node, level, _ in flat if node.name == selected]
        if not levels:
            logger.warning(f"Selected lineage {selected} not found in hierarchy")
            return [selected]
        target = levels[0] + depth
        names = [node.name for node, level, path in flat
                 if level == target and selected in path]
        if not names:
            return [selected]
        return names[:limit]

    by_level: Dict[int, List[str]] = {}
    for node, level, _ in flat:
        by_level.setdefault(level, []).append(node.name)

    if depth not in by_level:
        closest = min(by_level, key=lambda level: abs(level - depth))
        logger.debug(f"No lineages at depth {depth}, using closest depth {closest}")
        depth = closest
    return by_level[depth][:limit]

def format_time_label(value: float, time_column: str = 'x_time') -> str:
    """Render a bucket midpoint as a date for epoch times, else as a number."""
    if time_column == 'x_time' and value > EPOCH_THRESHOLD:
        return pd.to_datetime(value, unit='s').strftime('%Y-%m-%d')
    return f"{value:.2f}"

def _assign_targets(names: pd.Series, targets: Sequence[str]) -> pd.Series:
    assigned = pd.Series(np.nan, index=names.index, dtype=object)
    for lineage in targets:
        hit = assigned.isna() & ((names == lineage) | names.str.startswith(lineage + '.'))
        assigned = assigned.mask(hit, lineage)
    return assigned

def lineage_timeline(
    records: pd.DataFrame,
    lineages: Sequence[str],
    n_buckets: int = DEFAULT_BUCKETS,
    lineage_column: str = 'lineage',
    time_column: str = 'time'
) -> pd.DataFrame:
    """
    Bucket records over time and report the share of each lineage.

    The time range is split into ``n_buckets`` equal bins with the maximum
    falling into the last bin. A record counts toward the first target it
    equals or descends from. Bins without lineage-bearing records, or where
    every target is at zero, are dropped.

    Args:
        records: One row per sample/node with lineage and time columns
        lineages: Target lineages, in priority order
        n_buckets: Number of equal-width time bins
        lineage_column: Column holding the lineage name
        time_column: Column holding numeric time

    Returns:
        DataFrame indexed by bin midpoint ('time') with one percentage
        column per target lineage

    Raises:
        TimelineError: If columns are missing or the time range is unusable
    """
    if n_buckets < 1:
        raise TimelineError(f"Number of time buckets must be positive, got {n_buckets}")
    missing = [col for col in (lineage_column, time_column) if col not in records.columns]
    if missing:
        raise TimelineError(f"Missing columns for timeline: {missing}")

    targets = [name for name in dict.fromkeys(lineages) if name]
    if not targets:
        logger.info("No lineages requested for timeline")
        return pd.DataFrame(index=pd.Index([], name='time', dtype=float))

    times = pd.to_numeric(records[time_column], errors='coerce')
    timed = records.loc[np.isfinite(times.to_numpy(dtype=float))]
    if timed.empty:
        raise TimelineError(f"No valid time values found in column '{time_column}'")

    times = times.loc[timed.index].astype(float)
    min_time, max_time = times.min(), times.max()
    if not max_time > min_time:
        raise TimelineError(f"Invalid time range: {min_time} to {max_time}")

    edges = np.linspace(min_time, max_time, n_buckets + 1)
    midpoints = (edges[:-1] + edges[1:]) / 2
    buckets = np.clip(np.searchsorted(edges, times.to_numpy(), side='right') - 1, 0, n_buckets - 1)

    names = timed[lineage_column]
    has_lineage = names.notna() & (names.astype(str) != '')
    frame = pd.DataFrame({
        'bucket': buckets[has_lineage.to_numpy()],
        'lineage': _assign_targets(names[has_lineage].astype(str), targets).to_numpy(),
    })
    matched = frame.dropna(subset=['lineage'])
    if matched.empty:
        logger.info("No records matched the requested lineages")
        return pd.DataFrame(columns=targets, index=pd.Index([], name='time', dtype=float))

    totals = frame.groupby('bucket').size()
    counts = (
        matched
        .groupby(['bucket', 'lineage'])
        .size()
        .unstack(fill_value=0)
        .reindex(index=totals.index, columns=targets, fill_value=0)
    )
    percentages = counts.div(totals, axis=0) * 100
    percentages = percentages.loc[(percentages > 0).any(axis=1)]

    percentages.index = pd.Index(midpoints[percentages.index.to_numpy()], name='time')
    percentages.columns.name = None
    logger.debug(f"Timeline has {len(percentages)} of {n_buckets} buckets with data")
    return percentages.astype(float)
