#!/usr/bin/env python3
"""Command-line interface for lineage_hierarchy."""

import sys
import argparse
import logging
from typing import List, Optional

import pandas as pd

from lineage_hierarchy import __version__
from lineage_hierarchy.core.utils import setup_logging, DEFAULT_LINEAGE_COLUMN, LINEAGE_COLUMN_ENV
from lineage_hierarchy.models.config import LineageConfig
from lineage_hierarchy.models.errors import LineageHierarchyError

logger = logging.getLogger(__name__)

def create_parser() -> argparse.ArgumentParser:
    """
    Create and return the main argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Explore dotted lineage taxonomies (e.g. Pango lineages) as hierarchies",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s v{__version__}'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help='lineage-hierarchy commands',
        required=True
    )

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build a lineage hierarchy from a metadata table",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    _add_metadata_arguments(build_parser)
    build_parser.add_argument(
        '--node-type-column',
        type=str,
        default=None,
        help='column marking tips (true/leaf) vs internal nodes'
    )
    build_parser.add_argument(
        '--node-types',
        type=str,
        default=None,
        help='tsv mapping lineage name to leaf/internal'
    )
    build_parser.add_argument(
        '--prevalence-colors',
        action='store_true',
        help='darken colors of prevalent lineages'
    )

    # Timeline command
    timeline_parser = subparsers.add_parser(
        "timeline",
        help="Lineage prevalence over time buckets",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    _add_metadata_arguments(timeline_parser)
    timeline_parser.add_argument(
        '--time-column',
        type=str,
        default=None,
        help='numeric time column (defaults to the first of x_time, x_dist, div, num_date)'
    )
    timeline_parser.add_argument(
        '--buckets',
        type=int,
        default=10,
        help='number of equal-width time buckets'
    )
    timeline_parser.add_argument(
        '--depth',
        type=int,
        default=0,
        help='hierarchy level to chart, relative to --selected if given'
    )
    timeline_parser.add_argument(
        '--selected',
        type=str,
        default=None,
        help='lineage to drill into'
    )
    timeline_parser.add_argument(
        '--max-lineages',
        type=int,
        default=10,
        help='maximum number of lineages charted'
    )

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Show the decomposition of lineage names",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parse_parser.add_argument(
        'names',
        type=str,
        nargs='+',
        help='lineage names'
    )
    parse_parser.add_argument(
        '--broad',
        action='store_true',
        help='accept multi-letter and recombinant roots as lineage-like'
    )

    # Color command
    color_parser = subparsers.add_parser(
        "color",
        help="Show the color assigned to lineage names",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    color_parser.add_argument(
        'names',
        type=str,
        nargs='+',
        help='lineage names'
    )
    color_parser.add_argument(
        '--hex',
        action='store_true',
        help='print colors as #rrggbb'
    )

    # Relate command
    relate_parser = subparsers.add_parser(
        "relate",
        help="Classify one lineage relative to another",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    relate_parser.add_argument(
        'lineage',
        type=str,
        help='lineage to describe'
    )
    relate_parser.add_argument(
        'reference',
        type=str,
        help='reference lineage'
    )

    return parser

def _add_metadata_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        'metadata',
        type=str,
        help='csv/tsv metadata table, one row per tree node'
    )
    subparser.add_argument(
        '--column', '-c',
        type=str,
        default=None,
        help=f'lineage column (default: ${LINEAGE_COLUMN_ENV} or {DEFAULT_LINEAGE_COLUMN})'
    )
    subparser.add_argument(
        '--output-dir',
        type=str,
        default="./results",
        help='output directory name'
    )
    subparser.add_argument(
        '--output-basename',
        type=str,
        help='basename for all output files'
    )

def run_build(config: LineageConfig) -> None:
    """
    Run the build command.

    Args:
        config: Configuration for the build command
    """
    from lineage_hierarchy.core.hierarchy import build_hierarchy
    from lineage_hierarchy.io.parsers import get_parser, observations_from_metadata
    from lineage_hierarchy.io.writers import hierarchy_to_tsv

    df_metadata = get_parser('metadata').parse(config.metadata)
    observations = observations_from_metadata(df_metadata, config.column, config.node_type_column)

    node_types = None
    if config.node_types:
        node_types = get_parser('node_types').parse(config.node_types)

    forest = build_hierarchy(observations, node_types=node_types,
                             color_by_prevalence=config.prevalence_colors)
    logger.info(f"Hierarchy has {forest.node_count} lineages under {len(forest)} roots")

    config.output_dir.mkdir(parents=True, exist_ok=True)
    hierarchy_to_tsv(forest, f"{config.output_prefix}_lineage-hierarchy")

def run_timeline(config: LineageConfig) -> None:
    """
    Run the timeline command.

    Args:
        config: Configuration for the timeline command
    """
    from lineage_hierarchy.core.hierarchy import build_hierarchy
    from lineage_hierarchy.core.timeline import lineage_timeline, select_lineages
    from lineage_hierarchy.io.parsers import get_parser, observations_from_metadata, find_time_column
    from lineage_hierarchy.io.writers import timeline_to_tsv

    df_metadata = get_parser('metadata').parse(config.metadata)
    forest = build_hierarchy(observations_from_metadata(df_metadata, config.column))
    lineages = select_lineages(forest, config.depth, config.selected, config.max_lineages)
    logger.info(f"Charting {len(lineages)} lineages: {', '.join(lineages)}")

    time_column = find_time_column(df_metadata, config.time_column)
    timeline = lineage_timeline(
        df_metadata,
        lineages,
        n_buckets=config.buckets,
        lineage_column=config.column,
        time_column=time_column
    )

    config.output_dir.mkdir(parents=True, exist_ok=True)
    timeline_to_tsv(timeline, f"{config.output_prefix}_lineage-timeline", time_column)

def run_parse(config: LineageConfig) -> None:
    """
    Run the parse command.

    Args:
        config: Configuration for the parse command
    """
    from lineage_hierarchy.core.naming import parse_lineage_name, is_lineage_like

    rows = []
    for name in config.names:
        parsed = parse_lineage_name(name)
        rows.append({
            'name': name,
            'grammar': parsed.grammar.value,
            'root': parsed.root,
            'segments': '/'.join(parsed.segments),
            'parent': parsed.parent or '-',
            'depth': parsed.depth,
            'lineage_like': is_lineage_like(name, strict=config.strict),
        })
    print(pd.DataFrame(rows).to_string(index=False))

def run_color(config: LineageConfig) -> None:
    """
    Run the color command.

    Args:
        config: Configuration for the color command
    """
    from lineage_hierarchy.core.colors import lineage_color, rgb_to_hex

    for name in config.names:
        rgb = lineage_color(name)
        value = rgb_to_hex(rgb) if config.hex else ','.join(str(channel) for channel in rgb)
        print(f"{name}\t{value}")

def run_relate(config: LineageConfig) -> None:
    """
    Run the relate command.

    Args:
        config: Configuration for the relate command
    """
    from lineage_hierarchy.core.relationships import relate

    print(relate(config.lineage, config.reference).value)

COMMANDS = {
    'build': run_build,
    'timeline': run_timeline,
    'parse': run_parse,
    'color': run_color,
    'relate': run_relate,
}

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the command-line interface.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    logger = setup_logging(args.verbose)

    try:
        config = LineageConfig(args)

        handler = COMMANDS.get(config.command)
        if handler is None:
            logger.error(f"Unknown command: {config.command}")
            return 1
        handler(config)
        return 0

    except LineageHierarchyError as e:
        logger.error(f"Error: {str(e)}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {str(e)}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
