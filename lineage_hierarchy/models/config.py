"""Configuration management for lineage_hierarchy."""

import os
from pathlib import Path
from typing import Optional, Any

from lineage_hierarchy.core.utils import DEFAULT_LINEAGE_COLUMN, LINEAGE_COLUMN_ENV
from lineage_hierarchy.models.errors import LineageHierarchyError

class ConfigError(LineageHierarchyError):
    """Raised when there's an issue with configuration."""
    pass

class LineageConfig:
    """Centralized configuration for lineage_hierarchy."""

    def __init__(self, args: Optional[Any] = None):
        """
        Initialize configuration from args and environment.

        Args:
            args: Arguments from argparse

        Raises:
            ConfigError: If required configuration is missing
        """
        self.command = getattr(args, 'command', None)
        self.verbose = getattr(args, 'verbose', False)

        # Commands reading a metadata table
        if self.command in ['build', 'timeline']:
            metadata = getattr(args, 'metadata', None)
            if not metadata:
                raise ConfigError(f"A metadata file is required for '{self.command}'")
            self.metadata = Path(metadata)
            if not self.metadata.exists():
                raise ConfigError(f"Metadata file not found: {self.metadata}")

            self.column = (getattr(args, 'column', None)
                           or os.environ.get(LINEAGE_COLUMN_ENV)
                           or DEFAULT_LINEAGE_COLUMN)
            self.output_dir = Path(getattr(args, 'output_dir', None) or "./results")
            self.output_basename = getattr(args, 'output_basename', None) or self.metadata.name.split('.')[0]

        if self.command == 'build':
            self.node_type_column = getattr(args, 'node_type_column', None)
            self.node_types = getattr(args, 'node_types', None)
            if self.node_types:
                self.node_types = Path(self.node_types)
            self.prevalence_colors = getattr(args, 'prevalence_colors', False)

        elif self.command == 'timeline':
            self.time_column = getattr(args, 'time_column', None)
            self.buckets = getattr(args, 'buckets', 10)
            self.depth = getattr(args, 'depth', 0)
            self.selected = getattr(args, 'selected', None)
            self.max_lineages = getattr(args, 'max_lineages', 10)
            if self.buckets < 1:
                raise ConfigError("--buckets must be at least 1")
            if self.max_lineages < 1:
                raise ConfigError("--max-lineages must be at least 1")

        elif self.command == 'parse':
            self.names = list(getattr(args, 'names', []))
            self.strict = not getattr(args, 'broad', False)

        elif self.command == 'color':
            self.names = list(getattr(args, 'names', []))
            self.hex = getattr(args, 'hex', False)

        elif self.command == 'relate':
            self.lineage = getattr(args, 'lineage', None)
            self.reference = getattr(args, 'reference', None)
            if not self.lineage or not self.reference:
                raise ConfigError("Both a lineage and a reference lineage are required")

    @property
    def output_prefix(self) -> Path:
        """Output path prefix shared by all files of one run."""
        return self.output_dir / self.output_basename
