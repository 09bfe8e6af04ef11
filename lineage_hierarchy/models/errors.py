"""Error classes for lineage_hierarchy."""

class LineageHierarchyError(Exception):
    """Base class for lineage_hierarchy exceptions."""
    pass

class InputError(LineageHierarchyError):
    """Raised when there's an issue with input files or tables."""
    pass

class HierarchyError(LineageHierarchyError):
    """Raised when observations cannot be placed in a hierarchy."""
    pass

class TimelineError(LineageHierarchyError):
    """Raised when lineage prevalence cannot be bucketed over time."""
    pass
