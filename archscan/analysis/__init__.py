"""
Native code coverage analysis.

Components:
- binary_types.py: Data classes for classifications, code ranges and statistics
- classifier.py: Architecture classification from header dumps
- code_ranges.py: Native / non-native byte split
- dependencies.py: Declared dependency listing
- search_paths.py: Per-root search directory discovery
- resolver.py: Dependency name to file resolution
- walker.py: Depth-bounded dependency graph traversal
"""

from archscan.analysis.binary_types import (
    ArchClass,
    BinaryRecord,
    CodeRanges,
    HostArch,
    HybridRange,
    TraversalStats,
)

__all__ = [
    "ArchClass",
    "BinaryRecord",
    "CodeRanges",
    "HostArch",
    "HybridRange",
    "TraversalStats",
]
