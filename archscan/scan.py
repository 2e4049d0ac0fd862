"""
One-call scan entry point shared by the CLI and the MCP tools.

Checks the fatal preconditions (tool availability, root path) before any
traversal work starts.
"""

import logging
from collections.abc import Sequence

from archscan.analysis.binary_types import HostArch
from archscan.analysis.resolver import ResolverContext
from archscan.analysis.walker import GraphWalker, TraversalResult
from archscan.engines.dumpbin.runner import DumpbinRunner
from archscan.utils.config import get_config_int

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3


def default_max_depth() -> int:
    """Depth used by recursive scans that do not pass one explicitly."""
    return max(0, get_config_int("ARCHSCAN_MAX_DEPTH", DEFAULT_MAX_DEPTH))


def scan_binary(
    binary_path: str,
    recursive: bool = False,
    max_depth: int | None = None,
    search_paths: Sequence[str] | None = None,
    host: HostArch | None = None,
    dumpbin_path: str | None = None,
    context: ResolverContext | None = None,
) -> TraversalResult:
    """
    Scan a binary and, when recursive, its dependency graph.

    Args:
        binary_path: Root executable to scan
        recursive: Follow dependencies; otherwise only the root is scanned
        max_depth: Depth bound for recursive scans (config default when None)
        search_paths: Extra directories searched for dependencies
        host: Host architecture override (detected when None)
        dumpbin_path: Explicit dumpbin.exe location (detected when None)
        context: Resolver negative cache to reuse across scans

    Returns:
        TraversalResult for the scan

    Raises:
        ToolUnavailableError: If dumpbin cannot be located
        PathNotFoundError: If binary_path does not exist
        NotPEImageError: If binary_path is not a PE image
    """
    if not recursive:
        depth = 0
    elif max_depth is None:
        depth = default_max_depth()
    else:
        depth = max_depth

    runner = DumpbinRunner(dumpbin_path)
    walker = GraphWalker(
        runner,
        max_depth=depth,
        search_paths=search_paths,
        host=host,
        context=context,
    )
    return walker.walk(binary_path)
