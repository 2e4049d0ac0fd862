"""
Depth-bounded dependency graph traversal.

Walks the static dependency graph of a root binary breadth first, one
level at a time, classifying every uniquely resolved file once. A file
reachable along several edges is recorded at the depth it was first seen.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from archscan.analysis.binary_types import (
    BinaryRecord,
    HostArch,
    TraversalStats,
)
from archscan.analysis.classifier import ArchitectureClassifier
from archscan.analysis.code_ranges import CodeRangeAnalyzer
from archscan.analysis.dependencies import DependencyExtractor
from archscan.analysis.host import detect_host_arch
from archscan.analysis.preconditions import require_root_binary
from archscan.analysis.resolver import DependencyResolver, ResolverContext
from archscan.analysis.search_paths import SearchPathBuilder
from archscan.engines.base import MetadataSource
from archscan.utils.structured_errors import StructuredError

logger = logging.getLogger(__name__)


@dataclass
class TraversalResult:
    """Everything a traversal produced, as plain data."""

    root: str
    host: HostArch
    max_depth: int
    records: list[BinaryRecord] = field(default_factory=list)
    search_paths: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    pseudo_modules: list[str] = field(default_factory=list)
    issues: list[StructuredError] = field(default_factory=list)

    @property
    def by_depth(self) -> dict[int, list[BinaryRecord]]:
        grouped: dict[int, list[BinaryRecord]] = {}
        for record in self.records:
            grouped.setdefault(record.depth, []).append(record)
        return dict(sorted(grouped.items()))

    @property
    def depth_stats(self) -> dict[int, TraversalStats]:
        return {depth: aggregate(records) for depth, records in self.by_depth.items()}

    @property
    def overall(self) -> TraversalStats:
        return aggregate(self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "host": self.host.value,
            "max_depth": self.max_depth,
            "records": [record.to_dict() for record in self.records],
            "depth_stats": {
                str(depth): stats.to_dict() for depth, stats in self.depth_stats.items()
            },
            "overall": self.overall.to_dict(),
            "unresolved": self.unresolved,
            "pseudo_modules": self.pseudo_modules,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def aggregate(records: Sequence[BinaryRecord]) -> TraversalStats:
    """Sum counts and sizes over records."""
    stats = TraversalStats()
    for record in records:
        stats.add(record)
    return stats


class GraphWalker:
    """Breadth-first, depth-bounded traversal of a binary's dependencies."""

    def __init__(
        self,
        source: MetadataSource,
        max_depth: int = 0,
        search_paths: Sequence[str] | None = None,
        host: HostArch | None = None,
        context: ResolverContext | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        """
        Initialize walker.

        Args:
            source: Metadata source used for every binary
            max_depth: Deepest level to record; 0 records only the root
            search_paths: User-supplied extra search directories
            host: Host architecture (detected when None)
            context: Resolver negative cache; may be shared between walks
            environ: Environment mapping (defaults to os.environ)

        Raises:
            ValueError: If max_depth is negative
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.source = source
        self.max_depth = max_depth
        self.user_paths = list(search_paths or ())
        self.environ = os.environ if environ is None else environ
        self.host = host if host is not None else detect_host_arch(self.environ)
        self.context = context if context is not None else ResolverContext()

    def walk(self, root_path: str) -> TraversalResult:
        """
        Traverse the dependency graph of root_path.

        Args:
            root_path: Path to the root executable

        Returns:
            TraversalResult with records sorted by path

        Raises:
            PathNotFoundError: If root_path does not exist
            NotPEImageError: If root_path is not a PE image
        """
        root = require_root_binary(root_path)
        issues: list[StructuredError] = []

        search_set = SearchPathBuilder(self.environ).build(root, self.user_paths)
        classifier = ArchitectureClassifier(self.source, self.host, issues)
        analyzer = CodeRangeAnalyzer(self.source, self.host, issues)
        extractor = DependencyExtractor(self.source, issues)
        resolver = DependencyResolver(search_set, self.context, self.environ, issues)

        logger.info(
            f"Scanning {root} (host {self.host.value}, max depth {self.max_depth})"
        )

        visited = {root.lower()}
        queue: deque[tuple[str, int]] = deque([(root, 0)])
        records: list[BinaryRecord] = []
        unresolved: set[str] = set()
        pseudo_modules: set[str] = set()

        while queue:
            path, depth = queue.popleft()
            records.append(self._analyze(path, depth, classifier, analyzer))

            if depth >= self.max_depth:
                continue

            for name in extractor.list_dependencies(path):
                resolved = resolver.resolve(name, path)
                if resolved is None:
                    if ResolverContext.is_pseudo_module(name):
                        pseudo_modules.add(name.lower())
                    else:
                        unresolved.add(name.lower())
                    continue

                key = resolved.lower()
                if key in visited:
                    continue
                visited.add(key)
                queue.append((resolved, depth + 1))

        records.sort(key=lambda record: record.key)
        logger.info(
            f"Scanned {len(records)} binaries, {len(unresolved)} unresolved dependencies"
        )

        return TraversalResult(
            root=root,
            host=self.host,
            max_depth=self.max_depth,
            records=records,
            search_paths=search_set,
            unresolved=sorted(unresolved),
            pseudo_modules=sorted(pseudo_modules),
            issues=issues,
        )

    @staticmethod
    def _analyze(
        path: str,
        depth: int,
        classifier: ArchitectureClassifier,
        analyzer: CodeRangeAnalyzer,
    ) -> BinaryRecord:
        """Classify and measure one binary."""
        try:
            file_size = os.path.getsize(path)
        except OSError as e:
            logger.error(f"Cannot stat {path}: {e}")
            file_size = 0

        arch_class, machine = classifier.classify_file(path)
        ranges = analyzer.analyze(path, arch_class, file_size)
        return BinaryRecord(
            path=path,
            name=os.path.basename(path),
            classification=arch_class,
            native_bytes=ranges.native_bytes,
            non_native_bytes=ranges.non_native_bytes,
            file_size=file_size,
            depth=depth,
            machine=machine,
            native_percentage=ranges.native_percentage,
        )
