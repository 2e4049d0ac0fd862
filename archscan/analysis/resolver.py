"""
Dependency name to file resolution.

Mirrors the Windows loader's search order for statically linked modules:
the requesting binary's directory, the per-traversal search set, the
system directories (including the ARM64 translation directories) and
finally PATH. Negative results are cached in a ResolverContext so that a
missing module shared by many binaries is only searched for once.
"""

import logging
import ntpath
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from archscan.analysis.search_paths import env_lookup
from archscan.utils.structured_errors import (
    StructuredError,
    create_dependency_unresolved_error,
)

logger = logging.getLogger(__name__)

# API sets and extension API sets are virtual; the loader redirects them
PSEUDO_MODULE_PREFIXES = ("api-ms-", "ext-ms-")

DEFAULT_SYSTEM_ROOT = r"C:\Windows"

# Relative to %SystemRoot%, in loader order. SyChpe32 and SysArm32 only
# exist on ARM64 Windows.
SYSTEM_SUBDIRECTORIES = ("System32", "System", "", "SysWOW64", "SyChpe32", "SysArm32")


@dataclass
class ResolverContext:
    """Negative-result memo shared by every resolution in a run.

    A miss is remembered together with the directories that were searched,
    so the same name looked up from a different directory set is searched
    again. Within one directory set a recorded miss stays a miss for the
    lifetime of the context even if a matching file appears later.
    """

    unresolved: set[str] = field(default_factory=set)
    pseudo_modules: set[str] = field(default_factory=set)
    _misses: set[tuple[str, tuple[str, ...]]] = field(default_factory=set, repr=False)

    @staticmethod
    def is_pseudo_module(name: str) -> bool:
        return name.lower().startswith(PSEUDO_MODULE_PREFIXES)

    @staticmethod
    def _scope(directories: Sequence[str]) -> tuple[str, ...]:
        return tuple(_directory_key(directory) for directory in directories)

    def is_unresolved(self, name: str, directories: Sequence[str]) -> bool:
        return (name.lower(), self._scope(directories)) in self._misses

    def record_unresolved(self, name: str, directories: Sequence[str]) -> None:
        self.unresolved.add(name.lower())
        self._misses.add((name.lower(), self._scope(directories)))

    def record_pseudo_module(self, name: str) -> None:
        self.pseudo_modules.add(name.lower())


def system_directories(environ: Mapping[str, str]) -> list[str]:
    """Fixed system directories in loader order."""
    system_root = (
        env_lookup(environ, "SystemRoot")
        or env_lookup(environ, "windir")
        or DEFAULT_SYSTEM_ROOT
    )
    return [
        os.path.join(system_root, subdir) if subdir else system_root
        for subdir in SYSTEM_SUBDIRECTORIES
    ]


def path_directories(environ: Mapping[str, str]) -> list[str]:
    """Directories listed in PATH, in order, empty entries dropped."""
    raw = env_lookup(environ, "PATH") or ""
    return [entry.strip().strip('"') for entry in raw.split(os.pathsep) if entry.strip().strip('"')]


def _directory_key(directory: str) -> str:
    return directory.replace("/", "\\").rstrip("\\").lower() or directory


class DependencyResolver:
    """Resolves dependency names to files using a fixed search order."""

    def __init__(
        self,
        search_paths: Sequence[str] | None = None,
        context: ResolverContext | None = None,
        environ: Mapping[str, str] | None = None,
        issues: list[StructuredError] | None = None,
    ):
        """
        Initialize resolver.

        Args:
            search_paths: Directories searched after the source directory
                (the SearchPathBuilder output, user paths first)
            context: Negative cache; a fresh one is created if None
            environ: Environment mapping (defaults to os.environ)
            issues: Collector for unresolved-dependency errors
        """
        self.search_paths = list(search_paths or ())
        self.context = context if context is not None else ResolverContext()
        self.environ = os.environ if environ is None else environ
        self.issues = issues if issues is not None else []

    def candidate_directories(
        self,
        source_path: str,
        extra_search_paths: Sequence[str] | None = None,
    ) -> list[str]:
        """
        Ordered, deduplicated directories searched for a dependency of source_path.

        Args:
            source_path: Binary that declares the dependency
            extra_search_paths: Replaces the configured search set when given

        Returns:
            Directories in search order; duplicates are compared
            case-insensitively and the first occurrence is kept
        """
        tiers = [
            [os.path.dirname(os.path.abspath(source_path))],
            list(extra_search_paths) if extra_search_paths is not None else self.search_paths,
            system_directories(self.environ),
            path_directories(self.environ),
        ]

        seen: set[str] = set()
        ordered: list[str] = []
        for tier in tiers:
            for directory in tier:
                key = _directory_key(directory)
                if key and key not in seen:
                    seen.add(key)
                    ordered.append(directory)
        return ordered

    def resolve(
        self,
        name: str,
        source_path: str,
        extra_search_paths: Sequence[str] | None = None,
    ) -> str | None:
        """
        Resolve a dependency name to an absolute file path.

        Pseudo-modules, and names already known to be missing from the same
        candidate directories, return None without touching the filesystem.

        Args:
            name: Module file name as declared by the source binary
            source_path: Binary that declares the dependency
            extra_search_paths: Replaces the configured search set when given

        Returns:
            Absolute path of the first match, or None
        """
        name = ntpath.basename(name)

        if self.context.is_pseudo_module(name):
            self.context.record_pseudo_module(name)
            logger.debug(f"Skipping pseudo-module {name}")
            return None

        directories = self.candidate_directories(source_path, extra_search_paths)
        if self.context.is_unresolved(name, directories):
            logger.debug(f"{name} already known to be missing")
            return None

        for directory in directories:
            candidate = os.path.join(directory, name)
            if os.path.isfile(candidate):
                resolved = os.path.abspath(candidate)
                logger.debug(f"Resolved {name} -> {resolved}")
                return resolved

        self.context.record_unresolved(name, directories)
        logger.warning(f"Could not resolve {name} (required by {source_path})")
        self.issues.append(
            create_dependency_unresolved_error(name, source_path, len(directories))
        )
        return None
