"""Declared dependency listing."""

import logging

from archscan.engines.base import MetadataSource
from archscan.engines.dumpbin.output_parser import DumpbinOutputParser
from archscan.utils.structured_errors import (
    StructuredBaseError,
    StructuredError,
    create_dependency_list_failed_error,
    error_summary,
)

logger = logging.getLogger(__name__)


class DependencyExtractor:
    """Lists the modules a binary declares as load-time dependencies."""

    def __init__(
        self,
        source: MetadataSource,
        issues: list[StructuredError] | None = None,
    ):
        self.source = source
        self.issues = issues if issues is not None else []

    def list_dependencies(self, binary_path: str) -> list[str]:
        """
        List the declared dependency module names of a binary.

        Args:
            binary_path: Path to the binary

        Returns:
            Module file names in tool order; empty if none or if the
            listing failed
        """
        try:
            names = DumpbinOutputParser.parse_dependents(self.source.dependents(binary_path))
        except (StructuredBaseError, ValueError, OSError) as e:
            cause = error_summary(e)
            logger.error(f"Dependency listing failed for {binary_path}: {cause}")
            self.issues.append(create_dependency_list_failed_error(binary_path, cause))
            return []

        logger.debug(f"{binary_path}: {len(names)} declared dependencies")
        return names
