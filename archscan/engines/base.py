"""
Base interface for binary metadata sources.

A metadata source turns a file path into the raw text dumps the analysis
parsers consume. The analysis layer only depends on this interface, so the
extraction tool can be swapped or faked in tests.
"""

from abc import ABC, abstractmethod
from typing import Any


class MetadataSource(ABC):
    """Base class for tools that dump PE metadata as text."""

    @abstractmethod
    def headers(self, binary_path: str) -> str:
        """
        Dump the file and optional headers of a binary.

        Args:
            binary_path: Path to the binary

        Returns:
            Header dump text containing the machine type line

        Raises:
            StructuredBaseError: If the tool fails on this file
        """
        pass

    @abstractmethod
    def load_config(self, binary_path: str) -> str:
        """
        Dump the load configuration directory of a binary.

        For hybrid images this includes the hybrid code address range table.

        Args:
            binary_path: Path to the binary

        Returns:
            Load configuration dump text

        Raises:
            StructuredBaseError: If the tool fails on this file
        """
        pass

    @abstractmethod
    def dependents(self, binary_path: str) -> str:
        """
        Dump the statically declared module dependencies of a binary.

        Args:
            binary_path: Path to the binary

        Returns:
            Dependency listing text

        Raises:
            StructuredBaseError: If the tool fails on this file
        """
        pass

    @abstractmethod
    def diagnose(self) -> dict[str, Any]:
        """
        Run diagnostics on the tool installation.

        Returns:
            Dictionary with installation status and configuration
        """
        pass
