"""
Native versus non-native code size computation.

Single-architecture binaries are counted whole: the entire file is native
or non-native. Hybrid binaries are measured from their hybrid code address
range table, so only code ranges contribute, never the file size.
"""

import logging
import os

from archscan.analysis.binary_types import (
    ArchClass,
    CodeRanges,
    HostArch,
    HybridRange,
    native_percentage,
)
from archscan.engines.base import MetadataSource
from archscan.engines.dumpbin.output_parser import DumpbinOutputParser
from archscan.utils.structured_errors import (
    StructuredBaseError,
    StructuredError,
    create_range_parse_failed_error,
    create_range_size_mismatch_error,
    error_summary,
)

logger = logging.getLogger(__name__)

RECOGNIZED_RANGE_ARCHS = ("arm64", "arm64ec", "x64")

# Range architectures that execute without emulation on each host
NATIVE_RANGE_ARCHS = {
    HostArch.ARM64: frozenset({"arm64", "arm64ec"}),
    HostArch.X64: frozenset({"x64"}),
}


def split_hybrid_ranges(ranges: list[HybridRange], host: HostArch) -> CodeRanges:
    """
    Split recognized hybrid ranges into native and non-native bytes.

    Args:
        ranges: Rows of the hybrid code address range table
        host: Architecture of the machine running the analysis

    Returns:
        CodeRanges whose native and non-native sizes sum to the total of
        all arm64, arm64ec and x64 ranges
    """
    arch_sizes = {arch: 0 for arch in RECOGNIZED_RANGE_ARCHS}
    for row in ranges:
        if row.arch in arch_sizes:
            arch_sizes[row.arch] += row.size

    native_archs = NATIVE_RANGE_ARCHS.get(host, frozenset())
    total = sum(arch_sizes.values())
    native = sum(size for arch, size in arch_sizes.items() if arch in native_archs)

    return CodeRanges(
        native_bytes=native,
        non_native_bytes=total - native,
        native_percentage=native_percentage(native, total),
        arch_sizes=arch_sizes,
    )


def whole_file_ranges(arch_class: ArchClass, file_size: int) -> CodeRanges:
    """Code split of a non-hybrid binary: all native, all foreign or undetermined."""
    if arch_class == ArchClass.NATIVE:
        return CodeRanges(native_bytes=file_size, non_native_bytes=0, native_percentage=100.0)
    if arch_class == ArchClass.FOREIGN_SINGLE_ARCH:
        return CodeRanges(native_bytes=0, non_native_bytes=file_size, native_percentage=0.0)
    # UNKNOWN and ERROR mean "could not determine", not "non-native"
    return CodeRanges()


class CodeRangeAnalyzer:
    """Computes the native / non-native byte split of classified binaries."""

    def __init__(
        self,
        source: MetadataSource,
        host: HostArch,
        issues: list[StructuredError] | None = None,
    ):
        self.source = source
        self.host = host
        self.issues = issues if issues is not None else []

    def analyze(
        self,
        binary_path: str,
        arch_class: ArchClass,
        file_size: int | None = None,
    ) -> CodeRanges:
        """
        Compute the code split of one binary.

        Args:
            binary_path: Path to the binary
            arch_class: Classification produced by the classifier
            file_size: File size in bytes (read from disk when None)

        Returns:
            CodeRanges; all zero when the split could not be determined
        """
        try:
            if arch_class == ArchClass.HYBRID:
                load_config = self.source.load_config(binary_path)
                ranges = DumpbinOutputParser.parse_hybrid_ranges(load_config)
                if not ranges:
                    logger.warning(f"No hybrid code ranges found in {binary_path}")
                result = split_hybrid_ranges(ranges, self.host)

                if file_size is None:
                    file_size = os.path.getsize(binary_path)
                if result.total_bytes > file_size:
                    logger.warning(
                        f"Hybrid code ranges of {binary_path} cover {result.total_bytes} bytes, "
                        f"more than its {file_size} byte file size"
                    )
                    self.issues.append(
                        create_range_size_mismatch_error(binary_path, result.total_bytes, file_size)
                    )
                return result

            if arch_class in (ArchClass.UNKNOWN, ArchClass.ERROR):
                return CodeRanges()

            if file_size is None:
                file_size = os.path.getsize(binary_path)
            return whole_file_ranges(arch_class, file_size)

        except (StructuredBaseError, ValueError, OSError) as e:
            cause = error_summary(e)
            logger.error(f"Code range analysis failed for {binary_path}: {cause}")
            self.issues.append(create_range_parse_failed_error(binary_path, cause))
            return CodeRanges()
