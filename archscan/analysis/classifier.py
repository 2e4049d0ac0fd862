"""
Architecture classification from header dumps.

The hybrid indicator always wins: ARM64X and ARM64EC images also report a
legacy machine type, which must not override the hybrid signal.
"""

import logging

from archscan.analysis.binary_types import ArchClass, HostArch
from archscan.engines.base import MetadataSource
from archscan.engines.dumpbin.output_parser import DumpbinOutputParser
from archscan.utils.structured_errors import (
    StructuredBaseError,
    StructuredError,
    create_classification_failed_error,
    error_summary,
)

logger = logging.getLogger(__name__)

# IMAGE_FILE_MACHINE_* codes as printed by dumpbin (upper-case hex)
MACHINE_TYPES = {
    "8664": "x64",
    "14C": "x86",
    "AA64": "arm64",
    "1C0": "arm",
    "1C2": "arm",
    "1C4": "arm",
    "A641": "arm64ec",
    "A64E": "arm64x",
}

# Machine codes that only hybrid images carry
HYBRID_MACHINE_CODES = frozenset({"A641", "A64E"})

# Single-architecture machines that execute natively on each host
_NATIVE_MACHINES = {
    HostArch.ARM64: "arm64",
    HostArch.X64: "x64",
}


def classify_machine(machine: str | None, host: HostArch) -> ArchClass:
    """Classify a single-architecture machine name relative to the host."""
    if machine is None:
        return ArchClass.UNKNOWN
    if machine in ("arm64ec", "arm64x"):
        return ArchClass.HYBRID
    if machine == _NATIVE_MACHINES.get(host):
        return ArchClass.NATIVE
    if machine in ("x64", "x86", "arm64", "arm"):
        return ArchClass.FOREIGN_SINGLE_ARCH
    return ArchClass.UNKNOWN


def classify(header_dump: str, host: HostArch) -> ArchClass:
    """
    Classify a binary from its header dump.

    Args:
        header_dump: Raw 'dumpbin /headers' text
        host: Architecture of the machine running the analysis

    Returns:
        HYBRID if a hybrid indicator appears anywhere, otherwise the mapping
        of the machine type line, UNKNOWN when the code is unrecognized or
        no machine line exists
    """
    machine = DumpbinOutputParser.parse_machine(header_dump)

    if DumpbinOutputParser.has_hybrid_indicator(header_dump):
        return ArchClass.HYBRID
    if machine is None:
        return ArchClass.UNKNOWN

    code, _label = machine
    if code in HYBRID_MACHINE_CODES:
        return ArchClass.HYBRID
    return classify_machine(MACHINE_TYPES.get(code), host)


def machine_name(header_dump: str) -> str | None:
    """Short machine name (x64, arm64, ...) of a header dump, None if unknown."""
    machine = DumpbinOutputParser.parse_machine(header_dump)
    if machine is None:
        return None
    code, label = machine
    return MACHINE_TYPES.get(code, label)


class ArchitectureClassifier:
    """Classifies binaries on disk through a metadata source.

    Tool failures and malformed output never propagate: the binary is
    classified as ERROR and a StructuredError is appended to ``issues``.
    """

    def __init__(
        self,
        source: MetadataSource,
        host: HostArch,
        issues: list[StructuredError] | None = None,
    ):
        self.source = source
        self.host = host
        self.issues = issues if issues is not None else []

    def classify_file(self, binary_path: str) -> tuple[ArchClass, str | None]:
        """
        Classify one binary.

        Args:
            binary_path: Path to the binary

        Returns:
            (classification, machine name or None)
        """
        try:
            header_dump = self.source.headers(binary_path)
            if not header_dump.strip():
                raise ValueError("dumpbin produced no header output")
            arch_class = classify(header_dump, self.host)
            machine = machine_name(header_dump)
        except (StructuredBaseError, ValueError, OSError) as e:
            cause = error_summary(e)
            logger.error(f"Classification failed for {binary_path}: {cause}")
            self.issues.append(create_classification_failed_error(binary_path, cause))
            return ArchClass.ERROR, None

        logger.debug(f"{binary_path}: {arch_class.value} ({machine})")
        return arch_class, machine
