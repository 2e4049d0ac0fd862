"""
Data classes for architecture and dependency analysis.

Typed representations of a binary's architecture classification, its
native/non-native code split, and the aggregate statistics of a dependency
traversal. All records are plain data; no formatting is applied here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ArchClass(Enum):
    """Architecture classification of a binary relative to the host."""

    NATIVE = "native"
    FOREIGN_SINGLE_ARCH = "foreign_single_arch"
    HYBRID = "hybrid"
    UNKNOWN = "unknown"
    ERROR = "error"


class HostArch(Enum):
    """Processor architecture of the machine running the analysis."""

    ARM64 = "ARM64"
    X64 = "X64"
    X86 = "X86"
    UNKNOWN = "UNKNOWN"

    @staticmethod
    def from_identifier(value: str | None) -> "HostArch":
        """Map an OS or platform architecture identifier to a HostArch.

        Accepts the values of PROCESSOR_ARCHITECTURE (AMD64, ARM64, x86),
        platform.machine() (x86_64, aarch64, i686) and the enum names.
        """
        if not value:
            return HostArch.UNKNOWN
        return _HOST_ALIASES.get(value.strip().lower(), HostArch.UNKNOWN)


_HOST_ALIASES = {
    "arm64": HostArch.ARM64,
    "aarch64": HostArch.ARM64,
    "armv8": HostArch.ARM64,
    "x64": HostArch.X64,
    "amd64": HostArch.X64,
    "x86_64": HostArch.X64,
    "x86": HostArch.X86,
    "i386": HostArch.X86,
    "i686": HostArch.X86,
}


def native_percentage(native_bytes: int, total_bytes: int) -> float:
    """Native share of total_bytes as a percentage rounded to 2 places, 0 when empty."""
    if total_bytes <= 0:
        return 0.0
    return round(native_bytes / total_bytes * 100, 2)


@dataclass(frozen=True)
class HybridRange:
    """One row of a hybrid image's code address range table.

    Both bounds are inclusive.
    """

    arch: str
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class CodeRanges:
    """Native versus non-native byte split of one binary."""

    native_bytes: int = 0
    non_native_bytes: int = 0
    native_percentage: float = 0.0
    arch_sizes: dict[str, int] = field(default_factory=dict, compare=False)

    @property
    def total_bytes(self) -> int:
        return self.native_bytes + self.non_native_bytes


@dataclass(frozen=True)
class BinaryRecord:
    """Classification and code split of one uniquely resolved binary."""

    path: str
    name: str
    classification: ArchClass
    native_bytes: int
    non_native_bytes: int
    file_size: int
    depth: int
    machine: str | None = None
    native_percentage: float = 0.0

    @property
    def key(self) -> str:
        """Deduplication key: the lower-cased absolute path."""
        return self.path.lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "classification": self.classification.value,
            "machine": self.machine,
            "native_bytes": self.native_bytes,
            "non_native_bytes": self.non_native_bytes,
            "file_size": self.file_size,
            "native_percentage": self.native_percentage,
            "depth": self.depth,
        }


@dataclass
class TraversalStats:
    """Aggregate counts and sizes over a set of BinaryRecords.

    Binaries are bucketed by native percentage: exactly 100 is fully native,
    strictly between 0 and 100 is partial, exactly 0 is non-native.
    """

    binary_count: int = 0
    fully_native: int = 0
    partial: int = 0
    non_native: int = 0
    total_size: int = 0
    native_size: int = 0
    non_native_size: int = 0

    @property
    def native_percentage(self) -> float:
        return native_percentage(self.native_size, self.native_size + self.non_native_size)

    def add(self, record: BinaryRecord) -> None:
        self.binary_count += 1
        self.total_size += record.file_size
        self.native_size += record.native_bytes
        self.non_native_size += record.non_native_bytes

        if record.native_percentage >= 100:
            self.fully_native += 1
        elif record.native_percentage > 0:
            self.partial += 1
        else:
            self.non_native += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "binary_count": self.binary_count,
            "fully_native": self.fully_native,
            "partial": self.partial,
            "non_native": self.non_native,
            "total_size": self.total_size,
            "native_size": self.native_size,
            "non_native_size": self.non_native_size,
            "native_percentage": self.native_percentage,
        }
