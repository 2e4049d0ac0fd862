"""
dumpbin text output parser.

Converts raw dumpbin output (/headers, /loadconfig, /dependents) into
structured Python objects. The parsers are line oriented with explicit
states so they can be tested against captured tool output without
invoking dumpbin.
"""

import re
from enum import Enum

from archscan.analysis.binary_types import HybridRange

# "            8664 machine (x64)"
# "            AA64 machine (ARM64) (ARM64X)"
_MACHINE_PATTERN = re.compile(
    r"^\s*([0-9A-Fa-f]+)\s+machine\s*(?:\(([^)]*)\))?", re.IGNORECASE
)

# "            8664 machine (x64) (ARM64EC)"
_HYBRID_LABEL_PATTERN = re.compile(r"\(ARM64(?:X|EC)\)", re.IGNORECASE)

DUMP_OF_FILE_MARKER = "Dump of file"

HYBRID_TABLE_MARKER = "Hybrid Code Address Range Table"
HYBRID_COLUMN_MARKER = "Address Range"

# "    arm64  0000000180001000 - 0000000180001FFF (00001000 - 00001FFF)"
_RANGE_ROW_PATTERN = re.compile(
    r"^\s*(\S+)\s+\S+\s*-\s*\S+\s*\(\s*([0-9A-Fa-f]+)\s*-\s*([0-9A-Fa-f]+)\s*\)\s*$"
)

DEPENDENCY_MARKERS = (
    "Image has the following dependencies",
    "Image has the following delay load dependencies",
)
SUMMARY_MARKER = "Summary"

MODULE_EXTENSIONS = ("dll", "exe", "sys", "drv", "ocx", "cpl", "efi", "mui", "ax", "tlb")

_MODULE_ROW_PATTERN = re.compile(
    r"^\s+(\S+\.(?:" + "|".join(MODULE_EXTENSIONS) + r"))\s*$", re.IGNORECASE
)


class _RangeTableState(Enum):
    BEFORE_TABLE = "before_table"
    BEFORE_COLUMNS = "before_columns"
    IN_ROWS = "in_rows"
    DONE = "done"


class _DependencyState(Enum):
    BEFORE_MARKER = "before_marker"
    IN_LIST = "in_list"
    DONE = "done"


class DumpbinOutputParser:
    """Static methods for parsing dumpbin text output."""

    @staticmethod
    def parse_machine(output: str) -> tuple[str, str | None] | None:
        """Find the first machine type line of '/headers' output.

        Handles formats like:
                        8664 machine (x64)
                        AA64 machine (ARM64) (ARM64X)

        Args:
            output: Raw text from 'dumpbin /headers'.

        Returns:
            (upper-cased hex machine code, machine label) or None when no
            machine line is present.
        """
        for line in output.splitlines():
            match = _MACHINE_PATTERN.match(line)
            if match:
                label = match.group(2).strip() if match.group(2) else None
                return match.group(1).upper(), label
        return None

    @staticmethod
    def has_hybrid_indicator(output: str) -> bool:
        """True when the dump labels the image as ARM64X or ARM64EC.

        Only the parenthesized machine label counts. The "Dump of file" line
        echoes the input path, which may contain either word.
        """
        for line in output.splitlines():
            if line.lstrip().startswith(DUMP_OF_FILE_MARKER):
                continue
            if _HYBRID_LABEL_PATTERN.search(line):
                return True
        return False

    @staticmethod
    def parse_hybrid_ranges(output: str) -> list[HybridRange]:
        """Parse the hybrid code address range table of '/loadconfig' output.

        Handles formats like:
            Hybrid Code Address Range Table

                  Address Range
                  ----------------------
                    arm64  0000000180001000 - 0000000180001FFF (00001000 - 00001FFF)
                    x64    0000000180002000 - 0000000180002FFF (00002000 - 00002FFF)

        Rows are only accepted after both the table marker and the column
        marker have been seen. The first blank line after that ends the
        table; anything the tool prints afterwards is ignored.

        Args:
            output: Raw text from 'dumpbin /loadconfig'.

        Returns:
            List of HybridRange rows in table order, names lower-cased.

        Raises:
            ValueError: If a row's end address precedes its start address.
        """
        ranges: list[HybridRange] = []
        state = _RangeTableState.BEFORE_TABLE

        for line in output.splitlines():
            stripped = line.strip()

            if state == _RangeTableState.BEFORE_TABLE:
                if HYBRID_TABLE_MARKER.lower() in stripped.lower():
                    state = _RangeTableState.BEFORE_COLUMNS
                continue

            if state == _RangeTableState.BEFORE_COLUMNS:
                if stripped.lower() == HYBRID_COLUMN_MARKER.lower():
                    state = _RangeTableState.IN_ROWS
                continue

            if not stripped:
                state = _RangeTableState.DONE
                break

            match = _RANGE_ROW_PATTERN.match(line)
            if not match:
                continue

            start = int(match.group(2), 16)
            end = int(match.group(3), 16)
            if end < start:
                raise ValueError(
                    f"Inverted {match.group(1)} range: {start:#x} - {end:#x}"
                )
            ranges.append(HybridRange(arch=match.group(1).lower(), start=start, end=end))

        return ranges

    @staticmethod
    def parse_dependents(output: str) -> list[str]:
        """Parse '/dependents' output into module names.

        Handles formats like:
              Image has the following dependencies:

                KERNEL32.dll
                VCRUNTIME140.dll

              Image has the following delay load dependencies:

                USER32.dll

              Summary

        A blank line only closes a dependency list once at least one name
        was captured, so the blank line right after the marker is skipped.
        The summary marker ends parsing altogether.

        Args:
            output: Raw text from 'dumpbin /dependents'.

        Returns:
            Module names in tool order, without directories, duplicates
            (compared case-insensitively) dropped.
        """
        names: list[str] = []
        seen: set[str] = set()
        state = _DependencyState.BEFORE_MARKER
        captured_in_section = 0

        for line in output.splitlines():
            stripped = line.strip()

            if stripped == SUMMARY_MARKER:
                state = _DependencyState.DONE
                break

            if any(stripped.startswith(marker) for marker in DEPENDENCY_MARKERS):
                state = _DependencyState.IN_LIST
                captured_in_section = 0
                continue

            if state != _DependencyState.IN_LIST:
                continue

            if not stripped:
                if captured_in_section:
                    state = _DependencyState.BEFORE_MARKER
                continue

            match = _MODULE_ROW_PATTERN.match(line)
            if not match:
                continue

            name = re.split(r"[\\/]", match.group(1))[-1]
            captured_in_section += 1
            if name.lower() not in seen:
                seen.add(name.lower())
                names.append(name)

        return names
