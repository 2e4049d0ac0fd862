"""
Tests for dumpbin output parser.

Uses hardcoded dumpbin output as fixtures; no Visual Studio installation required.
"""

import pytest

from archscan.analysis.binary_types import HybridRange
from archscan.engines.dumpbin.output_parser import DumpbinOutputParser

# ---------------------------------------------------------------------------
# Fixtures: representative dumpbin text output
# ---------------------------------------------------------------------------

HEADERS_OUTPUT = (
    "Dump of file C:\\Program Files\\Contoso\\app.exe\n"
    "\n"
    "PE signature found\n"
    "\n"
    "File Type: EXECUTABLE IMAGE\n"
    "\n"
    "FILE HEADER VALUES\n"
    "            8664 machine (x64)\n"
    "               7 number of sections\n"
    "        6512A0B4 time date stamp\n"
    "\n"
    "OPTIONAL HEADER VALUES\n"
    "             20B magic # (PE32+)\n"
)

ARM64X_HEADERS_OUTPUT = (
    "FILE HEADER VALUES\n"
    "            AA64 machine (ARM64) (ARM64X)\n"
    "               8 number of sections\n"
)

LOADCONFIG_OUTPUT = (
    "  Section contains the following load config:\n"
    "\n"
    "            00000140 size\n"
    "    Hybrid Code Address Range Table\n"
    "\n"
    "          Address Range\n"
    "          ----------------------\n"
    "            arm64  0000000180001000 - 0000000180001FFF (00001000 - 00001FFF)\n"
    "            x64    0000000180002000 - 0000000180002FFF (00002000 - 00002FFF)\n"
    "\n"
    "            x64    0000000180009000 - 000000018000FFFF (00009000 - 0000FFFF)\n"
    "  Summary\n"
)

DEPENDENTS_OUTPUT = (
    "Dump of file app.exe\n"
    "\n"
    "File Type: EXECUTABLE IMAGE\n"
    "\n"
    "  Image has the following dependencies:\n"
    "\n"
    "    KERNEL32.dll\n"
    "    VCRUNTIME140.dll\n"
    "    api-ms-win-crt-runtime-l1-1-0.dll\n"
    "\n"
    "  Image has the following delay load dependencies:\n"
    "\n"
    "    USER32.dll\n"
    "    kernel32.DLL\n"
    "\n"
    "  Summary\n"
    "\n"
    "        1000 .data\n"
    "        A000 .rdata\n"
)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestParseMachine:
    def test_basic(self):
        assert DumpbinOutputParser.parse_machine(HEADERS_OUTPUT) == ("8664", "x64")

    def test_code_is_upper_cased(self):
        output = "            aa64 machine (ARM64)\n"
        assert DumpbinOutputParser.parse_machine(output) == ("AA64", "ARM64")

    def test_first_label_only(self):
        assert DumpbinOutputParser.parse_machine(ARM64X_HEADERS_OUTPUT) == ("AA64", "ARM64")

    def test_no_machine_line(self):
        assert DumpbinOutputParser.parse_machine("File Type: DLL\n") is None

    def test_empty_input(self):
        assert DumpbinOutputParser.parse_machine("") is None


class TestHybridIndicator:
    def test_arm64x(self):
        assert DumpbinOutputParser.has_hybrid_indicator(ARM64X_HEADERS_OUTPUT)

    def test_arm64ec(self):
        assert DumpbinOutputParser.has_hybrid_indicator("  8664 machine (x64) (ARM64EC)\n")

    def test_plain_arm64_is_not_hybrid(self):
        assert not DumpbinOutputParser.has_hybrid_indicator("  AA64 machine (ARM64)\n")

    def test_path_naming_hybrid_build_is_ignored(self):
        output = (
            "Dump of file C:\\src\\out\\ARM64EC\\Release\\plain.dll\n"
            "\n"
            "FILE HEADER VALUES\n"
            "            AA64 machine (ARM64)\n"
        )
        assert not DumpbinOutputParser.has_hybrid_indicator(output)

    def test_unparenthesized_word_is_ignored(self):
        assert not DumpbinOutputParser.has_hybrid_indicator("  Built for ARM64X targets\n")

    def test_x64(self):
        assert not DumpbinOutputParser.has_hybrid_indicator(HEADERS_OUTPUT)


class TestParseHybridRanges:
    def test_basic(self):
        ranges = DumpbinOutputParser.parse_hybrid_ranges(LOADCONFIG_OUTPUT)
        assert ranges == [
            HybridRange(arch="arm64", start=0x1000, end=0x1FFF),
            HybridRange(arch="x64", start=0x2000, end=0x2FFF),
        ]

    def test_sizes_are_inclusive(self):
        ranges = DumpbinOutputParser.parse_hybrid_ranges(LOADCONFIG_OUTPUT)
        assert [r.size for r in ranges] == [4096, 4096]

    def test_stops_at_first_blank_line(self):
        ranges = DumpbinOutputParser.parse_hybrid_ranges(LOADCONFIG_OUTPUT)
        assert all(r.start != 0x9000 for r in ranges)

    def test_rows_before_markers_are_ignored(self):
        output = (
            "            arm64  0000000180001000 - 0000000180001FFF (00001000 - 00001FFF)\n"
            + LOADCONFIG_OUTPUT
        )
        assert len(DumpbinOutputParser.parse_hybrid_ranges(output)) == 2

    def test_requires_column_marker(self):
        output = (
            "    Hybrid Code Address Range Table\n"
            "            arm64  0000000180001000 - 0000000180001FFF (00001000 - 00001FFF)\n"
        )
        assert DumpbinOutputParser.parse_hybrid_ranges(output) == []

    def test_no_table(self):
        assert DumpbinOutputParser.parse_hybrid_ranges("  Summary\n") == []

    def test_arch_names_lower_cased(self):
        output = (
            "Hybrid Code Address Range Table\n"
            "Address Range\n"
            "  ARM64EC  0000000180001000 - 000000018000100F (00001000 - 0000100F)\n"
        )
        ranges = DumpbinOutputParser.parse_hybrid_ranges(output)
        assert ranges == [HybridRange(arch="arm64ec", start=0x1000, end=0x100F)]

    def test_64_bit_offsets(self):
        output = (
            "Hybrid Code Address Range Table\n"
            "Address Range\n"
            "  x64  0 - 0 (100000000 - 1FFFFFFFF)\n"
        )
        ranges = DumpbinOutputParser.parse_hybrid_ranges(output)
        assert ranges[0].size == 0x100000000

    def test_inverted_range_raises(self):
        output = (
            "Hybrid Code Address Range Table\n"
            "Address Range\n"
            "  x64  0 - 0 (00002000 - 00001000)\n"
        )
        with pytest.raises(ValueError):
            DumpbinOutputParser.parse_hybrid_ranges(output)


class TestParseDependents:
    def test_basic(self):
        names = DumpbinOutputParser.parse_dependents(DEPENDENTS_OUTPUT)
        assert names[:3] == [
            "KERNEL32.dll",
            "VCRUNTIME140.dll",
            "api-ms-win-crt-runtime-l1-1-0.dll",
        ]

    def test_delay_load_section(self):
        names = DumpbinOutputParser.parse_dependents(DEPENDENTS_OUTPUT)
        assert "USER32.dll" in names

    def test_duplicates_dropped_case_insensitively(self):
        names = DumpbinOutputParser.parse_dependents(DEPENDENTS_OUTPUT)
        assert [n.lower() for n in names].count("kernel32.dll") == 1
        assert len(names) == 4

    def test_blank_line_after_marker_does_not_stop(self):
        output = (
            "  Image has the following dependencies:\n"
            "\n"
            "\n"
            "    KERNEL32.dll\n"
        )
        assert DumpbinOutputParser.parse_dependents(output) == ["KERNEL32.dll"]

    def test_blank_line_ends_list(self):
        output = (
            "  Image has the following dependencies:\n"
            "\n"
            "    KERNEL32.dll\n"
            "\n"
            "    stray.dll\n"
        )
        assert DumpbinOutputParser.parse_dependents(output) == ["KERNEL32.dll"]

    def test_summary_ends_parsing(self):
        output = (
            "  Image has the following dependencies:\n"
            "    KERNEL32.dll\n"
            "  Summary\n"
            "    after.dll\n"
        )
        assert DumpbinOutputParser.parse_dependents(output) == ["KERNEL32.dll"]

    def test_no_marker(self):
        assert DumpbinOutputParser.parse_dependents("    KERNEL32.dll\n") == []

    def test_non_module_lines_ignored(self):
        output = (
            "  Image has the following dependencies:\n"
            "\n"
            "    KERNEL32.dll\n"
            "    not a module\n"
            "    driver.sys\n"
        )
        assert DumpbinOutputParser.parse_dependents(output) == ["KERNEL32.dll", "driver.sys"]

    def test_directory_component_stripped(self):
        output = (
            "  Image has the following dependencies:\n"
            "    C:\\libs\\zlib1.dll\n"
        )
        assert DumpbinOutputParser.parse_dependents(output) == ["zlib1.dll"]

    def test_empty_input(self):
        assert DumpbinOutputParser.parse_dependents("") == []
