"""
Tests for native / non-native code size computation.
"""

from archscan.analysis.binary_types import ArchClass, HostArch, HybridRange
from archscan.analysis.code_ranges import (
    CodeRangeAnalyzer,
    split_hybrid_ranges,
    whole_file_ranges,
)
from archscan.utils.structured_errors import ErrorCode


class TestSplitHybridRanges:
    def test_half_native_on_arm64(self):
        ranges = [
            HybridRange("arm64", 0x1000, 0x1FFF),
            HybridRange("x64", 0x2000, 0x2FFF),
        ]

        result = split_hybrid_ranges(ranges, HostArch.ARM64)

        assert result.native_bytes == 4096
        assert result.non_native_bytes == 4096
        assert result.native_percentage == 50.0

    def test_arm64ec_is_native_on_arm64(self):
        ranges = [
            HybridRange("arm64ec", 0x1000, 0x1FFF),
            HybridRange("arm64", 0x3000, 0x3FFF),
        ]

        result = split_hybrid_ranges(ranges, HostArch.ARM64)

        assert result.native_bytes == 8192
        assert result.non_native_bytes == 0
        assert result.native_percentage == 100.0

    def test_x64_host(self):
        ranges = [
            HybridRange("arm64ec", 0x1000, 0x1FFF),
            HybridRange("x64", 0x2000, 0x2FFF),
        ]

        result = split_hybrid_ranges(ranges, HostArch.X64)

        assert result.native_bytes == 4096
        assert result.non_native_bytes == 4096

    def test_unrecognized_arch_ignored(self):
        ranges = [
            HybridRange("arm64", 0x1000, 0x1FFF),
            HybridRange("chpe", 0x2000, 0x8FFF),
        ]

        result = split_hybrid_ranges(ranges, HostArch.ARM64)

        assert result.total_bytes == 4096
        assert "chpe" not in result.arch_sizes

    def test_arch_sizes_summed(self):
        ranges = [
            HybridRange("x64", 0x1000, 0x10FF),
            HybridRange("x64", 0x3000, 0x30FF),
        ]

        result = split_hybrid_ranges(ranges, HostArch.ARM64)

        assert result.arch_sizes == {"arm64": 0, "arm64ec": 0, "x64": 0x200}

    def test_percentage_rounded(self):
        ranges = [
            HybridRange("arm64", 0, 0),
            HybridRange("x64", 1, 2),
        ]

        assert split_hybrid_ranges(ranges, HostArch.ARM64).native_percentage == 33.33

    def test_no_ranges(self):
        result = split_hybrid_ranges([], HostArch.ARM64)

        assert result.total_bytes == 0
        assert result.native_percentage == 0.0

    def test_unknown_host_counts_everything_non_native(self):
        ranges = [HybridRange("arm64", 0x1000, 0x1FFF)]

        result = split_hybrid_ranges(ranges, HostArch.UNKNOWN)

        assert result.native_bytes == 0
        assert result.non_native_bytes == 4096


class TestWholeFileRanges:
    def test_native(self):
        result = whole_file_ranges(ArchClass.NATIVE, 5000)
        assert (result.native_bytes, result.non_native_bytes, result.native_percentage) == (5000, 0, 100.0)

    def test_foreign(self):
        result = whole_file_ranges(ArchClass.FOREIGN_SINGLE_ARCH, 5000)
        assert (result.native_bytes, result.non_native_bytes, result.native_percentage) == (0, 5000, 0.0)

    def test_unknown_and_error_are_zero(self):
        assert whole_file_ranges(ArchClass.UNKNOWN, 5000).total_bytes == 0
        assert whole_file_ranges(ArchClass.ERROR, 5000).total_bytes == 0


class TestCodeRangeAnalyzer:
    def test_hybrid_uses_load_config(self, make_source, load_config):
        source = make_source(
            load_configs={"app.dll": load_config(("arm64", 0x1000, 0x1FFF), ("x64", 0x2000, 0x2FFF))}
        )
        analyzer = CodeRangeAnalyzer(source, HostArch.ARM64)

        result = analyzer.analyze("C:/app/app.dll", ArchClass.HYBRID, file_size=1 << 20)

        assert result.native_bytes == 4096
        assert result.non_native_bytes == 4096
        assert source.calls == [("loadconfig", "app.dll")]

    def test_ranges_larger_than_file_reported(self, make_source, load_config):
        source = make_source(load_configs={"app.dll": load_config(("x64", 0x1000, 0x1FFF))})
        analyzer = CodeRangeAnalyzer(source, HostArch.ARM64)

        result = analyzer.analyze("C:/app/app.dll", ArchClass.HYBRID, file_size=10)

        assert result.non_native_bytes == 4096
        assert [issue.error for issue in analyzer.issues] == [ErrorCode.RANGE_SIZE_MISMATCH]
        assert analyzer.issues[0].debug_info["range_bytes"] == 4096
        assert analyzer.issues[0].debug_info["file_size"] == 10

    def test_ranges_within_file_not_reported(self, make_source, load_config):
        source = make_source(load_configs={"app.dll": load_config(("x64", 0x1000, 0x1FFF))})
        analyzer = CodeRangeAnalyzer(source, HostArch.ARM64)

        analyzer.analyze("C:/app/app.dll", ArchClass.HYBRID, file_size=4096)

        assert analyzer.issues == []

    def test_hybrid_file_size_read_from_disk(self, make_source, load_config, tmp_path):
        binary = tmp_path / "app.dll"
        binary.write_bytes(b"\0" * 100)
        source = make_source(load_configs={"app.dll": load_config(("arm64", 0x1000, 0x10FF))})
        analyzer = CodeRangeAnalyzer(source, HostArch.ARM64)

        result = analyzer.analyze(str(binary), ArchClass.HYBRID)

        assert result.native_bytes == 0x100
        assert analyzer.issues[0].debug_info["file_size"] == 100

    def test_inverted_range_reported(self, make_source, load_config):
        source = make_source(load_configs={"bad.dll": load_config(("x64", 0x2000, 0x1000))})
        issues = []

        result = CodeRangeAnalyzer(source, HostArch.ARM64, issues).analyze(
            "C:/app/bad.dll", ArchClass.HYBRID, file_size=100
        )

        assert result.total_bytes == 0
        assert result.native_percentage == 0.0
        assert [issue.error for issue in issues] == [ErrorCode.RANGE_PARSE_FAILED]

    def test_tool_failure_reported(self, make_source):
        source = make_source(failing=["bad.dll"])
        analyzer = CodeRangeAnalyzer(source, HostArch.ARM64)

        result = analyzer.analyze("C:/app/bad.dll", ArchClass.HYBRID, file_size=100)

        assert result.total_bytes == 0
        assert analyzer.issues[0].error == ErrorCode.RANGE_PARSE_FAILED

    def test_missing_table_is_zero_without_issue(self, make_source):
        analyzer = CodeRangeAnalyzer(make_source(load_configs={"a.dll": "  Summary\n"}), HostArch.ARM64)

        result = analyzer.analyze("C:/app/a.dll", ArchClass.HYBRID, file_size=100)

        assert result.total_bytes == 0
        assert analyzer.issues == []

    def test_undetermined_classes_skip_tool(self, make_source):
        source = make_source()
        analyzer = CodeRangeAnalyzer(source, HostArch.ARM64)

        assert analyzer.analyze("C:/app/a.dll", ArchClass.UNKNOWN, 100).total_bytes == 0
        assert analyzer.analyze("C:/app/a.dll", ArchClass.ERROR, 100).total_bytes == 0
        assert source.calls == []

    def test_file_size_read_from_disk(self, make_source, tmp_path):
        binary = tmp_path / "native.dll"
        binary.write_bytes(b"\0" * 777)

        result = CodeRangeAnalyzer(make_source(), HostArch.ARM64).analyze(
            str(binary), ArchClass.NATIVE
        )

        assert result.native_bytes == 777
