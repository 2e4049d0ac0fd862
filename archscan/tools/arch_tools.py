"""
Native code coverage tools.

Exposes the scanner to MCP clients:
- Whole dependency graph scan with per-depth statistics
- Single binary classification
- Setup diagnostics
"""

import json
import logging

from archscan.analysis.binary_types import HostArch
from archscan.analysis.host import detect_host_arch
from archscan.analysis.resolver import ResolverContext
from archscan.engines.dumpbin.runner import DumpbinRunner
from archscan.scan import default_max_depth, scan_binary
from archscan.utils.config import get_config_status, list_config_keys
from archscan.utils.structured_errors import (
    StructuredBaseError,
    ToolUnavailableError,
    create_parameter_error,
)

logger = logging.getLogger(__name__)


def _parse_host(host_arch: str | None) -> HostArch | None:
    if not host_arch:
        return None
    host = HostArch.from_identifier(host_arch)
    if host == HostArch.UNKNOWN:
        raise StructuredBaseError(
            create_parameter_error(
                "host_arch", host_arch, "a host architecture name", ["ARM64", "X64", "X86"]
            )
        )
    return host


def register_arch_tools(app):
    """
    Register native coverage tools with the MCP app.

    Every call scans with its own ResolverContext, so a module missing
    from one application never hides it from another.

    Args:
        app: FastMCP application instance
    """

    @app.tool()
    def analyze_native_coverage(
        binary_path: str,
        recursive: bool = True,
        max_depth: int | None = None,
        search_paths: list[str] | None = None,
        host_arch: str | None = None,
    ) -> str:
        """
        Measure how much of a binary and its dependencies runs natively.

        Classifies every uniquely resolved binary as native, foreign
        single-architecture, hybrid (ARM64X / ARM64EC), unknown or error,
        and reports native versus emulated byte counts per depth level and
        overall.

        Args:
            binary_path: Path to the root executable
            recursive: Follow static dependencies (default True)
            max_depth: Dependency depth bound (default from ARCHSCAN_MAX_DEPTH)
            search_paths: Extra directories to search for dependencies
            host_arch: Override the host architecture (ARM64, X64, X86)

        Returns:
            JSON with records, depth_stats, overall, unresolved and issues

        Example:
            analyze_native_coverage("C:/Program Files/App/app.exe", max_depth=2)
        """
        try:
            if max_depth is not None and max_depth < 0:
                raise StructuredBaseError(
                    create_parameter_error("max_depth", max_depth, "an integer >= 0")
                )
            result = scan_binary(
                binary_path,
                recursive=recursive,
                max_depth=max_depth,
                search_paths=search_paths,
                host=_parse_host(host_arch),
                context=ResolverContext(),
            )
            return json.dumps(result.to_dict(), indent=2)
        except StructuredBaseError as e:
            logger.error(f"analyze_native_coverage failed: {e.structured_error.message}")
            return e.to_json()

    @app.tool()
    def classify_binary(binary_path: str, host_arch: str | None = None) -> str:
        """
        Classify a single binary without following its dependencies.

        Args:
            binary_path: Path to the binary
            host_arch: Override the host architecture (ARM64, X64, X86)

        Returns:
            JSON record with classification, machine and byte counts

        Example:
            classify_binary("C:/Windows/System32/notepad.exe")
        """
        try:
            result = scan_binary(
                binary_path,
                recursive=False,
                host=_parse_host(host_arch),
                context=ResolverContext(),
            )
            payload = result.records[0].to_dict()
            payload["issues"] = [issue.to_dict() for issue in result.issues]
            return json.dumps(payload, indent=2)
        except StructuredBaseError as e:
            logger.error(f"classify_binary failed: {e.structured_error.message}")
            return e.to_json()

    @app.tool()
    def diagnose_setup() -> str:
        """
        Check the dumpbin installation and archscan configuration.

        Returns:
            Diagnostic information about the setup
        """
        result = "**archscan Diagnostics**\n\n"

        try:
            diag = DumpbinRunner().diagnose()
            result += f"- Platform: {diag['platform']}\n"
            result += f"- dumpbin Path: `{diag['dumpbin_path']}`\n"
            result += f"- dumpbin Exists: {'YES' if diag['dumpbin_exists'] else 'NO'}\n"
            result += f"- dumpbin Version: {diag['dumpbin_version']}\n"
            tool_found = True
        except ToolUnavailableError as e:
            result += f"- dumpbin: NOT FOUND ({e.structured_error.message})\n"
            tool_found = False

        result += f"- Host Architecture: {detect_host_arch().value}\n"
        result += f"- Default Max Depth: {default_max_depth()}\n\n"

        result += "**Configuration:**\n"
        descriptions = list_config_keys()
        for key, status in get_config_status().items():
            value = f"`{status['value']}` ({status['source']})" if status["set"] else "not set"
            result += f"- {key}: {value} - {descriptions[key]}\n"

        if not tool_found:
            result += "\n**WARNING:** dumpbin.exe not found! Install the Visual Studio Build Tools "
            result += "or set ARCHSCAN_DUMPBIN_PATH.\n"
        else:
            result += "\n**Setup looks good!** Ready to analyze binaries.\n"

        return result
