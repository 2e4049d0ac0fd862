"""
Structured error messages with actionable suggestions.

Provides rich error information for archscan consumers including:
- Error codes for programmatic handling
- Human-readable messages
- Actionable suggestions for resolution
- Debug information for troubleshooting

Fatal preconditions (missing tool, missing root binary) are raised as
StructuredBaseError subclasses. Per-binary failures during a traversal are
never raised; they are recorded as StructuredError entries on the result.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """
    Standard error codes for archscan operations.

    Naming convention: CATEGORY_SPECIFIC_ERROR
    """

    # Fatal preconditions
    TOOL_UNAVAILABLE = "TOOL_UNAVAILABLE"
    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    NOT_PE_IMAGE = "NOT_PE_IMAGE"

    # Per-binary, non-fatal
    TOOL_FAILED = "TOOL_FAILED"
    CLASSIFICATION_FAILED = "CLASSIFICATION_FAILED"
    RANGE_PARSE_FAILED = "RANGE_PARSE_FAILED"
    RANGE_SIZE_MISMATCH = "RANGE_SIZE_MISMATCH"
    DEPENDENCY_LIST_FAILED = "DEPENDENCY_LIST_FAILED"

    # Per-dependency, non-fatal
    DEPENDENCY_UNRESOLVED = "DEPENDENCY_UNRESOLVED"

    # Parameter errors
    PARAMETER_INVALID = "PARAMETER_INVALID"


@dataclass
class StructuredError:
    """
    Rich error information with actionable suggestions.

    Attributes:
        error: Error code for programmatic handling
        message: Human-readable error description
        reason: Explanation of why the error occurred
        suggestions: List of actionable steps to resolve the error
        debug_info: Additional debugging information
    """

    error: ErrorCode
    message: str
    reason: str | None = None
    suggestions: list[str] = field(default_factory=list)
    debug_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.error.value,
            "message": self.message,
            "reason": self.reason,
            "suggestions": self.suggestions,
            "debug_info": self.debug_info,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to formatted JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def to_user_message(self) -> str:
        """
        Format error for human-readable display.

        Returns:
            Multi-line string suitable for display to users
        """
        lines = [
            f"Error [{self.error.value}]: {self.message}",
        ]

        if self.reason:
            lines.append(f"Reason: {self.reason}")

        if self.suggestions:
            lines.append("\nSuggested actions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.debug_info:
            lines.append("\nDebug information:")
            for key, value in self.debug_info.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)

    def __str__(self) -> str:
        """Return user-friendly message."""
        return self.to_user_message()


class StructuredBaseError(Exception):
    """
    Exception that wraps a StructuredError.

    Allows raising structured errors as exceptions while maintaining
    all error information.
    """

    def __init__(self, structured_error: StructuredError):
        self.structured_error = structured_error
        super().__init__(structured_error.to_user_message())

    def to_dict(self) -> dict[str, Any]:
        """Get the underlying structured error as a dictionary."""
        return self.structured_error.to_dict()

    def to_json(self, indent: int = 2) -> str:
        """Get the underlying structured error as JSON."""
        return self.structured_error.to_json(indent)


class ToolUnavailableError(StructuredBaseError):
    """Raised when the metadata extraction tool cannot be located."""


class PathNotFoundError(StructuredBaseError):
    """Raised when the requested root binary does not exist."""


class NotPEImageError(StructuredBaseError):
    """Raised when the requested root binary is not a PE image."""


# =============================================================================
# Suggestion Mappings - Predefined suggestions for common error scenarios
# =============================================================================

TOOL_SUGGESTIONS = {
    "unavailable": [
        "Install the Visual Studio Build Tools with the 'Desktop development with C++' workload",
        "Run from a Developer Command Prompt so dumpbin.exe is on PATH",
        "Set ARCHSCAN_DUMPBIN_PATH to the full path of dumpbin.exe (env var or .env file)",
    ],
    "failed": [
        "Verify the file is a valid PE image and is not locked by another process",
        "Run dumpbin manually against the file to inspect its output",
    ],
}

PATH_SUGGESTIONS = {
    "not_found": [
        "Check the path for typos",
        "Use an absolute path to the executable",
        "Ensure the current user can read the file",
    ],
    "not_pe": [
        "Point archscan at a Windows .exe or .dll",
        "Installers and archives must be extracted before analysis",
    ],
}

DEPENDENCY_SUGGESTIONS = {
    "unresolved": [
        "Pass the directory containing the module with --search-path",
        "Install the redistributable package that ships the module",
        "The module may only be present on a different Windows edition",
    ],
}


# =============================================================================
# Error Factory Functions
# =============================================================================


def create_tool_unavailable_error(
    tool: str = "dumpbin.exe",
    searched: list[str] | None = None,
) -> StructuredError:
    """Create error for a missing metadata extraction tool."""
    debug_info: dict[str, Any] = {"tool": tool}
    if searched:
        debug_info["searched"] = searched[:10]

    return StructuredError(
        error=ErrorCode.TOOL_UNAVAILABLE,
        message=f"Required analysis tool not found: {tool}",
        reason="The tool is not configured, not on PATH and not in a known install location",
        suggestions=TOOL_SUGGESTIONS["unavailable"],
        debug_info=debug_info,
    )


def create_path_not_found_error(path: str) -> StructuredError:
    """Create error for a root binary that does not exist."""
    return StructuredError(
        error=ErrorCode.PATH_NOT_FOUND,
        message=f"File not found: {path}",
        reason="The requested binary does not exist or is not a regular file",
        suggestions=PATH_SUGGESTIONS["not_found"],
        debug_info={"path": path},
    )


def create_not_pe_image_error(path: str, parse_error: str | None = None) -> StructuredError:
    """Create error for a root binary that is not a PE image."""
    return StructuredError(
        error=ErrorCode.NOT_PE_IMAGE,
        message=f"Not a Windows PE image: {path}",
        reason=parse_error or "The file does not carry a valid PE header",
        suggestions=PATH_SUGGESTIONS["not_pe"],
        debug_info={"path": path},
    )


def create_tool_failed_error(
    path: str,
    command: str,
    output: str | None = None,
    exit_code: int | None = None,
) -> StructuredError:
    """Create error for a failed tool invocation on one binary."""
    debug_info: dict[str, Any] = {"path": path, "command": command}
    if exit_code is not None:
        debug_info["exit_code"] = exit_code
    if output:
        debug_info["output"] = output[:500]

    return StructuredError(
        error=ErrorCode.TOOL_FAILED,
        message=f"'{command}' failed for {path}",
        reason=output.strip().splitlines()[-1] if output and output.strip() else None,
        suggestions=TOOL_SUGGESTIONS["failed"],
        debug_info=debug_info,
    )


def create_classification_failed_error(path: str, cause: str) -> StructuredError:
    """Create error for a binary whose architecture could not be determined."""
    return StructuredError(
        error=ErrorCode.CLASSIFICATION_FAILED,
        message=f"Could not classify {path}",
        reason=cause,
        suggestions=TOOL_SUGGESTIONS["failed"],
        debug_info={"path": path},
    )


def create_range_parse_failed_error(path: str, cause: str) -> StructuredError:
    """Create error for a hybrid binary whose code range table could not be read."""
    return StructuredError(
        error=ErrorCode.RANGE_PARSE_FAILED,
        message=f"Could not read hybrid code ranges of {path}",
        reason=cause,
        suggestions=[
            "Run 'dumpbin /loadconfig' on the file and check for a Hybrid Code Address Range Table",
            "Use a toolset recent enough to understand ARM64X images",
        ],
        debug_info={"path": path},
    )


def create_range_size_mismatch_error(path: str, range_bytes: int, file_size: int) -> StructuredError:
    """Create error for hybrid code ranges that cover more bytes than the file holds."""
    return StructuredError(
        error=ErrorCode.RANGE_SIZE_MISMATCH,
        message=f"Hybrid code ranges of {path} exceed the file size",
        reason=f"Ranges cover {range_bytes} bytes but the file is {file_size} bytes",
        suggestions=[
            "Run 'dumpbin /loadconfig' on the file and compare the range table with the section sizes",
            "Byte counts for this binary are range totals and may overstate its code size",
        ],
        debug_info={"path": path, "range_bytes": range_bytes, "file_size": file_size},
    )


def create_dependency_list_failed_error(path: str, cause: str) -> StructuredError:
    """Create error for a binary whose dependency list could not be read."""
    return StructuredError(
        error=ErrorCode.DEPENDENCY_LIST_FAILED,
        message=f"Could not list dependencies of {path}",
        reason=cause,
        suggestions=TOOL_SUGGESTIONS["failed"],
        debug_info={"path": path},
    )


def create_dependency_unresolved_error(
    name: str,
    source_path: str,
    searched_count: int = 0,
) -> StructuredError:
    """Create error for a dependency name that matched no file on disk."""
    return StructuredError(
        error=ErrorCode.DEPENDENCY_UNRESOLVED,
        message=f"Dependency not found: '{name}'",
        reason=f"No file named '{name}' exists in any of {searched_count} searched directories",
        suggestions=DEPENDENCY_SUGGESTIONS["unresolved"],
        debug_info={
            "name": name,
            "required_by": source_path,
            "directories_searched": searched_count,
        },
    )


def create_parameter_error(
    param_name: str,
    provided_value: Any,
    expected: str,
    valid_values: list[Any] | None = None,
) -> StructuredError:
    """Create error for invalid parameter value."""
    suggestions = [
        f"Provide a valid value for '{param_name}'",
        f"Expected: {expected}",
    ]
    if valid_values:
        suggestions.append(f"Valid options: {', '.join(str(v) for v in valid_values)}")

    return StructuredError(
        error=ErrorCode.PARAMETER_INVALID,
        message=f"Invalid value for parameter '{param_name}'",
        reason=f"Got '{provided_value}', expected {expected}",
        suggestions=suggestions,
        debug_info={
            "parameter": param_name,
            "provided": provided_value,
            "expected": expected,
            "valid_values": valid_values,
        },
    )


def error_summary(exc: BaseException) -> str:
    """One-line description of an exception for per-binary issue records."""
    if isinstance(exc, StructuredBaseError):
        structured = exc.structured_error
        return structured.reason or structured.message
    return str(exc) or type(exc).__name__
