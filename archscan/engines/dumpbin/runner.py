"""
dumpbin runner with install detection.

Locates dumpbin.exe (configured path, PATH, Visual Studio installs) and runs
it against a binary to obtain header, load-config and dependency dumps.
"""

import logging
import os
import platform
import shutil
import subprocess  # nosec B404 - Required for dumpbin execution
import time
from pathlib import Path
from typing import Any

from archscan.engines.base import MetadataSource
from archscan.utils.config import get_config
from archscan.utils.structured_errors import (
    StructuredBaseError,
    ToolUnavailableError,
    create_tool_failed_error,
    create_tool_unavailable_error,
)

logger = logging.getLogger(__name__)

# Visual Studio roots below Program Files / Program Files (x86)
_VS_INSTALL_GLOB = "Microsoft Visual Studio/*/*/VC/Tools/MSVC/*/bin/Host*/*/dumpbin.exe"


class DumpbinError(StructuredBaseError):
    """Raised when a dumpbin invocation fails for one binary."""

    def __init__(
        self,
        binary_path: str,
        command: str,
        output: str | None = None,
        exit_code: int | None = None,
    ):
        structured_error = create_tool_failed_error(
            path=binary_path,
            command=command,
            output=output,
            exit_code=exit_code,
        )
        super().__init__(structured_error)
        self.binary_path = binary_path
        self.command = command
        self.exit_code = exit_code


class DumpbinRunner(MetadataSource):
    """Runs dumpbin.exe and returns its text output."""

    def __init__(self, dumpbin_path: str | None = None):
        """
        Initialize dumpbin runner.

        Args:
            dumpbin_path: Path to dumpbin.exe. If None, auto-detect.

        Raises:
            ToolUnavailableError: If dumpbin cannot be found
        """
        self.dumpbin_path = Path(dumpbin_path) if dumpbin_path else self._detect_dumpbin()
        if not self.dumpbin_path.is_file():
            raise ToolUnavailableError(
                create_tool_unavailable_error(searched=[str(self.dumpbin_path)])
            )
        self.system = platform.system()
        logger.info(f"Initialized dumpbin runner: {self.dumpbin_path} on {self.system}")

    @staticmethod
    def _detect_dumpbin() -> Path:
        """
        Auto-detect dumpbin.exe from config, PATH and Visual Studio installs.

        Returns:
            Path to dumpbin.exe

        Raises:
            ToolUnavailableError: If dumpbin cannot be found
        """
        searched: list[str] = []

        # 1. ARCHSCAN_DUMPBIN_PATH (environment or .env)
        configured = get_config("ARCHSCAN_DUMPBIN_PATH")
        if configured:
            searched.append(configured)
            if Path(configured).is_file():
                logger.info(f"Found dumpbin via ARCHSCAN_DUMPBIN_PATH: {configured}")
                return Path(configured)

        # 2. PATH (Developer Command Prompt)
        on_path = shutil.which("dumpbin")
        searched.append("PATH")
        if on_path:
            logger.info(f"Found dumpbin on PATH: {on_path}")
            return Path(on_path)

        # 3. Visual Studio installs, newest first
        for env_var in ("ProgramFiles", "ProgramFiles(x86)"):
            root = os.environ.get(env_var)
            if not root:
                continue
            searched.append(str(Path(root) / _VS_INSTALL_GLOB))
            try:
                matches = sorted(Path(root).glob(_VS_INSTALL_GLOB), reverse=True)
            except OSError as e:
                logger.debug(f"Could not search {root}: {e}")
                continue
            if matches:
                logger.info(f"Auto-detected dumpbin: {matches[0]}")
                return matches[0]

        raise ToolUnavailableError(create_tool_unavailable_error(searched=searched))

    def run(self, flag: str, binary_path: str) -> str:
        """
        Run dumpbin with a single option against a binary.

        Args:
            flag: dumpbin option such as '/headers'
            binary_path: File to dump

        Returns:
            Standard output of dumpbin

        Raises:
            DumpbinError: If dumpbin cannot be started or exits non-zero
        """
        cmd = [str(self.dumpbin_path), "/NOLOGO", flag, str(binary_path)]
        command = f"dumpbin {flag}"
        logger.debug(f"Running: {' '.join(cmd)}")

        start_time = time.time()
        try:
            result = subprocess.run(  # nosec B603 - fixed argument vector
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.warning(f"{command} failed for {binary_path} (exit {e.returncode})")
            raise DumpbinError(
                str(binary_path), command, output=e.stdout or e.stderr, exit_code=e.returncode
            ) from e
        except OSError as e:
            logger.warning(f"{command} could not start for {binary_path}: {e}")
            raise DumpbinError(str(binary_path), command, output=str(e)) from e

        logger.debug(f"{command} finished in {time.time() - start_time:.2f}s")
        return result.stdout

    def headers(self, binary_path: str) -> str:
        return self.run("/headers", binary_path)

    def load_config(self, binary_path: str) -> str:
        return self.run("/loadconfig", binary_path)

    def dependents(self, binary_path: str) -> str:
        return self.run("/dependents", binary_path)

    def diagnose(self) -> dict[str, Any]:
        """
        Run diagnostic checks on the dumpbin installation.

        Returns:
            dict with diagnostic information
        """
        diag: dict[str, Any] = {
            "platform": self.system,
            "dumpbin_path": str(self.dumpbin_path),
            "dumpbin_exists": self.dumpbin_path.is_file(),
        }

        try:
            result = subprocess.run(  # nosec B603 - fixed argument vector
                [str(self.dumpbin_path)],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=10,
            )
            banner = (result.stdout or result.stderr).strip().splitlines()
            diag["dumpbin_version"] = banner[0] if banner else "Unknown"
        except (subprocess.SubprocessError, OSError) as e:
            diag["dumpbin_version"] = f"Error running dumpbin: {e}"

        return diag
