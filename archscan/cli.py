"""
Command line entry point.

Usage:
    python -m archscan app.exe
    python -m archscan app.exe -r --max-depth 2 -s D:\\sdk\\bin
"""

import argparse
import json
import logging
import sys

from archscan import __version__
from archscan.analysis.binary_types import HostArch
from archscan.scan import DEFAULT_MAX_DEPTH, scan_binary
from archscan.utils.config import get_config
from archscan.utils.structured_errors import StructuredBaseError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archscan",
        description="Measure how much of a Windows binary and its dependencies "
                    "runs natively on this machine versus under emulation.",
    )
    parser.add_argument("target", help="Path to the executable or DLL to scan")
    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Follow static dependencies",
    )
    parser.add_argument(
        "-d", "--max-depth",
        type=int,
        default=None,
        help=f"Dependency depth for recursive scans (default: ARCHSCAN_MAX_DEPTH or {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "-s", "--search-path",
        action="append",
        default=[],
        dest="search_paths",
        metavar="DIR",
        help="Extra directory to search for dependencies (repeatable)",
    )
    parser.add_argument(
        "--host-arch",
        choices=[host.value for host in HostArch if host != HostArch.UNKNOWN],
        type=str.upper,
        help="Override the detected host architecture",
    )
    parser.add_argument("--dumpbin", help="Path to dumpbin.exe")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run a scan and print the result as JSON. Returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.max_depth is not None and args.max_depth < 0:
        parser.error("--max-depth must be >= 0")

    level = "DEBUG" if args.verbose else get_config("ARCHSCAN_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        result = scan_binary(
            args.target,
            recursive=args.recursive,
            max_depth=args.max_depth,
            search_paths=args.search_paths,
            host=HostArch(args.host_arch) if args.host_arch else None,
            dumpbin_path=args.dumpbin,
        )
    except StructuredBaseError as e:
        print(e.structured_error.to_user_message(), file=sys.stderr)
        return 2

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
