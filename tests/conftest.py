"""
Shared fixtures.

FakeSource stands in for dumpbin: dumps are keyed by lower-cased file name
and every call is recorded, so no tool installation is required.
"""

import os

import pytest

from archscan.engines.base import MetadataSource
from archscan.engines.dumpbin.runner import DumpbinError


class FakeSource(MetadataSource):
    def __init__(self, headers=None, load_configs=None, dependents=None, failing=()):
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}
        self._load_configs = {k.lower(): v for k, v in (load_configs or {}).items()}
        self._dependents = {k.lower(): v for k, v in (dependents or {}).items()}
        self._failing = {name.lower() for name in failing}
        self.calls: list[tuple[str, str]] = []

    def _lookup(self, kind, table, binary_path):
        name = os.path.basename(binary_path).lower()
        self.calls.append((kind, name))
        if name in self._failing:
            raise DumpbinError(
                binary_path,
                f"dumpbin /{kind}",
                output="LINK : fatal error LNK1106: invalid file or disk full",
                exit_code=1106,
            )
        return table.get(name, "")

    def headers(self, binary_path):
        return self._lookup("headers", self._headers, binary_path)

    def load_config(self, binary_path):
        return self._lookup("loadconfig", self._load_configs, binary_path)

    def dependents(self, binary_path):
        return self._lookup("dependents", self._dependents, binary_path)

    def diagnose(self):
        return {"fake": True}


@pytest.fixture
def make_source():
    return FakeSource


def header_dump(machine_line: str) -> str:
    return (
        "Dump of file sample.dll\n"
        "\n"
        "PE signature found\n"
        "\n"
        "File Type: DLL\n"
        "\n"
        "FILE HEADER VALUES\n"
        f"            {machine_line}\n"
        "               6 number of sections\n"
        "        64A3F1C2 time date stamp\n"
    )


@pytest.fixture
def headers():
    """Header dumps by machine."""
    return {
        "x64": header_dump("8664 machine (x64)"),
        "x86": header_dump("14C machine (x86)"),
        "arm64": header_dump("AA64 machine (ARM64)"),
        "arm": header_dump("1C4 machine (ARM)"),
        "arm64x": header_dump("AA64 machine (ARM64) (ARM64X)"),
        "arm64ec": header_dump("8664 machine (x64) (ARM64EC)"),
        "ia64": header_dump("200 machine (IA64)"),
    }


def dependents_dump(*names: str) -> str:
    lines = [
        "Dump of file sample.dll",
        "",
        "File Type: DLL",
        "",
        "  Image has the following dependencies:",
        "",
    ]
    lines += [f"    {name}" for name in names]
    lines += ["", "  Summary", "", "        1000 .data", "        2000 .text"]
    return "\n".join(lines) + "\n"


@pytest.fixture
def deps():
    return dependents_dump


def load_config_dump(*rows: tuple[str, int, int]) -> str:
    lines = [
        "  Section contains the following load config:",
        "",
        "            00000140 size",
        "",
        "    Hybrid Code Address Range Table",
        "",
        "          Address Range",
        "          ----------------------",
    ]
    for arch, start, end in rows:
        lines.append(
            f"            {arch:<8}{0x180000000 + start:016X} - {0x180000000 + end:016X} "
            f"({start:08X} - {end:08X})"
        )
    lines += ["", "  Summary"]
    return "\n".join(lines) + "\n"


@pytest.fixture
def load_config():
    return load_config_dump
