"""
Binary metadata extraction engines.

Wraps the external tools that dump PE metadata as text.
"""

from .base import MetadataSource
from .dumpbin.runner import DumpbinError, DumpbinRunner

__all__ = ["DumpbinError", "DumpbinRunner", "MetadataSource"]
