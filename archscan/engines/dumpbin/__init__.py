"""
dumpbin integration.

Components:
- output_parser.py: Parser for /headers, /loadconfig and /dependents output
- runner.py: Locates and runs dumpbin.exe

Architecture:
    archscan (Python) <--subprocess--> dumpbin.exe /headers | /loadconfig | /dependents
"""

from archscan.engines.dumpbin.output_parser import DumpbinOutputParser
from archscan.engines.dumpbin.runner import DumpbinError, DumpbinRunner

__all__ = ["DumpbinError", "DumpbinOutputParser", "DumpbinRunner"]
