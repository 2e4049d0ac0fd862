"""
archscan: native versus emulated code coverage for Windows binaries.
"""

__version__ = "0.1.0"
