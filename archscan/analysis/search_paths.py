"""
Search directory discovery for a traversal root.

Applications often keep their private DLLs in subfolders of the install
directory, or in a per-product data directory such as
%ProgramData%\\<Vendor>\\<Product>. The set built here is computed once per
traversal and consulted for every dependency lookup.
"""

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

PROGRAM_FILES_DIRS = ("program files", "program files (x86)")

# Environment variables naming per-machine and per-user data roots
PRODUCT_DATA_ROOTS = ("ProgramData", "LOCALAPPDATA")


def env_lookup(environ: Mapping[str, str], key: str) -> str | None:
    """Case-insensitive environment lookup (Windows variable names are)."""
    value = environ.get(key)
    if value is not None:
        return value
    lowered = key.lower()
    for name, value in environ.items():
        if name.lower() == lowered:
            return value
    return None


class SearchPathBuilder:
    """Builds the ordered, deduplicated directory set for one traversal root."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def build(self, root_path: str, user_paths: Sequence[str] | None = None) -> list[str]:
        """
        Discover the search directories for a root executable.

        Insertion order, first insertion wins:
        1. user-supplied paths that exist
        2. the root executable's directory
        3. every subdirectory below it
        4. matching per-product data directories and their subdirectories

        Args:
            root_path: Path to the root executable
            user_paths: Extra directories supplied by the user

        Returns:
            Ordered list of unique directory paths
        """
        ordered: dict[str, None] = {}

        for path in user_paths or ():
            if os.path.isdir(path):
                ordered.setdefault(os.path.abspath(path), None)
            else:
                logger.warning(f"Ignoring search path that does not exist: {path}")

        root_dir = os.path.dirname(os.path.abspath(root_path))
        ordered.setdefault(root_dir, None)
        for subdir in self._walk_subdirectories(root_dir):
            ordered.setdefault(subdir, None)

        for data_dir in self.product_data_directories(root_path):
            ordered.setdefault(data_dir, None)
            for subdir in self._walk_subdirectories(data_dir):
                ordered.setdefault(subdir, None)

        logger.info(f"Search path set for {root_path}: {len(ordered)} directories")
        return list(ordered)

    def product_data_directories(self, root_path: str) -> list[str]:
        """
        Find per-product data directories for an installed executable.

        An executable under ``Program Files\\<Vendor>\\<Product>\\...`` maps
        to ``<data root>\\<Vendor>\\<Product>`` for each data root that
        has such a directory.

        Args:
            root_path: Path to the root executable

        Returns:
            Existing data directories, possibly empty
        """
        parts = Path(os.path.abspath(root_path)).parts
        # Last part is the file name; vendor and product must both be directories
        directories = parts[:-1]

        for index, part in enumerate(directories):
            if part.lower() in PROGRAM_FILES_DIRS and index + 2 < len(directories):
                vendor, product = directories[index + 1], directories[index + 2]
                break
        else:
            return []

        found = []
        for root_var in PRODUCT_DATA_ROOTS:
            data_root = env_lookup(self.environ, root_var)
            if not data_root:
                continue
            candidate = os.path.join(data_root, vendor, product)
            if os.path.isdir(candidate):
                logger.debug(f"Found product data directory: {candidate}")
                found.append(candidate)
        return found

    @staticmethod
    def _walk_subdirectories(directory: str) -> list[str]:
        """All directories below ``directory`` in sorted top-down walk order.

        Unreadable directories are logged and skipped.
        """
        def _on_error(error: OSError) -> None:
            logger.warning(f"Cannot enumerate {error.filename}: {error.strerror}")

        subdirs = []
        for current, dirnames, _filenames in os.walk(directory, onerror=_on_error):
            dirnames.sort(key=str.lower)
            for name in dirnames:
                subdirs.append(os.path.join(current, name))
        return subdirs
