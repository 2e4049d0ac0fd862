"""
Fail-fast checks performed once before a traversal starts.

Missing root binaries and non-PE roots abort the run; everything that goes
wrong after these checks degrades per binary instead.
"""

import logging
import os

import pefile

from archscan.utils.structured_errors import (
    NotPEImageError,
    PathNotFoundError,
    create_not_pe_image_error,
    create_path_not_found_error,
)

logger = logging.getLogger(__name__)


def require_root_binary(binary_path: str) -> str:
    """
    Validate the traversal root and return its absolute path.

    Args:
        binary_path: User-supplied path to the root executable

    Returns:
        Absolute path of the root binary

    Raises:
        PathNotFoundError: If the path does not name an existing file
        NotPEImageError: If the file has no valid PE header
    """
    path = os.path.abspath(binary_path)
    if not os.path.isfile(path):
        raise PathNotFoundError(create_path_not_found_error(binary_path))

    try:
        pe = pefile.PE(path, fast_load=True)
    except pefile.PEFormatError as e:
        raise NotPEImageError(create_not_pe_image_error(path, str(e))) from e
    else:
        logger.debug(f"Root {path} carries a valid PE header")
        pe.close()

    return path
