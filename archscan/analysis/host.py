"""Host processor architecture detection."""

import logging
import os
import platform
from collections.abc import Mapping

from archscan.analysis.binary_types import HostArch
from archscan.utils.config import get_config

logger = logging.getLogger(__name__)


def detect_host_arch(environ: Mapping[str, str] | None = None) -> HostArch:
    """
    Determine the architecture of the machine running the analysis.

    Checked in order: ARCHSCAN_HOST_ARCH, PROCESSOR_ARCHITEW6432 (set for
    32-bit processes under WOW64), PROCESSOR_ARCHITECTURE, then
    platform.machine().

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Detected HostArch, HostArch.UNKNOWN when nothing matches
    """
    environ = os.environ if environ is None else environ

    override = get_config("ARCHSCAN_HOST_ARCH")
    if override:
        host = HostArch.from_identifier(override)
        if host == HostArch.UNKNOWN:
            logger.warning(f"Ignoring unrecognized ARCHSCAN_HOST_ARCH value: {override}")
        else:
            return host

    for key in ("PROCESSOR_ARCHITEW6432", "PROCESSOR_ARCHITECTURE"):
        host = HostArch.from_identifier(environ.get(key))
        if host != HostArch.UNKNOWN:
            logger.debug(f"Host architecture from {key}: {host.value}")
            return host

    host = HostArch.from_identifier(platform.machine())
    logger.debug(f"Host architecture from platform.machine(): {host.value}")
    return host
