"""
archscan MCP server.

Exposes native versus emulated code coverage analysis of Windows binaries
as MCP tools.
"""

import logging

from fastmcp import FastMCP

from archscan.tools.arch_tools import register_arch_tools
from archscan.utils.config import get_config

# Configure logging
logging.basicConfig(
    level=get_config("ARCHSCAN_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastMCP("archscan")


def main():
    """Run the MCP server."""
    logger.info("Starting archscan MCP server...")

    register_arch_tools(app)
    logger.info("Registered native coverage tools")

    # Run the FastMCP server (handles stdio automatically)
    app.run()


if __name__ == "__main__":
    main()
