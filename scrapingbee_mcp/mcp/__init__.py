"""MCP front-ends for the ScrapingBee gateway.

The stdio server reads the API key from configuration; the HTTP app in
``scrapingbee_mcp.mcp.http`` takes it as a tool argument.
"""

import anyio
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from scrapingbee_mcp._version import __version__
from scrapingbee_mcp.config import ApiKeyMode, GatewayConfig
from scrapingbee_mcp.gateway import ExtractionGateway
from scrapingbee_mcp.logging import get_logger
from scrapingbee_mcp.mcp.jsonrpc import INSTRUCTIONS, SERVER_NAME
from scrapingbee_mcp.mcp.tools import register_tools

_logger = get_logger("stdio")


def create_server(gateway: ExtractionGateway) -> Server:
    """Build a low-level MCP server exposing the gateway's tools."""
    server = Server(SERVER_NAME, version=__version__, instructions=INSTRUCTIONS)
    register_tools(server, gateway)
    return server


async def serve_stdio(config: GatewayConfig) -> None:
    gateway = ExtractionGateway(config, ApiKeyMode.CONFIG)
    server = create_server(gateway)
    if not config.api_key:
        _logger.warning(
            "SCRAPINGBEE_API_KEY is not set; tool calls will fail with AUTH errors"
        )
    _logger.info("ScrapingBee MCP server running on stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run(config: GatewayConfig) -> None:
    """Run the MCP server with stdio transport."""
    anyio.run(serve_stdio, config)
