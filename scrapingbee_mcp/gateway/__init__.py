"""ScrapingBee tool gateway: validation, upstream call and result shaping."""

from scrapingbee_mcp.gateway.engine import ExtractionGateway
from scrapingbee_mcp.gateway.registry import TOOLS, ToolSpec, get_tool
from scrapingbee_mcp.gateway.shaper import is_empty
from scrapingbee_mcp.gateway.translator import ScrapingBeeClient, build_query
from scrapingbee_mcp.gateway.validator import ValidatedArguments, validate_arguments

__all__ = [
    "ExtractionGateway",
    "ScrapingBeeClient",
    "TOOLS",
    "ToolSpec",
    "ValidatedArguments",
    "build_query",
    "get_tool",
    "is_empty",
    "validate_arguments",
]
