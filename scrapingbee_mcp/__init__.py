from scrapingbee_mcp._version import __version__
from scrapingbee_mcp.config import ApiKeyMode, GatewayConfig, load_config
from scrapingbee_mcp.errors import (
    ErrorCode,
    GatewayError,
    MissingApiKeyError,
    ToolValidationError,
    UpstreamHTTPError,
    UpstreamNetworkError,
    UpstreamParseError,
    UpstreamTimeoutError,
)
from scrapingbee_mcp.gateway import TOOLS, ExtractionGateway, ToolSpec, is_empty
from scrapingbee_mcp.models import Diagnostic, ToolResult, UpstreamResponse

__all__ = [
    "__version__",
    "ApiKeyMode",
    "Diagnostic",
    "ErrorCode",
    "ExtractionGateway",
    "GatewayConfig",
    "GatewayError",
    "is_empty",
    "load_config",
    "MissingApiKeyError",
    "TOOLS",
    "ToolResult",
    "ToolSpec",
    "ToolValidationError",
    "UpstreamHTTPError",
    "UpstreamNetworkError",
    "UpstreamParseError",
    "UpstreamResponse",
    "UpstreamTimeoutError",
]
