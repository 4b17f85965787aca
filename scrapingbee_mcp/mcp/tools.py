"""Bridge between the gateway and MCP tool types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mcp.types import CallToolResult, TextContent, Tool

from scrapingbee_mcp.models import ToolResult

if TYPE_CHECKING:
    from mcp.server.lowlevel import Server

    from scrapingbee_mcp.gateway import ExtractionGateway


def list_mcp_tools(gateway: ExtractionGateway) -> list[Tool]:
    """Tool listing for the gateway's key mode."""
    return [spec.to_mcp_tool(gateway.key_mode) for spec in gateway.tools]


def call_tool_result(result: ToolResult) -> CallToolResult:
    """Wrap a gateway result as a single-text-block MCP result."""
    return CallToolResult(
        content=[TextContent(type="text", text=result.text)],
        isError=not result.success,
    )


def register_tools(server: Server, gateway: ExtractionGateway) -> None:
    """Register tools/list and tools/call handlers on a low-level server."""

    @server.list_tools()
    async def _list_tools() -> list[Tool]:
        return list_mcp_tools(gateway)

    # The gateway validates arguments itself so failures keep their error codes.
    @server.call_tool(validate_input=False)
    async def _call_tool(name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        result = await gateway.call_tool(name, arguments)
        return call_tool_result(result)
