"""Minimal JSON-RPC 2.0 dispatcher for the HTTP front-ends.

Handles ``initialize``, ``ping``, ``tools/list`` and ``tools/call``.
Tool failures are returned as tool results, never as JSON-RPC errors.
"""

from __future__ import annotations

from typing import Any

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)

from scrapingbee_mcp._version import __version__
from scrapingbee_mcp.gateway import ExtractionGateway
from scrapingbee_mcp.logging import get_logger
from scrapingbee_mcp.mcp.tools import call_tool_result, list_mcp_tools

_logger = get_logger("jsonrpc")

SERVER_NAME = "scraping-bee-mcp"
INSTRUCTIONS = (
    "Tools for testing ScrapingBee extract_rules against live pages. Start with "
    "get_page_html to inspect the page, then iterate on test_extract_rules until it "
    "succeeds. A result with error_code EXTRACTION_EMPTY means the selectors matched "
    "nothing and must not be treated as working."
)


def error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def parse_error_response() -> dict[str, Any]:
    return error_response(None, PARSE_ERROR, "Parse error")


class InvalidParams(Exception):
    pass


class JsonRpcDispatcher:
    """Answers JSON-RPC messages using an ``ExtractionGateway``."""

    def __init__(self, gateway: ExtractionGateway) -> None:
        self.gateway = gateway
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    async def dispatch(self, message: Any) -> dict[str, Any] | None:
        """Handle one decoded message.

        Returns the response object, or None for notifications.
        """
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        method = message["method"]
        request_id = message.get("id")

        if "id" not in message or method.startswith("notifications/"):
            _logger.debug("Notification received: %s", method)
            return None

        handler = self._methods.get(method)
        if handler is None:
            return error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        params = message.get("params")
        if params is None:
            params = {}
        try:
            if not isinstance(params, dict):
                raise InvalidParams("params must be an object")
            result = await handler(params)
        except InvalidParams as exc:
            return error_response(request_id, INVALID_PARAMS, f"Invalid params: {exc}")
        except Exception as exc:
            _logger.exception("Error handling %s", method)
            return error_response(request_id, INTERNAL_ERROR, f"Internal error: {exc}")

        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        return {
            "protocolVersion": requested if isinstance(requested, str) else LATEST_PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
            "instructions": INSTRUCTIONS,
        }

    async def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        tools = list_mcp_tools(self.gateway)
        return {
            "tools": [t.model_dump(by_alias=True, exclude_none=True) for t in tools],
        }

    async def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise InvalidParams("tools/call requires a string 'name'")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise InvalidParams("'arguments' must be an object")

        result = await self.gateway.call_tool(name, arguments)
        return call_tool_result(result).model_dump(by_alias=True, exclude_none=True)
