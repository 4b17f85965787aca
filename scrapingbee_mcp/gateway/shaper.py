"""Build tool results from upstream responses and failures."""

from __future__ import annotations

import base64
from typing import Any

from scrapingbee_mcp.errors import (
    ErrorCode,
    GatewayError,
    ToolValidationError,
    UpstreamHTTPError,
    UpstreamParseError,
)
from scrapingbee_mcp.gateway.classifier import (
    HELP_URL,
    TROUBLESHOOTING_URL,
    classify_failure,
    suggestions_for,
)
from scrapingbee_mcp.gateway.validator import ValidatedArguments, loads_json
from scrapingbee_mcp.models import ToolResult, UpstreamResponse

MAX_HTML_CHARS = 50_000
SCREENSHOT_PREVIEW_CHARS = 1000
PARSE_ERROR_BODY_LIMIT = 500

EMPTY_EXTRACTION_MESSAGE = (
    "The request succeeded but every extracted field is empty. Do NOT treat these "
    "extract_rules as validated: the selectors matched nothing useful on this page. "
    "Check the selectors against the live HTML (get_page_html), and enable render_js "
    "or wait_for if the content is rendered by JavaScript."
)

EMPTY_EXTRACTION_SUGGESTIONS = [
    "Inspect the page with get_page_html and adjust the selectors",
    "Enable render_js=true for JavaScript-rendered content",
    "Use wait_for with a selector that appears once the content has loaded",
    "Avoid pseudo-selectors such as :nth-child() or :has()",
]


def is_empty(value: Any) -> bool:
    """Recursive emptiness test for extracted data.

    None, blank strings, empty lists and mappings whose values are all empty
    count as empty. Numbers and booleans never do.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    if isinstance(value, dict):
        return all(is_empty(v) for v in value.values())
    return False


def _with_cost(payload: dict[str, Any], response: UpstreamResponse) -> dict[str, Any]:
    cost = response.header("spb-cost")
    if cost is not None:
        payload["credits_cost"] = cost
    return payload


def parse_json_body(response: UpstreamResponse) -> Any:
    """Decode a 2xx body that must be JSON."""
    try:
        return loads_json(response.content)
    except (ValueError, RecursionError) as exc:
        raise UpstreamParseError(
            f"Failed to parse ScrapingBee response as JSON: {exc}",
            raw_response=response.text[:PARSE_ERROR_BODY_LIMIT],
            suggestions=[
                "The API returned non-JSON data",
                "This might indicate an issue with extract_rules",
                "Check if the target page has the expected structure",
            ],
            cause=exc,
        ) from exc


def shape_extraction(response: UpstreamResponse, validated: ValidatedArguments) -> ToolResult:
    data = parse_json_body(response)
    rules = validated.decoded.get("extract_rules")

    if is_empty(data):
        payload = {
            "success": False,
            "error": "Extraction returned no data",
            "error_code": ErrorCode.EXTRACTION_EMPTY.value,
            "message": EMPTY_EXTRACTION_MESSAGE,
            "suggestions": list(EMPTY_EXTRACTION_SUGGESTIONS),
            "data": data,
            "url": validated.url,
            "rules_applied": rules,
        }
        return ToolResult(
            success=False,
            payload=_with_cost(payload, response),
            error_code=ErrorCode.EXTRACTION_EMPTY,
        )

    payload = {
        "success": True,
        "data": data,
        "message": "Data extracted successfully",
        "url": validated.url,
        "rules_applied": rules,
    }
    return ToolResult(success=True, payload=_with_cost(payload, response))


def shape_page_html(response: UpstreamResponse, validated: ValidatedArguments) -> ToolResult:
    """HTML (or a JSON body, when it fits) within ``MAX_HTML_CHARS``."""
    text = response.text
    truncated = len(text) > MAX_HTML_CHARS
    payload: dict[str, Any] = {
        "success": True,
        "url": validated.url,
        "status_code": response.status_code,
        "truncated": truncated,
        "length": len(text),
    }
    data = None
    if not truncated:
        try:
            data = loads_json(text)
        except (ValueError, RecursionError):
            pass
    if data is None:
        payload["html"] = text[:MAX_HTML_CHARS]
    else:
        payload["data"] = data
    return ToolResult(success=True, payload=_with_cost(payload, response))


def shape_screenshot(response: UpstreamResponse, validated: ValidatedArguments) -> ToolResult:
    encoded = base64.b64encode(response.content).decode("ascii")
    payload = {
        "success": True,
        "url": validated.url,
        "content_type": response.header("content-type") or "image/png",
        "screenshot_base64": encoded[:SCREENSHOT_PREVIEW_CHARS],
        "base64_length": len(encoded),
        "byte_length": len(response.content),
        "truncated": len(encoded) > SCREENSHOT_PREVIEW_CHARS,
    }
    return ToolResult(success=True, payload=_with_cost(payload, response))


def validation_failure(exc: ToolValidationError) -> ToolResult:
    payload = {
        "success": False,
        "error": exc.message,
        "error_code": exc.code.value,
        "message": exc.hint,
    }
    return ToolResult(success=False, payload=payload, error_code=exc.code)


def invalid_tool(name: str, available: list[str]) -> ToolResult:
    payload = {
        "success": False,
        "error": f"Unknown tool: {name}",
        "error_code": ErrorCode.INVALID_TOOL.value,
        "message": f"Available tools: {', '.join(available)}",
    }
    return ToolResult(success=False, payload=payload, error_code=ErrorCode.INVALID_TOOL)


def failure(exc: Exception, context: dict[str, Any]) -> ToolResult:
    """Result for an exception raised after validation."""
    code = classify_failure(exc)
    message = exc.message if isinstance(exc, GatewayError) else str(exc)
    payload: dict[str, Any] = {
        "success": False,
        "error": message,
        "error_code": code.value,
        "error_type": type(exc).__name__,
        "message": f"ScrapingBee request failed: {message}",
        "suggestions": suggestions_for(exc, code),
        "context": context,
    }
    if exc.__cause__ is not None:
        payload["cause"] = str(exc.__cause__) or type(exc.__cause__).__name__
    if isinstance(exc, UpstreamHTTPError):
        payload["diagnostic"] = exc.diagnostic.to_payload()
        if exc.diagnostic.applied_params is not None:
            payload["applied_params"] = exc.diagnostic.applied_params
    if isinstance(exc, UpstreamParseError):
        payload["raw_response"] = exc.raw_response
    payload["help_url"] = HELP_URL
    payload["troubleshooting_url"] = TROUBLESHOOTING_URL
    return ToolResult(success=False, payload=payload, error_code=code)
