"""Turn upstream failures into diagnostics and error codes.

Classification is advisory: it decides what the caller is told, never
whether anything is retried.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from scrapingbee_mcp.errors import ErrorCode, GatewayError, UpstreamHTTPError
from scrapingbee_mcp.models import Diagnostic, UpstreamResponse

RAW_RESPONSE_LIMIT = 1000
ERROR_MESSAGE_BODY_LIMIT = 200

HELP_URL = "https://www.scrapingbee.com/documentation/"
TROUBLESHOOTING_URL = (
    "https://help.scrapingbee.com/en/article/what-to-do-if-my-request-fails-1jv1rmk/"
)

GOOGLE_SUGGESTION = "CRITICAL: Add custom_google=true for Google domains"

_STATUS_TEXT = {
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    408: "Request Timeout",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


@dataclass(frozen=True)
class StatusPolicy:
    category: str
    possible_causes: tuple[str, ...]
    suggestions: tuple[str, ...]


_TIMEOUT_LIKE = StatusPolicy(
    category="timeout",
    possible_causes=(
        "Request timed out",
        "Target site too slow to respond",
        "Complex JavaScript taking too long",
    ),
    suggestions=(
        "Increase wait parameter",
        "Use wait_for with specific selector",
        "Try without render_js if not needed",
    ),
)

_UNAVAILABLE = StatusPolicy(
    category="service unavailable",
    possible_causes=(
        "ScrapingBee service temporarily unavailable",
        "Target site is down",
        "Network connectivity issues",
    ),
    suggestions=(
        "Retry after a short delay",
        "Check ScrapingBee status page",
        "Verify target URL is accessible",
    ),
)

STATUS_POLICIES: dict[int, StatusPolicy] = {
    400: StatusPolicy(
        category="bad request",
        possible_causes=(
            "Invalid URL format or encoding",
            "Malformed extract_rules JSON",
            "Invalid parameter combination",
            "Missing required parameters",
        ),
        suggestions=(
            "Ensure URL is properly encoded",
            "Validate extract_rules JSON syntax",
            "Check parameter types match schema",
        ),
    ),
    401: StatusPolicy(
        category="auth",
        possible_causes=(
            "Invalid or missing API key",
            "API key has expired",
            "API key does not have required permissions",
        ),
        suggestions=(
            "Verify the ScrapingBee API key (SCRAPINGBEE_API_KEY or the api_key argument)",
            "Check API key is valid at scrapingbee.com dashboard",
        ),
    ),
    402: StatusPolicy(
        category="payment",
        possible_causes=(
            "Insufficient API credits",
            "Account credit limit reached",
        ),
        suggestions=(
            "Check your credit balance at scrapingbee.com",
            "Purchase more credits or upgrade plan",
        ),
    ),
    403: StatusPolicy(
        category="forbidden",
        possible_causes=(
            "Access forbidden to target URL",
            "Target site blocking requests",
            "Geographic restrictions",
        ),
        suggestions=(
            "Try premium_proxy=true for better success rate",
            "Use stealth_proxy=true for heavily protected sites",
            "Try different country_code",
        ),
    ),
    408: _TIMEOUT_LIKE,
    429: StatusPolicy(
        category="rate limit",
        possible_causes=(
            "Rate limit exceeded",
            "Too many concurrent requests",
        ),
        suggestions=(
            "Slow down request frequency",
            "Wait before retrying",
            "Check account rate limits",
        ),
    ),
    500: StatusPolicy(
        category="upstream error",
        possible_causes=(
            "ScrapingBee internal server error",
            "Target site caused server crash",
            "Google scraping without custom_google parameter",
        ),
        suggestions=(
            "For Google URLs, add custom_google=true",
            "Retry request after a few seconds",
            "Try with different proxy settings",
        ),
    ),
    502: _UNAVAILABLE,
    503: _UNAVAILABLE,
    504: _TIMEOUT_LIKE,
}

CATEGORY_SUGGESTIONS: dict[ErrorCode, tuple[str, ...]] = {
    ErrorCode.TIMEOUT: (
        "The request took longer than the configured timeout",
        "Try with a shorter wait time",
        "Consider simpler extract_rules",
        "Check if target site is responsive",
    ),
    ErrorCode.NETWORK: (
        "Check your internet connection",
        "Verify ScrapingBee API is accessible",
        "Check if there are firewall restrictions",
    ),
    ErrorCode.PARSE_ERROR: (
        "Validate JSON syntax",
        "Check for special characters",
        "Ensure proper escaping",
    ),
    ErrorCode.AUTH: (
        "Set the SCRAPINGBEE_API_KEY environment variable",
        "Get your API key from https://app.scrapingbee.com/account",
        "For stdio transport: export SCRAPINGBEE_API_KEY=your_key",
        "For .env file: add SCRAPINGBEE_API_KEY=your_key",
    ),
    ErrorCode.UNKNOWN: (
        "Check parameters",
        "Review ScrapingBee documentation",
        "Contact support if issue persists",
    ),
}

# Checked in order; the first matching category wins.
_FAILURE_MARKERS: tuple[tuple[ErrorCode, tuple[str, ...]], ...] = (
    (ErrorCode.TIMEOUT, ("timeout", "timed out", "etimedout")),
    (
        ErrorCode.NETWORK,
        (
            "enotfound",
            "econnrefused",
            "connection refused",
            "connecterror",
            "name or service not known",
            "nodename nor servname",
        ),
    ),
    (ErrorCode.PARSE_ERROR, ("json",)),
    (ErrorCode.AUTH, ("api key", "api_key")),
)


def status_text(status_code: int) -> str:
    """Human-readable label for an HTTP status code."""
    return _STATUS_TEXT.get(status_code, "Unknown Status")


def diagnose_response(
    response: UpstreamResponse,
    target_url: str | None,
    applied_params: dict[str, str] | None = None,
) -> Diagnostic:
    """Build the diagnostic for a non-2xx upstream response."""
    body = response.text
    diagnostic = Diagnostic(
        status_code=response.status_code,
        status_text=status_text(response.status_code),
        raw_response=body[:RAW_RESPONSE_LIMIT] or "No response body",
        url=target_url,
        credits_cost=response.header("spb-cost"),
        target_site_status_code=response.header("spb-initial-status-code"),
        resolved_url=response.header("spb-resolved-url"),
        applied_params=applied_params,
    )

    try:
        parsed = json.loads(body)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        diagnostic.api_error = parsed.get("error")
        diagnostic.api_message = parsed.get("message")

    policy = STATUS_POLICIES.get(response.status_code)
    if policy is None:
        diagnostic.possible_causes = ["Unknown error occurred"]
        diagnostic.suggestions = [
            f"Check ScrapingBee documentation for status code {response.status_code}"
        ]
        return diagnostic

    diagnostic.possible_causes = list(policy.possible_causes)
    diagnostic.suggestions = list(policy.suggestions)
    if response.status_code == 500 and target_url and "google." in target_url:
        diagnostic.suggestions.insert(0, GOOGLE_SUGGESTION)
    return diagnostic


def http_error(
    response: UpstreamResponse,
    target_url: str | None,
    applied_params: dict[str, str] | None = None,
) -> UpstreamHTTPError:
    """Wrap a non-2xx response in an ``UpstreamHTTPError``."""
    diagnostic = diagnose_response(response, target_url, applied_params)
    detail = (
        diagnostic.api_error
        or diagnostic.api_message
        or response.text[:ERROR_MESSAGE_BODY_LIMIT]
    )
    message = (
        f"ScrapingBee API error (HTTP {diagnostic.status_code} "
        f"{diagnostic.status_text}): {detail}"
    )
    return UpstreamHTTPError(message, diagnostic)


def classify_failure(exc: BaseException) -> ErrorCode:
    """Return the error code for *exc*.

    Gateway errors carry their own code; anything else is matched by
    substrings of its message and class name.
    """
    if isinstance(exc, GatewayError):
        return exc.code

    haystack = f"{type(exc).__name__} {exc}".lower()
    for code, markers in _FAILURE_MARKERS:
        if any(marker in haystack for marker in markers):
            return code
    return ErrorCode.UNKNOWN


def suggestions_for(exc: BaseException, code: ErrorCode) -> list[str]:
    """Suggestions to show the caller for a failure."""
    if isinstance(exc, UpstreamHTTPError):
        return list(exc.diagnostic.suggestions)
    if isinstance(exc, GatewayError) and exc.suggestions:
        return list(exc.suggestions)
    return list(CATEGORY_SUGGESTIONS.get(code, CATEGORY_SUGGESTIONS[ErrorCode.UNKNOWN]))
