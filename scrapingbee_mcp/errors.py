"""Error codes and exception types raised inside the gateway.

Every exception here is converted into a failed tool result by
``ExtractionGateway.call_tool``; none of them escapes to the transport.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scrapingbee_mcp.models import Diagnostic


class ErrorCode(str, Enum):
    """Machine-readable failure categories reported in tool results."""

    VALIDATION = "VALIDATION"
    PARSE_ERROR = "PARSE_ERROR"
    AUTH = "AUTH"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    API_ERROR = "API_ERROR"
    EXTRACTION_EMPTY = "EXTRACTION_EMPTY"
    INVALID_TOOL = "INVALID_TOOL"
    UNKNOWN = "UNKNOWN"


class GatewayError(Exception):
    """Base class for failures that end a tool call."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        suggestions: list[str] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.suggestions = suggestions
        if cause is not None:
            self.__cause__ = cause


class ToolValidationError(GatewayError):
    """Caller input rejected before any upstream call was made."""

    code = ErrorCode.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        hint: str,
        code: ErrorCode = ErrorCode.VALIDATION,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, code=code, cause=cause)
        self.hint = hint


class MissingApiKeyError(GatewayError):
    """No API key is configured for the stdio deployment."""

    code = ErrorCode.AUTH


class UpstreamTimeoutError(GatewayError):
    """The upstream call did not finish within the configured timeout."""

    code = ErrorCode.TIMEOUT


class UpstreamNetworkError(GatewayError):
    """Connection-level failure talking to the upstream API."""

    code = ErrorCode.NETWORK


class UpstreamHTTPError(GatewayError):
    """The upstream API answered with a non-2xx status."""

    code = ErrorCode.API_ERROR

    def __init__(self, message: str, diagnostic: Diagnostic) -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


class UpstreamParseError(GatewayError):
    """A 2xx upstream body that should have been JSON was not."""

    code = ErrorCode.PARSE_ERROR

    def __init__(
        self,
        message: str,
        *,
        raw_response: str,
        suggestions: list[str],
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, suggestions=suggestions, cause=cause)
        self.raw_response = raw_response
