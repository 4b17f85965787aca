"""Tests for upstream failure classification."""

import asyncio

import httpx
import pytest

from scrapingbee_mcp.errors import ErrorCode, UpstreamHTTPError, UpstreamTimeoutError
from scrapingbee_mcp.gateway.classifier import (
    CATEGORY_SUGGESTIONS,
    GOOGLE_SUGGESTION,
    classify_failure,
    diagnose_response,
    http_error,
    status_text,
    suggestions_for,
)
from scrapingbee_mcp.models import UpstreamResponse


def _response(status, body=b"", headers=None):
    return UpstreamResponse(status_code=status, content=body, headers=headers or {})


class TestStatusText:
    @pytest.mark.parametrize(
        "code, label",
        [(400, "Bad Request"), (402, "Payment Required"), (504, "Gateway Timeout")],
    )
    def test_known(self, code, label):
        assert status_text(code) == label

    def test_unknown(self):
        assert status_text(418) == "Unknown Status"


class TestDiagnoseResponse:
    """Status-keyed causes and suggestions."""

    def test_403_points_at_proxies(self):
        diag = diagnose_response(_response(403), "https://shop.test")
        assert any("premium_proxy" in s for s in diag.suggestions)
        assert any("stealth_proxy" in s for s in diag.suggestions)
        assert any("country_code" in s for s in diag.suggestions)
        assert any("Geographic" in c for c in diag.possible_causes)

    def test_500_google_suggestion_comes_first(self):
        diag = diagnose_response(_response(500), "https://www.google.com/search?q=bees")
        assert diag.suggestions[0] == GOOGLE_SUGGESTION
        assert "custom_google=true" in diag.suggestions[0]

    def test_500_elsewhere_has_no_priority_suggestion(self):
        diag = diagnose_response(_response(500), "https://example.com")
        assert GOOGLE_SUGGESTION not in diag.suggestions

    @pytest.mark.parametrize("code", [408, 504])
    def test_timeout_like(self, code):
        diag = diagnose_response(_response(code), "https://example.com")
        assert "Increase wait parameter" in diag.suggestions

    def test_unknown_status(self):
        diag = diagnose_response(_response(418), "https://example.com")
        assert diag.status_text == "Unknown Status"
        assert diag.possible_causes == ["Unknown error occurred"]
        assert "418" in diag.suggestions[0]

    def test_json_error_body_and_headers(self):
        response = _response(
            401,
            b'{"error": "Invalid api key", "message": "check it"}',
            {
                "spb-cost": "0",
                "spb-initial-status-code": "200",
                "spb-resolved-url": "https://example.com/",
            },
        )
        payload = diagnose_response(response, "https://example.com").to_payload()
        assert payload["statusCode"] == 401
        assert payload["statusText"] == "Unauthorized"
        assert payload["apiError"] == "Invalid api key"
        assert payload["apiMessage"] == "check it"
        assert payload["creditsCost"] == "0"
        assert payload["targetSiteStatusCode"] == "200"
        assert payload["resolvedUrl"] == "https://example.com/"

    def test_raw_response_bounded(self):
        diag = diagnose_response(_response(400, b"x" * 5000), "https://example.com")
        assert len(diag.raw_response) == 1000

    def test_empty_body(self):
        diag = diagnose_response(_response(502), "https://example.com")
        assert diag.raw_response == "No response body"


class TestHttpError:
    def test_message_prefers_api_error(self):
        exc = http_error(_response(402, b'{"error": "No more credits"}'), "https://e.test")
        assert isinstance(exc, UpstreamHTTPError)
        assert exc.code is ErrorCode.API_ERROR
        assert exc.message == "ScrapingBee API error (HTTP 402 Payment Required): No more credits"

    def test_message_falls_back_to_body_prefix(self):
        exc = http_error(_response(503, b"y" * 500), "https://e.test")
        assert exc.message.endswith(": " + "y" * 200)

    def test_applied_params_carried(self):
        exc = http_error(_response(400), "https://e.test", {"url": "https://e.test"})
        assert exc.diagnostic.applied_params == {"url": "https://e.test"}


class TestClassifyFailure:
    """Non-HTTP failures are matched by substring."""

    def test_gateway_errors_keep_their_code(self):
        assert classify_failure(UpstreamTimeoutError("slow")) is ErrorCode.TIMEOUT

    @pytest.mark.parametrize(
        "exc, code",
        [
            (asyncio.TimeoutError(), ErrorCode.TIMEOUT),
            (httpx.ReadTimeout("read timed out"), ErrorCode.TIMEOUT),
            (httpx.ConnectError("[Errno 111] Connection refused"), ErrorCode.NETWORK),
            (OSError("getaddrinfo ENOTFOUND"), ErrorCode.NETWORK),
            (ValueError("Expecting value: json line 1"), ErrorCode.PARSE_ERROR),
            (RuntimeError("bad api key"), ErrorCode.AUTH),
            (RuntimeError("something else"), ErrorCode.UNKNOWN),
        ],
    )
    def test_substrings(self, exc, code):
        assert classify_failure(exc) is code

    def test_category_suggestions(self):
        exc = RuntimeError("boom")
        assert suggestions_for(exc, ErrorCode.UNKNOWN) == list(
            CATEGORY_SUGGESTIONS[ErrorCode.UNKNOWN]
        )
        assert "Check your internet connection" in suggestions_for(exc, ErrorCode.NETWORK)
