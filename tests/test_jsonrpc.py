"""Tests for the JSON-RPC dispatcher shared by the HTTP front-ends."""

import json

import pytest
from mcp.types import LATEST_PROTOCOL_VERSION

from scrapingbee_mcp.mcp.jsonrpc import SERVER_NAME, JsonRpcDispatcher


@pytest.fixture()
def dispatcher(http_gateway) -> JsonRpcDispatcher:
    return JsonRpcDispatcher(http_gateway)


def _request(method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


class TestLifecycle:
    async def test_initialize_echoes_version(self, dispatcher):
        response = await dispatcher.dispatch(
            _request("initialize", {"protocolVersion": "2024-11-05"})
        )
        result = response["result"]
        assert result["protocolVersion"] == "2024-11-05"
        assert result["serverInfo"]["name"] == SERVER_NAME
        assert "tools" in result["capabilities"]

    async def test_initialize_defaults_to_latest(self, dispatcher):
        response = await dispatcher.dispatch(_request("initialize"))
        assert response["result"]["protocolVersion"] == LATEST_PROTOCOL_VERSION

    async def test_ping(self, dispatcher):
        response = await dispatcher.dispatch(_request("ping", request_id="abc"))
        assert response == {"jsonrpc": "2.0", "id": "abc", "result": {}}

    async def test_notification_has_no_response(self, dispatcher):
        message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
        assert await dispatcher.dispatch(message) is None


class TestErrors:
    @pytest.mark.parametrize("message", [[], "hello", {"id": 3}, {"id": 3, "method": 7}])
    async def test_invalid_request(self, dispatcher, message):
        response = await dispatcher.dispatch(message)
        assert response["error"]["code"] == -32600

    async def test_unknown_method(self, dispatcher):
        response = await dispatcher.dispatch(_request("resources/list"))
        assert response["error"]["code"] == -32601

    async def test_tools_call_without_name(self, dispatcher):
        response = await dispatcher.dispatch(_request("tools/call", {"arguments": {}}))
        assert response["error"]["code"] == -32602

    async def test_non_object_params(self, dispatcher):
        response = await dispatcher.dispatch(_request("tools/call", ["x"]))
        assert response["error"]["code"] == -32602

    async def test_internal_error(self, dispatcher, monkeypatch):
        async def explode(name, arguments):
            raise RuntimeError("boom")

        monkeypatch.setattr(dispatcher.gateway, "call_tool", explode)
        response = await dispatcher.dispatch(_request("tools/call", {"name": "get_page_html"}))
        assert response["error"]["code"] == -32603


class TestTools:
    async def test_list_includes_api_key(self, dispatcher):
        response = await dispatcher.dispatch(_request("tools/list"))
        tools = response["result"]["tools"]
        assert [t["name"] for t in tools] == [
            "test_extract_rules",
            "get_page_html",
            "get_screenshot",
        ]
        assert all("api_key" in t["inputSchema"]["required"] for t in tools)

    async def test_call_success(self, dispatcher, scrapingbee):
        response = await dispatcher.dispatch(
            _request(
                "tools/call",
                {
                    "name": "test_extract_rules",
                    "arguments": {
                        "url": "https://example.com/",
                        "extract_rules": '{"title": "h1"}',
                        "api_key": "caller",
                    },
                },
            )
        )
        result = response["result"]
        assert result["isError"] is False
        payload = json.loads(result["content"][0]["text"])
        assert payload["data"] == {"title": "Example"}

    async def test_tool_failure_is_a_result(self, dispatcher):
        response = await dispatcher.dispatch(
            _request("tools/call", {"name": "test_extract_rules", "arguments": {}})
        )
        assert "error" not in response
        assert response["result"]["isError"] is True
        payload = json.loads(response["result"]["content"][0]["text"])
        assert payload["error_code"] == "VALIDATION"
