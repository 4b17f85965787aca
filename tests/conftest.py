"""Shared fixtures for scrapingbee-mcp tests."""

import json
import re
import socket
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from threading import Thread
from urllib.parse import parse_qs, urlparse

import pytest

from scrapingbee_mcp.config import ApiKeyMode, GatewayConfig
from scrapingbee_mcp.gateway import ExtractionGateway

# 1x1 transparent PNG, padded so its base64 form exceeds the preview size.
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
    b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
) + b"\x00" * 1000

SAMPLE_HTML = (
    "<html><head><title>Example</title></head><body>"
    '<h1>Example Domain</h1><div class="price">19.99</div>'
    "</body></html>"
)

BIG_HTML_LENGTH = 60_000


# ---------------------------------------------------------------------------
# Mock ScrapingBee API
# ---------------------------------------------------------------------------

class ScrapingBeeHandler(BaseHTTPRequestHandler):
    """Imitates the ScrapingBee endpoint; the reply depends on the target url.

    Target paths:
    - /status/{code}  → that status with a JSON error body
    - /delay/{n}      → sleep n seconds, then 200 JSON
    - /empty          → 200 {"title": "", "items": []}
    - /text           → 200 non-JSON text
    - /json           → 200 JSON (for get_page_html)
    - /big            → 200 HTML of BIG_HTML_LENGTH characters
    - anything else   → PNG when screenshot=true, JSON when extract_rules is
                        present, HTML otherwise
    """

    def _reply(self, status, body, content_type, headers=None):
        if isinstance(body, str):
            body = body.encode()
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        query = {k: v[0] for k, v in parse_qs(urlparse(self.path).query).items()}
        self.server.requests.append(query)

        target = urlparse(query.get("url", ""))
        path = target.path
        cost = {"Spb-Cost": "5", "Spb-Resolved-Url": query.get("url", "")}

        status_match = re.match(r"^/status/(\d+)$", path)
        if status_match:
            code = int(status_match.group(1))
            body = json.dumps({"error": f"Upstream said {code}", "message": "mock failure"})
            headers = {"Spb-Cost": "0", "Spb-Initial-Status-Code": str(code)}
            self._reply(code, body, "application/json", headers)
            return

        delay_match = re.match(r"^/delay/(\d+)$", path)
        if delay_match:
            time.sleep(int(delay_match.group(1)))
            self._reply(200, '{"title": "late"}', "application/json", cost)
            return

        if path == "/empty":
            self._reply(200, '{"title": "", "items": []}', "application/json", cost)
            return

        if path == "/text":
            self._reply(200, "definitely not json", "text/plain", cost)
            return

        if path == "/json":
            self._reply(200, '{"ip": "1.2.3.4"}', "application/json", cost)
            return

        if path == "/big":
            self._reply(200, "x" * BIG_HTML_LENGTH, "text/html", cost)
            return

        if query.get("screenshot") == "true":
            self._reply(200, PNG_BYTES, "image/png", cost)
            return

        if "extract_rules" in query:
            self._reply(200, '{"title": "Example"}', "application/json", cost)
            return

        self._reply(200, SAMPLE_HTML, "text/html", cost)

    def log_message(self, format, *args):
        pass


@dataclass
class MockScrapingBee:
    """Handle on the running mock API."""

    api_url: str
    requests: list = field(default_factory=list)

    @property
    def last_query(self) -> dict:
        return self.requests[-1]


@pytest.fixture()
def scrapingbee():
    """Start a mock ScrapingBee API on a random port."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), ScrapingBeeHandler)
    server.daemon_threads = True
    server.requests = []
    port = server.server_address[1]
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield MockScrapingBee(api_url=f"http://127.0.0.1:{port}/api/v1/", requests=server.requests)
    server.shutdown()
    server.server_close()


@pytest.fixture()
def closed_port_url() -> str:
    """An API url nothing is listening on."""
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/api/v1/"


@pytest.fixture()
def config(scrapingbee) -> GatewayConfig:
    """Gateway configuration pointing at the mock API."""
    return GatewayConfig(api_key="test-key", api_url=scrapingbee.api_url, timeout=5.0)


@pytest.fixture()
def gateway(config) -> ExtractionGateway:
    """Gateway as served over stdio (key from configuration)."""
    return ExtractionGateway(config, ApiKeyMode.CONFIG)


@pytest.fixture()
def http_gateway(config) -> ExtractionGateway:
    """Gateway as served over HTTP (key passed per call)."""
    return ExtractionGateway(config, ApiKeyMode.ARGUMENT)
