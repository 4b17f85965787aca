"""Pydantic models shared by the gateway and the transports."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scrapingbee_mcp.errors import ErrorCode

MAX_WAIT_MS = 35000
COUNTRY_CODE_PATTERN = r"^[a-z]{2}$"

WaitBrowser = Literal["domcontentloaded", "load", "networkidle0", "networkidle2"]

TargetUrl = Annotated[str, Field(description="The target page URL to scrape")]
RenderJs = Annotated[
    bool | None,
    Field(description="Enable a headless browser to execute JavaScript before extraction"),
]
WaitMs = Annotated[
    int | None,
    Field(
        ge=0,
        le=MAX_WAIT_MS,
        description="Fixed delay in milliseconds before returning the response (0-35000)",
    ),
]
WaitFor = Annotated[
    str | None,
    Field(description="CSS/XPath selector to wait for before returning"),
]
PremiumProxy = Annotated[
    bool | None,
    Field(description="Use residential proxy for scraper-resistant sites"),
]


class ExtractRulesArguments(BaseModel):
    """Arguments of ``test_extract_rules``."""

    model_config = ConfigDict(extra="ignore")

    url: TargetUrl
    extract_rules: str = Field(
        description=(
            "JSON-encoded string describing what to extract. Use simple format for "
            'single fields: {"title": "h1"}. Use list format for arrays: '
            '{"items": {"selector": ".item", "type": "list", "output": {"name": ".name"}}}. '
            "IMPORTANT: ScrapingBee uses a LIMITED CSS subset - avoid :nth-of-type(), "
            ":nth-child(), :not(), :has() and other pseudo-selectors. Use class names "
            "and IDs instead."
        ),
    )
    js_scenario: str | None = Field(
        default=None,
        description=(
            'Optional JSON-encoded string. MUST be an object with "instructions" array: '
            '{"instructions": [{"wait": 1000}, {"click": ".button"}]}. NEVER pass empty '
            "array [] - omit this parameter if no actions needed. Available actions: "
            "wait (ms), click (selector), fill (selector+value), scroll_y (pixels), "
            "wait_for (selector)."
        ),
    )
    render_js: RenderJs = None
    wait: WaitMs = None
    wait_for: WaitFor = None
    wait_browser: WaitBrowser | None = Field(
        default=None,
        description="Browser event to wait for (e.g., domcontentloaded)",
    )
    premium_proxy: PremiumProxy = None
    stealth_proxy: bool | None = Field(
        default=None,
        description="Use stealth proxy for the hardest-to-scrape sites (most expensive option)",
    )
    country_code: str | None = Field(
        default=None,
        pattern=COUNTRY_CODE_PATTERN,
        description="Proxy geolocation (e.g., us, de, br)",
    )
    session_id: int | None = Field(
        default=None,
        description="Keep the same IP across multiple requests (sticky sessions)",
    )
    custom_google: bool | None = Field(
        default=None,
        description="Enable Google-specific handling (always true for Google domains)",
    )
    block_resources: bool | None = Field(
        default=None,
        description="Block images and CSS to speed up rendering",
    )
    block_ads: bool | None = Field(
        default=None,
        description="Block ads on the page while rendering",
    )


class PageHtmlArguments(BaseModel):
    """Arguments of ``get_page_html``."""

    model_config = ConfigDict(extra="ignore")

    url: TargetUrl
    render_js: RenderJs = None
    wait: WaitMs = None
    wait_for: WaitFor = None
    premium_proxy: PremiumProxy = None
    return_page_source: bool | None = Field(
        default=None,
        description="Return the unaltered HTML sent by the server, before any JavaScript runs",
    )


class ScreenshotArguments(BaseModel):
    """Arguments of ``get_screenshot``."""

    model_config = ConfigDict(extra="ignore")

    url: TargetUrl
    screenshot_full_page: bool | None = Field(
        default=None,
        description="Capture the whole scrollable page instead of the viewport",
    )
    window_width: int | None = Field(
        default=None,
        description="Browser viewport width in pixels",
    )
    window_height: int | None = Field(
        default=None,
        description="Browser viewport height in pixels",
    )
    wait: WaitMs = None
    wait_for: WaitFor = None
    premium_proxy: PremiumProxy = None


class UpstreamResponse(BaseModel):
    """Raw reply from the ScrapingBee API."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


class Diagnostic(BaseModel):
    """Structured description of a failed upstream call.

    Serialised with camelCase keys (``possibleCauses``, ``statusText``, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status_code: int
    status_text: str
    raw_response: str
    url: str | None = None
    possible_causes: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    api_error: Any = None
    api_message: Any = None
    credits_cost: str | None = None
    target_site_status_code: str | None = None
    resolved_url: str | None = None
    applied_params: dict[str, str] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolResult(BaseModel):
    """Outcome of one tool invocation, success or failure."""

    success: bool
    payload: dict[str, Any]
    error_code: ErrorCode | None = None

    @property
    def text(self) -> str:
        return json.dumps(self.payload, indent=2, default=str, allow_nan=False)
