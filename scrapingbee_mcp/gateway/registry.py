"""Declarative tool table shared by every front-end."""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mcp.types import Tool, ToolAnnotations
from pydantic import BaseModel, Field, create_model

from scrapingbee_mcp.config import ApiKeyMode
from scrapingbee_mcp.gateway import shaper
from scrapingbee_mcp.gateway.validator import ValidatedArguments
from scrapingbee_mcp.models import (
    ExtractRulesArguments,
    PageHtmlArguments,
    ScreenshotArguments,
    ToolResult,
    UpstreamResponse,
)

Shape = Callable[[UpstreamResponse, ValidatedArguments], ToolResult]

API_KEY_DESCRIPTION = "Your ScrapingBee API key"


@functools.cache
def _with_api_key(model: type[BaseModel]) -> type[BaseModel]:
    """Derive a model that also requires ``api_key``."""
    return create_model(  # type: ignore[call-overload, no-any-return]
        model.__name__,
        __base__=model,
        api_key=(str, Field(description=API_KEY_DESCRIPTION)),
    )


@dataclass(frozen=True)
class ToolSpec:
    """One tool: its schema, its upstream query mapping and its result shape."""

    name: str
    title: str
    description: str
    arguments: type[BaseModel]
    query_fields: tuple[str, ...]
    shape: Shape
    annotations: ToolAnnotations
    json_fields: tuple[str, ...] = ()
    fixed_query: tuple[tuple[str, str], ...] = ()

    def argument_model(self, key_mode: ApiKeyMode) -> type[BaseModel]:
        if key_mode is ApiKeyMode.ARGUMENT:
            return _with_api_key(self.arguments)
        return self.arguments

    def required_fields(self, key_mode: ApiKeyMode) -> tuple[str, ...]:
        model = self.argument_model(key_mode)
        required = tuple(n for n, f in model.model_fields.items() if f.is_required())
        # api_key is reported last, after the tool's own fields.
        if "api_key" in required:
            required = tuple(n for n in required if n != "api_key") + ("api_key",)
        return required

    def input_schema(self, key_mode: ApiKeyMode) -> dict[str, Any]:
        schema = self.argument_model(key_mode).model_json_schema()
        schema.pop("title", None)
        return schema

    def to_mcp_tool(self, key_mode: ApiKeyMode) -> Tool:
        return Tool(
            name=self.name,
            title=self.title,
            description=self.description,
            inputSchema=self.input_schema(key_mode),
            annotations=self.annotations,
        )


def _annotations(title: str) -> ToolAnnotations:
    # Every call spends credits and the target page may change between calls.
    return ToolAnnotations(
        title=title,
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )


EXTRACT_RULES_TOOL = ToolSpec(
    name="test_extract_rules",
    title="Test Extract Rules",
    description=(
        "Test ScrapingBee extract_rules against a live page and return the extracted "
        "data. Fails with EXTRACTION_EMPTY when every extracted field is empty, so "
        "selectors that match nothing are never reported as working."
    ),
    arguments=ExtractRulesArguments,
    query_fields=(
        "url",
        "extract_rules",
        "js_scenario",
        "render_js",
        "wait",
        "wait_for",
        "wait_browser",
        "premium_proxy",
        "stealth_proxy",
        "country_code",
        "session_id",
        "custom_google",
        "block_resources",
        "block_ads",
    ),
    json_fields=("extract_rules", "js_scenario"),
    shape=shaper.shape_extraction,
    annotations=_annotations("Test Extract Rules"),
)

PAGE_HTML_TOOL = ToolSpec(
    name="get_page_html",
    title="Get Page HTML",
    description=(
        "Fetch the HTML of a page through ScrapingBee. Useful for inspecting the "
        "page structure before writing extract_rules. Output is truncated to "
        f"{shaper.MAX_HTML_CHARS} characters."
    ),
    arguments=PageHtmlArguments,
    query_fields=(
        "url",
        "render_js",
        "wait",
        "wait_for",
        "premium_proxy",
        "return_page_source",
    ),
    shape=shaper.shape_page_html,
    annotations=_annotations("Get Page HTML"),
)

SCREENSHOT_TOOL = ToolSpec(
    name="get_screenshot",
    title="Get Screenshot",
    description=(
        "Take a screenshot of a page through ScrapingBee. Returns the start of the "
        "base64-encoded PNG together with its full encoded length."
    ),
    arguments=ScreenshotArguments,
    query_fields=(
        "url",
        "screenshot_full_page",
        "window_width",
        "window_height",
        "wait",
        "wait_for",
        "premium_proxy",
    ),
    fixed_query=(("screenshot", "true"),),
    shape=shaper.shape_screenshot,
    annotations=_annotations("Get Screenshot"),
)

TOOLS: dict[str, ToolSpec] = {
    spec.name: spec for spec in (EXTRACT_RULES_TOOL, PAGE_HTML_TOOL, SCREENSHOT_TOOL)
}


def get_tool(name: str) -> ToolSpec | None:
    return TOOLS.get(name)
