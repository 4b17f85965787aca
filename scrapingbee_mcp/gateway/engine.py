"""Tool-call orchestration, independent of any transport.

    gateway = ExtractionGateway(GatewayConfig(api_key="..."), ApiKeyMode.CONFIG)
    result = await gateway.call_tool("test_extract_rules", {"url": ..., "extract_rules": ...})
    print(result.text)

Flow: registry -> validator -> translator -> classifier or shaper.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from scrapingbee_mcp.config import ApiKeyMode, GatewayConfig
from scrapingbee_mcp.errors import ErrorCode, MissingApiKeyError, ToolValidationError
from scrapingbee_mcp.gateway import shaper
from scrapingbee_mcp.gateway.classifier import CATEGORY_SUGGESTIONS, http_error
from scrapingbee_mcp.gateway.registry import TOOLS, ToolSpec, get_tool
from scrapingbee_mcp.gateway.translator import ScrapingBeeClient, build_query, redact
from scrapingbee_mcp.gateway.validator import ValidatedArguments, validate_arguments
from scrapingbee_mcp.logging import get_logger
from scrapingbee_mcp.models import ToolResult

_logger = get_logger("gateway")


class ExtractionGateway:
    """Runs tool calls against the ScrapingBee API.

    Holds no per-call state, so one instance can serve concurrent calls.
    The key mode is fixed for the lifetime of the gateway.
    """

    def __init__(self, config: GatewayConfig, key_mode: ApiKeyMode) -> None:
        self.config = config
        self.key_mode = key_mode

    @property
    def tools(self) -> list[ToolSpec]:
        return list(TOOLS.values())

    def _resolve_api_key(self, validated: ValidatedArguments) -> str:
        if self.key_mode is ApiKeyMode.ARGUMENT:
            # Presence was checked by the validator.
            return validated.api_key  # type: ignore[return-value]
        if not self.config.api_key:
            raise MissingApiKeyError(
                "SCRAPINGBEE_API_KEY environment variable is not set",
                suggestions=list(CATEGORY_SUGGESTIONS[ErrorCode.AUTH]),
            )
        return self.config.api_key

    async def _execute(self, spec: ToolSpec, validated: ValidatedArguments) -> ToolResult:
        api_key = self._resolve_api_key(validated)
        query = build_query(validated.params, spec.query_fields, api_key, spec.fixed_query)

        _logger.info("%s: requesting %s", spec.name, validated.url)
        async with ScrapingBeeClient(self.config) as client:
            response = await client.get(query)

        if not response.ok:
            raise http_error(response, validated.url, redact(query))

        cost = response.header("spb-cost")
        if cost is not None:
            _logger.info("%s: %s credits used for %s", spec.name, cost, validated.url)
        return spec.shape(response, validated)

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None) -> ToolResult:
        """Run one tool call. Never raises; failures come back as results."""
        spec = get_tool(name)
        if spec is None:
            _logger.error("Unknown tool requested: %s", name)
            return shaper.invalid_tool(name, list(TOOLS))

        try:
            validated = validate_arguments(spec, arguments, self.key_mode)
        except ToolValidationError as exc:
            _logger.error("%s rejected [%s]: %s", name, exc.code.value, exc.message)
            return shaper.validation_failure(exc)

        try:
            return await self._execute(spec, validated)
        except Exception as exc:
            result = shaper.failure(exc, self._context(spec, validated))
            _logger.error("%s failed [%s]: %s", name, result.error_code.value, exc)
            return result

    def _context(self, spec: ToolSpec, validated: ValidatedArguments) -> dict[str, Any]:
        required = set(spec.required_fields(self.key_mode))
        supplied = validated.params.model_fields_set - required
        return {
            "operation": spec.name,
            "url": validated.url,
            "supplied_parameters": sorted(supplied),
        }
