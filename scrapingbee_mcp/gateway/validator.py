"""Validate raw tool arguments before anything is sent upstream.

Rules run in a fixed order and stop at the first failure:

1. required fields present (``api_key`` too when the key is a call argument)
2. JSON-encoded fields parse (``extract_rules``, then ``js_scenario``)
3. ``wait`` within 0..35000
4. ``country_code`` is two lowercase letters
5. remaining field types, via the tool's argument model
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from scrapingbee_mcp.config import ApiKeyMode
from scrapingbee_mcp.errors import ErrorCode, ToolValidationError
from scrapingbee_mcp.logging import get_logger
from scrapingbee_mcp.models import COUNTRY_CODE_PATTERN, MAX_WAIT_MS

if TYPE_CHECKING:
    from scrapingbee_mcp.gateway.registry import ToolSpec

_logger = get_logger("validator")

_COUNTRY_CODE_RE = re.compile(COUNTRY_CODE_PATTERN)


@dataclass(frozen=True)
class ValidatedArguments:
    """Arguments that passed validation, plus the decoded JSON fields."""

    params: BaseModel
    decoded: dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return self.params.url  # type: ignore[attr-defined]

    @property
    def api_key(self) -> str | None:
        return getattr(self.params, "api_key", None)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_required(required: tuple[str, ...], args: Mapping[str, Any]) -> None:
    missing = [name for name in required if _is_blank(args.get(name))]
    if missing:
        raise ToolValidationError(
            f"Missing required parameters: {', '.join(missing)}",
            hint=f"Required parameters: {', '.join(required)}",
        )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"number {text} is out of range")
    return value


def loads_json(text: str | bytes) -> Any:
    """``json.loads`` that also rejects NaN, Infinity and overflowing numbers."""
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def _decode_json_field(name: str, value: Any) -> Any:
    if not isinstance(value, str):
        raise ToolValidationError(
            f"Invalid {name}: expected a JSON-encoded string, got {type(value).__name__}",
            hint=f"The {name} parameter must be a valid JSON string",
        )
    try:
        return loads_json(value)
    except RecursionError as exc:
        raise ToolValidationError(
            f"Invalid {name} JSON: nested too deeply",
            hint=f"The {name} parameter must be a valid JSON string",
            code=ErrorCode.PARSE_ERROR,
            cause=exc,
        ) from exc
    except ValueError as exc:
        raise ToolValidationError(
            f"Invalid {name} JSON: {exc}",
            hint=f"The {name} parameter must be a valid JSON string ({exc})",
            code=ErrorCode.PARSE_ERROR,
            cause=exc,
        ) from exc


def _check_wait(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolValidationError(
            "Invalid wait value",
            hint="Wait must be an integer number of milliseconds",
        )
    if value < 0 or value > MAX_WAIT_MS:
        raise ToolValidationError(
            "Invalid wait value",
            hint=f"Wait must be between 0 and {MAX_WAIT_MS} milliseconds",
        )


def _check_country_code(value: Any) -> None:
    if not isinstance(value, str) or not _COUNTRY_CODE_RE.fullmatch(value):
        raise ToolValidationError(
            "Invalid country_code",
            hint="Country code must be a 2-letter lowercase code (e.g., us, de, br)",
        )


def _type_error_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def validate_arguments(
    spec: ToolSpec,
    arguments: Mapping[str, Any] | None,
    key_mode: ApiKeyMode,
) -> ValidatedArguments:
    """Check *arguments* for *spec*; raise ``ToolValidationError`` on failure."""
    args = dict(arguments or {})
    model = spec.argument_model(key_mode)

    if key_mode is ApiKeyMode.CONFIG and "api_key" in args:
        _logger.warning(
            "Ignoring api_key argument for %s: this server uses the configured key",
            spec.name,
        )
        args.pop("api_key")

    _check_required(spec.required_fields(key_mode), args)

    decoded: dict[str, Any] = {}
    for name in spec.json_fields:
        value = args.get(name)
        if _is_blank(value):
            continue
        decoded[name] = _decode_json_field(name, value)

    scenario = decoded.get("js_scenario")
    if "js_scenario" in decoded and not (
        isinstance(scenario, dict) and isinstance(scenario.get("instructions"), list)
    ):
        _logger.warning(
            'js_scenario should be an object with an "instructions" array; forwarding as-is'
        )

    if "wait" in model.model_fields and args.get("wait") is not None:
        _check_wait(args["wait"])

    if "country_code" in model.model_fields and not _is_blank(args.get("country_code")):
        _check_country_code(args["country_code"])

    # Blank optional strings count as "not supplied".
    for name in spec.json_fields + ("wait_for", "country_code"):
        if name in args and _is_blank(args[name]):
            args.pop(name)

    try:
        params = model.model_validate(args)
    except ValidationError as exc:
        raise ToolValidationError(
            f"Invalid parameter types: {_type_error_message(exc)}",
            hint="Check parameter types match the tool's input schema",
            cause=exc,
        ) from exc

    return ValidatedArguments(params=params, decoded=decoded)
