"""HTTP front-end: streamable ``/mcp`` endpoint plus the legacy SSE transport.

Every tool served here takes the ScrapingBee key as an ``api_key`` argument.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import AsyncIterator
from typing import Any

import anyio
from sse_starlette.sse import EventSourceResponse
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from scrapingbee_mcp._version import __version__
from scrapingbee_mcp.config import ApiKeyMode, GatewayConfig
from scrapingbee_mcp.gateway import ExtractionGateway
from scrapingbee_mcp.logging import get_logger
from scrapingbee_mcp.mcp.jsonrpc import (
    SERVER_NAME,
    JsonRpcDispatcher,
    error_response,
    parse_error_response,
)
from scrapingbee_mcp.mcp.sessions import SessionStore, SseSession

_logger = get_logger("http")

NO_SESSION_CODE = -32000
NO_SESSION_MESSAGE = "Bad Request: No transport found for sessionId"


async def session_events(
    sessions: SessionStore, session: SseSession
) -> AsyncIterator[dict[str, str]]:
    """Server-sent events for one session: the endpoint, then each response."""
    try:
        yield {"event": "endpoint", "data": session.endpoint}
        async for message in session.messages():
            yield {"event": "message", "data": json.dumps(message)}
    finally:
        await sessions.close(session.session_id)


async def _decode_body(request: Request) -> Any:
    body = await request.body()
    return json.loads(body)


async def _deliver(
    dispatcher: JsonRpcDispatcher, session: SseSession, message: Any
) -> None:
    response = await dispatcher.dispatch(message)
    if response is None:
        return
    try:
        session.send(response)
    except anyio.WouldBlock:
        _logger.warning(
            "SSE session %s is not reading its stream; dropped response %r",
            session.session_id,
            response.get("id"),
        )
    except (anyio.ClosedResourceError, anyio.BrokenResourceError):
        _logger.warning(
            "SSE session %s closed before its response was delivered", session.session_id
        )


def create_app(config: GatewayConfig, sessions: SessionStore | None = None) -> Starlette:
    """Build the Starlette app serving ``/health``, ``/mcp``, ``/sse`` and ``/messages``."""
    if sessions is None:
        sessions = SessionStore()
    gateway = ExtractionGateway(config, ApiKeyMode.ARGUMENT)
    dispatcher = JsonRpcDispatcher(gateway)

    async def health(request: Request) -> Response:
        return JSONResponse(
            {
                "status": "ok",
                "service": SERVER_NAME,
                "version": __version__,
                "sessions": len(sessions),
            }
        )

    async def handle_mcp(request: Request) -> Response:
        try:
            message = await _decode_body(request)
        except ValueError:
            return JSONResponse(parse_error_response(), status_code=400)

        response = await dispatcher.dispatch(message)
        if response is None:
            return Response(status_code=202)
        return JSONResponse(response)

    async def handle_sse(request: Request) -> Response:
        session = sessions.open()
        return EventSourceResponse(session_events(sessions, session))

    async def handle_messages(request: Request) -> Response:
        session_id = request.query_params.get("sessionId")
        session = sessions.get(session_id)
        if session is None:
            _logger.warning("Message for unknown SSE session: %s", session_id)
            return JSONResponse(
                error_response(None, NO_SESSION_CODE, NO_SESSION_MESSAGE),
                status_code=400,
            )

        try:
            message = await _decode_body(request)
        except ValueError:
            return JSONResponse(parse_error_response(), status_code=400)

        # The response travels over the event stream, not this request.
        return Response(
            "Accepted",
            status_code=202,
            background=BackgroundTask(_deliver, dispatcher, session, message),
        )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        await sessions.close_all()

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/mcp", handle_mcp, methods=["POST"]),
            Route("/sse", handle_sse, methods=["GET"]),
            Route("/messages", handle_messages, methods=["POST"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
                expose_headers=["Mcp-Session-Id"],
            )
        ],
        lifespan=lifespan,
    )
    app.state.sessions = sessions
    app.state.gateway = gateway
    return app
