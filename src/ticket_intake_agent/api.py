"""FastAPI application exposing the ticket intake chat endpoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings
from .models import ChatPayload
from .router import TicketIntakeService

LOGGER = structlog.get_logger(__name__)

CHAT_PATH = "/api/chat"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
ROUTE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(service: Optional[TicketIntakeService] = None) -> FastAPI:
    """Build the app; without an injected service one is created from ``Settings`` at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "service", None) is None:
            app.state.service = TicketIntakeService.from_settings(Settings())
            LOGGER.info("api.startup", version=__version__)
        yield

    app = FastAPI(title="Ticket Intake Agent", version=__version__, lifespan=lifespan)
    app.state.service = service

    async def method_not_allowed(request: Request, exc: StarletteHTTPException) -> Response:
        return JSONResponse({"error": "Method not allowed"}, status_code=405, headers=CORS_HEADERS)

    app.add_exception_handler(405, method_not_allowed)

    @app.api_route(CHAT_PATH, methods=ROUTE_METHODS)
    async def chat(request: Request) -> Response:
        """Answer one chat turn or save a request-form submission."""

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        if request.method != "POST":
            return JSONResponse({"error": "Method not allowed"}, status_code=405, headers=CORS_HEADERS)

        try:
            body: Any = await request.json()
            payload = ChatPayload.model_validate(body if isinstance(body, dict) else {})
            reply = await request.app.state.service.handle(payload)
        except Exception as exc:
            LOGGER.exception("api.request_failed", error=str(exc))
            return JSONResponse({"error": str(exc)}, status_code=500, headers=CORS_HEADERS)

        return JSONResponse(reply.to_body(), status_code=200, headers=CORS_HEADERS)

    return app


app = create_app()
