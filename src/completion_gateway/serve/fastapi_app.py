"""FastAPI gateway in front of the hosted completion API.

Endpoints:
- GET /health
- POST /generate  { "model"?, "prompt", "stream"?, "max_tokens"?, "temperature"? }
"""
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from completion_gateway.common.config import GatewaySettings, load_settings
from completion_gateway.common.errors import BadRequestError, GatewayError
from completion_gateway.common.schema import GenerationRequest, GenerationResponse
from completion_gateway.serve.translator import STREAM_HEADERS, StreamRelay, translate_completion
from completion_gateway.serve.upstream import UpstreamClient

LOGGER = logging.getLogger("completion_gateway.serve.app")


def _complete(client: UpstreamClient, req: GenerationRequest) -> GenerationResponse:
    response = client.open(req)
    try:
        return translate_completion(response, req.model)
    finally:
        response.close()


def create_app(
    settings: GatewaySettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Gateway configuration; read from file/environment when omitted.
        transport: Optional httpx transport for upstream calls (tests).
    """
    settings = settings or load_settings()
    client = UpstreamClient(settings, transport=transport)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        client.close()

    app = FastAPI(title="Completion Gateway", lifespan=lifespan)
    app.state.settings = settings
    app.state.upstream = client

    @app.middleware("http")
    async def _allow_any_origin(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    @app.exception_handler(GatewayError)
    async def _gateway_error(_: Request, exc: GatewayError) -> PlainTextResponse:
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "model": settings.default_model}

    @app.post("/generate")
    async def generate(request: Request) -> Response:
        body = await request.body()
        try:
            req = GenerationRequest.model_validate_json(body)
        except ValidationError as e:
            raise BadRequestError(str(e)) from e
        req = req.with_defaults(settings.default_model)
        LOGGER.info(
            "Generating completion model=%s stream=%s prompt_chars=%d",
            req.model,
            req.stream,
            len(req.prompt),
        )

        if not req.stream:
            result = await run_in_threadpool(_complete, client, req)
            return JSONResponse(result.model_dump(exclude_none=True))

        upstream = await run_in_threadpool(client.open, req)
        return StreamingResponse(iter(StreamRelay(upstream)), headers=STREAM_HEADERS)

    return app
