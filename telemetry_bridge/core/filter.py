"""Exception filter registration for FastAPI applications."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from telemetry_bridge.core.errors import HttpError
from telemetry_bridge.core.errors import classify_exception
from telemetry_bridge.core.normalizer import Normalizer
from telemetry_bridge.schemas.telemetry import RequestContext


def request_context_from(request: Request) -> RequestContext:
    """Snapshot the request identity used for failure attribution."""
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return RequestContext(method=request.method, url=url, headers=dict(request.headers))


def build_exception_handler(normalizer: Normalizer):
    """Return an exception handler that routes every failure through the normalizer."""

    async def exception_filter(request: Request, exc: Exception) -> JSONResponse:
        failure = classify_exception(exc)
        context = request_context_from(request)
        status_code, body = await run_in_threadpool(normalizer.handle, failure, context)
        headers = exc.headers if isinstance(exc, StarletteHTTPException) else None
        return JSONResponse(status_code=status_code, content=body, headers=headers)

    return exception_filter


def register_exception_filter(app: FastAPI, normalizer: Normalizer) -> None:
    """Attach the normalizing exception filter to a FastAPI app instance."""
    handler = build_exception_handler(normalizer)
    app.add_exception_handler(RequestValidationError, handler)
    app.add_exception_handler(StarletteHTTPException, handler)
    app.add_exception_handler(HttpError, handler)
    app.add_exception_handler(Exception, handler)
