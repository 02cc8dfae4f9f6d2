"""
Middleware Setup for the Routing API

Registers cross-origin resource sharing (CORS) for the configured frontend
and a path normalization middleware that collapses double slashes, so that
URLs such as `/heatstressrouting//api/v1/info` still reach their route.

Typical Use:
------------
Call `register_middleware(app)` during app initialization, before the app
starts serving requests.
"""
import re
from typing import Callable, Awaitable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from heatroute.core.config import FRONTEND

_SLASHES = re.compile(r"/{2,}")

class NormalizePathMiddleware(BaseHTTPMiddleware):
    """
    Replaces runs of slashes in the request path with a single slash.
    """
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.scope["path"]
        if "//" in path:
            request.scope["path"] = _SLASHES.sub("/", path)
        return await call_next(request)

def register_middleware(app: FastAPI) -> None:
    """
    Registers CORS for the frontend origin and the path normalization.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    app.add_middleware(CORSMiddleware,
        allow_origins=[FRONTEND],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(NormalizePathMiddleware)
