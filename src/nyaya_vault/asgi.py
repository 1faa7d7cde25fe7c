"""ASGI app hosting the MCP Streamable HTTP endpoint."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .mcp_server import create_mcp_server
from .settings import Settings
from .tree import VaultTree


async def health(_: Request) -> Response:
    return JSONResponse({"ok": True})


def create_app(settings: Settings | None = None, vault: VaultTree | None = None) -> Starlette:
    settings = settings or Settings()
    mcp = create_mcp_server(settings, vault)

    @contextlib.asynccontextmanager
    async def lifespan(_: Starlette) -> AsyncIterator[None]:
        # Streamable HTTP transport uses a session manager.
        async with mcp.session_manager.run():
            yield

    app = Starlette(
        routes=[
            Route("/health", endpoint=health, methods=["GET"]),
        ],
        lifespan=lifespan,
    )

    # Mount MCP at /mcp (default for streamable-http when mounted at /).
    app.mount("/", mcp.streamable_http_app())
    return app
