#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
HTTP transport: a FastAPI application exposing the RPC methods.

Routes:
    POST /mcp     JSON-RPC envelope, routed by ``method``
    GET  /health  liveness probe
"""

import json
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

# Handle both module import and direct script execution
try:
    from handoff_server.debug_logger import get_logger
    from handoff_server.engine import HandoffEngine
    from handoff_server.models import SERVER_NAME, SERVER_VERSION
    from handoff_server.rpc import RpcError, create_error_response, handle_request
except ImportError:
    from debug_logger import get_logger
    from engine import HandoffEngine
    from models import SERVER_NAME, SERVER_VERSION
    from rpc import RpcError, create_error_response, handle_request


def create_app(engine: HandoffEngine) -> FastAPI:
    """Create the FastAPI application serving the given engine."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_in_threadpool(engine.initialize_file_system)
        yield

    app = FastAPI(
        title=SERVER_NAME,
        description="Handoff document management for collaborating agents",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Basic health check."""
        return {"status": "healthy"}

    @app.post("/mcp")
    async def handle_mcp(request: Request):
        """Handle one JSON-RPC request; failures answer 400 with an error envelope."""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            get_logger().error("parse_request", str(e), {"transport": "http"})
            return JSONResponse(
                create_error_response(RpcError(f"Invalid JSON: {e}")),
                status_code=400,
            )

        response = await run_in_threadpool(handle_request, engine, body, 1, "http")
        status_code = 400 if "error" in response else 200
        return JSONResponse(response, status_code=status_code)

    return app
