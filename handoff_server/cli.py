#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
CLI interface for the handoff server.

Starts the server on the stdio (mcp) or HTTP transport.

Usage:
    handoff-server [--mode mcp|http] [--port PORT] [--handoff-root PATH]
    python3 -m handoff_server [args]
"""

import argparse
import signal
import sys
from typing import Callable, List, Optional

import uvicorn

# Handle both module import and direct script execution
try:
    from handoff_server.config import ServerConfig, load_config
    from handoff_server.debug_logger import get_logger
    from handoff_server.engine import HandoffEngine, create_engine
    from handoff_server.http_api import create_app
    from handoff_server.models import SERVER_NAME, SERVER_VERSION, ServerMode
    from handoff_server.stdio_server import serve_stdio
except ImportError:
    from config import ServerConfig, load_config
    from debug_logger import get_logger
    from engine import HandoffEngine, create_engine
    from http_api import create_app
    from models import SERVER_NAME, SERVER_VERSION, ServerMode
    from stdio_server import serve_stdio


EPILOG = """
examples:
  # Run in MCP mode (default - communicates via stdin/stdout)
  handoff-server

  # Run HTTP server on default port (3001)
  handoff-server --mode http

  # Run HTTP server on custom port with a custom handoff directory
  handoff-server --mode http --port 3002 --handoff-root ./my-handoffs

modes:
  mcp    JSON-RPC over stdin/stdout, one request per line
  http   HTTP server: POST /mcp for requests, GET /health for probes

environment variables:
  PORT            Default port for HTTP mode (default: 3001)
  HOST            Default bind host for HTTP mode (default: 127.0.0.1)
  HANDOFF_ROOT    Default handoff directory (default: ./handoff-system)
  HTTP_MODE       Set to 'true' to default to HTTP mode
  HANDOFF_DEBUG   Debug log level 0-3 (log at ~/.local/state/handoff-server/debug.log)
"""


def _log(message: str) -> None:
    """Print a status line to stderr (stdout carries the stdio protocol)."""
    print(message, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="handoff-server",
        description=f"{SERVER_NAME} - AI agent handoff management",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--mode", "-m", help="Operation mode: 'mcp' or 'http' (default: mcp)")
    parser.add_argument("--port", "-p", help="HTTP server port (default: 3001, only for http mode)")
    parser.add_argument("--host", help="HTTP bind host (default: 127.0.0.1, only for http mode)")
    parser.add_argument("--handoff-root", "-r", help="Path to handoff system directory")
    parser.add_argument(
        "--version", "-v", action="version", version=f"{SERVER_NAME} v{SERVER_VERSION}"
    )
    return parser


def run_http(engine: HandoffEngine, config: ServerConfig) -> int:
    """Run the HTTP transport until interrupted."""
    uvicorn.run(create_app(engine), host=config.host, port=config.port, log_level="info")
    return 0


def run_stdio(engine: HandoffEngine, config: ServerConfig) -> int:
    """Run the stdio transport until stdin closes."""
    _log("Running in MCP mode - communicating via stdin/stdout")
    _log("Send JSON-RPC 2.0 messages, one per line")
    serve_stdio(engine)
    return 0


def select_transport(config: ServerConfig) -> Callable[[HandoffEngine, ServerConfig], int]:
    """Return the runner for the configured transport."""
    if config.mode is ServerMode.HTTP:
        return run_http
    return run_stdio


def _shutdown(signum, frame) -> None:
    _log(f"\nShutting down {SERVER_NAME}...")
    sys.exit(0)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(
            mode=args.mode,
            port=args.port,
            host=args.host,
            handoff_root=args.handoff_root,
        )
    except ValueError as e:
        _log(f"Error: {e}")
        return 1

    _log(f"Starting {SERVER_NAME}...")
    _log(f"Mode: {config.mode.value}")
    _log(f"Handoff Root: {config.handoff_root}")
    if config.mode is ServerMode.HTTP:
        _log(f"Port: {config.port}")

    runner = select_transport(config)
    if config.mode is ServerMode.MCP:
        signal.signal(signal.SIGTERM, _shutdown)

    try:
        engine = create_engine(config.handoff_root)
        get_logger().server_start(
            mode=config.mode.value,
            handoff_root=str(config.handoff_root),
            port=config.port if config.mode is ServerMode.HTTP else None,
        )
        return runner(engine, config)
    except KeyboardInterrupt:
        _log(f"\nShutting down {SERVER_NAME}...")
        return 0
    except (OSError, ValueError) as e:
        get_logger().error("startup", str(e))
        _log(f"Error starting {SERVER_NAME}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
