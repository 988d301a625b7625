#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Startup configuration for the handoff server.

Command-line options win over environment variables, which win over the
defaults. The resolved ServerConfig is passed explicitly to the transport;
nothing reads the environment after startup.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

# Handle both module import and direct script execution
try:
    from handoff_server.models import ServerMode
except ImportError:
    from models import ServerMode

DEFAULT_PORT = 3001
DEFAULT_HOST = "127.0.0.1"
DEFAULT_HANDOFF_ROOT = "./handoff-system"


@dataclass(frozen=True)
class ServerConfig:
    """Resolved server configuration."""
    mode: ServerMode = ServerMode.MCP
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    handoff_root: Path = Path(DEFAULT_HANDOFF_ROOT)


def parse_port(value) -> int:
    """
    Parse a TCP port.

    Raises:
        ValueError: If not an integer in 1-65535
    """
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid port: {value}. Must be a number between 1-65535.")
    if port < 1 or port > 65535:
        raise ValueError(f"Invalid port: {value}. Must be a number between 1-65535.")
    return port


def parse_mode(value: str) -> ServerMode:
    """
    Parse a server mode name.

    Raises:
        ValueError: If not 'mcp' or 'http'
    """
    try:
        return ServerMode(value)
    except ValueError:
        raise ValueError(f"Invalid mode: {value}. Use 'http' or 'mcp'.")


def _get_handoff_root(env: Mapping[str, str]) -> Path:
    """Get the handoff root: HANDOFF_ROOT or ./handoff-system."""
    return Path(env.get("HANDOFF_ROOT") or DEFAULT_HANDOFF_ROOT)


def load_config(
    mode: Optional[str] = None,
    port: Optional[int] = None,
    host: Optional[str] = None,
    handoff_root: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ServerConfig:
    """
    Resolve configuration from explicit options and the environment.

    Args:
        mode: 'mcp' or 'http'; falls back to HTTP_MODE=true -> http
        port: HTTP port; falls back to PORT, then 3001
        host: HTTP bind host; falls back to HOST, then 127.0.0.1
        handoff_root: Handoff directory; falls back to HANDOFF_ROOT
        env: Environment mapping (defaults to os.environ)

    Raises:
        ValueError: If mode or port is invalid
    """
    env = os.environ if env is None else env

    if mode is not None:
        resolved_mode = parse_mode(mode)
    elif env.get("HTTP_MODE", "").lower() == "true":
        resolved_mode = ServerMode.HTTP
    else:
        resolved_mode = ServerMode.MCP

    if port is not None:
        resolved_port = parse_port(port)
    elif env.get("PORT"):
        resolved_port = parse_port(env["PORT"])
    else:
        resolved_port = DEFAULT_PORT

    return ServerConfig(
        mode=resolved_mode,
        port=resolved_port,
        host=host or env.get("HOST") or DEFAULT_HOST,
        handoff_root=Path(handoff_root) if handoff_root else _get_handoff_root(env),
    )
