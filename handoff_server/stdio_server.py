#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Stdio transport: one JSON request per input line, one JSON response per
output line. Diagnostics go to stderr so stdout stays a clean channel.
"""

import json
import sys
from typing import Optional, TextIO, Union

# Handle both module import and direct script execution
try:
    from handoff_server.debug_logger import get_logger
    from handoff_server.engine import HandoffEngine
    from handoff_server.rpc import RpcError, create_error_response, handle_request
except ImportError:
    from debug_logger import get_logger
    from engine import HandoffEngine
    from rpc import RpcError, create_error_response, handle_request


def _write(stream: TextIO, message: dict) -> None:
    """Write a JSON-RPC message as one line and flush."""
    stream.write(json.dumps(message) + "\n")
    stream.flush()


def handle_line(engine: HandoffEngine, line: Union[str, bytes]) -> Optional[dict]:
    """
    Handle one input line, raw bytes or already decoded.

    Returns:
        The response envelope, or None for blank lines
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            get_logger().error("parse_request", str(e), {"transport": "stdio"})
            return create_error_response(RpcError(f"Parse error: {e.reason}"), request_id=None)

    line = line.strip()
    if not line:
        return None

    try:
        request = json.loads(line)
    except json.JSONDecodeError as e:
        get_logger().error("parse_request", str(e), {"transport": "stdio"})
        return create_error_response(RpcError(f"Parse error: {e.msg}"), request_id=None)

    return handle_request(engine, request, default_id=None, transport="stdio")


def serve_stdio(
    engine: HandoffEngine,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    """
    Serve requests until stdin closes.

    Returns:
        Number of responses written
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    engine.initialize_file_system()

    # Raw byte lines where available; handle_line decodes each one
    lines = getattr(stdin, "buffer", stdin)

    count = 0
    for line in lines:
        response = handle_line(engine, line)
        if response is None:
            continue
        _write(stdout, response)
        count += 1
    return count
