#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
JSON-RPC dispatch shared by the HTTP and stdio transports.

Both transports hand a decoded request envelope to ``handle_request`` and
send back whatever it returns, so neither holds any business logic.
"""

from typing import Any, Dict, List, Tuple, Type

from pydantic import BaseModel, ValidationError

# Handle both module import and direct script execution
try:
    from handoff_server.debug_logger import get_logger
    from handoff_server.engine import HandoffEngine
    from handoff_server.models import JSONRPC_VERSION, RPC_ERROR_CODE
    from handoff_server.schemas import (
        ArchiveHandoffInput,
        CompleteHandoffInput,
        CreateHandoffInput,
        ListHandoffsInput,
        ReadHandoffInput,
        UpdateHandoffInput,
    )
except ImportError:
    from debug_logger import get_logger
    from engine import HandoffEngine
    from models import JSONRPC_VERSION, RPC_ERROR_CODE
    from schemas import (
        ArchiveHandoffInput,
        CompleteHandoffInput,
        CreateHandoffInput,
        ListHandoffsInput,
        ReadHandoffInput,
        UpdateHandoffInput,
    )


# method name -> (params schema, engine method name)
METHODS: Dict[str, Tuple[Type[BaseModel], str]] = {
    "read_handoff": (ReadHandoffInput, "read_handoff"),
    "create_handoff": (CreateHandoffInput, "create_handoff"),
    "update_handoff": (UpdateHandoffInput, "update_handoff"),
    "complete_handoff": (CompleteHandoffInput, "complete_handoff"),
    "archive_handoff": (ArchiveHandoffInput, "archive_handoff"),
    "list_handoffs": (ListHandoffsInput, "list_handoffs"),
}


class RpcError(ValueError):
    """Error raised while handling a request, carrying the envelope's data field."""

    def __init__(self, message: str, data: Any = None):
        super().__init__(message)
        self.message = message
        self.data = data


def create_response(result: Any, request_id: Any = 1) -> Dict[str, Any]:
    """Build a success envelope."""
    return {"jsonrpc": JSONRPC_VERSION, "result": result, "id": request_id}


def create_error_response(error: Exception, request_id: Any = 1) -> Dict[str, Any]:
    """Build an error envelope; every error uses code -32000."""
    if isinstance(error, RpcError):
        message, data = error.message, error.data
    else:
        message = str(error) or "Internal server error"
        data = {"type": type(error).__name__}
    return {
        "jsonrpc": JSONRPC_VERSION,
        "error": {"code": RPC_ERROR_CODE, "message": message, "data": data},
        "id": request_id,
    }


def _field_errors(error: ValidationError) -> List[Dict[str, Any]]:
    """Field-level detail of a validation error, JSON-safe."""
    return [
        {
            "loc": [str(part) for part in detail["loc"]],
            "msg": detail["msg"],
            "type": detail["type"],
        }
        for detail in error.errors()
    ]


def _to_jsonable(result: Any) -> Any:
    return result.to_dict() if hasattr(result, "to_dict") else result


def dispatch(engine: HandoffEngine, method: Any, params: Any) -> Any:
    """
    Validate params for a method and run it against the engine.

    Raises:
        RpcError: For unknown methods and invalid params
        ValueError: If the referenced handoff doesn't exist
    """
    if not isinstance(method, str) or method not in METHODS:
        raise RpcError(f"Unknown method: {method}", {"method": method})

    schema, attr = METHODS[method]
    try:
        parsed = schema.model_validate(params if params is not None else {})
    except ValidationError as e:
        summary = "; ".join(
            f"{'.'.join(err['loc']) or '(params)'}: {err['msg']}" for err in _field_errors(e)
        )
        raise RpcError(f"Invalid params for {method}: {summary}", _field_errors(e))

    return _to_jsonable(getattr(engine, attr)(parsed))


def handle_request(
    engine: HandoffEngine,
    request: Any,
    default_id: Any = 1,
    transport: str = "",
) -> Dict[str, Any]:
    """
    Handle one decoded request envelope and return the response envelope.

    Never raises: every failure becomes an error envelope.
    """
    if not isinstance(request, dict):
        return create_error_response(RpcError("Invalid request: expected a JSON object"), default_id)

    request_id = request.get("id", default_id)
    method = request.get("method")
    logger = get_logger()

    try:
        with logger.timer(str(method), {"transport": transport}):
            result = dispatch(engine, method, request.get("params"))
    except Exception as e:
        logger.error(str(method), str(e), {"transport": transport, "type": type(e).__name__})
        logger.rpc_request(str(method), transport, request_id, ok=False)
        return create_error_response(e, request_id)

    logger.rpc_request(str(method), transport, request_id, ok=True)
    return create_response(result, request_id)
