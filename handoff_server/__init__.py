#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Handoff Server - Core module.

Manages markdown handoff documents for hand-off between collaborating agents,
exposed as JSON-RPC methods over HTTP or stdio.

Usage:
    from handoff_server import HandoffEngine, LocalDocumentStore

    engine = HandoffEngine(LocalDocumentStore("./handoff-system"))
    engine.initialize_file_system()
    result = engine.list_handoffs(ListHandoffsInput(status="active"))
"""

# Engine
from handoff_server.engine import HandoffEngine, create_engine

# Stores
from handoff_server.store import DocumentStore, InMemoryDocumentStore, LocalDocumentStore

# Data models - Constants
from handoff_server.models import (
    SERVER_NAME,
    SERVER_VERSION,
    PRIORITY_MARKERS,
)

# Data models - Enums
from handoff_server.models import (
    HandoffLocation,
    HandoffType,
    ServerMode,
)

# Data models - Dataclasses
from handoff_server.models import (
    ArchiveResult,
    CompleteResult,
    CreateResult,
    HandoffInfo,
    ListResult,
    UpdateResult,
)

# Request schemas
from handoff_server.schemas import (
    ArchiveHandoffInput,
    CompleteHandoffInput,
    CreateHandoffInput,
    ListHandoffsInput,
    ReadHandoffInput,
    UpdateHandoffInput,
)

# RPC dispatch
from handoff_server.rpc import handle_request

# CLI entry point
from handoff_server.cli import main

__version__ = SERVER_VERSION

__all__ = [
    # Engine
    "HandoffEngine",
    "create_engine",
    # Stores
    "DocumentStore",
    "InMemoryDocumentStore",
    "LocalDocumentStore",
    # Constants
    "SERVER_NAME",
    "SERVER_VERSION",
    "PRIORITY_MARKERS",
    # Enums
    "HandoffLocation",
    "HandoffType",
    "ServerMode",
    # Dataclasses
    "ArchiveResult",
    "CompleteResult",
    "CreateResult",
    "HandoffInfo",
    "ListResult",
    "UpdateResult",
    # Schemas
    "ArchiveHandoffInput",
    "CompleteHandoffInput",
    "CreateHandoffInput",
    "ListHandoffsInput",
    "ReadHandoffInput",
    "UpdateHandoffInput",
    # RPC
    "handle_request",
    # CLI
    "main",
]
