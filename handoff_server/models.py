#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Data models for the handoff server.

Contains the constants, enums, and result dataclasses shared by the engine
and the transports.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


# =============================================================================
# Constants
# =============================================================================

SERVER_NAME = "Handoff Server"
SERVER_VERSION = "1.0.0"

ACTIVE_DIR = "active"
ARCHIVE_DIR = "archive"
TEMPLATES_DIR = "templates"

HANDOFF_SUFFIX = ".md"
HEADER_DELIMITER = "---"
SECTION_PREFIX = "## "

# Priority markers, highest first
PRIORITY_MARKERS = {
    "\U0001f525": 4,  # fire
    "⚡": 3,  # high voltage
    "\U0001f4cb": 2,  # clipboard
    "\U0001f4a1": 1,  # light bulb
}
PRIORITY_PATTERN = re.compile("|".join(PRIORITY_MARKERS))

ENV_OK = "✅"
ENV_WARN = "⚠️"
ENV_FAIL = "❌"
ENV_PLACEHOLDER = f"{ENV_OK}/{ENV_WARN}/{ENV_FAIL}"

NO_ISSUES_MARKER = "No known issues"
ISSUES_HEADING = "knownIssues"

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

# Heading titles (camelCased) each update section may target besides its own name
SECTION_HEADING_ALIASES = {
    "progress": {"recentProgress", "justCompleted"},
    "priorities": {"immediatePriorities", "priorityQueue"},
    "issues": {"knownIssues"},
    "environment": {"environmentStatus"},
    "context": {"projectContext"},
}

# JSON-RPC envelope
JSONRPC_VERSION = "2.0"
RPC_ERROR_CODE = -32000


# =============================================================================
# Enums
# =============================================================================


class HandoffType(str, Enum):
    """Template a handoff was created from."""
    STANDARD = "standard"
    QUICK = "quick"


class HandoffLocation(str, Enum):
    """Lifecycle location of a handoff document."""
    ACTIVE = "active"
    ARCHIVED = "archived"

    @property
    def directory(self) -> str:
        return ACTIVE_DIR if self is HandoffLocation.ACTIVE else ARCHIVE_DIR


class ServerMode(str, Enum):
    """Transport the server runs on."""
    MCP = "mcp"
    HTTP = "http"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class HandoffInfo:
    """Listing entry derived from a handoff document's header."""
    id: str
    type: str = HandoffType.STANDARD.value
    title: str = ""
    date: str = ""
    status: str = ""
    priority: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "date": self.date,
            "status": self.status,
            "priority": self.priority,
        }


@dataclass
class CreateResult:
    """Result of creating a handoff."""
    handoff_id: str
    filepath: str
    status: str = "created"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handoff_id": self.handoff_id,
            "filepath": self.filepath,
            "status": self.status,
        }


@dataclass
class UpdateResult:
    """Result of updating handoff sections."""
    modified_sections: List[str] = field(default_factory=list)
    status: str = "updated"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "modifiedSections": list(self.modified_sections)}


@dataclass
class CompleteResult:
    """Result of completing a handoff."""
    archived: bool
    status: str = "completed"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "archived": self.archived}


@dataclass
class ArchiveResult:
    """Result of archiving a handoff."""
    archive_path: str
    status: str = "archived"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "archivePath": self.archive_path}


@dataclass
class ListResult:
    """Result of listing handoffs, highest priority first."""
    handoffs: List[HandoffInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"handoffs": [info.to_dict() for info in self.handoffs]}
