#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Parsing and formatting utilities for handoff markdown documents.

A handoff document is a header block of ``**Key**: value`` lines terminated by
a ``---`` line, followed by ``## `` sections of free text and bullets. All
functions here are pure text transforms; persistence lives in the engine.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

# Handle both module import and direct script execution
try:
    from handoff_server.models import (
        HANDOFF_SUFFIX,
        HEADER_DELIMITER,
        ISO_DATE_PATTERN,
        ISSUES_HEADING,
        NO_ISSUES_MARKER,
        PRIORITY_MARKERS,
        PRIORITY_PATTERN,
        SECTION_HEADING_ALIASES,
        SECTION_PREFIX,
        HandoffInfo,
        HandoffType,
    )
except ImportError:
    from models import (
        HANDOFF_SUFFIX,
        HEADER_DELIMITER,
        ISO_DATE_PATTERN,
        ISSUES_HEADING,
        NO_ISSUES_MARKER,
        PRIORITY_MARKERS,
        PRIORITY_PATTERN,
        SECTION_HEADING_ALIASES,
        SECTION_PREFIX,
        HandoffInfo,
        HandoffType,
    )

_CAMEL_SEPARATOR = re.compile(r"[^a-zA-Z0-9]+(.)")
_BULLET_PREFIXES = ("- ", "* ")


def camel_case(text: str) -> str:
    """
    Convert heading or key text to camelCase.

    Runs of non-alphanumeric characters (spaces, emoji, punctuation) are
    dropped and the following character upper-cased, so
    ``"🎯 Project Context"`` becomes ``"projectContext"``.
    """
    result = _CAMEL_SEPARATOR.sub(lambda m: m.group(1).upper(), text.lower())
    if result[:1].isupper():
        result = result[0].lower() + result[1:]
    return result


def heading_title(line: str) -> str:
    """Return the camelCased title of a ``## `` heading line."""
    return camel_case(line.replace(SECTION_PREFIX, "", 1).strip())


# =============================================================================
# Reading
# =============================================================================


def extract_metadata(content: str) -> Dict[str, str]:
    """
    Extract ``**Key**: value`` pairs from the header block.

    Scanning stops after the first ``---`` line. Without a delimiter the
    whole document is scanned.
    """
    metadata = {}
    for line in content.split("\n"):
        if line.startswith("**") and ":" in line:
            key, _, value = line.replace("**", "").partition(":")
            metadata[camel_case(key.strip())] = value.strip()
        if line.startswith(HEADER_DELIMITER):
            break
    return metadata


def create_summary(content: str) -> Dict[str, List[str]]:
    """
    Map each ``## `` section (camelCased title) to its bullet entries.

    Only ``- `` and ``* `` lines are collected; other body text is ignored.
    """
    summary: Dict[str, List[str]] = {}
    current_section = ""

    for line in content.split("\n"):
        if line.startswith(SECTION_PREFIX):
            current_section = heading_title(line)
            summary[current_section] = []
        elif current_section and line.strip() and not line.startswith(HEADER_DELIMITER):
            if line.startswith(_BULLET_PREFIXES):
                summary[current_section].append(line[2:].strip())

    return summary


def extract_priority(content: str) -> int:
    """Return the highest priority marker rank found anywhere in content (0 if none)."""
    found = PRIORITY_PATTERN.findall(content)
    if not found:
        return 0
    return max(PRIORITY_MARKERS[marker] for marker in found)


def _header_date(value: str) -> str:
    match = ISO_DATE_PATTERN.search(value)
    return match.group(0) if match else value


def parse_handoff_info(content: str, handoff_id: str, status: str = "") -> HandoffInfo:
    """
    Derive the listing entry for a document from its header block.

    Args:
        content: Full document text
        handoff_id: Identity of the document (its filename stem)
        status: Lifecycle location the document was found in

    Returns:
        HandoffInfo with title, type, ISO date and priority filled in
    """
    info = HandoffInfo(id=handoff_id, status=status)

    for line in content.split("\n"):
        if line.startswith("**Date**:"):
            info.date = _header_date(line.partition(":")[2].strip())
        elif line.startswith("# "):
            info.title = line[2:].strip()
        elif "Quick Handoff" in line:
            info.type = HandoffType.QUICK.value
        if line.startswith(HEADER_DELIMITER):
            break

    # Quick handoffs carry the marker in their title line
    if "Quick Handoff" in info.title:
        info.type = HandoffType.QUICK.value

    info.priority = extract_priority(content)
    return info


def handoff_id_from_filename(filename: str) -> Optional[str]:
    """Return the handoff ID for a document filename, or None for other files."""
    if not filename.endswith(HANDOFF_SUFFIX):
        return None
    return filename[: -len(HANDOFF_SUFFIX)]


# =============================================================================
# Filters
# =============================================================================


def is_in_date_range(handoff_date: str, start: str, end: str) -> bool:
    """
    Check whether an ISO date falls within [start, end] inclusive.

    Unparseable dates never match.
    """
    try:
        value = date.fromisoformat(_header_date(handoff_date))
        lower = date.fromisoformat(_header_date(start))
        upper = date.fromisoformat(_header_date(end))
    except ValueError:
        return False
    return lower <= value <= upper


def has_issues(content: str) -> bool:
    """True if the document has a known-issues section that isn't marked empty."""
    if NO_ISSUES_MARKER in content:
        return False
    return any(
        line.startswith(SECTION_PREFIX) and heading_title(line) == ISSUES_HEADING
        for line in content.split("\n")
    )


def has_tags(content: str, tags: List[str]) -> bool:
    """True if any tag appears anywhere in content (case-insensitive)."""
    content_lower = content.lower()
    return any(tag.lower() in content_lower for tag in tags)


# =============================================================================
# Section updates
# =============================================================================


def find_section(lines: List[str], section: str) -> int:
    """
    Find the heading line an update section targets.

    Args:
        lines: Document lines
        section: Update section name (progress, priorities, issues, ...)

    Returns:
        Index of the first ``## `` heading whose camelCased title is the
        section name or one of its aliases, or -1 if there is none.
    """
    targets = {section} | SECTION_HEADING_ALIASES.get(section, set())
    for idx, line in enumerate(lines):
        if line.startswith(SECTION_PREFIX) and heading_title(line) in targets:
            return idx
    return -1


def _bullets(items: List[Any], marker: str = "") -> str:
    return "".join(f"- {marker}{item}\n" for item in items)


def format_section_content(section: str, content: Dict[str, Any]) -> str:
    """
    Render the replacement body for one section update.

    Args:
        section: Update section name
        content: Section-specific payload, e.g. ``completedItems`` for progress
                 or ``critical``/``nonCritical`` for issues

    Returns:
        The block that replaces the section body
    """
    formatted = ""

    if section == "progress":
        if content.get("completionTime"):
            formatted += f"\n**Completion Time**: {content['completionTime']}\n\n"
        if content.get("completedItems") is not None:
            formatted += "### Completed Items\n"
            formatted += _bullets(content["completedItems"])
        if content.get("nextSteps"):
            formatted += "\n### Next Steps\n"
            formatted += _bullets(content["nextSteps"])

    elif section == "priorities":
        formatted += "\n### High Priority\n"
        if content.get("highPriority") is not None:
            formatted += _bullets(content["highPriority"])
        if content.get("mediumPriority") is not None:
            formatted += "\n### Medium Priority\n"
            formatted += _bullets(content["mediumPriority"])

    elif section == "issues":
        if content.get("critical") is not None:
            formatted += "\n### Critical Issues\n"
            formatted += _bullets(content["critical"], "❗ ")
        if content.get("nonCritical") is not None:
            formatted += "\n### Non-Critical Issues\n"
            formatted += _bullets(content["nonCritical"], "⚠️ ")

    elif section == "environment":
        for key, status in content.items():
            formatted += f"\n- **{key}**: {status}"

    elif section == "context":
        for key, value in content.items():
            formatted += f"\n### {key}\n{value}\n"

    return formatted


def apply_updates(content: str, updates: List[Dict[str, Any]]) -> str:
    """
    Apply section updates in order, replacing each targeted section body.

    Each update is ``{"section": name, "content": payload}``. The body between
    the heading and the next ``## `` line (or end of document) is replaced by
    one formatted block. Updates whose section has no heading are skipped.
    """
    lines = content.split("\n")

    for update in updates:
        start = find_section(lines, update["section"])
        if start == -1:
            continue

        end = len(lines)
        for idx in range(start + 1, len(lines)):
            if lines[idx].startswith(SECTION_PREFIX):
                end = idx
                break

        lines[start + 1:end] = [format_section_content(update["section"], update["content"])]

    return "\n".join(lines)


# =============================================================================
# Archival
# =============================================================================


def archive_timestamp() -> str:
    """UTC timestamp in ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def add_archive_metadata(
    content: str,
    reason: str,
    completion_status: str,
    tags: List[str],
    archived_at: Optional[str] = None,
) -> str:
    """
    Insert the Archive Information block right after the header delimiter.

    Without a ``---`` line the block is prepended to the document.
    """
    lines = content.split("\n")
    block = [
        "## \U0001f4e6 Archive Information",
        f"**Archive Date**: {archived_at or archive_timestamp()}",
        f"**Archive Reason**: {reason}",
        f"**Completion Status**: {completion_status}",
        f"**Tags**: {', '.join(tags)}",
        "",
    ]

    header_end = 0
    for idx, line in enumerate(lines):
        if line.startswith(HEADER_DELIMITER):
            header_end = idx + 1
            break

    lines[header_end:header_end] = block
    return "\n".join(lines)
