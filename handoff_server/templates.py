#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Handoff templates: the canonical skeletons, loading, and population.
"""

import re
from typing import Dict

# Handle both module import and direct script execution
try:
    from handoff_server.models import ENV_PLACEHOLDER, TEMPLATES_DIR, HandoffType
    from handoff_server.schemas import InitialData
    from handoff_server.store import DocumentStore
except ImportError:
    from models import ENV_PLACEHOLDER, TEMPLATES_DIR, HandoffType
    from schemas import InitialData
    from store import DocumentStore


STANDARD_TEMPLATE = """# MCPaaS.dev Agent Handoff Document

**Date**: [YYYY-MM-DD]
**Time**: [HH:MM UTC]
**Session Duration**: [X hours]
**Outgoing Agent**: [Agent ID/Name]
**Incoming Agent**: [To be filled by next agent]

---

## 🎯 Project Context
**Current Focus**: [Brief description of main objective]
**Status**: [Current state of work]

## ✅ Recent Progress
- [Completed item 1]
- [Completed item 2]

## 🔄 Active Work
**Working On**: [Current primary task]
**Status**: [How far along]
**Next Step**: [Very specific next action]

## 🌍 Environment Status
- **Server**: ✅/⚠️/❌ [Status details]
- **Database**: ✅/⚠️/❌ [Status details]
- **Cache**: ✅/⚠️/❌ [Status details]

## ⚠️ Known Issues
- [Issue description]
- [Another issue]"""

QUICK_TEMPLATE = """# Quick Handoff - MCPaaS.dev

**Date**: [YYYY-MM-DD HH:MM UTC]
**Duration**: [X minutes/hours]

---

## 🎯 Current State
**Working On**: [Current primary task]
**Status**: [How far along]
**Next Step**: [Very specific next action]

## ✅ Just Completed
1. [Most recent accomplishment]
2. [Another recent accomplishment]

## 🔥 Immediate Priorities
1. [Critical task 1]
2. [Critical task 2]

## 🌍 Environment Status
- **Server**: ✅/⚠️/❌ [Status]
- **Database**: ✅/⚠️/❌ [Status]
- **Cache**: ✅/⚠️/❌ [Status]"""

TEMPLATE_FILES = {
    HandoffType.STANDARD.value: "handoff-template.md",
    HandoffType.QUICK.value: "quick-handoff.md",
}

DEFAULT_TEMPLATES = {
    HandoffType.STANDARD.value: STANDARD_TEMPLATE,
    HandoffType.QUICK.value: QUICK_TEMPLATE,
}


def template_path(handoff_type: str) -> str:
    """Store path of the template for a handoff type."""
    if handoff_type not in TEMPLATE_FILES:
        raise ValueError(f"Invalid handoff type: {handoff_type}")
    return f"{TEMPLATES_DIR}/{TEMPLATE_FILES[handoff_type]}"


def load_template(store: DocumentStore, handoff_type: str) -> str:
    """Read the template for a handoff type from the store."""
    return store.read(template_path(handoff_type))


def populate_template(template: str, data: InitialData) -> str:
    """
    Fill a template's placeholder tokens from the caller's initial data.

    Each token is replaced once (first occurrence only). Environment entries
    turn ``<key>...: ✅/⚠️/❌`` into ``<key>: <status>``.

    Args:
        template: Template text
        data: Validated initial data of a create request

    Returns:
        The populated document text
    """
    state = data.current_state
    replacements: Dict[str, str] = {
        "[YYYY-MM-DD HH:MM UTC]": f"{data.date} {data.time}",
        "[YYYY-MM-DD]": data.date,
        "[HH:MM UTC]": data.time,
        "[Current primary task]": state.working_on,
        "[How far along]": state.status,
        "[Very specific next action]": state.next_step,
    }
    if data.project_context:
        replacements["[Brief description of main objective]"] = data.project_context

    populated = template
    for token, value in replacements.items():
        populated = populated.replace(token, value, 1)

    for key, status in data.environment_status.details.items():
        pattern = re.compile(f"{re.escape(key)}.*: {re.escape(ENV_PLACEHOLDER)}")
        populated = pattern.sub(lambda _m, k=key, s=status: f"{k}: {s}", populated, count=1)

    return populated
