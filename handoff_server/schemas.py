#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Request parameter schemas for the handoff RPC methods.

Field names follow the wire format (camelCase) through aliases, while the
Python attributes stay snake_case.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EnvStatus = Literal["✅", "⚠️", "❌"]
SectionName = Literal["progress", "priorities", "issues", "environment", "context"]


class RpcModel(BaseModel):
    """Base for all parameter models: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# create_handoff
# =============================================================================


class CurrentState(RpcModel):
    working_on: str
    status: str
    next_step: str


class EnvironmentStatus(RpcModel):
    details: Dict[str, EnvStatus]


class InitialData(RpcModel):
    date: str
    time: str
    current_state: CurrentState
    project_context: Optional[str] = None
    environment_status: EnvironmentStatus


class CreateHandoffInput(RpcModel):
    type: Literal["standard", "quick"]
    initial_data: InitialData


# =============================================================================
# read / update / complete / archive
# =============================================================================


class HandoffRef(RpcModel):
    """Params naming an existing handoff by its ID (the document filename stem)."""

    handoff_id: str = Field(alias="handoff_id")

    @field_validator("handoff_id")
    @classmethod
    def _single_path_component(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"Invalid handoff id: {value!r}")
        return value


class ReadHandoffInput(HandoffRef):
    format: Literal["full", "summary"] = "full"


class SectionUpdate(RpcModel):
    section: SectionName
    content: Dict[str, Any]


class UpdateHandoffInput(HandoffRef):
    updates: List[SectionUpdate]


class CompletionData(RpcModel):
    end_time: str
    progress: List[str]
    next_steps: List[str]
    archive_reason: Optional[str] = None


class CompleteHandoffInput(HandoffRef):
    completion_data: CompletionData


class ArchiveMetadata(RpcModel):
    reason: str
    tags: List[str]
    completion_status: Literal["success", "partial", "blocked"]


class ArchiveHandoffInput(HandoffRef):
    metadata: ArchiveMetadata


# =============================================================================
# list_handoffs
# =============================================================================


class DateRange(RpcModel):
    start: str
    end: str


class ListFilters(RpcModel):
    date_range: Optional[DateRange] = None
    tags: Optional[List[str]] = None
    has_issues: Optional[bool] = None


class ListHandoffsInput(RpcModel):
    status: Literal["active", "archived", "all"]
    type: Optional[Literal["standard", "quick"]] = None
    filters: Optional[ListFilters] = None
