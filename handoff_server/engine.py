#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
HandoffEngine - lifecycle operations for handoff documents.

Documents live in exactly one of two directories under the store:
``active/`` (created, updated, completed) and ``archive/`` (after archival).
The filename ``<handoff_id>.md`` is the only identity; there is no index.
"""

import uuid
from pathlib import Path
from typing import Any, Dict, List, Union

# Handle both module import and direct script execution
try:
    from handoff_server import document
    from handoff_server.debug_logger import get_logger
    from handoff_server.models import (
        ACTIVE_DIR,
        ARCHIVE_DIR,
        HANDOFF_SUFFIX,
        TEMPLATES_DIR,
        ArchiveResult,
        CompleteResult,
        CreateResult,
        HandoffInfo,
        HandoffLocation,
        ListResult,
        UpdateResult,
    )
    from handoff_server.schemas import (
        ArchiveHandoffInput,
        ArchiveMetadata,
        CompleteHandoffInput,
        CreateHandoffInput,
        ListHandoffsInput,
        ReadHandoffInput,
        UpdateHandoffInput,
    )
    from handoff_server.store import DocumentStore, LocalDocumentStore
    from handoff_server.templates import (
        DEFAULT_TEMPLATES,
        load_template,
        populate_template,
        template_path,
    )
except ImportError:
    import document
    from debug_logger import get_logger
    from models import (
        ACTIVE_DIR,
        ARCHIVE_DIR,
        HANDOFF_SUFFIX,
        TEMPLATES_DIR,
        ArchiveResult,
        CompleteResult,
        CreateResult,
        HandoffInfo,
        HandoffLocation,
        ListResult,
        UpdateResult,
    )
    from schemas import (
        ArchiveHandoffInput,
        ArchiveMetadata,
        CompleteHandoffInput,
        CreateHandoffInput,
        ListHandoffsInput,
        ReadHandoffInput,
        UpdateHandoffInput,
    )
    from store import DocumentStore, LocalDocumentStore
    from templates import (
        DEFAULT_TEMPLATES,
        load_template,
        populate_template,
        template_path,
    )

# Attempts before giving up on finding an unused handoff ID
MAX_ID_ATTEMPTS = 5


def _generate_handoff_id(date: str) -> str:
    """Generate an ID like 2025-01-15-1a2b3c4d5e6f from the handoff date."""
    return f"{date}-{uuid.uuid4().hex[:12]}"


class HandoffEngine:
    """
    Engine for reading, creating, updating, completing, archiving and
    listing handoff documents.

    All persistence goes through the DocumentStore, so the engine runs the
    same against the local filesystem or an in-memory store.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    @staticmethod
    def active_path(handoff_id: str) -> str:
        return f"{ACTIVE_DIR}/{handoff_id}{HANDOFF_SUFFIX}"

    @staticmethod
    def archive_path(handoff_id: str) -> str:
        return f"{ARCHIVE_DIR}/{handoff_id}{HANDOFF_SUFFIX}"

    def _read_active(self, handoff_id: str) -> str:
        """Read an active handoff, raising ValueError if it doesn't exist."""
        try:
            return self.store.read(self.active_path(handoff_id))
        except FileNotFoundError:
            raise ValueError(f"Handoff {handoff_id} not found")

    # -------------------------------------------------------------------------
    # Bootstrap
    # -------------------------------------------------------------------------

    def initialize_file_system(self) -> List[str]:
        """
        Create the handoff directories and any missing templates.

        Safe to call repeatedly: existing templates are never overwritten.

        Returns:
            Store paths of the templates written by this call
        """
        for directory in (ACTIVE_DIR, ARCHIVE_DIR, TEMPLATES_DIR):
            self.store.ensure_directory(directory)

        written = []
        for handoff_type, content in DEFAULT_TEMPLATES.items():
            path = template_path(handoff_type)
            if self.store.exists(path):
                continue
            self.store.write(path, content)
            written.append(path)

        if written:
            get_logger().mutation("init_templates", TEMPLATES_DIR, {"written": written})
        return written

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def read_handoff(self, params: ReadHandoffInput) -> Dict[str, Any]:
        """
        Read an active handoff.

        Returns:
            The section -> bullets mapping for ``format=summary``, otherwise
            ``{"content": ..., "metadata": ...}``

        Raises:
            ValueError: If handoff not found
        """
        content = self._read_active(params.handoff_id)

        if params.format == "summary":
            return document.create_summary(content)

        return {
            "content": content,
            "metadata": document.extract_metadata(content),
        }

    def create_handoff(self, params: CreateHandoffInput) -> CreateResult:
        """
        Create a handoff from a template.

        Raises:
            FileNotFoundError: If the template is missing (filesystem not initialized)
            RuntimeError: If no unused ID could be generated
        """
        template = load_template(self.store, params.type)
        content = populate_template(template, params.initial_data)

        for _ in range(MAX_ID_ATTEMPTS):
            handoff_id = _generate_handoff_id(params.initial_data.date)
            if not self.store.exists(self.active_path(handoff_id)):
                break
        else:
            raise RuntimeError(f"Could not generate an unused handoff ID for {params.initial_data.date}")

        path = self.active_path(handoff_id)
        self.store.ensure_directory(ACTIVE_DIR)
        self.store.write(path, content)

        get_logger().handoff_created(
            handoff_id=handoff_id,
            handoff_type=params.type,
            date=params.initial_data.date,
        )

        return CreateResult(handoff_id=handoff_id, filepath=self.store.location(path))

    def _apply_updates(self, handoff_id: str, updates: List[Dict[str, Any]]) -> List[str]:
        """Apply section updates to an active handoff and write it back."""
        content = self._read_active(handoff_id)
        updated = document.apply_updates(content, updates)
        self.store.write(self.active_path(handoff_id), updated)

        lines = content.split("\n")
        sections = [u["section"] for u in updates]
        skipped = [s for s in sections if document.find_section(lines, s) == -1]
        get_logger().handoff_updated(handoff_id, sections=sections, skipped=skipped)
        return sections

    def update_handoff(self, params: UpdateHandoffInput) -> UpdateResult:
        """
        Replace the bodies of the requested sections of an active handoff.

        Updates targeting a section the document doesn't have are skipped.

        Raises:
            ValueError: If handoff not found
        """
        updates = [{"section": u.section, "content": u.content} for u in params.updates]
        sections = self._apply_updates(params.handoff_id, updates)
        return UpdateResult(modified_sections=sections)

    def complete_handoff(self, params: CompleteHandoffInput) -> CompleteResult:
        """
        Record completion in the progress section, archiving if a reason is given.

        Raises:
            ValueError: If handoff not found
        """
        data = params.completion_data
        progress: Dict[str, Any] = {
            "completionTime": data.end_time,
            "completedItems": data.progress,
        }
        if data.next_steps:
            progress["nextSteps"] = data.next_steps

        self._apply_updates(params.handoff_id, [{"section": "progress", "content": progress}])

        archived = False
        if data.archive_reason:
            self.archive_handoff(
                ArchiveHandoffInput(
                    handoff_id=params.handoff_id,
                    metadata=ArchiveMetadata(
                        reason=data.archive_reason,
                        tags=["completed"],
                        completion_status="success",
                    ),
                )
            )
            archived = True

        get_logger().handoff_completed(
            params.handoff_id,
            items_count=len(data.progress),
            archived=archived,
        )
        return CompleteResult(archived=archived)

    def archive_handoff(self, params: ArchiveHandoffInput) -> ArchiveResult:
        """
        Move an active handoff to the archive with an Archive Information block.

        The document is moved in a single step before the block is written to
        the archived copy, so it is never present in both directories and a
        failed move leaves the active document untouched.

        Raises:
            ValueError: If handoff not found
        """
        meta = params.metadata
        source = self.active_path(params.handoff_id)
        destination = self.archive_path(params.handoff_id)

        content = self._read_active(params.handoff_id)
        updated = document.add_archive_metadata(
            content,
            reason=meta.reason,
            completion_status=meta.completion_status,
            tags=meta.tags,
        )

        self.store.ensure_directory(ARCHIVE_DIR)
        self.store.move(source, destination)
        self.store.write(destination, updated)

        get_logger().handoff_archived(
            params.handoff_id,
            reason=meta.reason,
            completion_status=meta.completion_status,
            tags=meta.tags,
        )
        return ArchiveResult(archive_path=self.store.location(destination))

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def _search_locations(self, status: str) -> List[HandoffLocation]:
        if status == "all":
            return [HandoffLocation.ACTIVE, HandoffLocation.ARCHIVED]
        return [HandoffLocation(status)]

    def _matches(self, info: HandoffInfo, content: str, params: ListHandoffsInput) -> bool:
        if params.type and info.type != params.type:
            return False

        filters = params.filters
        if filters is None:
            return True
        if filters.date_range and not document.is_in_date_range(
            info.date, filters.date_range.start, filters.date_range.end
        ):
            return False
        if filters.has_issues and not document.has_issues(content):
            return False
        if filters.tags is not None and not document.has_tags(content, filters.tags):
            return False
        return True

    def list_handoffs(self, params: ListHandoffsInput) -> ListResult:
        """
        List handoffs matching the filters, highest priority first.

        A directory that can't be read is logged and treated as empty.
        """
        handoffs: List[HandoffInfo] = []

        for location in self._search_locations(params.status):
            directory = location.directory
            try:
                filenames = self.store.list(directory)
            except (OSError, ValueError) as e:
                get_logger().error("list_handoffs", str(e), {"directory": directory})
                continue

            for filename in filenames:
                handoff_id = document.handoff_id_from_filename(filename)
                if handoff_id is None:
                    continue

                try:
                    content = self.store.read(f"{directory}/{filename}")
                except (OSError, ValueError) as e:
                    get_logger().error("list_handoffs", str(e), {"file": filename})
                    continue

                info = document.parse_handoff_info(content, handoff_id, status=location.value)
                if self._matches(info, content, params):
                    handoffs.append(info)

        # sort() is stable, so ties keep directory order
        handoffs.sort(key=lambda h: h.priority, reverse=True)
        return ListResult(handoffs=handoffs)


def create_engine(handoff_root: Union[str, Path]) -> HandoffEngine:
    """Build an engine over a local handoff directory and bootstrap it."""
    engine = HandoffEngine(LocalDocumentStore(handoff_root))
    engine.initialize_file_system()
    return engine
