#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Debug logging for the handoff server.

Outputs JSON lines format to ~/.local/state/handoff-server/debug.log
when HANDOFF_DEBUG is set. Never writes to stdout, which belongs to the
stdio transport.

Levels:
  0 or unset: disabled
  1: info - lifecycle operations (create, update, complete, archive, errors)
  2: debug - includes per-request timing
  3: trace - includes file I/O timing
"""

import json
import os
import sys
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


DEBUG_ENV_VAR = "HANDOFF_DEBUG"
STATE_ENV_VAR = "HANDOFF_STATE"
LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE_MB = 10
MAX_LOG_FILES = 3

# Session ID - generated once per process
_SESSION_ID: Optional[str] = None


def _get_session_id() -> str:
    """Get or create a session ID for correlating events."""
    global _SESSION_ID
    if _SESSION_ID is None:
        _SESSION_ID = uuid.uuid4().hex[:12]
    return _SESSION_ID


def _get_debug_level() -> int:
    """Get the configured debug level from HANDOFF_DEBUG (default 0)."""
    env_level = os.environ.get(DEBUG_ENV_VAR)
    if not env_level:
        return 0
    try:
        return int(env_level)
    except ValueError:
        # Treat any non-numeric truthy value as level 1
        return 1 if env_level.lower() in ("true", "yes", "on") else 0


def _get_log_path() -> Path:
    """Get the log file path.

    Uses XDG_STATE_HOME (~/.local/state) for logs, following the XDG base directory layout.
    HANDOFF_STATE overrides with full path to state dir.
    """
    explicit_state = os.environ.get(STATE_ENV_VAR)
    if explicit_state:
        state_dir = Path(explicit_state)
    else:
        xdg_state = os.environ.get("XDG_STATE_HOME") or (Path.home() / ".local" / "state")
        state_dir = Path(xdg_state) / "handoff-server"
    return state_dir / LOG_FILE_NAME


def _rotate_if_needed(log_path: Path) -> None:
    """Rotate log file if it exceeds size limit."""
    if not log_path.exists():
        return

    size_mb = log_path.stat().st_size / (1024 * 1024)
    if size_mb < MAX_LOG_SIZE_MB:
        return

    # Rotate: debug.log.2 -> delete, debug.log.1 -> .2, debug.log -> .1
    for i in range(MAX_LOG_FILES - 1, 0, -1):
        old_path = log_path.parent / f"{LOG_FILE_NAME}.{i}"
        new_path = log_path.parent / f"{LOG_FILE_NAME}.{i + 1}"
        if old_path.exists():
            if i == MAX_LOG_FILES - 1:
                old_path.unlink()
            else:
                old_path.rename(new_path)

    log_path.rename(log_path.parent / f"{LOG_FILE_NAME}.1")


class DebugLogger:
    """
    JSON lines debug logger for the handoff server.

    All methods are no-ops when HANDOFF_DEBUG is 0 or unset.
    """

    def __init__(self) -> None:
        self._level = _get_debug_level()
        self._log_path = _get_log_path() if self._level > 0 else None

    @property
    def enabled(self) -> bool:
        return self._level > 0

    @property
    def level(self) -> int:
        return self._level

    @property
    def log_path(self) -> Optional[Path]:
        return self._log_path

    def _write(self, event: Dict[str, Any]) -> None:
        """Write an event to the log file."""
        if not self.enabled or self._log_path is None:
            return

        event["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        event["session_id"] = _get_session_id()
        event["pid"] = os.getpid()

        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            _rotate_if_needed(self._log_path)

            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event, default=str, ensure_ascii=False) + "\n")
        except (OSError, ValueError) as e:
            # Never let logging errors affect main operation.
            if self._level >= 3:
                print(f"[debug_logger] write failed: {type(e).__name__}: {e}", file=sys.stderr)

    # =========================================================================
    # Level 1: Info events
    # =========================================================================

    def server_start(self, mode: str, handoff_root: str, port: Optional[int] = None) -> None:
        """Log server startup."""
        if self._level < 1:
            return
        event = {
            "event": "server_start",
            "level": "info",
            "mode": mode,
            "handoff_root": handoff_root,
        }
        if port is not None:
            event["port"] = port
        self._write(event)

    def handoff_created(self, handoff_id: str, handoff_type: str, date: str) -> None:
        """Log new handoff creation."""
        if self._level < 1:
            return
        self._write(
            {
                "event": "handoff_created",
                "level": "info",
                "handoff_id": handoff_id,
                "type": handoff_type,
                "date": date,
            }
        )

    def handoff_updated(self, handoff_id: str, sections: List[str], skipped: List[str]) -> None:
        """Log section updates, including sections with no matching heading."""
        if self._level < 1:
            return
        self._write(
            {
                "event": "handoff_updated",
                "level": "info",
                "handoff_id": handoff_id,
                "sections": sections,
                "skipped": skipped,
            }
        )

    def handoff_completed(self, handoff_id: str, items_count: int, archived: bool) -> None:
        """Log handoff completion."""
        if self._level < 1:
            return
        self._write(
            {
                "event": "handoff_completed",
                "level": "info",
                "handoff_id": handoff_id,
                "items_count": items_count,
                "archived": archived,
            }
        )

    def handoff_archived(
        self,
        handoff_id: str,
        reason: str,
        completion_status: str,
        tags: List[str],
    ) -> None:
        """Log handoff archival."""
        if self._level < 1:
            return
        self._write(
            {
                "event": "handoff_archived",
                "level": "info",
                "handoff_id": handoff_id,
                "reason": reason,
                "completion_status": completion_status,
                "tags": tags[:20],  # Limit array size
            }
        )

    def error(self, operation: str, error: str, context: Optional[Dict] = None) -> None:
        """Log errors - level 1 (always shown when debug enabled)."""
        if self._level < 1:
            return
        event = {"event": "error", "level": "error", "op": operation, "err": error}
        if context:
            event["ctx"] = context
        self._write(event)

    def mutation(self, op: str, target: str, details: Optional[Dict] = None) -> None:
        """Log mutations (bootstrap writes, moves) - level 1."""
        if self._level < 1:
            return
        event = {"event": "mutation", "level": "info", "op": op, "target": target}
        if details:
            event.update(details)
        self._write(event)

    # =========================================================================
    # Level 2: Debug events (includes timing)
    # =========================================================================

    def rpc_request(self, method: str, transport: str, request_id: Any, ok: bool) -> None:
        """Log one handled request - level 2."""
        if self._level < 2:
            return
        self._write(
            {
                "event": "rpc_request",
                "level": "debug",
                "method": method,
                "transport": transport,
                "id": request_id,
                "ok": ok,
            }
        )

    @contextmanager
    def timer(self, operation: str, context: Optional[Dict[str, Any]] = None):
        """Context manager to time any operation at level 2.

        Usage:
            with logger.timer("list_handoffs", {"transport": "stdio"}):
                do_work()

        Logs: {"event": "timing", "op": "list_handoffs", "ms": 4.2, "transport": "stdio"}
        """
        if self._level < 2:
            yield
            return

        start = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            event = {
                "event": "timing",
                "level": "debug",
                "op": operation,
                "ms": round(duration_ms, 2),
            }
            if context:
                event.update(context)
            self._write(event)

    # =========================================================================
    # Level 3: Trace events
    # =========================================================================

    @contextmanager
    def trace_file_io(self, operation: str, file_path):
        """Context manager to trace file I/O timing."""
        if self._level < 3:
            yield
            return

        start = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            self._write(
                {
                    "event": "file_io",
                    "level": "trace",
                    "operation": operation,  # read, write, move
                    "file_path": str(file_path),
                    "duration_ms": round(duration_ms, 2),
                }
            )


# Global singleton
_logger: Optional[DebugLogger] = None


def get_logger() -> DebugLogger:
    """Get the global debug logger instance."""
    global _logger
    if _logger is None:
        _logger = DebugLogger()
    return _logger


def reset_logger() -> None:
    """Reset the global logger (for testing)."""
    global _logger
    _logger = None
