#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Test suite for debug logger.

Run with: pytest tests/test_debug_logger.py -v
"""

import json
import pytest
from pathlib import Path

from handoff_server.debug_logger import (
    DebugLogger,
    LOG_FILE_NAME,
    get_logger,
    reset_logger,
    _get_debug_level,
    _get_log_path,
    _get_session_id,
)
from handoff_server.engine import HandoffEngine
from handoff_server.rpc import handle_request
from handoff_server.store import InMemoryDocumentStore


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Create a temporary state directory for the log file."""
    state = tmp_path / "state" / "handoff-server"
    state.mkdir(parents=True)
    return state


@pytest.fixture(autouse=True)
def reset_logger_state():
    """Reset the global logger before each test."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clean up environment variables after each test."""
    monkeypatch.delenv("HANDOFF_DEBUG", raising=False)
    monkeypatch.delenv("HANDOFF_STATE", raising=False)


def read_events(state_dir: Path):
    log_file = state_dir / LOG_FILE_NAME
    return [json.loads(line) for line in log_file.read_text().strip().split("\n")]


# =============================================================================
# Tests: Level Configuration
# =============================================================================


class TestDebugLevel:
    """Test debug level parsing."""

    def test_disabled_by_default(self):
        assert _get_debug_level() == 0

    @pytest.mark.parametrize("value,level", [("0", 0), ("1", 1), ("2", 2), ("3", 3)])
    def test_numeric_levels(self, monkeypatch, value, level):
        monkeypatch.setenv("HANDOFF_DEBUG", value)
        assert _get_debug_level() == level

    def test_truthy_values(self, monkeypatch):
        """Truthy string values should enable level 1."""
        for value in ["true", "True", "yes", "on"]:
            monkeypatch.setenv("HANDOFF_DEBUG", value)
            assert _get_debug_level() == 1

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("HANDOFF_DEBUG", "invalid")
        assert _get_debug_level() == 0


class TestLogPath:

    def test_explicit_state_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HANDOFF_STATE", str(tmp_path))
        assert _get_log_path() == tmp_path / LOG_FILE_NAME

    def test_xdg_state_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        assert _get_log_path() == tmp_path / "handoff-server" / LOG_FILE_NAME


# =============================================================================
# Tests: Logger Instance
# =============================================================================


class TestDebugLogger:
    """Test DebugLogger class."""

    def test_enabled_property(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))

        monkeypatch.setenv("HANDOFF_DEBUG", "0")
        assert not DebugLogger().enabled

        monkeypatch.setenv("HANDOFF_DEBUG", "1")
        assert DebugLogger().enabled

    def test_no_write_when_disabled(self, monkeypatch, state_dir):
        """No log file should be created when disabled."""
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "0")

        logger = DebugLogger()
        logger.server_start(mode="mcp", handoff_root="/tmp/h")

        assert logger.log_path is None
        assert not (state_dir / LOG_FILE_NAME).exists()


# =============================================================================
# Tests: JSON Lines Output
# =============================================================================


class TestJsonLinesOutput:
    """Test JSON lines format output."""

    def test_server_start(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")

        DebugLogger().server_start(mode="http", handoff_root="/srv/h", port=3001)

        entry = read_events(state_dir)[0]
        assert entry["event"] == "server_start"
        assert entry["level"] == "info"
        assert entry["mode"] == "http"
        assert entry["port"] == 3001
        assert "timestamp" in entry
        assert "session_id" in entry
        assert "pid" in entry

    def test_stdio_start_has_no_port(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")

        DebugLogger().server_start(mode="mcp", handoff_root="/srv/h")

        assert "port" not in read_events(state_dir)[0]

    def test_lifecycle_events(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")

        logger = DebugLogger()
        logger.handoff_created("2025-01-15-abc", handoff_type="quick", date="2025-01-15")
        logger.handoff_updated("2025-01-15-abc", sections=["progress", "issues"], skipped=["issues"])
        logger.handoff_completed("2025-01-15-abc", items_count=2, archived=True)
        logger.handoff_archived(
            "2025-01-15-abc", reason="done", completion_status="success", tags=["completed"]
        )

        created, updated, completed, archived = read_events(state_dir)
        assert created["event"] == "handoff_created"
        assert created["type"] == "quick"
        assert updated["skipped"] == ["issues"]
        assert completed["archived"] is True
        assert archived["tags"] == ["completed"]

    def test_unicode_written_verbatim(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")

        DebugLogger().error("read_handoff", "Handoff \U0001f525 not found")

        assert "\U0001f525" in (state_dir / LOG_FILE_NAME).read_text(encoding="utf-8")


# =============================================================================
# Tests: Level Gating
# =============================================================================


class TestLevelGating:
    """Test that events are gated by debug level."""

    def test_timer_not_at_level_1(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")

        with DebugLogger().timer("list_handoffs"):
            pass

        assert not (state_dir / LOG_FILE_NAME).exists()

    def test_timer_at_level_2(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "2")

        with DebugLogger().timer("list_handoffs", {"transport": "stdio"}):
            pass

        entry = read_events(state_dir)[0]
        assert entry["event"] == "timing"
        assert entry["level"] == "debug"
        assert entry["op"] == "list_handoffs"
        assert entry["transport"] == "stdio"
        assert "ms" in entry

    def test_trace_events_at_level_3(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "3")

        with DebugLogger().trace_file_io("read", "/test/file.md"):
            pass

        entry = read_events(state_dir)[0]
        assert entry["event"] == "file_io"
        assert entry["level"] == "trace"
        assert "duration_ms" in entry


# =============================================================================
# Tests: Rotation
# =============================================================================


class TestRotation:

    def test_rotates_large_log(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")
        monkeypatch.setattr("handoff_server.debug_logger.MAX_LOG_SIZE_MB", 0)

        log_file = state_dir / LOG_FILE_NAME
        log_file.write_text("old\n")

        DebugLogger().error("op", "boom")

        assert (state_dir / f"{LOG_FILE_NAME}.1").read_text() == "old\n"
        assert read_events(state_dir)[0]["err"] == "boom"


# =============================================================================
# Tests: Server integration
# =============================================================================


class TestRequestLogging:
    """Requests handled by the dispatcher show up in the log."""

    def test_failed_request_logged(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")

        engine = HandoffEngine(InMemoryDocumentStore())
        handle_request(engine, {"method": "read_handoff", "params": {"handoff_id": "gone"}}, transport="http")

        entry = read_events(state_dir)[0]
        assert entry["event"] == "error"
        assert entry["op"] == "read_handoff"
        assert entry["ctx"]["transport"] == "http"

    def test_request_logged_at_level_2(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "2")

        engine = HandoffEngine(InMemoryDocumentStore())
        handle_request(engine, {"method": "list_handoffs", "params": {"status": "all"}, "id": 4}, transport="stdio")

        events = [e for e in read_events(state_dir) if e["event"] in ("timing", "rpc_request")]
        timing, request = events
        assert timing["event"] == "timing"
        assert request["event"] == "rpc_request"
        assert request["id"] == 4
        assert request["ok"] is True

    def test_bootstrap_logged(self, monkeypatch, state_dir):
        monkeypatch.setenv("HANDOFF_STATE", str(state_dir))
        monkeypatch.setenv("HANDOFF_DEBUG", "1")

        engine = HandoffEngine(InMemoryDocumentStore())
        engine.initialize_file_system()

        events = [e["event"] for e in read_events(state_dir)]
        assert events == ["mutation"]


# =============================================================================
# Tests: Session ID / Global Logger
# =============================================================================


class TestSessionId:

    def test_session_id_consistent(self):
        assert _get_session_id() == _get_session_id()

    def test_session_id_format(self):
        session_id = _get_session_id()
        assert len(session_id) == 12
        assert all(c in "0123456789abcdef" for c in session_id)


class TestGlobalLogger:

    def test_get_logger_returns_same_instance(self):
        assert get_logger() is get_logger()

    def test_reset_logger_clears_instance(self):
        logger1 = get_logger()
        reset_logger()
        assert get_logger() is not logger1
