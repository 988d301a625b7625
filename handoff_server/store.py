#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Document store backends for handoff markdown files.

The engine only sees the DocumentStore interface: a blob store keyed by
relative paths like ``active/2025-01-15-1a2b3c4d5e6f.md``.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Set, Union

# Handle both module import and direct script execution
try:
    from handoff_server.debug_logger import get_logger
except ImportError:
    from debug_logger import get_logger


class DocumentStore(ABC):
    """Abstract base class for handoff document storage."""

    @abstractmethod
    def read(self, path: str) -> str:
        """
        Read a document.

        Raises:
            FileNotFoundError: If the document doesn't exist
        """
        ...

    @abstractmethod
    def write(self, path: str, content: str) -> None:
        """Create or overwrite a document."""
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        """
        Delete a document.

        Raises:
            FileNotFoundError: If the document doesn't exist
        """
        ...

    @abstractmethod
    def list(self, dir_path: str) -> List[str]:
        """
        List the file names directly inside a directory.

        Raises:
            FileNotFoundError: If the directory doesn't exist
        """
        ...

    @abstractmethod
    def ensure_directory(self, dir_path: str) -> None:
        """Create a directory (and parents) if missing."""
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a document exists."""
        ...

    @abstractmethod
    def move(self, src: str, dst: str) -> None:
        """
        Move a document, replacing any document at the destination.

        Raises:
            FileNotFoundError: If the source doesn't exist
        """
        ...

    def location(self, path: str) -> str:
        """Human-readable location of a path, reported back to callers."""
        return path


class LocalDocumentStore(DocumentStore):
    """
    Filesystem store rooted at the handoff directory.

    Paths are resolved under the root; anything escaping it is rejected.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser().resolve()

    def _resolve_path(self, path: str) -> Path:
        """Resolve a store path to an absolute filesystem path."""
        clean_path = PurePosixPath(str(path).replace("\\", "/")).as_posix().lstrip("/")
        full_path = self.root / clean_path

        try:
            full_path.resolve().relative_to(self.root)
        except ValueError:
            raise ValueError(f"Invalid path: {path} (outside handoff root)")

        return full_path

    def location(self, path: str) -> str:
        return str(self._resolve_path(path))

    def read(self, path: str) -> str:
        full_path = self._resolve_path(path)
        with get_logger().trace_file_io("read", full_path):
            return full_path.read_text(encoding="utf-8")

    def write(self, path: str, content: str) -> None:
        full_path = self._resolve_path(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        with get_logger().trace_file_io("write", full_path):
            full_path.write_text(content, encoding="utf-8")

    def delete(self, path: str) -> None:
        self._resolve_path(path).unlink()

    def list(self, dir_path: str) -> List[str]:
        full_path = self._resolve_path(dir_path)
        return sorted(entry.name for entry in full_path.iterdir() if entry.is_file())

    def ensure_directory(self, dir_path: str) -> None:
        self._resolve_path(dir_path).mkdir(parents=True, exist_ok=True)

    def exists(self, path: str) -> bool:
        return self._resolve_path(path).is_file()

    def move(self, src: str, dst: str) -> None:
        src_path = self._resolve_path(src)
        dst_path = self._resolve_path(dst)
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic on the same filesystem
        with get_logger().trace_file_io("move", dst_path):
            os.replace(src_path, dst_path)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store with the same contract, for tests and embedding."""

    def __init__(self, documents: Optional[Dict[str, str]] = None):
        self.documents: Dict[str, str] = {}
        self.directories: Set[str] = set()
        for path, content in (documents or {}).items():
            self.write(path, content)

    @staticmethod
    def _normalize(path: str) -> str:
        return PurePosixPath(path).as_posix().strip("/")

    def _add_parents(self, path: str) -> None:
        for parent in PurePosixPath(path).parents:
            if str(parent) != ".":
                self.directories.add(str(parent))

    def read(self, path: str) -> str:
        key = self._normalize(path)
        if key not in self.documents:
            raise FileNotFoundError(path)
        return self.documents[key]

    def write(self, path: str, content: str) -> None:
        key = self._normalize(path)
        self._add_parents(key)
        self.documents[key] = content

    def delete(self, path: str) -> None:
        key = self._normalize(path)
        if key not in self.documents:
            raise FileNotFoundError(path)
        del self.documents[key]

    def list(self, dir_path: str) -> List[str]:
        directory = self._normalize(dir_path)
        if directory not in self.directories:
            raise FileNotFoundError(dir_path)
        return sorted(
            PurePosixPath(key).name
            for key in self.documents
            if str(PurePosixPath(key).parent) == directory
        )

    def ensure_directory(self, dir_path: str) -> None:
        directory = self._normalize(dir_path)
        self.directories.add(directory)
        self._add_parents(directory)

    def exists(self, path: str) -> bool:
        return self._normalize(path) in self.documents

    def move(self, src: str, dst: str) -> None:
        content = self.read(src)
        self.write(dst, content)
        del self.documents[self._normalize(src)]
