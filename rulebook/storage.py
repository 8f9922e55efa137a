"""Byte-oriented storage used by the resolver and exporter.

The compiler never touches the filesystem directly. It reads reference
targets and writes artifacts through a :class:`Storage`, which keeps the
pipeline stages testable with an in-memory double and leaves path semantics
(relative resolution, directory layout) to the callers.
"""

from __future__ import annotations

import shutil
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class Storage(typ.Protocol):
    """Minimal read/write surface required by the compiler."""

    def read_bytes(self, path: Path) -> bytes:
        """Return the raw content stored at ``path``."""
        ...

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Store ``data`` at ``path``, replacing any previous content."""
        ...

    def make_dirs(self, path: Path) -> None:
        """Create ``path`` and any missing parents."""
        ...

    def remove_tree(self, path: Path) -> None:
        """Recursively delete ``path`` when it exists."""
        ...


class FileSystemStorage:
    """Storage backed by the local filesystem."""

    def read_bytes(self, path: Path) -> bytes:
        """Read ``path`` from disk; ``OSError`` propagates to the caller."""
        return path.read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path`` on disk."""
        path.write_bytes(data)

    def make_dirs(self, path: Path) -> None:
        """Create the directory ``path`` including parents."""
        path.mkdir(parents=True, exist_ok=True)

    def remove_tree(self, path: Path) -> None:
        """Delete ``path`` recursively; a missing path is not an error."""
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()


__all__ = ["FileSystemStorage", "Storage"]
