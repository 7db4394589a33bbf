"""Storage seam for the content tree.

Directories double as existence records and primary keys, so every component
talks to storage through the small interface below. Paths are relative,
"/"-separated strings rooted at the assets directory (e.g. "shop/pages/list").
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol

from pagetree.errors import IOFailureError

logger = logging.getLogger(__name__)


def join(*parts: str) -> str:
    """Join relative path segments with "/"."""
    return "/".join(p.strip("/") for p in parts if p)


class Repository(Protocol):
    """Operations the tree components need from storage."""

    def list_children(self, path: str) -> list[str]:
        """Names of the subdirectories of path (unsorted). Missing path -> []."""
        ...

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def create_dir(self, path: str) -> None:
        """Create path and any missing parents. Existing directories are fine."""
        ...

    def remove(self, path: str) -> None:
        """Recursively remove a directory or file."""
        ...

    def rename(self, src: str, dst: str) -> None: ...

    def read_text(self, path: str) -> Optional[str]:
        """File contents, or None if the file is absent or unreadable."""
        ...

    def write_text(self, path: str, content: str) -> None:
        """Replace the file atomically, creating parent directories."""
        ...

    def count_files(self, path: str) -> int:
        """Number of regular files directly inside path. Missing path -> 0."""
        ...


class FileSystemRepository:
    """Repository backed by real directories under a root path.

    Mutations wrap OSError in IOFailureError naming the operation and path.
    Reads degrade to empty results.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _abs(self, path: str) -> Path:
        return self.root / path if path else self.root

    def list_children(self, path: str) -> list[str]:
        target = self._abs(path)
        try:
            return [entry.name for entry in target.iterdir() if entry.is_dir()]
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            logger.warning(f"Failed to list {target}: {e}")
            return []

    def exists(self, path: str) -> bool:
        return self._abs(path).exists()

    def is_dir(self, path: str) -> bool:
        return self._abs(path).is_dir()

    def create_dir(self, path: str) -> None:
        try:
            self._abs(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError("create_dir", path, e) from e

    def remove(self, path: str) -> None:
        target = self._abs(path)
        try:
            if target.is_dir():
                shutil.rmtree(target)
            else:
                target.unlink()
        except OSError as e:
            raise IOFailureError("remove", path, e) from e

    def rename(self, src: str, dst: str) -> None:
        try:
            self._abs(src).rename(self._abs(dst))
        except OSError as e:
            raise IOFailureError("rename", src, e) from e

    def read_text(self, path: str) -> Optional[str]:
        try:
            return self._abs(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def write_text(self, path: str, content: str) -> None:
        target = self._abs(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file, then swap it in
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise IOFailureError("write", path, e) from e

    def count_files(self, path: str) -> int:
        target = self._abs(path)
        try:
            return sum(1 for entry in target.iterdir() if entry.is_file())
        except OSError:
            return 0


class MemoryRepository:
    """In-memory Repository used by tests and previews.

    Directories are a set of paths; files map a path to its contents.
    """

    def __init__(self) -> None:
        self._dirs: set[str] = {""}
        self._files: dict[str, str] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _parent(path: str) -> str:
        return path.rsplit("/", 1)[0] if "/" in path else ""

    def _ensure_dirs(self, path: str) -> None:
        while path and path not in self._dirs:
            self._dirs.add(path)
            path = self._parent(path)

    def list_children(self, path: str) -> list[str]:
        with self._lock:
            return [d.rsplit("/", 1)[-1] for d in self._dirs if d and self._parent(d) == path]

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._dirs or path in self._files

    def is_dir(self, path: str) -> bool:
        with self._lock:
            return path in self._dirs

    def create_dir(self, path: str) -> None:
        with self._lock:
            if path in self._files:
                raise IOFailureError("create_dir", path)
            self._ensure_dirs(path)

    def remove(self, path: str) -> None:
        with self._lock:
            if path not in self._dirs and path not in self._files:
                raise IOFailureError("remove", path)
            prefix = path + "/"
            self._dirs = {d for d in self._dirs if d != path and not d.startswith(prefix)}
            self._files = {
                f: c for f, c in self._files.items() if f != path and not f.startswith(prefix)
            }

    def rename(self, src: str, dst: str) -> None:
        with self._lock:
            if src not in self._dirs or dst in self._dirs or dst in self._files:
                raise IOFailureError("rename", src)
            prefix = src + "/"

            def moved(p: str) -> str:
                return dst + p[len(src):] if p == src or p.startswith(prefix) else p

            self._dirs = {moved(d) for d in self._dirs}
            self._files = {moved(f): c for f, c in self._files.items()}

    def read_text(self, path: str) -> Optional[str]:
        with self._lock:
            return self._files.get(path)

    def write_text(self, path: str, content: str) -> None:
        with self._lock:
            if path in self._dirs:
                raise IOFailureError("write", path)
            self._ensure_dirs(self._parent(path))
            self._files[path] = content

    def count_files(self, path: str) -> int:
        with self._lock:
            return sum(1 for f in self._files if self._parent(f) == path)
