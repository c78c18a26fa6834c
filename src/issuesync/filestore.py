"""Filesystem access for issue files.

The reconciler only talks to a ``FileStore`` so tests (and dry runs) can
swap the backing storage without touching the decision logic. Paths are
workspace-relative POSIX strings such as ``docs/issues/001-demo.md``.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Protocol


class FileStore(Protocol):
    def list_files(self, directory: str) -> list[str]: ...

    def exists(self, path: str) -> bool: ...

    def read_file(self, path: str) -> str: ...

    def write_file(self, path: str, content: str) -> None: ...

    def delete_file(self, path: str) -> None: ...


class LocalFileStore:
    """``FileStore`` rooted at a workspace directory on disk."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / PurePosixPath(path)

    def list_files(self, directory: str) -> list[str]:
        """Names of regular files directly inside ``directory``.

        A missing directory yields an empty list.
        """
        target = self._resolve(directory)
        if not target.is_dir():
            return []
        return sorted(p.name for p in target.iterdir() if p.is_file())

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read_file(self, path: str) -> str:
        return self._resolve(path).read_text(encoding="utf-8")

    def write_file(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def delete_file(self, path: str) -> None:
        self._resolve(path).unlink()


__all__ = ["FileStore", "LocalFileStore"]
