"""Filesystem-backed object store.

Keys map to paths under a root directory, so
``skills/foo/1.0.0/foo.skill`` lives at ``<root>/skills/foo/1.0.0/foo.skill``.
Deleting a key prunes parent directories that became empty, stopping at
the root, so the tree never accumulates empty version folders.

Writes go through a per-call temp file named ``.<name>.<random>.tmp`` in the
target directory and are renamed into place. Files matching that pattern
never show up in ``list``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath

from .errors import NotFoundError, StorageIOError
from .storage import ObjectStore

logger = logging.getLogger("skrepo.local_storage")


_TEMP_SUFFIX = ".tmp"


def _is_temp_file(name: str) -> bool:
    return name.startswith(".") and name.endswith(_TEMP_SUFFIX)


class FilesystemStore(ObjectStore):
    """Object store rooted at a local directory.

    Args:
        root: Directory holding the objects.
        create: Create the root directory immediately.
    """

    def __init__(self, root: Path, create: bool = False) -> None:
        self.root = Path(root).expanduser()
        if create:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageIOError(
                    f"Failed to create local storage directory {self.root}: {exc}"
                ) from exc

    def describe(self) -> str:
        return f"file://{self.root}"

    def put(self, key: str, data: bytes) -> None:
        path = self._key_to_path(key)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=_TEMP_SUFFIX
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise StorageIOError(f"Failed to write {path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Could not remove temp file %s", tmp_name)

    def get(self, key: str) -> bytes:
        path = self._key_to_path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"Object not found: {key}") from None
        except OSError as exc:
            raise StorageIOError(f"Failed to read {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._key_to_path(key)
        if not path.is_file():
            return
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageIOError(f"Failed to delete {path}: {exc}") from exc
        self._prune_empty_parents(path.parent)

    def list(self, prefix: str) -> list[str]:
        # Walk from the deepest directory the prefix names, then filter on
        # the full string so "skills/a" also matches "skills/abc/...".
        head, _, _ = prefix.rpartition("/")
        start = self._key_to_path(head) if head else self.root
        keys: list[str] = []
        if start.is_dir():
            self._collect(start, prefix, keys)
        return keys

    def exists(self, key: str) -> bool:
        try:
            return self._key_to_path(key).is_file()
        except StorageIOError:
            return False

    def _key_to_path(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or ".." in parts:
            raise StorageIOError(f"Invalid object key: {key!r}")
        return self.root.joinpath(*parts)

    def _collect(self, directory: Path, prefix: str, keys: list[str]) -> None:
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            raise StorageIOError(f"Failed to list {directory}: {exc}") from exc
        for entry in entries:
            if entry.is_dir():
                self._collect(entry, prefix, keys)
            elif entry.is_file() and not _is_temp_file(entry.name):
                rel = entry.relative_to(self.root).as_posix()
                if rel.startswith(prefix):
                    keys.append(rel)

    def _prune_empty_parents(self, directory: Path) -> None:
        root = self.root.resolve()
        current = directory
        while current.resolve() != root and root in current.resolve().parents:
            try:
                current.rmdir()
            except OSError:
                # not empty, or already gone
                break
            logger.debug("Removed empty directory %s", current)
            current = current.parent
