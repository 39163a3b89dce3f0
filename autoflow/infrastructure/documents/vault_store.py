"""Vault Document Store - a directory of Markdown notes addressed by vault paths."""

import asyncio
import logging
from pathlib import Path, PurePosixPath

from autoflow.domain.errors import StorageError
from autoflow.domain.ports.documents import DocumentRef, FolderRef

logger = logging.getLogger(__name__)


# Excluded directories
EXCLUDED_DIRS = {
    ".git",
    ".obsidian",
    ".trash",
    "__pycache__",
}


class VaultDocumentStore:
    """DocumentStorePort over a root directory.

    Vault paths are relative, '/'-separated (``Notes/2024/today.md``).
    Only files with the configured extension count as documents.
    """

    def __init__(self, root_path: str | None = None, extension: str = ".md") -> None:
        self._root = Path(root_path).resolve() if root_path else Path.cwd().resolve()
        self._extension = extension

    @property
    def root(self) -> Path:
        return self._root

    def _is_safe_path(self, path: Path) -> bool:
        """Check if path is within root directory (no path traversal, no symlink escape)."""
        try:
            path.resolve(strict=False).relative_to(self._root)
            return True
        except (ValueError, OSError):
            return False

    def _to_fs(self, vault_path: str) -> Path:
        """Map a vault path to a filesystem path under root."""
        target = self._root / PurePosixPath(vault_path.strip("/"))
        if not self._is_safe_path(target):
            raise StorageError(f"Path escapes vault: {vault_path}")
        return target

    def _to_vault(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    def _ref(self, path: Path) -> DocumentRef:
        stat = path.stat()
        return DocumentRef(path=self._to_vault(path), mtime=stat.st_mtime_ns // 1_000_000)

    def _should_exclude(self, name: str) -> bool:
        return name in EXCLUDED_DIRS

    def list_documents(self, prefix: str = "") -> list[DocumentRef]:
        """All documents whose vault path starts with prefix (plain string prefix), sorted by path."""
        refs: list[DocumentRef] = []
        for path in sorted(self._root.rglob(f"*{self._extension}")):
            rel = path.relative_to(self._root)
            if any(self._should_exclude(part) for part in rel.parts[:-1]):
                continue
            if not path.is_file():
                continue
            vault_path = rel.as_posix()
            if not vault_path.startswith(prefix):
                continue
            try:
                refs.append(self._ref(path))
            except OSError:
                logger.debug("Failed to stat document: %s", path)
        return refs

    def resolve(self, path: str) -> DocumentRef | FolderRef | None:
        """Look up a vault path."""
        try:
            target = self._to_fs(path)
        except StorageError:
            return None
        if target.is_dir():
            return FolderRef(path=self._to_vault(target))
        if target.is_file():
            try:
                return self._ref(target)
            except OSError:
                logger.debug("Failed to stat document: %s", target)
        return None

    async def read(self, ref: DocumentRef) -> str:
        target = self._to_fs(ref.path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {ref.path}: {e}") from e

    async def create(self, path: str, text: str) -> DocumentRef:
        target = self._to_fs(path)
        if target.exists():
            raise StorageError(f"Already exists: {path}")

        def _write() -> DocumentRef:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
            return self._ref(target)

        try:
            return await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Failed to create {path}: {e}") from e

    async def append(self, path: str, text: str) -> None:
        target = self._to_fs(path)
        if not target.is_file():
            raise StorageError(f"Not a document: {path}")

        def _append() -> None:
            with open(target, "a", encoding="utf-8") as f:
                f.write(text)

        try:
            await asyncio.to_thread(_append)
        except OSError as e:
            raise StorageError(f"Failed to append to {path}: {e}") from e

    async def modify(self, path: str, text: str) -> None:
        target = self._to_fs(path)
        if not target.is_file():
            raise StorageError(f"Not a document: {path}")
        try:
            await asyncio.to_thread(target.write_text, text, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to modify {path}: {e}") from e

    async def create_folder(self, path: str) -> None:
        target = self._to_fs(path)
        try:
            await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create folder {path}: {e}") from e
