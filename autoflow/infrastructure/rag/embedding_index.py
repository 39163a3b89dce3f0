"""Embedding Index - persisted document path -> {embedding, mtime} cache.

An entry is reusable only while its mtime equals the document's current
mtime. Mutations stay in memory until save() flushes the whole mapping.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from autoflow.domain.errors import StorageError

logger = logging.getLogger(__name__)

EMBEDDING_INDEX_FILENAME = "embedding-index.json"


class EmbeddingIndexEntry(BaseModel):
    """Cached embedding of one document at one modification time."""

    embedding: list[float]
    mtime: int


class EmbeddingIndex:
    """Process-wide embedding cache, loaded once and flushed after each batch."""

    def __init__(self, index_file: Path) -> None:
        self._index_file = Path(index_file)
        self._entries: dict[str, EmbeddingIndexEntry] = {}
        self._load()

    def _load(self) -> None:
        """Load index from disk."""
        if not self._index_file.exists():
            self._entries = {}
            return
        try:
            data = json.loads(self._index_file.read_text(encoding="utf-8"))
            self._entries = {path: EmbeddingIndexEntry(**entry) for path, entry in data.items()}
        except (OSError, json.JSONDecodeError, ValidationError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load embedding index: {e}, starting fresh")
            self._entries = {}

    def save(self) -> None:
        """Persist the whole index to disk."""
        data = {path: entry.model_dump() for path, entry in list(self._entries.items())}
        try:
            self._index_file.parent.mkdir(parents=True, exist_ok=True)
            self._index_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save embedding index: {e}")
            raise StorageError(f"Failed to save embedding index: {e}") from e

    def get_valid(self, path: str, mtime: int) -> list[float] | None:
        """Cached vector for path, or None if missing or stale."""
        entry = self._entries.get(path)
        if entry is None or entry.mtime != mtime:
            return None
        return entry.embedding

    def put(self, path: str, embedding: list[float], mtime: int) -> None:
        self._entries[path] = EmbeddingIndexEntry(embedding=embedding, mtime=mtime)

    def paths(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
