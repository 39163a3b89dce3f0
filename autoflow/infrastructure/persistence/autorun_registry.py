"""Autorun registry - file-based list of flow documents to run daily."""

import json
import logging
import threading
from pathlib import Path

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class AutorunState(BaseModel):
    """On-disk shape of the registry."""

    autorun_flows: list[str] = []


class AutorunRegistry:
    """Persisted, duplicate-free list of vault paths of autorun flows."""

    def __init__(self, registry_file: Path) -> None:
        """Initialize registry; load from file if present."""
        self._file = Path(registry_file)
        self._paths: list[str] = []
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        """Load registry from disk."""
        if not self._file.exists():
            return
        try:
            raw = self._file.read_text(encoding="utf-8")
            self._paths = AutorunState.model_validate_json(raw).autorun_flows
        except ValidationError as e:
            logger.warning("Corrupted autorun registry %s: %s", self._file, e)
        except OSError as e:
            logger.warning("Cannot read autorun registry %s: %s", self._file, e)

    def _save(self) -> None:
        """Persist registry to disk (thread-safe)."""
        with self._lock:
            self._file.parent.mkdir(parents=True, exist_ok=True)
            data = AutorunState(autorun_flows=self._paths).model_dump()
            # Write to temp file first, then atomic rename
            tmp_file = self._file.with_suffix(".tmp")
            try:
                tmp_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
                tmp_file.replace(self._file)
            except OSError:
                logger.warning("Failed to save autorun registry to %s", self._file, exc_info=True)
                if tmp_file.exists():
                    tmp_file.unlink(missing_ok=True)

    def paths(self) -> list[str]:
        """Registered flow paths in registration order."""
        return list(self._paths)

    def register(self, path: str) -> bool:
        """Add path. Returns False if it was already registered."""
        if path in self._paths:
            return False
        self._paths.append(path)
        self._save()
        return True

    def unregister(self, path: str) -> bool:
        """Remove path. Returns True if it was registered."""
        if path not in self._paths:
            return False
        self._paths.remove(path)
        self._save()
        return True
