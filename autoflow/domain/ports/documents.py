"""Document Store Port - interface for the vault holding flows, sources and outputs."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DocumentRef:
    """A document in the store. mtime is integer milliseconds."""

    path: str
    mtime: int

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class FolderRef:
    """A folder in the store."""

    path: str


class DocumentStorePort(Protocol):
    """Interface for document stores. Paths are vault-relative and '/'-separated."""

    def list_documents(self, prefix: str = "") -> list[DocumentRef]:
        """List documents whose path starts with prefix, in enumeration order."""
        ...

    def resolve(self, path: str) -> DocumentRef | FolderRef | None:
        """Look up a path. None if nothing exists there."""
        ...

    async def read(self, ref: DocumentRef) -> str:
        """Read full document content."""
        ...

    async def create(self, path: str, text: str) -> DocumentRef:
        """Create a new document."""
        ...

    async def append(self, path: str, text: str) -> None:
        """Append text to an existing document."""
        ...

    async def modify(self, path: str, text: str) -> None:
        """Replace the content of an existing document."""
        ...

    async def create_folder(self, path: str) -> None:
        """Create a folder and any missing parents."""
        ...
