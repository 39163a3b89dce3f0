"""Semantic Search - rank vault documents against a query with cached embeddings."""

import asyncio
import logging

from autoflow.domain.errors import ProviderError
from autoflow.domain.ports.documents import DocumentRef, DocumentStorePort
from autoflow.domain.ports.embeddings import EmbeddingsPort
from autoflow.domain.services.similarity import cosine_similarity
from autoflow.infrastructure.rag.embedding_index import EmbeddingIndex

logger = logging.getLogger(__name__)

TOP_N = 10
DEFAULT_MAX_CONCURRENCY = 4


def _embedding_input(text: str) -> str:
    """Newlines flattened to spaces before embedding."""
    return text.replace("\n", " ")


class SemanticSearch:
    """Embedding-backed ranking over documents, sharing one EmbeddingIndex."""

    def __init__(
        self,
        documents: DocumentStorePort,
        embeddings: EmbeddingsPort,
        index: EmbeddingIndex,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self._documents = documents
        self._embeddings = embeddings
        self._index = index
        self._max_concurrency = max_concurrency

    @property
    def index(self) -> EmbeddingIndex:
        return self._index

    async def _embed(self, text: str) -> list[float]:
        vector = await self._embeddings.embed(_embedding_input(text))
        if not vector:
            raise ProviderError("Embedding provider returned no vector")
        return vector

    async def _document_embedding(self, ref: DocumentRef) -> list[float]:
        """Cached vector if the document is unchanged, else a fresh one written back to the index."""
        cached = self._index.get_valid(ref.path, ref.mtime)
        if cached is not None:
            return cached
        content = await self._documents.read(ref)
        vector = await self._embed(content)
        self._index.put(ref.path, vector, ref.mtime)
        return vector

    async def _embed_all(self, candidates: list[DocumentRef]) -> list[list[float]]:
        """Embed candidates, at most max_concurrency provider calls at a time.

        The first failure cancels the remaining tasks and is re-raised as is.
        """
        limit = asyncio.Semaphore(self._max_concurrency)

        async def bounded(ref: DocumentRef) -> list[float]:
            async with limit:
                return await self._document_embedding(ref)

        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(bounded(ref)) for ref in candidates]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None
        return [task.result() for task in tasks]

    async def rank(
        self,
        query: str,
        candidates: list[DocumentRef],
        top_n: int = TOP_N,
    ) -> list[tuple[DocumentRef, float]]:
        """Rank candidates by descending cosine similarity to query.

        Candidate embeddings are computed concurrently up to the configured
        limit; ties keep the candidates' original order. The index is
        flushed once per successful call.

        Returns:
            Up to top_n (document, similarity) pairs, best first.

        """
        query_vector = await self._embed(query)
        vectors = await self._embed_all(candidates)
        await asyncio.to_thread(self._index.save)

        scored = [(ref, cosine_similarity(query_vector, vector)) for ref, vector in zip(candidates, vectors)]
        scored.sort(key=lambda item: item[1], reverse=True)
        logger.debug("Ranked %d documents for query %r", len(scored), query[:80])
        return scored[:top_n]

    async def rebuild_folder(self, folder: str) -> int:
        """Re-embed every document under folder, ignoring cached entries.

        Returns:
            Number of documents indexed.

        """
        refs = self._documents.list_documents(folder)
        count = 0
        for ref in refs:
            content = await self._documents.read(ref)
            self._index.put(ref.path, await self._embed(content), ref.mtime)
            count += 1
        await asyncio.to_thread(self._index.save)
        logger.info("Rebuilt embedding index for %r: %d documents", folder, count)
        return count
