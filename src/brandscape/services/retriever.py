"""Retrieval of ranked context passages for the generation stages."""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from langchain_core.documents import Document

from ..errors import SourceUnavailable
from ..models.brand import ContextChunk
from ..utils.logging import get_logger
from .documents import DocumentLoader
from .embeddings import Embedder, TextChunker
from .search import SerpApiClient

logger = get_logger(__name__)


@dataclass
class RetrievalSources:
    """Where context may come from for one retrieval."""

    urls: List[str] = field(default_factory=list)
    documents: List[str] = field(default_factory=list)
    search_queries: List[str] = field(default_factory=list)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero length."""
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        return 0.0
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank_chunks(chunks: List[ContextChunk], query_embedding: Sequence[float], top_k: int) -> List[ContextChunk]:
    """Score chunks against the query and keep the best ``top_k``.

    Equal scores keep their original order.
    """
    scored = [
        chunk.model_copy(update={"similarity": cosine_similarity(query_embedding, chunk.embedding or [])})
        for chunk in chunks
    ]
    scored.sort(key=lambda c: (-c.similarity, c.index))
    return scored[:top_k]


def format_context(chunks: Sequence[ContextChunk], separator: str = "\n\n") -> str:
    """Render chunks as ``Doc0: ...`` entries for the prompt."""
    return separator.join(f"Doc{i}: {chunk.content}" for i, chunk in enumerate(chunks))


class ContextRetriever:
    """Collects documents from every available source and returns the top-K chunks for a query."""

    def __init__(
        self,
        chunker: TextChunker,
        embedder: Embedder,
        loader: Optional[DocumentLoader] = None,
        search: Optional[SerpApiClient] = None,
        top_k: int = 5,
        results_per_query: int = 3,
        max_search_queries: int = 4
    ):
        self.chunker = chunker
        self.embedder = embedder
        self.loader = loader
        self.search = search
        self.top_k = top_k
        self.results_per_query = results_per_query
        self.max_search_queries = max_search_queries

    async def _load_url(self, url: str) -> List[Document]:
        if self.loader is None:
            raise SourceUnavailable(url, "no document loader configured")
        return await self.loader.load(url)

    async def _search_snippets(self, query: str) -> List[Document]:
        hits = await self.search.web_search(query, max_results=self.results_per_query)
        return [
            Document(page_content=f"{hit.title}\n{hit.snippet}\n{hit.url}".strip(), metadata={"source": hit.url})
            for hit in hits if hit.title or hit.snippet
        ]

    async def gather_documents(self, sources: RetrievalSources) -> Tuple[List[Document], List[str]]:
        """
        Load every source concurrently, skipping the ones that fail.

        Returns:
            Tuple of the gathered documents (in source order) and the warnings for skipped sources
        """
        labels = []
        tasks = []
        for url in sources.urls:
            labels.append(url)
            tasks.append(self._load_url(url))
        if sources.search_queries and self.search is not None and self.search.configured:
            for query in sources.search_queries[:self.max_search_queries]:
                labels.append(f"search: {query}")
                tasks.append(self._search_snippets(query))
        elif sources.search_queries:
            logger.info("Web search not configured; skipping live search context")

        documents = [Document(page_content=text) for text in sources.documents if text and text.strip()]
        warnings = []
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for label, result in zip(labels, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Context source failed, skipping", source=label, error=str(result))
                warnings.append(f"{label}: {result}")
                continue
            documents.extend(result)
        return documents, warnings

    async def rank_documents(self, documents: List[Document], query: str) -> List[ContextChunk]:
        """
        Chunk, embed and rank already gathered documents against ``query``.

        No chunks means no embedding call and an empty result.

        Raises:
            EmbeddingUnavailable: If embedding fails or returns misaligned vectors
        """
        chunks = self.chunker.chunk(documents)
        if not chunks:
            logger.info("No context chunks gathered; continuing with empty context")
            return []

        vectors = await self.embedder.embed([c.content for c in chunks])
        query_embedding = await self.embedder.embed_query(query)
        embedded = [c.model_copy(update={"embedding": v}) for c, v in zip(chunks, vectors)]
        ranked = rank_chunks(embedded, query_embedding, self.top_k)
        logger.debug("Ranked context chunks", total=len(chunks), kept=len(ranked))
        return ranked

    async def retrieve_with_warnings(self, sources: RetrievalSources, query: str) -> Tuple[List[ContextChunk], List[str]]:
        """Like ``retrieve``, also returning one warning per skipped source."""
        documents, warnings = await self.gather_documents(sources)
        return await self.rank_documents(documents, query), warnings

    async def retrieve(self, sources: RetrievalSources, query: str) -> List[ContextChunk]:
        """Return at most ``top_k`` chunks ranked by similarity to ``query``."""
        chunks, _ = await self.retrieve_with_warnings(sources, query)
        return chunks
