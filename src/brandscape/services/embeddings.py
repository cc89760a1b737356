"""Text chunking and embedding for the retrieval step."""

from typing import List, Optional, Sequence, Union

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings
from langchain_text_splitters import RecursiveCharacterTextSplitter

from ..config.settings import settings
from ..errors import EmbeddingUnavailable
from ..models.brand import ContextChunk
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _as_document(doc: Union[Document, str]) -> Document:
    if isinstance(doc, Document):
        return doc
    return Document(page_content=str(doc or ""))


class TextChunker:
    """Splits documents into overlapping character chunks."""

    def __init__(self, chunk_size: int = 500, chunk_overlap: int = 20):
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.splitter = RecursiveCharacterTextSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)

    def chunk(self, documents: Sequence[Union[Document, str]]) -> List[ContextChunk]:
        """
        Split documents into chunks, numbering them in document order.

        If the splitter fails, every document becomes a single chunk instead.
        Empty content never produces a chunk.
        """
        docs = [_as_document(d) for d in documents]
        try:
            texts = [d.page_content for d in self.splitter.split_documents(docs)]
        except Exception as e:
            logger.warning("Text splitter failed, using whole documents as chunks", error=str(e))
            texts = [d.page_content for d in docs]
        texts = [t for t in texts if t and t.strip()]
        return [ContextChunk(content=text, index=i) for i, text in enumerate(texts)]


class Embedder:
    """Batch embedding of chunks and queries through the Gemini embedding model."""

    def __init__(self, embeddings: Optional[Embeddings] = None, model: Optional[str] = None):
        self.embeddings = embeddings or GoogleGenerativeAIEmbeddings(
            model=model or settings.embedding_model,
            google_api_key=settings.google_api_key,
            task_type="retrieval_document"
        )

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Embed texts in one batch call.

        Raises:
            EmbeddingUnavailable: If the backend fails or returns a different number of vectors
        """
        if not texts:
            return []
        try:
            vectors = await self.embeddings.aembed_documents(texts)
        except Exception as e:
            logger.warning("Embedding backend failed", error=str(e), count=len(texts))
            raise EmbeddingUnavailable(str(e)) from e
        if vectors is None or len(vectors) != len(texts):
            got = 0 if vectors is None else len(vectors)
            raise EmbeddingUnavailable(f"expected {len(texts)} embeddings, got {got}")
        return [list(v) for v in vectors]

    async def embed_query(self, text: str) -> List[float]:
        try:
            return list(await self.embeddings.aembed_query(text))
        except Exception as e:
            logger.warning("Query embedding failed", error=str(e))
            raise EmbeddingUnavailable(str(e)) from e
