"""Loading of static reference pages used as retrieval context."""

import asyncio
from typing import List

from langchain_community.document_loaders import WebBaseLoader
from langchain_core.documents import Document

from ..errors import SourceUnavailable
from ..utils.logging import get_logger

logger = get_logger(__name__)


class DocumentLoader:
    """Fetches a web page and returns its text as documents."""

    def __init__(self, timeout: int = 20):
        self.timeout = timeout

    def _load(self, url: str) -> List[Document]:
        loader = WebBaseLoader(url, requests_kwargs={"timeout": self.timeout})
        return loader.load()

    async def load(self, url: str) -> List[Document]:
        """
        Load a page. The synchronous loader runs in a worker thread.

        Raises:
            SourceUnavailable: If the page cannot be fetched or is empty
        """
        try:
            docs = await asyncio.to_thread(self._load, url)
        except Exception as e:
            raise SourceUnavailable(url, str(e)) from e
        docs = [d for d in docs if d.page_content and d.page_content.strip()]
        if not docs:
            raise SourceUnavailable(url, "no content")
        logger.debug("Loaded reference page", url=url, documents=len(docs))
        return docs
