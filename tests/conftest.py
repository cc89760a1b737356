import asyncio
import json
import socket
from typing import List

import pytest
from langchain_core.embeddings import Embeddings

from brandscape.config.dependencies import Dependencies
from brandscape.errors import GenerationBackendError, SourceUnavailable
from brandscape.models.app_config import AppConfig
from brandscape.models.brand import ScreeningHit
from brandscape.services.artifact_store import LocalArtifactStore
from brandscape.services.domains import DomainChecker
from brandscape.services.embeddings import Embedder, TextChunker
from brandscape.services.image import GeneratedImage
from brandscape.services.logo_screening import LogoScreener
from brandscape.services.retriever import ContextRetriever
from brandscape.services.trademark_risk import TrademarkRiskAnalyzer
from brandscape.services.trademarks import SourceReport, TrademarkScreener, TrademarkSource
from brandscape.utils.cache import TTLCache

KNITTING_NAMES = {
    "suggestions": [
        {"title": "1. Loom Lane", "description": "Warm, handmade yarn goods"},
        {"title": "Purl Studio", "description": "A studio feel for knitters"},
        {"title": "Skein & Co.", "description": "Playful take on yarn skeins"},
        {"title": "Woolly Nest Ltd", "description": "Cosy wool for every project"},
        {"title": "Stitchwell", "description": "Reliable stitches"},
    ]
}

PALETTE_LINES = "\n".join([
    "#0B5394,#F4B183 - Deep Navy & Warm Apricot - Trustworthy yet approachable for makers.",
    "#18AF6E,#FF6F61 - Forest Green & Coral - Natural growth with a friendly warmth.",
    "#F1C232,#6D9EEB - Goldenrod & Sky Blue - Optimistic, bright and modern feeling.",
    "#2C3E50,#F7DC6F - Slate & Warm Yellow - Calm confidence with a cheerful accent.",
    "#7F3FBF,#FFD166 - Purple & Soft Gold - Creative craft with a premium touch.",
])

LOGO_TEXT = "A minimal ball of yarn with a knitting needle, flat vector style, #0B5394 and #F4B183."


class FakeGenerator:
    """Returns queued responses in order; queued exceptions are raised."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    async def generate(self, system_prompt: str, user_prompt: str, temperature: float = 0.0) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "temperature": temperature})
        if not self.responses:
            raise GenerationBackendError("no more fake responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class LetterEmbeddings(Embeddings):
    """Letter-frequency vectors; deterministic and offline."""

    def __init__(self):
        self.document_calls = 0

    @staticmethod
    def _vector(text: str) -> List[float]:
        counts = [0.0] * 26
        for char in text.lower():
            if "a" <= char <= "z":
                counts[ord(char) - ord("a")] += 1
        return counts

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls += 1
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        return self._vector(text)

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        return self.embed_documents(texts)

    async def aembed_query(self, text: str) -> List[float]:
        return self.embed_query(text)


class FailingEmbeddings(LetterEmbeddings):
    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls += 1
        raise RuntimeError("embedding quota exceeded")


class FakeSearch:
    """Stands in for the SerpAPI client."""

    def __init__(self, configured: bool = True, results=None, lens=None, fail: bool = False):
        self.configured = configured
        self.results = results or []
        self.lens = lens or {}
        self.fail = fail
        self.queries = []
        self.image_urls = []

    async def web_search(self, query: str, max_results: int = 3, uk_only: bool = False):
        self.queries.append(query)
        if self.fail:
            raise SourceUnavailable("serpapi", "HTTP 500: boom")
        return [hit.model_copy(update={"query": query}) for hit in self.results[:max_results]]

    async def reverse_image_search(self, image_url: str, uk_only: bool = True):
        self.image_urls.append(image_url)
        if self.fail:
            raise SourceUnavailable("serpapi", "HTTP 500: boom")
        return self.lens


class FakeResolver:
    """Resolves names listed in ``taken``; raises for everything else."""

    def __init__(self, taken=(), errors=None):
        self.taken = set(taken)
        self.errors = errors or {}
        self.lookups = []

    async def resolve(self, domain: str) -> None:
        self.lookups.append(domain)
        if domain in self.errors:
            raise self.errors[domain]
        if domain not in self.taken:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")


class StaticSource(TrademarkSource):
    """Trademark source returning fixed hits, or failing."""

    def __init__(self, name: str = "Static", hits=None, error: Exception = None):
        self.name = name
        self.hits = hits or []
        self.error = error
        self.calls = 0

    async def search(self, mark: str, uk_only: bool = True) -> SourceReport:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return SourceReport(hits=list(self.hits))


class FakeImageGenerator:
    def __init__(self, error: Exception = None):
        self.error = error
        self.prompts = []

    async def generate_image(self, prompt: str, **kwargs) -> GeneratedImage:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return GeneratedImage(data=b"\x89PNG fake logo", extension="png", seed=42)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def embeddings():
    return LetterEmbeddings()


@pytest.fixture
def retriever(embeddings):
    return ContextRetriever(chunker=TextChunker(), embedder=Embedder(embeddings=embeddings))


@pytest.fixture
def names_json():
    return json.dumps(KNITTING_NAMES)


@pytest.fixture
def make_dependencies(tmp_path, retriever):
    """Build a fully offline dependency container; keyword overrides replace parts."""

    def factory(**overrides):
        config = overrides.pop("app_config", None) or AppConfig()
        cache = TTLCache(ttl_seconds=600)
        search = overrides.pop("search", None) or FakeSearch(configured=False)
        parts = dict(
            app_config=config,
            generator=FakeGenerator(),
            retriever=retriever,
            search=search,
            domains=DomainChecker(resolver=FakeResolver(taken={"loomlane.com"}), tlds=config.domain_tlds),
            trademarks=TrademarkScreener(sources=[StaticSource()], cache=cache),
            trademark_analyzer=TrademarkRiskAnalyzer(config.trademark_similarity),
            logo_screener=LogoScreener(search, cache, base_url="http://testserver"),
            image_generator=FakeImageGenerator(),
            artifact_store=LocalArtifactStore(str(tmp_path / "logos"), "/api/logo"),
            cache=cache,
        )
        parts.update(overrides)
        return Dependencies(**parts)

    return factory


@pytest.fixture
def hit():
    def factory(title="", url="", snippet="", source="serpapi"):
        return ScreeningHit(title=title, url=url, snippet=snippet, source=source)
    return factory
