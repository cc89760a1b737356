"""Dependency injection configuration."""

from dataclasses import dataclass
from typing import Optional, Union

from .settings import settings
from ..models.app_config import AppConfig
from ..services.artifact_store import LocalArtifactStore, SupabaseArtifactStore
from ..services.documents import DocumentLoader
from ..services.domains import DomainChecker
from ..services.embeddings import Embedder, TextChunker
from ..services.image import ImageGenerator
from ..services.llm import GenerationClient
from ..services.logo_screening import LogoScreener
from ..services.retriever import ContextRetriever
from ..services.search import SerpApiClient
from ..services.trademark_risk import TrademarkRiskAnalyzer
from ..services.trademarks import (
    EuipoSource,
    TrademarkScreener,
    UkIpoSource,
    WebTrademarkSource,
    WhoisXmlSource,
)
from ..utils.cache import TTLCache


@dataclass
class Dependencies:
    """Container for application dependencies."""

    app_config: AppConfig
    generator: GenerationClient
    retriever: ContextRetriever
    search: SerpApiClient
    domains: DomainChecker
    trademarks: TrademarkScreener
    trademark_analyzer: TrademarkRiskAnalyzer
    logo_screener: LogoScreener
    image_generator: ImageGenerator
    artifact_store: Union[LocalArtifactStore, SupabaseArtifactStore]
    cache: TTLCache


def create_dependencies(app_config: Optional[AppConfig] = None) -> Dependencies:
    """Create and configure application dependencies."""
    app_config = app_config or AppConfig()

    # One cache shared by trademark and logo screening (tm: and logo: keys)
    cache = TTLCache(ttl_seconds=settings.cache_ttl_minutes * 60)
    search = SerpApiClient()

    retriever = ContextRetriever(
        chunker=TextChunker(app_config.chunk_size, app_config.chunk_overlap),
        embedder=Embedder(),
        loader=DocumentLoader(timeout=settings.http_timeout),
        search=search,
        top_k=app_config.top_k,
        results_per_query=app_config.search_results_per_query,
        max_search_queries=app_config.max_search_queries
    )

    trademarks = TrademarkScreener(
        sources=[
            EuipoSource(max_results=app_config.euipo_max_results),
            UkIpoSource(),
            WebTrademarkSource(search, results_per_query=app_config.trademark_results_per_query),
            WhoisXmlSource(),
        ],
        cache=cache,
        uk_only=app_config.trademark_uk_only
    )

    artifact_store = SupabaseArtifactStore() if settings.supabase_enabled else LocalArtifactStore()

    return Dependencies(
        app_config=app_config,
        generator=GenerationClient(),
        retriever=retriever,
        search=search,
        domains=DomainChecker(tlds=app_config.domain_tlds),
        trademarks=trademarks,
        trademark_analyzer=TrademarkRiskAnalyzer(app_config.trademark_similarity),
        logo_screener=LogoScreener(search, cache),
        image_generator=ImageGenerator(),
        artifact_store=artifact_store,
        cache=cache
    )
