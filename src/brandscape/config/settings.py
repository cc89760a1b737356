"""Configuration management for the brand generation pipeline.

This module handles environment-driven configuration for Brandscape,
including model settings, search and registry credentials, artifact storage
and LangSmith tracing.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Configuration settings for the brand generation pipeline."""

    # LangSmith configuration
    langchain_api_key: Optional[str] = None
    langchain_project: str = "brandscape"
    langchain_endpoint: str = "https://api.smith.langchain.com"
    langchain_tracing_v2: bool = False

    # Model configuration
    model_name: str = "gemini-1.5-pro"
    embedding_model: str = "models/text-embedding-004"
    gemini_api_key: Optional[str] = None

    # Add google_api_key to point to gemini_api_key for compatibility
    @property
    def google_api_key(self) -> Optional[str]:
        """Return the Gemini API key to maintain compatibility with google_api_key references."""
        return self.gemini_api_key

    # Search and registry configuration
    serpapi_key: Optional[str] = None
    serpapi_endpoint: str = "https://serpapi.com/search.json"
    search_rpm_limit: int = 30
    whoisxmlapi_key: Optional[str] = None
    whoisxml_trademark_url: str = "https://www.whoisxmlapi.com/whoisserver/TrademarksSearch"
    euipo_search_url: str = "https://euipo.europa.eu/eSearch/api/search/trademark"
    uk_ipo_search_url: str = "https://www.ipo.gov.uk/tmtext"
    uk_ipo_web_scraping: bool = False
    http_timeout: int = 20

    # Retrieval sources
    color_reference_urls: List[str] = ["https://mailchimp.com/resources/color-psychology/"]

    # Image generation
    image_space: str = "black-forest-labs/FLUX.1-dev"
    image_api_name: str = "/infer"
    hf_token: Optional[str] = None

    # Artifact storage
    artifact_dir: str = "./logos"
    artifact_bucket: str = "logos"
    artifact_route: str = "/api/logo"
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    supabase_timeout: int = 10
    public_base_url: str = "http://localhost:8000"

    # Diagnostics
    raw_dump_dir: str = "."
    debug_raw_output: bool = False

    # Cache configuration
    cache_ttl_minutes: int = 10
    session_ttl_minutes: int = 60

    # Retry configuration
    max_retries: int = 3
    retry_delay: int = 1
    retry_backoff: int = 2
    retry_max_delay: int = 60

    # Helper methods
    def get_langsmith_callbacks(self):
        """Return LangSmith callbacks if tracing is enabled."""
        if self.langchain_tracing_v2:
            from langchain_core.tracers import LangChainTracer
            try:
                return [LangChainTracer(project_name=self.langchain_project)]
            except Exception:
                return None
        return None

    @property
    def supabase_enabled(self) -> bool:
        """Whether logo artifacts should be uploaded to Supabase Storage."""
        return bool(self.supabase_url and self.supabase_service_key)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

# Global settings instance
settings = Settings()
