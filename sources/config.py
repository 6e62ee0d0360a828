"""Configuration for the bibliographic source adapters."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass
class SourceConfig:
    """Configuration for OpenAlex and Semantic Scholar access.

    Environment Variables:
        OPENALEX_BASE_URL: OpenAlex API root (default: https://api.openalex.org)
        OPENALEX_EMAIL: Contact email for the OpenAlex polite pool (optional)
        SEMANTIC_SCHOLAR_BASE_URL: Graph API root
            (default: https://api.semanticscholar.org/graph/v1)
        SEMANTIC_SCHOLAR_API_KEY: API key sent as x-api-key (optional)
        SOURCE_TIMEOUT: Request timeout in seconds (default: 30)
        FETCH_MAX_ATTEMPTS: Attempts per request including the first (default: 5)
        FETCH_BASE_DELAY: First backoff step in seconds (default: 1.0)
        FETCH_JITTER: Max random addition to each backoff in seconds (default: 1.0)
        OPENALEX_BATCH_SIZE: Ids per filter request (default: 100)
        OPENALEX_PER_PAGE: Results per page (default: 200)
        OPENALEX_MAX_PAGES_PER_CHUNK: Page cap per id chunk (default: 10)
        SEMANTIC_SCHOLAR_PAGE_LIMIT: Citations/references per page (default: 1000)
        MAX_CONCURRENT_FETCHES: Parallel batch requests (default: 5)
    """

    openalex_base_url: str = field(
        default_factory=lambda: os.environ.get("OPENALEX_BASE_URL", "https://api.openalex.org")
    )
    openalex_email: str | None = field(
        default_factory=lambda: os.environ.get("OPENALEX_EMAIL")
    )
    semantic_scholar_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "SEMANTIC_SCHOLAR_BASE_URL", "https://api.semanticscholar.org/graph/v1"
        )
    )
    semantic_scholar_api_key: str | None = field(
        default_factory=lambda: os.environ.get("SEMANTIC_SCHOLAR_API_KEY")
    )
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("SOURCE_TIMEOUT", "30"))
    )
    max_attempts: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_ATTEMPTS", "5"))
    )
    base_delay: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_BASE_DELAY", "1.0"))
    )
    jitter: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_JITTER", "1.0"))
    )
    openalex_batch_size: int = field(
        default_factory=lambda: int(os.environ.get("OPENALEX_BATCH_SIZE", "100"))
    )
    openalex_per_page: int = field(
        default_factory=lambda: int(os.environ.get("OPENALEX_PER_PAGE", "200"))
    )
    openalex_max_pages_per_chunk: int = field(
        default_factory=lambda: int(os.environ.get("OPENALEX_MAX_PAGES_PER_CHUNK", "10"))
    )
    semantic_scholar_page_limit: int = field(
        default_factory=lambda: int(os.environ.get("SEMANTIC_SCHOLAR_PAGE_LIMIT", "1000"))
    )
    max_concurrent_fetches: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENT_FETCHES", "5"))
    )

    @property
    def openalex_polite(self) -> bool:
        """Whether requests join the OpenAlex polite pool."""
        return bool(self.openalex_email)

    @property
    def semantic_scholar_authenticated(self) -> bool:
        """Whether a Semantic Scholar API key is configured."""
        return bool(self.semantic_scholar_api_key)


_config: SourceConfig | None = None


def get_source_config() -> SourceConfig:
    """Get global SourceConfig instance."""
    global _config
    if _config is None:
        _config = SourceConfig()
    return _config
