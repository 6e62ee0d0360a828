"""Async Semantic Scholar client.

``fetch_by_doi`` loads the base record, then pages through citations and
references concurrently. A base-record 404 yields ``None``; a failing list
page ends that list with whatever was already collected.
"""

import asyncio
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from core.utils import BaseAsyncHttpClient, FetchError, fetch_with_retry, register_cleanup
from sources.config import SourceConfig, get_source_config
from sources.errors import SourceParseError

from .models import (
    SemanticScholarListPage,
    SemanticScholarPaper,
    SemanticScholarPaperDetails,
)
from .queries import (
    CITATIONS,
    LIST_ITEM_KEYS,
    REFERENCES,
    base_fields_param,
    related_fields_param,
)

logger = logging.getLogger(__name__)

PROVIDER = "semantic_scholar"


class SemanticScholarClient(BaseAsyncHttpClient):
    """Typed access to the Semantic Scholar paper endpoints."""

    def __init__(
        self,
        config: Optional[SourceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_source_config()
        headers = {}
        if self.config.semantic_scholar_api_key:
            headers["x-api-key"] = self.config.semantic_scholar_api_key
        super().__init__(
            base_url=self.config.semantic_scholar_base_url,
            timeout=self.config.timeout,
            headers=headers,
            transport=transport,
        )

    async def _get(self, path: str, params: dict) -> httpx.Response:
        client = await self._get_client()
        return await fetch_with_retry(
            client,
            path,
            params=params,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
            jitter=self.config.jitter,
        )

    async def fetch_by_doi(self, doi: str) -> Optional[SemanticScholarPaperDetails]:
        """Fetch a paper with all of its citations and references.

        Args:
            doi: Normalized DOI (no URL prefix)

        Returns:
            SemanticScholarPaperDetails, or None when the DOI is unknown
        """
        response = await self._get(f"/paper/DOI:{doi}", {"fields": base_fields_param()})
        if response.status_code == 404:
            logger.warning(f"Paper with DOI {doi} not found in Semantic Scholar, continuing")
            return None

        try:
            base = SemanticScholarPaper.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SourceParseError(
                f"Malformed Semantic Scholar record for DOI {doi}: {e}", provider=PROVIDER
            ) from e

        if not base.paper_id:
            logger.warning(f"Semantic Scholar record for DOI {doi} has no paperId, ignoring")
            return None

        citations, references = await asyncio.gather(
            self._fetch_all_pages(base.paper_id, CITATIONS),
            self._fetch_all_pages(base.paper_id, REFERENCES),
        )
        logger.info(
            f"Semantic Scholar {base.paper_id}: {len(citations)} citations, "
            f"{len(references)} references"
        )
        return SemanticScholarPaperDetails(
            **base.model_dump(by_alias=False),
            citations=citations,
            references=references,
        )

    async def _fetch_all_pages(self, paper_id: str, kind: str) -> list[SemanticScholarPaper]:
        """Offset-paginate a citation or reference list until a short page."""
        limit = self.config.semantic_scholar_page_limit
        item_key = LIST_ITEM_KEYS[kind]
        results: list[SemanticScholarPaper] = []
        offset = 0

        while True:
            try:
                response = await self._get(
                    f"/paper/{paper_id}/{kind}",
                    {"fields": related_fields_param(), "limit": limit, "offset": offset},
                )
            except FetchError as e:
                logger.warning(
                    f"Failed to fetch {kind} page at offset {offset} for {paper_id}: {e}"
                )
                break
            if response.status_code == 404:
                break

            try:
                page = SemanticScholarListPage.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                logger.warning(f"Malformed {kind} page at offset {offset} for {paper_id}: {e}")
                break

            for item in page.data:
                related = item.get(item_key)
                if not related:
                    continue
                try:
                    results.append(SemanticScholarPaper.model_validate(related))
                except ValidationError as e:
                    logger.warning(f"Skipping malformed {kind} entry for {paper_id}: {e}")

            if len(page.data) < limit:
                break
            offset += len(page.data)

        return results


_semantic_scholar_client: Optional[SemanticScholarClient] = None


def get_semantic_scholar_client() -> SemanticScholarClient:
    """Get the shared Semantic Scholar client (lazy init)."""
    global _semantic_scholar_client
    if _semantic_scholar_client is None:
        _semantic_scholar_client = SemanticScholarClient()
        register_cleanup("SemanticScholar", _semantic_scholar_client.close)
    return _semantic_scholar_client
