"""Async OpenAlex client.

Every request goes through ``fetch_with_retry``; a 404 maps to "absent"
(``None`` or an empty list) and fatal statuses propagate as ``FetchError``.
Batch methods chunk identifiers to ``openalex_batch_size`` per filter and
follow cursor pagination up to ``openalex_max_pages_per_chunk`` pages.
"""

import logging
from typing import Optional

import httpx

from core.utils import (
    BaseAsyncHttpClient,
    chunked,
    fetch_with_retry,
    register_cleanup,
    run_with_concurrency,
)
from sources.config import SourceConfig, get_source_config
from sources.errors import SourceParseError

from .models import OpenAlexPage, OpenAlexWork
from .parsing import parse_work, parse_works
from .queries import (
    FieldSet,
    bare_work_id,
    pipe_filter,
    select_param,
    title_search_filter,
)

logger = logging.getLogger(__name__)

PROVIDER = "openalex"


class OpenAlexClient(BaseAsyncHttpClient):
    """Typed access to the OpenAlex /works endpoint."""

    def __init__(
        self,
        config: Optional[SourceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_source_config()
        params = {}
        if self.config.openalex_email:
            # Polite pool: faster, more reliable rate limits
            params["mailto"] = self.config.openalex_email
        super().__init__(
            base_url=self.config.openalex_base_url,
            timeout=self.config.timeout,
            params=params,
            transport=transport,
        )

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Optional[dict]:
        client = await self._get_client()
        response = await fetch_with_retry(
            client,
            path,
            params=params,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
            jitter=self.config.jitter,
        )
        if response.status_code == 404:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise SourceParseError(
                f"OpenAlex returned non-JSON body for {path}", provider=PROVIDER
            ) from e

    async def search_by_title(self, query: str, limit: int = 25) -> list[OpenAlexWork]:
        """Search works by title, returning ranked preview records.

        Args:
            query: Free-text title query
            limit: Maximum results (capped at the per-page maximum)

        Returns:
            OpenAlexWork previews in relevance order; empty on 404
        """
        limit = min(max(1, limit), self.config.openalex_per_page)
        data = await self._get_json(
            "/works",
            params={
                "filter": title_search_filter(query),
                "select": select_param(FieldSet.SEARCH_PREVIEW),
                "per_page": limit,
            },
        )
        if data is None:
            return []
        page = OpenAlexPage.model_validate(data)
        results = parse_works(page.results, "search")
        logger.debug(f"search_by_title returned {len(results)} results for '{query}'")
        return results

    async def fetch_by_id(
        self, work_id: str, field_set: FieldSet = FieldSet.FULL_INGESTION
    ) -> Optional[OpenAlexWork]:
        """Fetch one work by OpenAlex id (bare or URL form). None on 404."""
        work_id = bare_work_id(work_id)
        data = await self._get_json(f"/works/{work_id}", params={"select": select_param(field_set)})
        if data is None:
            logger.info(f"OpenAlex work {work_id} not found")
            return None
        return parse_work(data)

    async def fetch_by_doi(
        self, doi: str, field_set: FieldSet = FieldSet.FULL_INGESTION
    ) -> Optional[OpenAlexWork]:
        """Fetch one work by DOI. None on 404."""
        data = await self._get_json(f"/works/doi:{doi}", params={"select": select_param(field_set)})
        if data is None:
            logger.info(f"OpenAlex work for DOI {doi} not found")
            return None
        return parse_work(data)

    async def fetch_citing_works(
        self, work_ids: list[str], field_set: FieldSet = FieldSet.FULL_INGESTION
    ) -> list[OpenAlexWork]:
        """All works citing any of ``work_ids`` (``filter=cites:W1|W2|...``)."""
        return await self._fetch_filtered("cites", [bare_work_id(w) for w in work_ids], field_set)

    async def fetch_by_id_batch(
        self, work_ids: list[str], field_set: FieldSet = FieldSet.FULL_INGESTION
    ) -> list[OpenAlexWork]:
        """Works whose OpenAlex id is in ``work_ids``."""
        return await self._fetch_filtered("openalex", [bare_work_id(w) for w in work_ids], field_set)

    async def fetch_by_doi_batch(
        self, dois: list[str], field_set: FieldSet = FieldSet.AUTHOR_RECONCILIATION
    ) -> list[OpenAlexWork]:
        """Works whose DOI is in ``dois``."""
        return await self._fetch_filtered("doi", list(dois), field_set)

    async def _fetch_filtered(
        self, filter_name: str, values: list[str], field_set: FieldSet
    ) -> list[OpenAlexWork]:
        values = list(dict.fromkeys(v for v in values if v))
        if not values:
            return []

        chunks = chunked(values, self.config.openalex_batch_size)
        pages = await run_with_concurrency(
            [self._fetch_all_pages(pipe_filter(filter_name, chunk), field_set) for chunk in chunks],
            max_concurrent=self.config.max_concurrent_fetches,
        )
        works = [work for chunk_works in pages for work in chunk_works]
        logger.debug(
            f"Filter {filter_name} over {len(values)} ids in {len(chunks)} chunks "
            f"returned {len(works)} works"
        )
        return works

    async def _fetch_all_pages(self, filter_value: str, field_set: FieldSet) -> list[OpenAlexWork]:
        """Cursor-paginate one filter, stopping at the page cap."""
        works: list[OpenAlexWork] = []
        cursor: Optional[str] = "*"
        pages_fetched = 0

        while cursor:
            if pages_fetched >= self.config.openalex_max_pages_per_chunk:
                logger.warning(
                    f"Page cap ({self.config.openalex_max_pages_per_chunk}) reached for "
                    f"filter {filter_value[:80]}; proceeding with {len(works)} works"
                )
                break

            data = await self._get_json(
                "/works",
                params={
                    "filter": filter_value,
                    "select": select_param(field_set),
                    "per_page": self.config.openalex_per_page,
                    "cursor": cursor,
                },
            )
            if data is None:
                break

            page = OpenAlexPage.model_validate(data)
            pages_fetched += 1
            works.extend(parse_works(page.results, filter_value.split(":", 1)[0]))

            if not page.results:
                break
            cursor = page.meta.next_cursor

        return works


_openalex_client: Optional[OpenAlexClient] = None


def get_openalex_client() -> OpenAlexClient:
    """Get the shared OpenAlex client (lazy init)."""
    global _openalex_client
    if _openalex_client is None:
        _openalex_client = OpenAlexClient()
        register_cleanup("OpenAlex", _openalex_client.close)
    return _openalex_client
