"""SearxNG search client with pagination.

Pages are requested from the JSON API one at a time until enough unique
web pages are collected. Results without a URL, repeated URLs and file
downloads are skipped.
"""

import httpx
import structlog

from research_digest.config.settings import Settings, get_settings
from research_digest.extraction.url_rules import has_binary_extension
from research_digest.models import SearchResult

logger = structlog.get_logger(__name__)


class SearchError(Exception):
    """Search backend could not be queried."""

    pass


class SearxngClient:
    """Paginating client for a SearxNG instance.

    Args:
        settings: Optional custom settings. Uses defaults if not provided.
        http_client: Optional preconfigured ``httpx.Client``.
    """

    def __init__(self, settings: Settings | None = None, http_client: httpx.Client | None = None):
        self.settings = settings or get_settings()
        self._client = http_client or httpx.Client(
            base_url=self.settings.searxng_base_url,
            timeout=self.settings.search_timeout_seconds,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )

    def close(self) -> None:
        self._client.close()

    def _fetch_page(self, query: str, page: int) -> list[dict]:
        response = self._client.get(
            "/search",
            params={"q": query, "format": "json", "pageno": page},
        )
        response.raise_for_status()
        return response.json().get("results") or []

    def search(self, query: str, count: int) -> list[SearchResult]:
        """Search the web and return up to ``count`` unique page results.

        Args:
            query: Search query.
            count: Number of results wanted (capped at ``search_max_results``).

        Returns:
            Results in ranking order.

        Raises:
            SearchError: If the first page can not be fetched.
        """
        target = min(count, self.settings.search_max_results)
        results: list[SearchResult] = []
        seen: set[str] = set()
        page = 1
        empty_pages = 0

        logger.info("search_start", query=query, target=target)

        while len(results) < target and page <= self.settings.search_max_pages:
            try:
                raw_results = self._fetch_page(query, page)
            except (httpx.HTTPError, ValueError) as e:
                if page == 1:
                    raise SearchError(f"Search failed for query '{query}': {e}") from e
                logger.warning("search_page_failed", page=page, error=str(e))
                break

            if not raw_results:
                logger.info("search_page_empty", page=page)
                break

            added = 0
            skipped_files = 0
            duplicates = 0
            for raw in raw_results:
                url = (raw.get("url") or "").strip()
                if not url:
                    continue
                if url in seen:
                    duplicates += 1
                    continue
                if has_binary_extension(url):
                    skipped_files += 1
                    continue

                seen.add(url)
                results.append(
                    SearchResult(
                        url=url,
                        title=raw.get("title") or "",
                        snippet=raw.get("content") or "",
                        engine=raw.get("engine"),
                        score=raw.get("score"),
                    )
                )
                added += 1
                if len(results) >= target:
                    break

            logger.debug(
                "search_page_processed",
                page=page,
                added=added,
                skipped_files=skipped_files,
                duplicates=duplicates,
                total=len(results),
            )

            if added == 0:
                empty_pages += 1
                if empty_pages >= self.settings.search_empty_page_limit:
                    logger.info("search_pagination_exhausted", consecutive_empty=empty_pages)
                    break
            else:
                empty_pages = 0

            page += 1

        if len(results) < target:
            logger.warning("search_results_short", retrieved=len(results), requested=target)

        logger.info("search_complete", query=query, results=len(results), pages=page)
        return results
