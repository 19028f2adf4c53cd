"""HTTP page fetcher."""

import httpx
import structlog

from research_digest.config.settings import Settings, get_settings
from research_digest.extraction.url_rules import resolve_fetch_url

logger = structlog.get_logger(__name__)

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE_HEADER = "en-US,en;q=0.9"


class PageFetcher:
    """Downloads HTML pages over a shared ``httpx.Client``.

    Thread-safe: one instance serves the whole fetch worker pool.
    """

    def __init__(self, settings: Settings | None = None, http_client: httpx.Client | None = None):
        settings = settings or get_settings()
        self._client = http_client or httpx.Client(
            timeout=settings.fetch_timeout_seconds,
            headers={
                "User-Agent": settings.fetch_user_agent,
                "Accept": ACCEPT_HEADER,
                "Accept-Language": ACCEPT_LANGUAGE_HEADER,
            },
            follow_redirects=True,
            limits=httpx.Limits(max_connections=settings.fetch_workers * 2),
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> str | None:
        """Fetch the HTML body of ``url``.

        Returns:
            The body text, or None on HTTP errors (>= 400), non-HTML
            payloads, empty bodies and transport failures.
        """
        fetch_url = resolve_fetch_url(url)
        if fetch_url != url:
            logger.debug("fetch_url_rewritten", url=url, fetch_url=fetch_url)

        try:
            response = self._client.get(fetch_url)
        except httpx.HTTPError as e:
            logger.warning("fetch_failed", url=url, error=str(e))
            return None

        if response.status_code >= 400:
            logger.warning("fetch_http_error", url=url, status=response.status_code)
            return None

        content_type = response.headers.get("content-type", "")
        if content_type and "html" not in content_type and "xml" not in content_type:
            logger.info("fetch_not_html", url=url, content_type=content_type)
            return None

        return response.text or None
