"""Batch fetch/structure coordinator.

Pulls candidate URLs in batches, structures each batch concurrently on a
bounded pool, and stops as soon as enough usable documents are collected.
The first batch is twice the target; later batches request only what is
still missing plus a small buffer for failures.
"""

from concurrent.futures import Executor
from typing import Callable

import structlog

from research_digest.models import SearchResult, StructuredDocument

logger = structlog.get_logger(__name__)

BATCH_BUFFER = 2
INITIAL_BATCH_FACTOR = 2

DocumentLoader = Callable[[str], "StructuredDocument | None"]


def _load_quietly(load_document: DocumentLoader, url: str) -> StructuredDocument | None:
    try:
        return load_document(url)
    except Exception as e:
        logger.warning("document_load_failed", url=url, error=str(e))
        return None


def _enrich(document: StructuredDocument, by_url: dict[str, SearchResult]) -> StructuredDocument:
    result = by_url.get(document.url)
    if result is None:
        return document
    return document.model_copy(update={"engine": result.engine, "score": result.score})


def collect_documents(
    target_count: int,
    candidates: list[SearchResult],
    load_document: DocumentLoader,
    executor: Executor,
    min_document_chars: int = 150,
) -> list[StructuredDocument]:
    """Collect up to ``target_count`` usable documents from ranked candidates.

    Args:
        target_count: Number of documents wanted (N).
        candidates: Ranked search results; their URLs are tried in order.
        load_document: Fetches and structures one URL, None when unusable.
            Exceptions are treated like None.
        executor: Bounded pool the per-URL work runs on.
        min_document_chars: Minimum ``total_characters`` of an accepted document.

    Returns:
        At most ``target_count`` documents in candidate order, enriched
        with the engine and score of their search result.
    """
    urls = [c.url for c in candidates]
    by_url: dict[str, SearchResult] = {}
    for candidate in candidates:
        by_url.setdefault(candidate.url, candidate)

    accepted: list[StructuredDocument] = []
    cursor = 0
    batch_size = min(target_count * INITIAL_BATCH_FACTOR, len(urls))

    logger.info("document_collection_start", target=target_count, available=len(urls))

    while len(accepted) < target_count and cursor < len(urls):
        end = min(cursor + batch_size, len(urls))
        batch = urls[cursor:end]

        logger.debug(
            "fetching_batch",
            batch_size=len(batch),
            accepted=len(accepted),
            target=target_count,
            start=cursor,
            end=end,
        )

        # map() keeps candidate order and joins the whole batch
        for url, document in zip(batch, executor.map(lambda u: _load_quietly(load_document, u), batch)):
            if document is None or not document.sections:
                continue
            if document.total_characters < min_document_chars:
                logger.debug("document_too_short", url=url, total_chars=document.total_characters)
                continue
            accepted.append(document)

        cursor = end
        if len(accepted) >= target_count:
            break
        batch_size = target_count - len(accepted) + BATCH_BUFFER

    documents = [_enrich(d, by_url) for d in accepted[:target_count]]

    logger.info(
        "document_collection_complete",
        collected=len(documents),
        target=target_count,
        urls_tried=cursor,
    )
    return documents
