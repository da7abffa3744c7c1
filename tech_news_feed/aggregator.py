##########################################################################################
#
# Script name: aggregator.py
#
# Description: Runs every source adapter concurrently, merges, sorts and deduplicates.
#
##########################################################################################

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from .fetchers import SourceAdapter
from .models import Article, Category, Source
from .utils import timestamp_key


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def normalize_title(title: str) -> str:
    return (title or "").lower().strip()


def sort_by_recency(articles: Iterable[Article]) -> list[Article]:
    """Newest first; unparseable timestamps sort last."""
    return sorted(articles, key=lambda article: timestamp_key(article.published_at), reverse=True)


def _prefer_incoming(kept: Article, incoming: Article) -> bool:
    if incoming.image_url and not kept.image_url:
        return True
    if kept.image_url and not incoming.image_url:
        return False
    return len(incoming.description) > len(kept.description)


def _titles_match(incoming_key: str, kept_key: str) -> bool:
    return incoming_key == kept_key or incoming_key in kept_key or kept_key in incoming_key


def dedupe_articles(articles: Sequence[Article]) -> list[Article]:
    """Collapse articles whose normalized titles are equal or contain one another.

    Each cluster keeps one representative: one with an image beats one
    without, otherwise the strictly longer description wins. Survivors are
    returned in input order.
    """
    # cluster key -> (input position, representative)
    clusters: dict[str, tuple[int, Article]] = {}
    for position, article in enumerate(articles):
        key = normalize_title(article.title)
        match = None
        for kept_key in clusters:
            if _titles_match(key, kept_key):
                match = kept_key
                break
        if match is None:
            clusters[key] = (position, article)
            continue
        _, kept = clusters[match]
        if _prefer_incoming(kept, article):
            del clusters[match]
            clusters[key] = (position, article)
    return [article for _, article in sorted(clusters.values(), key=lambda item: item[0])]


async def _gather_sources(adapters: Sequence[SourceAdapter]) -> list[Article]:
    results = await asyncio.gather(*(adapter.fetch() for adapter in adapters), return_exceptions=True)
    merged: list[Article] = []
    for adapter, result in zip(adapters, results):
        if isinstance(result, BaseException):
            log.error('Source %s raised unexpectedly: %s', adapter.name, result)
            continue
        log.info('Source %s returned %d article(s).', adapter.name, len(result))
        merged.extend(result)
    return merged


async def aggregate_all(adapters: Sequence[SourceAdapter]) -> list[Article]:
    """Fetch every source, then sort newest first and deduplicate by title.

    Blocking requests run on a pool sized to every request the adapters can
    have in flight, so no adapter's timeout is spent queued behind another
    adapter's requests. Never raises: a total failure is logged and yields an
    empty list.
    """
    executor = None
    try:
        workers = max(1, sum(adapter.request_budget() for adapter in adapters))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix='tech-news-feed')
        log.debug('Fetching %d source(s) on %d worker thread(s).', len(adapters), workers)
        for adapter in adapters:
            adapter.executor = executor
        merged = await _gather_sources(adapters)
        log.info('Total articles before deduplication: %d', len(merged))
        unique = dedupe_articles(sort_by_recency(merged))
        log.info('Total articles after deduplication: %d', len(unique))
        return unique
    except Exception:  # noqa: BLE001
        log.exception('Error aggregating news.')
        return []
    finally:
        for adapter in adapters:
            adapter.executor = None
        if executor is not None:
            # Requests still running after a timeout end on their own request timeout.
            executor.shutdown(wait=False, cancel_futures=True)


def run_aggregation(adapters: Sequence[SourceAdapter]) -> list[Article]:
    return asyncio.run(aggregate_all(adapters))


def filter_articles(
    articles: Iterable[Article],
    source: Source | None = None,
    category: Category | None = None,
    search: str | None = None,
) -> list[Article]:
    needle = (search or "").strip().lower()
    filtered: list[Article] = []
    for article in articles:
        if source is not None and article.source != source:
            continue
        if category is not None and article.category != category:
            continue
        if needle and not (
            needle in article.title.lower()
            or needle in article.description.lower()
            or any(needle in tag.lower() for tag in article.tags)
        ):
            continue
        filtered.append(article)
    return filtered
