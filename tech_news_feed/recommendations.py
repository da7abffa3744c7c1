from __future__ import annotations

import re
from collections import Counter
from collections.abc import Collection, Iterable, Sequence
from datetime import datetime, timedelta

from .config import (
    BOOKMARK_BONUS,
    CATEGORY_RANK_BASE,
    FAVORITE_LIMIT,
    RECENT_BONUS,
    RECENT_DAYS,
    SIMILAR_BOOKMARK_BONUS,
    SIMILAR_CATEGORY_BONUS,
    SIMILAR_KEYWORD_BONUS,
    SIMILAR_RECENT_BONUS,
    SIMILAR_SOURCE_BONUS,
    SIMILAR_TAG_BONUS,
    SOURCE_LABELS,
    SOURCE_RANK_BASE,
    STOPWORDS,
)
from .models import Article, Recommendation
from .utils import parse_timestamp, timestamp_key, utc_now


def _is_recent(article: Article, now: datetime) -> bool:
    published = parse_timestamp(article.published_at)
    if published is None:
        return False
    return now - published <= timedelta(days=RECENT_DAYS)


def _ranked(values: Iterable) -> list:
    # Counter.most_common keeps first-seen order for equal counts.
    return [value for value, _ in Counter(values).most_common(FAVORITE_LIMIT)]


def title_keywords(title: str) -> set[str]:
    words = re.findall(r"[a-z0-9]+", (title or "").lower())
    return {word for word in words if len(word) > 3 and word not in STOPWORDS}


def _truncate(recommendations: list[Recommendation], limit: int) -> list[Recommendation]:
    kept = [rec for rec in recommendations if rec.score > 0]
    kept.sort(key=lambda rec: rec.score, reverse=True)
    return kept[:limit]


def get_cold_start_recommendations(
    articles: Sequence[Article],
    read_ids: Collection[str] = (),
    limit: int = 6,
) -> list[Recommendation]:
    unread = [article for article in articles if article.id not in read_ids]
    unread.sort(key=lambda article: timestamp_key(article.published_at), reverse=True)
    return [Recommendation(article=article, score=0, reasons=["Latest articles"]) for article in unread[:limit]]


def get_personalized_recommendations(
    articles: Sequence[Article],
    read_ids: Collection[str],
    bookmark_ids: Collection[str] = (),
    limit: int = 6,
    now: datetime | None = None,
) -> list[Recommendation]:
    """Rank unread articles by affinity to what the user already read.

    Falls back to the most recent unread articles when nothing has been
    read yet. Articles with no positive signal are dropped.
    """
    read_ids = set(read_ids)
    if not read_ids:
        return get_cold_start_recommendations(articles, read_ids, limit)

    now = now or utc_now()
    bookmark_ids = set(bookmark_ids)
    read_articles = [article for article in articles if article.id in read_ids]
    favorite_sources = _ranked(article.source for article in read_articles)
    favorite_categories = _ranked(article.category for article in read_articles)

    scored: list[Recommendation] = []
    for article in articles:
        if article.id in read_ids:
            continue
        score = 0
        reasons: list[str] = []
        if article.source in favorite_sources:
            score += SOURCE_RANK_BASE - favorite_sources.index(article.source)
            reasons.append(f"From {SOURCE_LABELS.get(article.source, article.source.value)}, a source you read often")
        if article.category in favorite_categories:
            score += CATEGORY_RANK_BASE - favorite_categories.index(article.category)
            reasons.append(f"You often read {article.category.value}")
        if article.id in bookmark_ids:
            score += BOOKMARK_BONUS
            reasons.append("Bookmarked")
        if _is_recent(article, now):
            score += RECENT_BONUS
            reasons.append("Recently published")
        scored.append(Recommendation(article=article, score=score, reasons=reasons))
    return _truncate(scored, limit)


def get_similar_articles(
    reference: Article,
    articles: Sequence[Article],
    read_ids: Collection[str] = (),
    bookmark_ids: Collection[str] = (),
    limit: int = 4,
    now: datetime | None = None,
) -> list[Recommendation]:
    now = now or utc_now()
    read_ids = set(read_ids)
    bookmark_ids = set(bookmark_ids)
    reference_tags = {tag.lower() for tag in reference.tags}
    reference_keywords = title_keywords(reference.title)

    scored: list[Recommendation] = []
    for article in articles:
        if article.id == reference.id or article.id in read_ids:
            continue
        score = 0
        reasons: list[str] = []
        if article.source == reference.source:
            score += SIMILAR_SOURCE_BONUS
            reasons.append("Same source")
        if article.category == reference.category:
            score += SIMILAR_CATEGORY_BONUS
            reasons.append(f"Also {article.category.value}")
        shared_tags = sorted(reference_tags & {tag.lower() for tag in article.tags})
        if shared_tags:
            score += SIMILAR_TAG_BONUS * len(shared_tags)
            reasons.append(f"Shared tags: {', '.join(shared_tags)}")
        shared_keywords = sorted(reference_keywords & title_keywords(article.title))
        if shared_keywords:
            score += SIMILAR_KEYWORD_BONUS * len(shared_keywords)
            reasons.append(f"Similar topic: {', '.join(shared_keywords)}")
        if article.id in bookmark_ids:
            score += SIMILAR_BOOKMARK_BONUS
            reasons.append("Bookmarked")
        if _is_recent(article, now):
            score += SIMILAR_RECENT_BONUS
            reasons.append("Recently published")
        scored.append(Recommendation(article=article, score=score, reasons=reasons))
    return _truncate(scored, limit)
