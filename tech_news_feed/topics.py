from __future__ import annotations

import re
from collections.abc import Sequence

from .config import TECH_KEYWORDS, TOPIC_MAX_SIZE, TOPIC_MIN_SIZE
from .models import Article, Source, SourceMetric, TopicCount
from .utils import timestamp_key

_KEYWORD_PATTERNS = [(keyword, re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)) for keyword in TECH_KEYWORDS]


def extract_trending_topics(articles: Sequence[Article], limit: int = 20) -> list[TopicCount]:
    """Count vocabulary keywords and literal tags across the corpus.

    Keywords count every whole-word hit in title, description and tags;
    each tag additionally counts once for itself, whether or not it is in
    the vocabulary.
    """
    counts: dict[str, TopicCount] = {}

    def _add(topic: str, hits: int, article: Article) -> None:
        key = topic.lower()
        existing = counts.get(key)
        if existing is None:
            counts[key] = TopicCount(topic=topic, count=hits, category=article.category)
        else:
            existing.count += hits

    for article in articles:
        text = f"{article.title} {article.description} {' '.join(article.tags)}".lower()
        for keyword, pattern in _KEYWORD_PATTERNS:
            hits = len(pattern.findall(text))
            if hits:
                _add(keyword, hits, article)
        for tag in article.tags:
            _add(tag, 1, article)

    ranked = sorted(counts.values(), key=lambda topic: topic.count, reverse=True)
    return ranked[:limit]


def get_topic_font_size(
    count: int,
    min_count: int,
    max_count: int,
    min_size: float = TOPIC_MIN_SIZE,
    max_size: float = TOPIC_MAX_SIZE,
) -> float:
    if max_count == min_count:
        return (min_size + max_size) / 2
    normalized = (count - min_count) / (max_count - min_count)
    return min_size + normalized * (max_size - min_size)


def get_topic_intensity(count: int, max_count: int) -> str:
    intensity = min(count / max_count, 1) if max_count else 0
    if intensity > 0.7:
        return "high"
    if intensity > 0.4:
        return "medium"
    if intensity > 0.2:
        return "low"
    return "muted"


def calculate_source_metrics(articles: Sequence[Article]) -> dict[Source, SourceMetric]:
    metrics: dict[Source, SourceMetric] = {}
    stamps: dict[Source, list[float]] = {}
    for article in articles:
        metric = metrics.setdefault(article.source, SourceMetric(source=article.source, last_posted=article.published_at))
        metric.total_articles += 1
        metric.categories.add(article.category)
        if timestamp_key(article.published_at) > timestamp_key(metric.last_posted):
            metric.last_posted = article.published_at
        stamp = timestamp_key(article.published_at)
        if stamp != float("-inf"):
            stamps.setdefault(article.source, []).append(stamp)

    for source, metric in metrics.items():
        values = stamps.get(source) or []
        days = (max(values) - min(values)) / 86400 if values else 0
        metric.avg_per_day = metric.total_articles / days if days > 0 else float(metric.total_articles)
    return metrics
