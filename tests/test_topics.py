##########################################################################################
#
# Script name: test_topics.py
#
# Description: Trending topic extraction, display sizing and source metrics tests.
#
##########################################################################################

import pytest

from tech_news_feed.models import Article, Category, Source
from tech_news_feed.topics import (
    calculate_source_metrics,
    extract_trending_topics,
    get_topic_font_size,
    get_topic_intensity,
)


def _article(
    article_id: str,
    title: str,
    tags: tuple[str, ...] = (),
    source: Source = Source.DEVTO,
    category: Category = Category.DEVOPS,
    published_at: str = '2026-03-01T00:00:00Z',
) -> Article:
    return Article(
        id=article_id,
        title=title,
        description='Notes from the field',
        url=f'https://example.com/{article_id}',
        source=source,
        category=category,
        published_at=published_at,
        tags=tags,
    )


def test_more_frequent_keyword_ranks_first() -> None:
    articles = [_article(f'd{idx}', f'Docker tips part {idx}') for idx in range(5)]
    articles += [_article(f'r{idx}', f'React hooks deep dive {idx}', category=Category.WEB_DEV) for idx in range(2)]
    topics = extract_trending_topics(articles)
    names = [topic.topic for topic in topics]
    assert names.index('docker') < names.index('react')
    assert topics[0].topic == 'docker'
    assert topics[0].count == 5
    assert topics[0].category == Category.DEVOPS

    counts = [topic.count for topic in topics]
    assert get_topic_font_size(topics[0].count, min(counts), max(counts)) == pytest.approx(2.0)


def test_tags_count_as_topics_even_outside_vocabulary() -> None:
    articles = [
        _article('a', 'Weekly roundup', tags=('Zig',)),
        _article('b', 'Another roundup', tags=('zig', 'docker')),
    ]
    topics = {topic.topic.lower(): topic for topic in extract_trending_topics(articles)}
    assert topics['zig'].count == 2
    assert topics['zig'].topic == 'Zig'
    # docker: one keyword hit in the tag text plus the literal tag
    assert topics['docker'].count == 2


def test_whole_word_matching_only() -> None:
    topics = extract_trending_topics([_article('a', 'Gopher gala and Goldfish')])
    assert 'go' not in [topic.topic for topic in topics]


def test_limit_truncates_results() -> None:
    articles = [_article('a', 'Docker and Kubernetes on AWS with Terraform and Redis')]
    assert len(extract_trending_topics(articles, limit=2)) == 2


def test_font_size_interpolates_and_handles_flat_range() -> None:
    assert get_topic_font_size(1, 1, 5) == pytest.approx(0.75)
    assert get_topic_font_size(3, 1, 5) == pytest.approx(1.375)
    assert get_topic_font_size(4, 4, 4) == pytest.approx(1.375)
    assert get_topic_font_size(2, 0, 4, min_size=1.0, max_size=3.0) == pytest.approx(2.0)


def test_topic_intensity_thresholds() -> None:
    assert get_topic_intensity(8, 10) == 'high'
    assert get_topic_intensity(5, 10) == 'medium'
    assert get_topic_intensity(3, 10) == 'low'
    assert get_topic_intensity(1, 10) == 'muted'


def test_source_metrics() -> None:
    articles = [
        _article('a', 'One', published_at='2026-03-01T00:00:00Z'),
        _article('b', 'Two', category=Category.WEB_DEV, published_at='2026-03-03T00:00:00Z'),
        _article('c', 'Three', source=Source.REDDIT, published_at='2026-03-02T00:00:00Z'),
    ]
    metrics = calculate_source_metrics(articles)
    devto = metrics[Source.DEVTO]
    assert devto.total_articles == 2
    assert devto.last_posted == '2026-03-03T00:00:00Z'
    assert devto.avg_per_day == pytest.approx(1.0)
    assert devto.categories == {Category.DEVOPS, Category.WEB_DEV}
    assert metrics[Source.REDDIT].avg_per_day == 1.0
