##########################################################################################
#
# Script name: test_recommendations.py
#
# Description: Cold-start, personalized and "more like this" ranking tests.
#
##########################################################################################

from datetime import datetime, timezone

from tech_news_feed.models import Article, Category, Source
from tech_news_feed.recommendations import (
    get_cold_start_recommendations,
    get_personalized_recommendations,
    get_similar_articles,
    title_keywords,
)


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
OLD = '2026-01-01T00:00:00Z'
FRESH = '2026-03-09T12:00:00Z'


def _article(
    article_id: str,
    source: Source = Source.HACKERNEWS,
    category: Category = Category.SECURITY,
    published_at: str = OLD,
    title: str | None = None,
    tags: tuple[str, ...] = (),
) -> Article:
    return Article(
        id=article_id,
        title=title or f'Story {article_id}',
        description='Body',
        url=f'https://example.com/{article_id}',
        source=source,
        category=category,
        published_at=published_at,
        tags=tags,
    )


def test_cold_start_returns_most_recent_with_zero_score() -> None:
    articles = [
        _article('a', published_at='2026-03-01T00:00:00Z'),
        _article('b', published_at='2026-03-05T00:00:00Z'),
        _article('c', published_at='2026-03-03T00:00:00Z'),
    ]
    results = get_personalized_recommendations(articles, read_ids=[], limit=2, now=NOW)
    assert [rec.article.id for rec in results] == ['b', 'c']
    assert all(rec.score == 0 for rec in results)
    assert all(rec.reasons == ['Latest articles'] for rec in results)


def test_cold_start_skips_read_articles() -> None:
    articles = [_article('a', published_at=FRESH), _article('b')]
    results = get_cold_start_recommendations(articles, read_ids={'a'}, limit=5)
    assert [rec.article.id for rec in results] == ['b']


def test_favorite_source_and_category_outrank_unvisited() -> None:
    read = _article('read-1', Source.HACKERNEWS, Category.SECURITY)
    match = _article('match', Source.HACKERNEWS, Category.SECURITY)
    other = _article('other', Source.REDDIT, Category.MOBILE)
    results = get_personalized_recommendations([read, other, match], read_ids=['read-1'], now=NOW)
    assert results[0].article.id == 'match'
    assert results[0].score == 18
    # zero-score articles are dropped, not ranked last
    assert 'other' not in [rec.article.id for rec in results]


def test_rank_index_lowers_score_for_less_read_sources() -> None:
    read = [
        _article('r1', Source.DEVTO, Category.WEB_DEV),
        _article('r2', Source.DEVTO, Category.WEB_DEV),
        _article('r3', Source.REDDIT, Category.DEVOPS),
    ]
    top = _article('top', Source.DEVTO, Category.MOBILE)
    second = _article('second', Source.REDDIT, Category.MOBILE)
    results = get_personalized_recommendations(read + [second, top], read_ids=['r1', 'r2', 'r3'], now=NOW)
    scores = {rec.article.id: rec.score for rec in results}
    assert scores == {'top': 10, 'second': 9}


def test_bookmark_and_recency_bonuses() -> None:
    read = _article('r1', Source.DEVTO, Category.WEB_DEV)
    bookmarked = _article('bm', Source.NVD, Category.MOBILE)
    fresh = _article('fresh', Source.NVD, Category.MOBILE, published_at=FRESH)
    results = get_personalized_recommendations(
        [read, bookmarked, fresh], read_ids=['r1'], bookmark_ids=['bm'], now=NOW
    )
    assert [(rec.article.id, rec.score) for rec in results] == [('bm', 5), ('fresh', 3)]
    assert results[0].reasons == ['Bookmarked']
    assert results[1].reasons == ['Recently published']


def test_personalized_respects_limit_and_stable_ties() -> None:
    read = _article('r1')
    candidates = [_article(f'c{idx}') for idx in range(5)]
    results = get_personalized_recommendations([read] + candidates, read_ids=['r1'], limit=3, now=NOW)
    assert [rec.article.id for rec in results] == ['c0', 'c1', 'c2']


def test_similar_articles_scoring() -> None:
    reference = _article('ref', Source.DEVTO, Category.WEB_DEV, title='Migrating React apps to Vite', tags=('React',))
    close = _article('close', Source.DEVTO, Category.WEB_DEV, title='React apps without webpack', tags=('react',))
    loose = _article('loose', Source.REDDIT, Category.WEB_DEV, title='CSS container queries')
    unrelated = _article('unrelated', Source.NVD, Category.SECURITY, title='Kernel bug found')
    already_read = _article('read', Source.DEVTO, Category.WEB_DEV, title='React apps at scale')
    results = get_similar_articles(
        reference, [reference, unrelated, loose, close, already_read], read_ids=['read'], now=NOW
    )
    ids = [rec.article.id for rec in results]
    assert ids == ['close', 'loose']
    # same source 5 + same category 4 + shared tag 2 + keywords react/apps 6
    assert results[0].score == 17
    assert results[1].score == 4


def test_similar_bookmark_and_recency_bonus() -> None:
    reference = _article('ref', Source.DEVTO, Category.WEB_DEV, title='Alpha')
    candidate = _article('c', Source.NVD, Category.SECURITY, title='Omega', published_at=FRESH)
    results = get_similar_articles(reference, [candidate], bookmark_ids=['c'], now=NOW)
    assert results[0].score == 5


def test_title_keywords_filters_stopwords_and_short_words() -> None:
    assert title_keywords('How to use the new Rust compiler with WASM') == {'rust', 'compiler', 'wasm'}
