##########################################################################################
#
# Script name: test_source_config.py
#
# Description: Tests YAML source registry loading and category parsing.
#
##########################################################################################

from pathlib import Path

import pytest

from tech_news_feed.config import DEFAULT_SOURCES, load_source_config, parse_category
from tech_news_feed.fetchers import RSSAdapter, RedditAdapter, build_adapters
from tech_news_feed.models import Category, Source


def _write_file(path: Path, content: str) -> None:
    path.write_text(content.strip() + '\n', encoding='utf-8')


def test_load_source_config_reads_sources_and_default_category(tmp_path: Path) -> None:
    yaml_path = tmp_path / 'sources.yaml'
    _write_file(
        yaml_path,
        '''
default_category: Open Source
sources:
  - type: RSS
    source: Vercel
    url: https://vercel.com/blog/rss
    max_items: 5
  - type: reddit
    subreddits: [rust, golang]
    per_subreddit: 3
''',
    )

    sources, default_category = load_source_config(str(yaml_path))

    assert default_category == Category.OPEN_SOURCE
    assert [source['type'] for source in sources] == ['rss', 'reddit']
    assert sources[0]['source'] == 'vercel'
    assert sources[1]['source'] == 'reddit'

    adapters = build_adapters(sources, default_category=default_category)
    assert isinstance(adapters[0], RSSAdapter)
    assert adapters[0].source == Source.VERCEL
    assert adapters[0].max_items == 5
    assert isinstance(adapters[1], RedditAdapter)
    assert adapters[1].subreddits == ['rust', 'golang']


def test_load_source_config_rejects_unknown_source_tag(tmp_path: Path) -> None:
    yaml_path = tmp_path / 'sources.yaml'
    _write_file(
        yaml_path,
        '''
sources:
  - type: rss
    source: myspace
    url: https://example.com/feed.xml
''',
    )

    with pytest.raises(ValueError, match='unknown source tag'):
        load_source_config(str(yaml_path))


def test_load_source_config_without_path_uses_defaults() -> None:
    sources, default_category = load_source_config(None)
    assert default_category == Category.WEB_DEV
    assert len(sources) == len(DEFAULT_SOURCES)
    assert {source['source'] for source in sources} == {source.value for source in Source}


def test_empty_yaml_file_falls_back_to_defaults(tmp_path: Path) -> None:
    yaml_path = tmp_path / 'sources.yaml'
    yaml_path.write_text('', encoding='utf-8')
    sources, default_category = load_source_config(str(yaml_path))
    assert len(sources) == len(DEFAULT_SOURCES)
    assert default_category == Category.WEB_DEV


@pytest.mark.parametrize(
    'value, expected',
    [
        ('Security', Category.SECURITY),
        ('ai/ml', Category.AI_ML),
        ('AI_ML', Category.AI_ML),
        ('  web dev ', Category.WEB_DEV),
        (None, Category.WEB_DEV),
    ],
)
def test_parse_category(value, expected) -> None:
    assert parse_category(value) == expected


def test_parse_category_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        parse_category('Gardening')
