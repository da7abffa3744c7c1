##########################################################################################
#
# Script name: test_main.py
#
# Description: End-to-end CLI run against sample data.
#
##########################################################################################

import json
import logging
from pathlib import Path

from tech_news_feed.main import build_feed, handle_args, log, main
from tech_news_feed.models import Category, Source


def test_main_writes_sample_feed_with_extras(tmp_path: Path) -> None:
    output = tmp_path / 'feed.json'
    state = tmp_path / 'state.json'
    main([
        '--sample',
        '--recommend',
        '--topics',
        '--limit', '4',
        '--state', str(state),
        '--output', str(output),
        '--log-file', str(tmp_path / 'run.log'),
        '-q',
    ])

    payload = json.loads(output.read_text(encoding='utf-8'))
    assert len(payload['articles']) == 30
    assert {'id', 'title', 'publishedAt', 'imageUrl', 'category'} <= set(payload['articles'][0])
    assert len(payload['recommendations']) == 4
    assert all(rec['reasons'] == ['Latest articles'] for rec in payload['recommendations'])
    assert 0 < len(payload['topics']) <= 4
    assert state.exists()


def test_build_feed_filters_sample_data() -> None:
    articles = build_feed(None, use_sample_data=True, source='reddit', category='Mobile')
    assert articles
    assert all(article.source == Source.REDDIT for article in articles)
    assert all(article.category == Category.MOBILE for article in articles)


def test_repeated_handle_args_reuses_log_handlers(tmp_path: Path) -> None:
    handle_args(['--sample', '--log-file', str(tmp_path / 'first.log'), '-q'])
    handlers = list(log.handlers)
    file_handler = next(handler for handler in handlers if isinstance(handler, logging.FileHandler))
    log.warning('kept across calls')

    handle_args(['--sample', '--log-file', str(tmp_path / 'second.log'), '-v'])
    assert log.handlers == handlers
    assert 'kept across calls' in Path(file_handler.baseFilename).read_text(encoding='utf-8')
    console = next(handler for handler in handlers if type(handler) is logging.StreamHandler)
    assert console.level == logging.DEBUG
