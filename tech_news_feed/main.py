##########################################################################################
#
# Script name: main.py
#
# Description: CLI entrypoint for aggregating the tech news feed, with optional
#              recommendations and trending topics.
#
##########################################################################################

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from .aggregator import filter_articles, run_aggregation
from .config import DEFAULT_CATEGORY, load_source_config, parse_category
from .fetchers import build_adapters, build_sample_articles
from .models import Source
from .recommendations import get_personalized_recommendations
from .store import UserStateStore
from .topics import extract_trending_topics, get_topic_font_size


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(os.path.basename(sys.argv[0]))
log.setLevel(logging.DEBUG)
log.propagate = False
formatter = logging.Formatter(
    '%(asctime)-15s [%(funcName)25s:%(lineno)-5s] %(levelname)-8s %(message)s'
)

root_log = logging.getLogger()
root_log.setLevel(logging.DEBUG)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def build_feed(
    config_path: str | None,
    use_sample_data: bool = False,
    source: str | None = None,
    category: str | None = None,
    search: str | None = None,
) -> list:
    if use_sample_data:
        articles = build_sample_articles()
        log.debug('Using sample data for feed generation.')
    else:
        sources, default_category = load_source_config(config_path)
        adapters = build_adapters(sources, default_category=default_category)
        log.debug('Running %d source adapter(s).', len(adapters))
        articles = run_aggregation(adapters)

    return filter_articles(
        articles,
        source=Source(source) if source else None,
        category=parse_category(category) if category else None,
        search=search,
    )


def build_payload(articles: list, state_path: str | None, limit: int, recommend: bool, topics: bool) -> dict:
    payload: dict = {'articles': [article.to_dict() for article in articles]}

    if recommend:
        store = UserStateStore(state_path or '.tech_news_feed_state.json')
        store.check_and_update_streak()
        recommendations = get_personalized_recommendations(
            articles,
            read_ids=store.read_ids(),
            bookmark_ids=store.bookmark_ids(),
            limit=limit,
        )
        payload['recommendations'] = [
            {'id': rec.article.id, 'score': rec.score, 'reasons': rec.reasons} for rec in recommendations
        ]

    if topics:
        trending = extract_trending_topics(articles, limit=limit)
        counts = [topic.count for topic in trending]
        low, high = (min(counts), max(counts)) if counts else (0, 0)
        payload['topics'] = [
            {
                'topic': topic.topic,
                'count': topic.count,
                'category': topic.category.value if topic.category else None,
                'size': round(get_topic_font_size(topic.count, low, high), 3),
            }
            for topic in trending
        ]
    return payload


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************


def _find_handler(handler_type: type) -> logging.Handler | None:
    for handler in log.handlers:
        if type(handler) is handler_type:
            return handler
    return None


def handle_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Aggregate a deduplicated, categorized tech news feed.')
    parser.add_argument('--config', default=None, help='Path to source config YAML (defaults to built-in sources).')
    parser.add_argument('--sample', action='store_true', help='Use local sample data and skip all network requests.')
    parser.add_argument('--output', default=None, help='Write JSON to this file instead of stdout.')
    parser.add_argument('--state', default=None, help='Path to the user state JSON file.')
    parser.add_argument('--source', choices=[source.value for source in Source], default=None)
    parser.add_argument('--category', default=None, help=f'Category filter (default fallback: {DEFAULT_CATEGORY.value}).')
    parser.add_argument('--search', default=None, help='Case-insensitive text filter.')
    parser.add_argument('--limit', type=int, default=6, help='Number of recommendations/topics.')
    parser.add_argument('--recommend', action='store_true', help='Include personalized recommendations.')
    parser.add_argument('--topics', action='store_true', help='Include trending topics.')
    parser.add_argument('--log-file', default='tech_news_feed.log', help='Debug log file path.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output to stderr.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Minimal stderr.')
    args = parser.parse_args(argv)

    # File handler for logging
    if _find_handler(logging.FileHandler) is None:
        fh = logging.FileHandler(args.log_file, mode='w')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        log.addHandler(fh)
        root_log.addHandler(fh)

    # stdout carries the JSON payload, so console logging goes to stderr
    ch = _find_handler(logging.StreamHandler)
    if ch is None:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(formatter)
        log.addHandler(ch)
        root_log.addHandler(ch)
    if args.verbose:
        ch.setLevel(logging.DEBUG)
    elif args.quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)

    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info('+  %s', os.path.basename(sys.argv[0]))
    log.info('+  Python Version: %s', sys.version.split()[0])
    log.info('+  Today is: %s', date.today())
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    return args


# ****************************************************************************************
# Main
# ****************************************************************************************


def main(argv: list[str] | None = None) -> None:
    args = handle_args(argv)
    articles = build_feed(
        config_path=args.config,
        use_sample_data=args.sample,
        source=args.source,
        category=args.category,
        search=args.search,
    )
    payload = build_payload(articles, args.state, args.limit, args.recommend, args.topics)
    text = json.dumps(payload, ensure_ascii=True, indent=2)
    if args.output:
        Path(args.output).write_text(text, encoding='utf-8')
        log.info('Wrote %d article(s) to %s', len(articles), args.output)
    else:
        sys.stdout.write(text + '\n')


if __name__ == '__main__':
    main()
