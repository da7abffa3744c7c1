##########################################################################################
#
# Script name: config.py
#
# Description: Static configuration, taxonomy and source registry for the tech news feed.
#
##########################################################################################

import logging
import re

import yaml

from .models import Category, Source


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

USER_AGENT = 'tech-news-feed/1.0 (+https://github.com/)'
DEFAULT_CONFIG_FILE = 'config/sources.yaml'
DEFAULT_TIMEOUT = 15.0
DEFAULT_CATEGORY = Category.WEB_DEV

SOURCE_LABELS = {
    Source.DEVTO: 'Dev.to',
    Source.HACKERNEWS: 'Hacker News',
    Source.NEWSAPI: 'Tech News',
    Source.GITHUB: 'GitHub',
    Source.VERCEL: 'Vercel Blog',
    Source.REACT: 'React Blog',
    Source.META: 'Meta Engineering',
    Source.GOOGLE: 'Google Developers',
    Source.CLOUDFLARE: 'Cloudflare Blog',
    Source.REDDIT: 'Reddit',
    Source.MEDIUM: 'Medium',
    Source.NVD: 'NVD',
    Source.GITHUB_ADVISORY: 'GitHub Security',
    Source.BLEEPING_COMPUTER: 'Bleeping Computer',
    Source.SECURITY_WEEK: 'SecurityWeek',
    Source.THE_HACKER_NEWS: 'The Hacker News',
    Source.CISA: 'CISA Alerts',
}

# Evaluated in order, first match wins.
CATEGORY_RULES = [
    (
        Category.SECURITY,
        re.compile(
            r'\b(cve|vulnerability|breach|security|hack|exploit|ransomware|malware|phishing'
            r'|firewall|encryption|zero-day)\b',
            re.IGNORECASE,
        ),
    ),
    (
        Category.WEB_DEV,
        re.compile(
            r'\b(react|next\.?js|vue|angular|javascript|typescript|css|html|frontend|backend'
            r'|fullstack|web development|svelte|tailwind)\b',
            re.IGNORECASE,
        ),
    ),
    (
        Category.AI_ML,
        re.compile(
            r'\b(ai|artificial intelligence|machine learning|neural|tensorflow|pytorch|gpt|llm'
            r'|deep learning|ml|data science)\b',
            re.IGNORECASE,
        ),
    ),
    (
        Category.DEVOPS,
        re.compile(
            r'\b(docker|kubernetes|k8s|ci/cd|devops|aws|azure|gcp|cloud|deployment|terraform'
            r'|ansible|jenkins)\b',
            re.IGNORECASE,
        ),
    ),
    (
        Category.MOBILE,
        re.compile(
            r'\b(ios|android|react native|flutter|swift|kotlin|mobile|app development)\b',
            re.IGNORECASE,
        ),
    ),
    (
        Category.OPEN_SOURCE,
        re.compile(
            r'\b(github|open source|repository|contributions|oss|pull request|fork)\b',
            re.IGNORECASE,
        ),
    ),
]

TECH_KEYWORDS = [
    # Languages & frameworks
    'react', 'vue', 'angular', 'svelte', 'nextjs', 'nuxt', 'remix',
    'typescript', 'javascript', 'python', 'rust', 'go', 'java', 'kotlin', 'swift',
    'node', 'nodejs', 'deno', 'bun',
    # Technologies
    'docker', 'kubernetes', 'k8s', 'aws', 'azure', 'gcp', 'vercel', 'netlify',
    'ai', 'ml', 'chatgpt', 'gpt', 'llm', 'openai', 'anthropic',
    'blockchain', 'web3', 'crypto',
    'graphql', 'rest', 'api', 'grpc',
    'postgresql', 'mysql', 'mongodb', 'redis',
    # Security
    'security', 'vulnerability', 'cve', 'exploit', 'breach', 'hack',
    'malware', 'ransomware', 'phishing', 'zero-day', '0-day',
    # Concepts
    'performance', 'optimization', 'scalability', 'serverless',
    'microservices', 'monolith', 'architecture',
    'testing', 'ci/cd', 'devops', 'deployment',
    'opensource', 'open source', 'github',
]

STOPWORDS = {
    'about', 'after', 'again', 'also', 'been', 'before', 'being', 'from', 'have',
    'here', 'into', 'just', 'more', 'most', 'much', 'only', 'other', 'over', 'same',
    'some', 'such', 'than', 'that', 'their', 'them', 'then', 'there', 'these', 'they',
    'this', 'those', 'through', 'very', 'were', 'what', 'when', 'where', 'which',
    'while', 'will', 'with', 'would', 'your', 'using', 'how', 'why', 'new',
}

# Recommendation weights
FAVORITE_LIMIT = 3
SOURCE_RANK_BASE = 10
CATEGORY_RANK_BASE = 8
BOOKMARK_BONUS = 5
RECENT_BONUS = 3
RECENT_DAYS = 7

SIMILAR_SOURCE_BONUS = 5
SIMILAR_CATEGORY_BONUS = 4
SIMILAR_TAG_BONUS = 2
SIMILAR_KEYWORD_BONUS = 3
SIMILAR_BOOKMARK_BONUS = 3
SIMILAR_RECENT_BONUS = 2

# Trending topic display
TOPIC_MIN_SIZE = 0.75
TOPIC_MAX_SIZE = 2.0

MAX_READ_HISTORY = 1000

DEFAULT_SOURCES = [
    {'type': 'devto', 'source': 'devto', 'url': 'https://dev.to/api/articles', 'max_items': 20},
    {'type': 'hackernews', 'source': 'hackernews', 'max_items': 20},
    {'type': 'newsapi', 'source': 'newsapi', 'max_items': 20},
    {'type': 'github', 'source': 'github', 'max_items': 15},
    {'type': 'reddit', 'source': 'reddit', 'max_items': 30,
     'subreddits': ['javascript', 'reactjs', 'programming', 'webdev', 'typescript']},
    {'type': 'nvd', 'source': 'nvd', 'max_items': 15, 'timeout': 20.0},
    {'type': 'githubadvisory', 'source': 'githubadvisory', 'max_items': 15},
    {'type': 'rss', 'source': 'vercel', 'url': 'https://vercel.com/blog/rss'},
    {'type': 'rss', 'source': 'react', 'url': 'https://react.dev/rss.xml'},
    {'type': 'rss', 'source': 'meta', 'url': 'https://engineering.fb.com/feed/'},
    {'type': 'rss', 'source': 'google', 'url': 'https://developers.googleblog.com/feeds/posts/default'},
    {'type': 'rss', 'source': 'cloudflare', 'url': 'https://blog.cloudflare.com/rss/'},
    {'type': 'rss', 'source': 'medium', 'name': 'Medium - Tech',
     'url': 'https://medium.com/feed/javascript-in-plain-english'},
    {'type': 'rss', 'source': 'bleepingcomputer', 'url': 'https://www.bleepingcomputer.com/feed/'},
    {'type': 'rss', 'source': 'securityweek', 'url': 'https://www.securityweek.com/feed/'},
    {'type': 'rss', 'source': 'thehackernews', 'url': 'https://feeds.feedburner.com/TheHackersNews'},
    {'type': 'rss', 'source': 'cisa', 'url': 'https://www.cisa.gov/cybersecurity-advisories/all.xml'},
]


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _validate_source_entry(entry: dict, idx: int) -> dict:
    if not isinstance(entry, dict):
        raise ValueError(f'config.sources[{idx}] must be a mapping')
    source_type = (entry.get('type') or '').strip().lower()
    if not source_type:
        raise ValueError(f'config.sources[{idx}] is missing a type')
    tag = (entry.get('source') or source_type).strip().lower()
    try:
        Source(tag)
    except ValueError as exc:
        raise ValueError(f'config.sources[{idx}] has unknown source tag: {tag}') from exc
    normalized = dict(entry)
    normalized['type'] = source_type
    normalized['source'] = tag
    return normalized


def parse_category(value: str | None, default: Category = DEFAULT_CATEGORY) -> Category:
    if not value:
        return default
    for category in Category:
        if category.value.lower() == value.strip().lower() or category.name.lower() == value.strip().lower():
            return category
    raise ValueError(f'Unknown category: {value}')


def load_source_config(path: str | None) -> tuple[list[dict], Category]:
    """Load the source registry and fallback category from a YAML file.

    Without a path the built-in DEFAULT_SOURCES are used.
    """
    if not path:
        return [dict(entry) for entry in DEFAULT_SOURCES], DEFAULT_CATEGORY
    with open(path, 'r', encoding='utf-8') as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError('config root must be a mapping')
    sources = payload.get('sources', DEFAULT_SOURCES)
    if not isinstance(sources, list):
        raise ValueError('config.sources must be a list')
    validated = [_validate_source_entry(entry, idx) for idx, entry in enumerate(sources)]
    default_category = parse_category(payload.get('default_category'))
    log.info('Loaded %s source(s) from %s.', len(validated), path)
    return validated, default_category
