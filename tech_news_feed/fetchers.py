##########################################################################################
#
# Script name: fetchers.py
#
# Description: Source adapters that fetch and normalize articles from Dev.to, Hacker News,
#              NewsAPI, GitHub, Reddit, NVD, GitHub advisories and RSS/Atom feeds.
#
##########################################################################################

import asyncio
import functools
import logging
import os
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import feedparser
import requests

from .categorizer import categorize
from .config import DEFAULT_CATEGORY, DEFAULT_TIMEOUT, SOURCE_LABELS, USER_AGENT
from .models import Article, Category, Source
from .utils import coerce_timestamp, stable_id, strip_html, to_iso, truncate_text, utc_now


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

NO_TITLE = 'No title'
NO_DESCRIPTION = 'No description available'
DESCRIPTION_MAX_LENGTH = 200


# ****************************************************************************************
# Exceptions
# ****************************************************************************************


class AdapterError(Exception):
    """Raised inside an adapter when its provider cannot be fetched or parsed."""

    def __init__(self, source: Source, message: str):
        super().__init__(f'{source.value}: {message}')
        self.source = source
        self.message = message


@dataclass
class AdapterResult:
    source: Source
    articles: list[Article] = field(default_factory=list)
    error: AdapterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ****************************************************************************************
# Classes
# ****************************************************************************************


class SourceAdapter:
    """Base class for one provider.

    Subclasses implement ``_fetch_items``, which may raise. ``collect`` turns
    any failure into an ``AdapterResult`` carrying the error, and ``fetch``
    logs that error and returns an empty list, so ``fetch`` never raises.
    """

    default_url = ''
    default_max_items = 20

    def __init__(
        self,
        source: Source,
        name: str | None = None,
        url: str | None = None,
        max_items: int | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        api_key: str | None = None,
        default_category: Category = DEFAULT_CATEGORY,
    ):
        self.source = source
        self.name = name or SOURCE_LABELS.get(source, source.value)
        self.url = url or self.default_url
        self.max_items = int(max_items or self.default_max_items)
        self.timeout = float(timeout)
        self.api_key = api_key
        self.default_category = default_category
        # Thread pool for blocking requests; None means the loop's default executor.
        self.executor: Executor | None = None

    def __repr__(self) -> str:
        return f'{type(self).__name__}(source={self.source.value!r}, url={self.url!r})'

    def request_budget(self) -> int:
        """Upper bound on the HTTP requests one fetch can have in flight at once."""
        return 1

    async def fetch(self) -> list[Article]:
        result = await self.collect()
        if result.error is not None:
            log.warning('Source %s failed: %s', self.name, result.error.message)
            return []
        log.debug('Source %s returned %d article(s).', self.name, len(result.articles))
        return result.articles

    async def collect(self) -> AdapterResult:
        try:
            articles = await asyncio.wait_for(self._fetch_items(), timeout=self.timeout)
        except AdapterError as exc:
            return AdapterResult(self.source, error=exc)
        except asyncio.TimeoutError:
            return AdapterResult(self.source, error=AdapterError(self.source, f'timed out after {self.timeout}s'))
        except Exception as exc:  # noqa: BLE001
            return AdapterResult(self.source, error=AdapterError(self.source, f'{type(exc).__name__}: {exc}'))

        unique: list[Article] = []
        seen_ids: set[str] = set()
        for article in articles:
            if article.id in seen_ids:
                continue
            seen_ids.add(article.id)
            unique.append(article)
        return AdapterResult(self.source, articles=unique)

    async def _fetch_items(self) -> list[Article]:
        raise NotImplementedError

    def _request(self, url: str, params: dict | None = None, headers: dict | None = None) -> requests.Response:
        merged_headers = {'User-Agent': USER_AGENT}
        merged_headers.update(headers or {})
        try:
            response = requests.get(url, params=params, headers=merged_headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AdapterError(self.source, f'request to {url} failed: {exc}') from exc
        if response.status_code >= 400:
            raise AdapterError(self.source, f'{url} returned HTTP {response.status_code}')
        return response

    async def _run_blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, functools.partial(func, *args))

    async def _get_json(self, url: str, params: dict | None = None, headers: dict | None = None):
        response = await self._run_blocking(self._request, url, params, headers)
        try:
            return response.json()
        except ValueError as exc:
            raise AdapterError(self.source, f'{url} returned malformed JSON') from exc

    async def _get_content(self, url: str, params: dict | None = None, headers: dict | None = None) -> bytes:
        response = await self._run_blocking(self._request, url, params, headers)
        return response.content

    def make_id(self, native_id) -> str:
        return f'{self.source.value}-{native_id}'

    def _make_article(
        self,
        native_id,
        title: str | None,
        description: str | None,
        url: str | None,
        published_at: str,
        author: str | None = None,
        image_url: str | None = None,
        tags: list[str] | tuple[str, ...] = (),
        category: Category | None = None,
    ) -> Article:
        title = strip_html(title or '') or NO_TITLE
        description = (description or '').strip() or NO_DESCRIPTION
        clean_tags = tuple(str(tag).strip() for tag in tags if tag and str(tag).strip())
        if category is None:
            category = categorize(clean_tags, title, description, default=self.default_category)
        return Article(
            id=self.make_id(native_id),
            title=title,
            description=description,
            url=(url or '').strip() or self.url,
            source=self.source,
            category=category,
            published_at=published_at,
            author=author or None,
            image_url=image_url or None,
            tags=clean_tags,
        )


class DevToAdapter(SourceAdapter):
    default_url = 'https://dev.to/api/articles'

    async def _fetch_items(self) -> list[Article]:
        payload = await self._get_json(self.url, params={'per_page': self.max_items, 'top': 7})
        if not isinstance(payload, list):
            raise AdapterError(self.source, 'expected a list of articles')
        articles: list[Article] = []
        for row in payload[: self.max_items]:
            if not isinstance(row, dict) or row.get('id') is None or not row.get('url'):
                continue
            tags = row.get('tag_list') or []
            if isinstance(tags, str):
                tags = [tag.strip() for tag in tags.split(',')]
            articles.append(
                self._make_article(
                    native_id=row['id'],
                    title=row.get('title'),
                    description=row.get('description'),
                    url=row.get('url'),
                    published_at=coerce_timestamp(row.get('published_at')),
                    author=(row.get('user') or {}).get('name'),
                    image_url=row.get('cover_image'),
                    tags=tags,
                )
            )
        return articles


class HackerNewsAdapter(SourceAdapter):
    default_url = 'https://hacker-news.firebaseio.com/v0'

    def request_budget(self) -> int:
        return self.max_items

    async def _fetch_story(self, story_id) -> dict | None:
        payload = await self._get_json(f'{self.url}/item/{story_id}.json')
        if not isinstance(payload, dict):
            return None
        return payload

    async def _fetch_items(self) -> list[Article]:
        story_ids = await self._get_json(f'{self.url}/topstories.json')
        if not isinstance(story_ids, list):
            raise AdapterError(self.source, 'expected a list of story ids')
        results = await asyncio.gather(
            *(self._fetch_story(story_id) for story_id in story_ids[: self.max_items]),
            return_exceptions=True,
        )
        articles: list[Article] = []
        for story in results:
            if isinstance(story, BaseException):
                log.debug('Hacker News item failed: %s', story)
                continue
            if not story or not story.get('url') or story.get('id') is None:
                continue
            by = story.get('by') or 'unknown'
            # The description carries the username, so only the title is categorized.
            category = categorize((), story.get('title') or '', '', default=self.default_category)
            description = f"{story.get('score') or 0} points by {by} | {story.get('descendants') or 0} comments"
            articles.append(
                self._make_article(
                    native_id=story['id'],
                    title=story.get('title'),
                    description=description,
                    url=story.get('url'),
                    published_at=coerce_timestamp(story.get('time')),
                    author=story.get('by'),
                    category=category,
                )
            )
        return articles


class NewsAPIAdapter(SourceAdapter):
    default_url = 'https://newsapi.org/v2/top-headlines'
    api_key_env = 'NEWSAPI_KEY'

    async def _fetch_items(self) -> list[Article]:
        api_key = self.api_key or os.getenv(self.api_key_env)
        if not api_key:
            log.warning('Skipping %s: %s is not set.', self.name, self.api_key_env)
            return []
        params = {
            'category': 'technology',
            'language': 'en',
            'pageSize': self.max_items,
            'apiKey': api_key,
        }
        payload = await self._get_json(self.url, params=params)
        if not isinstance(payload, dict) or payload.get('status') != 'ok':
            message = payload.get('message') if isinstance(payload, dict) else None
            raise AdapterError(self.source, f'provider returned error: {message or "unknown"}')
        rows = payload.get('articles') or []
        articles: list[Article] = []
        for row in rows[: self.max_items]:
            if not isinstance(row, dict):
                continue
            title = row.get('title') or ''
            url = row.get('url') or ''
            if not url or title == '[Removed]':
                continue
            articles.append(
                self._make_article(
                    native_id=stable_id(url),
                    title=title,
                    description=row.get('description'),
                    url=url,
                    published_at=coerce_timestamp(row.get('publishedAt')),
                    author=row.get('author') or (row.get('source') or {}).get('name'),
                    image_url=row.get('urlToImage'),
                )
            )
        return articles


class GitHubTrendingAdapter(SourceAdapter):
    default_url = 'https://api.github.com/search/repositories'
    default_max_items = 15
    api_key_env = 'GITHUB_TOKEN'

    async def _fetch_items(self) -> list[Article]:
        since = (utc_now() - timedelta(days=7)).strftime('%Y-%m-%d')
        params = {
            'q': f'created:>{since}',
            'sort': 'stars',
            'order': 'desc',
            'per_page': self.max_items,
        }
        headers = {'Accept': 'application/vnd.github.v3+json'}
        token = self.api_key or os.getenv(self.api_key_env)
        if token:
            headers['Authorization'] = f'Bearer {token}'
        payload = await self._get_json(self.url, params=params, headers=headers)
        if not isinstance(payload, dict):
            raise AdapterError(self.source, 'expected a search result object')
        articles: list[Article] = []
        for repo in (payload.get('items') or [])[: self.max_items]:
            if not isinstance(repo, dict) or repo.get('id') is None:
                continue
            tags = list(repo.get('topics') or [])
            if repo.get('language'):
                tags.append(repo['language'].lower())
            category = categorize(tags, repo.get('name') or '', repo.get('description') or '',
                                  default=self.default_category)
            if category == Category.WEB_DEV:
                category = Category.OPEN_SOURCE
            articles.append(
                self._make_article(
                    native_id=repo['id'],
                    title=repo.get('full_name') or repo.get('name'),
                    description=repo.get('description'),
                    url=repo.get('html_url'),
                    published_at=coerce_timestamp(repo.get('updated_at'), repo.get('created_at')),
                    author=(repo.get('owner') or {}).get('login'),
                    tags=tags,
                    category=category,
                )
            )
        return articles


class RedditAdapter(SourceAdapter):
    default_url = 'https://www.reddit.com'
    default_max_items = 30
    default_subreddits = ('javascript', 'reactjs', 'programming', 'webdev', 'typescript')

    def __init__(self, source: Source, subreddits: list[str] | None = None, per_subreddit: int = 10, **kwargs):
        super().__init__(source, **kwargs)
        self.subreddits = list(subreddits or self.default_subreddits)
        self.per_subreddit = per_subreddit

    def request_budget(self) -> int:
        return len(self.subreddits)

    async def _fetch_subreddit(self, subreddit: str) -> list[Article]:
        payload = await self._get_json(
            f'{self.url}/r/{subreddit}/hot.json',
            params={'limit': self.per_subreddit},
        )
        children = ((payload or {}).get('data') or {}).get('children') or []
        articles: list[Article] = []
        for child in children:
            post = (child or {}).get('data') or {}
            if post.get('stickied') or not post.get('id'):
                continue
            selftext = truncate_text(post.get('selftext') or '', DESCRIPTION_MAX_LENGTH)
            link = post.get('url') or ''
            if not link.startswith('http'):
                link = f"https://reddit.com{post.get('permalink') or ''}"
            articles.append(
                self._make_article(
                    native_id=post['id'],
                    title=post.get('title'),
                    description=selftext or f"Discussion in r/{post.get('subreddit') or subreddit}",
                    url=link,
                    published_at=coerce_timestamp(post.get('created_utc')),
                    author=post.get('author'),
                    tags=[subreddit],
                )
            )
        return articles

    async def _fetch_items(self) -> list[Article]:
        results = await asyncio.gather(
            *(self._fetch_subreddit(subreddit) for subreddit in self.subreddits),
            return_exceptions=True,
        )
        articles: list[Article] = []
        for subreddit, result in zip(self.subreddits, results):
            if isinstance(result, BaseException):
                log.warning('Reddit r/%s failed: %s', subreddit, result)
                continue
            articles.extend(result)
        return articles[: self.max_items]


class NVDAdapter(SourceAdapter):
    default_url = 'https://services.nvd.nist.gov/rest/json/cves/2.0'
    default_max_items = 15

    async def _fetch_items(self) -> list[Article]:
        now = utc_now()
        params = {
            'lastModStartDate': f"{(now - timedelta(days=7)).strftime('%Y-%m-%d')}T00:00:00.000",
            'lastModEndDate': f"{now.strftime('%Y-%m-%d')}T23:59:59.999",
            'resultsPerPage': 20,
        }
        payload = await self._get_json(self.url, params=params, headers={'Accept': 'application/json'})
        if not isinstance(payload, dict):
            raise AdapterError(self.source, 'expected a vulnerability result object')
        articles: list[Article] = []
        for vuln in (payload.get('vulnerabilities') or [])[: self.max_items]:
            cve = (vuln or {}).get('cve') or {}
            cve_id = cve.get('id')
            if not cve_id:
                continue
            description = next(
                (d.get('value') for d in cve.get('descriptions') or [] if d.get('lang') == 'en'),
                None,
            ) or 'No description'
            metrics = (cve.get('metrics') or {}).get('cvssMetricV31') or [{}]
            score = (metrics[0].get('cvssData') or {}).get('baseScore') or 0
            references = cve.get('references') or []
            url = references[0].get('url') if references else None
            title = f'{cve_id} - CVE Vulnerability'
            if score:
                title += f' (Score: {score})'
            articles.append(
                self._make_article(
                    native_id=cve_id,
                    title=title,
                    description=description[:200],
                    url=url or f'https://nvd.nist.gov/vuln/detail/{cve_id}',
                    published_at=coerce_timestamp(cve.get('published'), cve.get('lastModified')),
                    author='NVD/NIST',
                    tags=['cve', 'vulnerability', 'security'],
                    category=Category.SECURITY,
                )
            )
        return articles


class GitHubAdvisoryAdapter(SourceAdapter):
    default_url = 'https://api.github.com/advisories'
    default_max_items = 15

    async def _fetch_items(self) -> list[Article]:
        params = {'per_page': self.max_items, 'sort': 'published', 'direction': 'desc'}
        payload = await self._get_json(self.url, params=params, headers={'Accept': 'application/vnd.github+json'})
        if not isinstance(payload, list):
            raise AdapterError(self.source, 'expected a list of advisories')
        articles: list[Article] = []
        for advisory in payload[: self.max_items]:
            if not isinstance(advisory, dict) or not advisory.get('ghsa_id'):
                continue
            ghsa_id = advisory['ghsa_id']
            severity = (advisory.get('severity') or 'unknown').upper()
            summary = advisory.get('summary') or ''
            articles.append(
                self._make_article(
                    native_id=ghsa_id,
                    title=f"{ghsa_id} - {summary[:80] or 'Security Advisory'}",
                    description=f"[{severity}] {(summary or NO_DESCRIPTION)[:150]}",
                    url=advisory.get('html_url') or f'https://github.com/advisories/{ghsa_id}',
                    published_at=coerce_timestamp(advisory.get('published_at')),
                    author='GitHub Security',
                    tags=['security', 'advisory', severity.lower()],
                    category=Category.SECURITY,
                )
            )
        return articles


class RSSAdapter(SourceAdapter):
    default_max_items = 15

    @staticmethod
    def _entry_image(entry) -> str | None:
        for key in ('media_content', 'media_thumbnail'):
            for media in entry.get(key) or []:
                if media.get('url'):
                    return media['url']
        for enclosure in entry.get('enclosures') or []:
            if (enclosure.get('type') or '').startswith('image/') and enclosure.get('href'):
                return enclosure['href']
        return None

    @staticmethod
    def _entry_description(entry) -> str:
        raw = entry.get('summary') or entry.get('description') or ''
        if not raw:
            content = entry.get('content') or []
            if content:
                raw = content[0].get('value') or ''
        return truncate_text(strip_html(raw), DESCRIPTION_MAX_LENGTH)

    async def _fetch_items(self) -> list[Article]:
        if not self.url:
            raise AdapterError(self.source, 'missing feed url')
        content = await self._get_content(self.url)
        parsed = feedparser.parse(content)
        if getattr(parsed, 'bozo', False) and not parsed.entries:
            raise AdapterError(self.source, f'invalid feed: {getattr(parsed, "bozo_exception", "unknown error")}')
        feed_title = (parsed.feed or {}).get('title')
        articles: list[Article] = []
        for entry in parsed.entries[: self.max_items]:
            link = (entry.get('link') or '').strip()
            native = entry.get('id') or entry.get('guid') or link or entry.get('title')
            if not native:
                continue
            tags = [tag.get('term') for tag in entry.get('tags') or [] if tag.get('term')]
            articles.append(
                self._make_article(
                    native_id=stable_id(native),
                    title=entry.get('title'),
                    description=self._entry_description(entry),
                    url=link or self.url,
                    published_at=coerce_timestamp(entry.get('published'), entry.get('updated')),
                    author=entry.get('author') or feed_title or self.name,
                    image_url=self._entry_image(entry),
                    tags=tags,
                )
            )
        return articles


ADAPTER_TYPES: dict[str, type[SourceAdapter]] = {
    'devto': DevToAdapter,
    'hackernews': HackerNewsAdapter,
    'newsapi': NewsAPIAdapter,
    'github': GitHubTrendingAdapter,
    'reddit': RedditAdapter,
    'nvd': NVDAdapter,
    'githubadvisory': GitHubAdvisoryAdapter,
    'rss': RSSAdapter,
}


# ****************************************************************************************
# Functions
# ****************************************************************************************


def build_adapter(entry: dict, default_category: Category = DEFAULT_CATEGORY) -> SourceAdapter | None:
    source_type = (entry.get('type') or '').strip().lower()
    adapter_cls = ADAPTER_TYPES.get(source_type)
    if adapter_cls is None:
        log.warning('Skipping unsupported source type: %s', source_type)
        return None
    source = Source(entry.get('source') or source_type)
    kwargs = {
        'name': entry.get('name'),
        'url': entry.get('url'),
        'max_items': entry.get('max_items'),
        'timeout': float(entry.get('timeout') or DEFAULT_TIMEOUT),
        'default_category': default_category,
    }
    api_key_env = entry.get('api_key_env')
    if api_key_env:
        kwargs['api_key'] = os.getenv(api_key_env)
    if adapter_cls is RedditAdapter and entry.get('subreddits'):
        kwargs['subreddits'] = list(entry['subreddits'])
    if adapter_cls is RedditAdapter and entry.get('per_subreddit'):
        kwargs['per_subreddit'] = int(entry['per_subreddit'])
    return adapter_cls(source, **kwargs)


def build_adapters(sources: list[dict], default_category: Category = DEFAULT_CATEGORY) -> list[SourceAdapter]:
    adapters: list[SourceAdapter] = []
    for entry in sources:
        adapter = build_adapter(entry, default_category=default_category)
        if adapter is not None:
            adapters.append(adapter)
    return adapters


def build_sample_articles() -> list[Article]:
    now = datetime.now(timezone.utc)
    templates = [
        (Source.HACKERNEWS, 'Critical CVE found in popular npm package', Category.SECURITY, ('security',)),
        (Source.DEVTO, 'Building fast React apps with server components', Category.WEB_DEV, ('react', 'webdev')),
        (Source.GITHUB, 'New open source LLM toolkit tops trending repos', Category.AI_ML, ('llm', 'python')),
        (Source.CLOUDFLARE, 'Rolling out Kubernetes upgrades without downtime', Category.DEVOPS, ('kubernetes',)),
        (Source.REDDIT, 'Flutter 4 ships with a new rendering engine', Category.MOBILE, ('programming',)),
        (Source.MEDIUM, 'How to land your first pull request in a big OSS project', Category.OPEN_SOURCE, ()),
    ]
    articles: list[Article] = []
    for idx in range(30):
        source, title, category, tags = templates[idx % len(templates)]
        articles.append(
            Article(
                id=f'{source.value}-sample-{idx}',
                title=f'{title} ({idx + 1})',
                description=f'Sample content for {category.value}.',
                url=f'https://example.com/post-{idx}',
                source=source,
                category=category,
                published_at=to_iso(now - timedelta(hours=idx)),
                author='Sample Author',
                tags=tags,
            )
        )
    return articles
