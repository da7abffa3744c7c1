from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Source(str, Enum):
    DEVTO = "devto"
    HACKERNEWS = "hackernews"
    NEWSAPI = "newsapi"
    GITHUB = "github"
    VERCEL = "vercel"
    REACT = "react"
    META = "meta"
    GOOGLE = "google"
    CLOUDFLARE = "cloudflare"
    REDDIT = "reddit"
    MEDIUM = "medium"
    NVD = "nvd"
    GITHUB_ADVISORY = "githubadvisory"
    BLEEPING_COMPUTER = "bleepingcomputer"
    SECURITY_WEEK = "securityweek"
    THE_HACKER_NEWS = "thehackernews"
    CISA = "cisa"


class Category(str, Enum):
    SECURITY = "Security"
    WEB_DEV = "Web Dev"
    AI_ML = "AI/ML"
    DEVOPS = "DevOps"
    MOBILE = "Mobile"
    OPEN_SOURCE = "Open Source"


@dataclass(frozen=True)
class Article:
    id: str
    title: str
    description: str
    url: str
    source: Source
    category: Category
    published_at: str
    author: str | None = None
    image_url: str | None = None
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "source": self.source.value,
            "category": self.category.value,
            "publishedAt": self.published_at,
            "author": self.author,
            "imageUrl": self.image_url,
            "tags": list(self.tags),
        }


@dataclass
class Recommendation:
    article: Article
    score: float
    reasons: list[str] = field(default_factory=list)


@dataclass
class TopicCount:
    topic: str
    count: int
    category: Category | None = None


@dataclass
class SourceMetric:
    source: Source
    total_articles: int = 0
    avg_per_day: float = 0.0
    last_posted: str = ""
    categories: set[Category] = field(default_factory=set)


@dataclass
class ReadEntry:
    article_id: str
    read_at: str
    url: str


@dataclass
class StreakRecord:
    current_streak: int = 0
    longest_streak: int = 0
    last_visit_date: str | None = None
    history: dict[str, bool] = field(default_factory=dict)


@dataclass
class Collection:
    id: str
    name: str
    description: str = ""
    color: str = ""
    created_at: str = ""
    article_ids: list[str] = field(default_factory=list)
