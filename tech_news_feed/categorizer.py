from __future__ import annotations

from collections.abc import Iterable

from .config import CATEGORY_RULES, DEFAULT_CATEGORY
from .models import Category


def categorize(
    tags: Iterable[str],
    title: str,
    description: str,
    default: Category = DEFAULT_CATEGORY,
) -> Category:
    """Return the category of the first rule matching tags, title and description.

    Rules are checked in CATEGORY_RULES order, so an article about a React
    vulnerability is Security, not Web Dev. Unmatched text falls back to
    ``default``.
    """
    content = f"{' '.join(tags)} {title or ''} {description or ''}".lower()
    for category, pattern in CATEGORY_RULES:
        if pattern.search(content):
            return category
    return default
