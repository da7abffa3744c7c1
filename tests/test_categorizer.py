##########################################################################################
#
# Script name: test_categorizer.py
#
# Description: Keyword rule ordering and fallback behavior of the categorizer.
#
##########################################################################################

import pytest

from tech_news_feed.categorizer import categorize
from tech_news_feed.models import Category


def test_security_rule_wins_over_web_dev() -> None:
    category = categorize(['react'], 'CVE-2024-1234 patched in React DOM', 'Upgrade now.')
    assert category == Category.SECURITY


def test_same_input_always_yields_same_category() -> None:
    args = (['docker'], 'Shipping containers faster', 'A deployment guide')
    assert {categorize(*args) for _ in range(5)} == {Category.DEVOPS}


@pytest.mark.parametrize(
    'tags, title, description, expected',
    [
        ([], 'Building UIs with Svelte 5', '', Category.WEB_DEV),
        ([], 'A new LLM benchmark for coding', '', Category.AI_ML),
        (['kubernetes'], 'Scaling clusters', '', Category.DEVOPS),
        ([], 'Flutter 4 release notes', '', Category.MOBILE),
        ([], 'Maintaining a popular repository', 'Lessons learned', Category.OPEN_SOURCE),
        ([], 'Ransomware gang hits hospital', '', Category.SECURITY),
    ],
)
def test_categorize_matches_each_rule(tags, title, description, expected) -> None:
    assert categorize(tags, title, description) == expected


def test_whole_words_only() -> None:
    # "maintaining" contains "ai" but not as a word
    assert categorize([], 'Maintaining quiet neighbourhoods', '') == Category.WEB_DEV


def test_unmatched_text_uses_configurable_default() -> None:
    assert categorize([], 'Weekly newsletter roundup', 'Odds and ends') == Category.WEB_DEV
    assert categorize([], 'Weekly newsletter roundup', 'Odds and ends', default=Category.OPEN_SOURCE) == Category.OPEN_SOURCE
