##########################################################################################
#
# Script name: store.py
#
# Description: JSON-file store for user interaction state: reading history, bookmarks,
#              visit streak and article collections.
#
##########################################################################################

import json
import logging
import uuid
from dataclasses import asdict
from datetime import date, timedelta
from pathlib import Path

from .config import MAX_READ_HISTORY
from .models import Collection, ReadEntry, StreakRecord
from .utils import utc_now, utc_now_iso


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

HISTORY_KEY = 'reading-history'
BOOKMARKS_KEY = 'bookmarks'
STREAK_KEY = 'reading-streak'
COLLECTIONS_KEY = 'collections'


# ****************************************************************************************
# Functions
# ****************************************************************************************


def advance_streak(record: StreakRecord, today: date) -> StreakRecord:
    """Return the streak after a visit on ``today``.

    A visit on the day after the last visit extends the streak, a later one
    restarts it at 1, and a repeat visit on the same day changes nothing.
    """
    today_str = today.isoformat()
    if record.last_visit_date == today_str:
        return record
    yesterday_str = (today - timedelta(days=1)).isoformat()
    if record.last_visit_date == yesterday_str:
        current = record.current_streak + 1
    else:
        current = 1
    history = dict(record.history)
    history[today_str] = True
    return StreakRecord(
        current_streak=current,
        longest_streak=max(current, record.longest_streak),
        last_visit_date=today_str,
        history=history,
    )


def _read_state(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with path.open('r', encoding='utf-8') as handle:
            payload = json.load(handle)
    except (OSError, ValueError) as exc:
        log.warning('Could not read user state from %s, starting empty: %s', path, exc)
        return {}
    if isinstance(payload, dict):
        return payload
    return {}


# ****************************************************************************************
# Classes
# ****************************************************************************************


class UserStateStore:
    """Durable key-value store for the user's reading state.

    The backing file is read once on first use and rewritten after every
    change. Ranking code only reads ``read_ids()`` and ``bookmark_ids()``.
    """

    def __init__(self, path: str | Path, max_history: int = MAX_READ_HISTORY):
        self.path = Path(path)
        self.max_history = max_history
        self._state: dict | None = None

    @property
    def state(self) -> dict:
        if self._state is None:
            self._state = _read_state(self.path)
        return self._state

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.state, ensure_ascii=True, indent=2), encoding='utf-8')

    # Reading history ---------------------------------------------------------------------

    def get_read_history(self) -> list[ReadEntry]:
        rows = self.state.get(HISTORY_KEY) or []
        return [ReadEntry(**row) for row in rows if isinstance(row, dict)]

    def read_ids(self) -> set[str]:
        return {entry.article_id for entry in self.get_read_history()}

    def is_read(self, article_id: str) -> bool:
        return article_id in self.read_ids()

    def mark_as_read(self, article_id: str, url: str) -> bool:
        history = self.state.setdefault(HISTORY_KEY, [])
        if any(row.get('article_id') == article_id for row in history):
            return False
        history.insert(0, asdict(ReadEntry(article_id=article_id, read_at=utc_now_iso(), url=url)))
        del history[self.max_history:]
        self._save()
        return True

    def clear_history(self) -> None:
        self.state[HISTORY_KEY] = []
        self._save()

    # Bookmarks ---------------------------------------------------------------------------

    def bookmark_ids(self) -> set[str]:
        return set(self.state.get(BOOKMARKS_KEY) or [])

    def is_bookmarked(self, article_id: str) -> bool:
        return article_id in self.bookmark_ids()

    def toggle_bookmark(self, article_id: str) -> bool:
        bookmarks = self.state.setdefault(BOOKMARKS_KEY, [])
        if article_id in bookmarks:
            bookmarks.remove(article_id)
            bookmarked = False
        else:
            bookmarks.append(article_id)
            bookmarked = True
        self._save()
        return bookmarked

    # Streak ------------------------------------------------------------------------------

    def get_streak(self) -> StreakRecord:
        raw = self.state.get(STREAK_KEY)
        if not isinstance(raw, dict):
            return StreakRecord()
        return StreakRecord(**raw)

    def check_and_update_streak(self, today: date | None = None) -> StreakRecord:
        today = today or utc_now().date()
        current = self.get_streak()
        updated = advance_streak(current, today)
        if updated is not current:
            self.state[STREAK_KEY] = asdict(updated)
            self._save()
        return updated

    def get_streak_days(self, days: int = 7, today: date | None = None) -> list[dict]:
        today = today or utc_now().date()
        history = self.get_streak().history
        result = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            day_str = day.isoformat()
            result.append(
                {
                    'date': day_str,
                    'day_name': day.strftime('%a'),
                    'visited': bool(history.get(day_str, False)),
                    'is_today': offset == 0,
                }
            )
        return result

    # Collections -------------------------------------------------------------------------

    def _collections(self) -> dict:
        return self.state.setdefault(COLLECTIONS_KEY, {})

    def get_all_collections(self) -> list[Collection]:
        return [Collection(**row) for row in self._collections().values()]

    def get_collection(self, collection_id: str) -> Collection | None:
        row = self._collections().get(collection_id)
        if row is None:
            return None
        return Collection(**row)

    def create_collection(self, name: str, description: str = '', color: str = '') -> Collection:
        collection = Collection(
            id=uuid.uuid4().hex,
            name=name,
            description=description,
            color=color,
            created_at=utc_now_iso(),
        )
        self.save_collection(collection)
        return collection

    def save_collection(self, collection: Collection) -> None:
        self._collections()[collection.id] = asdict(collection)
        self._save()

    def delete_collection(self, collection_id: str) -> None:
        if self._collections().pop(collection_id, None) is not None:
            self._save()

    def add_article_to_collection(self, collection_id: str, article_id: str) -> None:
        row = self._collections().get(collection_id)
        if row is None:
            raise KeyError(f'Unknown collection: {collection_id}')
        if article_id in row['article_ids']:
            return
        row['article_ids'].append(article_id)
        self._save()

    def remove_article_from_collection(self, collection_id: str, article_id: str) -> None:
        row = self._collections().get(collection_id)
        if row is None or article_id not in row['article_ids']:
            return
        row['article_ids'].remove(article_id)
        self._save()

    def is_article_in_collection(self, collection_id: str, article_id: str) -> bool:
        row = self._collections().get(collection_id)
        return row is not None and article_id in row['article_ids']

    def get_collections_for_article(self, article_id: str) -> list[Collection]:
        return [collection for collection in self.get_all_collections() if article_id in collection.article_ids]
