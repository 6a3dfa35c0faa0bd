"""Per-URL reading history, persisted as one JSON array.

The store keeps entries most-recent-first with at most one entry per URL.
Every mutation rewrites the whole file; the file on disk is the source of
truth at startup.
"""

import json
import logging
import os
import threading
from pathlib import Path

from reading_tracker.errors import PersistenceError
from reading_tracker.models.history import HistoryEntry, utcnow

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_PATH = Path.home() / '.reading_tracker' / 'history.json'


class JsonHistoryFile:
    """Reads and writes the history as a JSON array of entry objects."""

    def __init__(self, path=DEFAULT_HISTORY_PATH):
        self.path = Path(path)

    def load_history(self):
        """Return the persisted entries, or None if nothing was saved yet.

        Raises:
            PersistenceError: the file exists but is unreadable or malformed
        """
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PersistenceError(f'Could not read {self.path}: {e}') from e

        if not isinstance(data, list):
            raise PersistenceError(f'{self.path} does not contain a JSON array')
        try:
            return [HistoryEntry.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f'Malformed history entry in {self.path}: {e}') from e

    def save_history(self, entries):
        """Write all entries atomically via temp file + os.replace."""
        payload = [entry.to_dict() for entry in entries]
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f'Could not write {self.path}: {e}') from e


class HistoryStore:
    """Ordered, URL-keyed reading history.

    Query methods never touch storage; mutating methods persist the full
    store before returning. Mutations hold a lock so concurrent request
    threads cannot break URL uniqueness or the monotonic progress rule.
    """

    def __init__(self, backend, max_entries=0):
        self.backend = backend
        self.max_entries = max_entries
        self.load_error = None
        self._entries = []
        self._lock = threading.RLock()

    @classmethod
    def open(cls, backend, max_entries=0):
        """Create a store and load it from the backend."""
        store = cls(backend, max_entries=max_entries)
        store.load()
        return store

    # ------------------------------------------------------------------
    # Loading / saving
    # ------------------------------------------------------------------

    def load(self):
        """Replace the in-memory entries with the persisted copy.

        A load failure is logged and kept on `load_error`; the store then
        starts empty instead of raising.
        """
        with self._lock:
            try:
                loaded = self.backend.load_history()
            except PersistenceError as e:
                logger.error('Reading history could not be loaded, starting empty: %s', e)
                self.load_error = e
                self._entries = []
                return

            self.load_error = None
            self._entries = self._deduplicate(loaded or [])
            logger.info('Loaded %d history entries', len(self._entries))

    @staticmethod
    def _deduplicate(entries):
        seen = set()
        unique = []
        for entry in entries:
            if entry.url in seen:
                logger.warning('Dropping duplicate history entry for %s', entry.url)
                continue
            seen.add(entry.url)
            unique.append(entry)
        return unique

    def _persist(self):
        try:
            self.backend.save_history(self._entries)
        except PersistenceError:
            logger.exception('Failed to persist reading history')
            raise

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, url):
        with self._lock:
            return self._find(url)

    def entries(self):
        with self._lock:
            return list(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, url):
        return self.get(url) is not None

    def _find(self, url):
        for entry in self._entries:
            if entry.url == url:
                return entry
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert(self, url, article):
        """Open `url`: return the existing entry untouched, or insert a new one.

        New entries start at progress 0 and go to the front of the list.
        """
        with self._lock:
            existing = self._find(url)
            if existing is not None:
                return existing

            entry = HistoryEntry.from_article(url, article)
            self._entries.insert(0, entry)
            if self.max_entries and len(self._entries) > self.max_entries:
                evicted = self._entries[self.max_entries:]
                del self._entries[self.max_entries:]
                logger.info('Evicted %d oldest history entries', len(evicted))
            self._persist()
            return entry

    def record_progress(self, url, value):
        """Raise the stored progress for `url` to `value` if it is higher.

        Returns the entry, or None when `url` is not in the history.
        """
        value = min(100.0, max(0.0, float(value)))
        with self._lock:
            entry = self._find(url)
            if entry is None:
                return None
            entry.progress = max(entry.progress, value)
            entry.last_read = utcnow()
            self._persist()
            return entry

    def remove(self, url):
        with self._lock:
            entry = self._find(url)
            if entry is None:
                return False
            self._entries.remove(entry)
            self._persist()
            return True

    def clear(self):
        with self._lock:
            self._entries = []
            self._persist()
