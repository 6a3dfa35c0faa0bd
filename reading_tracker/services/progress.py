"""Reading progress from viewport geometry.

compute_progress() is a pure function and is safe to call on every scroll
event. ReadingSession wraps it with the per-session state machine

    Idle -> Loading -> Reading -> Idle

and keeps the highest value seen in memory until flush() writes it to the
history store.
"""

import enum
import logging
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Geometry:
    element_top: float
    element_height: float
    viewport_height: float
    scroll_offset: float

    @classmethod
    def from_dict(cls, data):
        """Build from the camelCase keys the browser sends.

        Raises KeyError for a missing key and TypeError/ValueError for a
        non-numeric one.
        """
        return cls(
            element_top=float(data['elementTop']),
            element_height=float(data['elementHeight']),
            viewport_height=float(data['viewportHeight']),
            scroll_offset=float(data['scrollOffset']),
        )


def compute_progress(element_top, element_height, viewport_height, scroll_offset) -> float:
    """Percentage of the article scrolled past, clamped to [0, 100].

    An article that fits in the viewport counts as fully read.
    """
    scrollable = element_height - viewport_height
    if scrollable <= 0:
        return 100.0
    raw = (scroll_offset - element_top) / scrollable * 100
    return min(100.0, max(0.0, raw))


class SessionState(enum.Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    READING = 'reading'


class ReadingSession:
    """Tracks one open article at a time against a HistoryStore.

    Request threads share one session, so every transition holds the
    session lock. The store is only ever called with that lock held.
    """

    def __init__(self, store):
        self.store = store
        self.state = SessionState.IDLE
        self.url = None
        self.entry = None
        self.current = 0.0
        self.high_water = 0.0
        self._flushed = 0.0
        self._lock = threading.RLock()

    def request(self, url):
        """Start opening `url`.

        Returns True when the article still has to be fetched (Loading),
        False when it was already in the history (Reading).
        """
        with self._lock:
            if self.state is not SessionState.IDLE:
                self.close()

            self.url = url
            entry = self.store.get(url)
            if entry is not None:
                self._start_reading(entry)
                return False

            self.state = SessionState.LOADING
            return True

    def load(self, article):
        """Attach the freshly extracted article and start reading."""
        with self._lock:
            if self.state is not SessionState.LOADING:
                raise RuntimeError(f'Cannot load an article while {self.state.value}')
            self._start_reading(self.store.upsert(self.url, article))
            return self.entry

    def _start_reading(self, entry):
        self.entry = entry
        self.current = 0.0
        self.high_water = entry.progress
        self._flushed = entry.progress
        self.state = SessionState.READING

    def update(self, geometry: Geometry):
        """Recompute progress for a scroll sample. No I/O.

        Returns the current value, or None outside the Reading state.
        """
        with self._lock:
            if self.state is not SessionState.READING:
                logger.debug('Ignoring scroll sample while %s', self.state.value)
                return None
            self.current = compute_progress(
                geometry.element_top,
                geometry.element_height,
                geometry.viewport_height,
                geometry.scroll_offset,
            )
            self.high_water = max(self.high_water, self.current)
            return self.current

    def flush(self):
        """Write the high-water mark to the store if it rose since last time."""
        with self._lock:
            if self.state is not SessionState.READING or self.high_water <= self._flushed:
                return False
            self.store.record_progress(self.url, self.high_water)
            self._flushed = self.high_water
            return True

    def sample(self, url, geometry: Geometry):
        """Update and flush in one step if `url` is the article being read.

        Returns (current, stored progress), or None when `url` is not open.
        """
        with self._lock:
            if self.state is not SessionState.READING or self.url != url:
                return None
            current = self.update(geometry)
            self.flush()
            return current, self.entry.progress

    def close(self, url=None):
        """Flush pending progress and go back to Idle.

        With `url`, only close when that is the open article.
        """
        with self._lock:
            if url is not None and url != self.url:
                return
            try:
                self.flush()
            finally:
                self.state = SessionState.IDLE
                self.url = None
                self.entry = None
                self.current = 0.0
                self.high_water = 0.0
                self._flushed = 0.0
