"""URL → fetch → extract → history pipeline."""

import logging

from .extractor import extract
from .fetcher import clean_url, fetch_raw_html
from .word_count import WORDS_PER_MINUTE

logger = logging.getLogger(__name__)


def fetch_article(url, fetch=fetch_raw_html, words_per_minute=WORDS_PER_MINUTE):
    """Fetch a page and extract its article. No history side effects."""
    raw_html = fetch(url)
    return extract(raw_html, words_per_minute=words_per_minute)


def open_article(session, url, fetch=fetch_raw_html, words_per_minute=WORDS_PER_MINUTE):
    """Open `url` in the reading session.

    Articles already in the history are served from it without fetching;
    their progress is kept. New ones run the full pipeline and are inserted
    at the front of the history.

    Returns:
        tuple: (HistoryEntry, created)
    """
    url = clean_url(url)
    if not session.request(url):
        logger.info('Reopening %s from history', url)
        return session.entry, False

    try:
        article = fetch_article(url, fetch=fetch, words_per_minute=words_per_minute)
        entry = session.load(article)
    except Exception:
        session.close()
        raise

    logger.info('Added %s to history (%d words)', url, entry.word_count)
    return entry, True
