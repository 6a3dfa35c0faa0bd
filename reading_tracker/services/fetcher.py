"""Static page retrieval with a 2-layer fallback chain.

Layer 1: requests: plain HTTP GET with browser-like headers
Layer 2: cloudscraper: Cloudflare challenge bypass, only if installed

Neither layer executes the page's own JavaScript; what comes back is the
raw HTML the server sends. Every failure surfaces as a FetchError.
"""

import logging
from urllib.parse import urlparse, parse_qs, unquote

import requests

from reading_tracker.errors import FetchError

logger = logging.getLogger(__name__)

# --- Graceful optional import ---

try:
    import cloudscraper as _cloudscraper_mod
    CLOUDSCRAPER_AVAILABLE = True
except ImportError:
    CLOUDSCRAPER_AVAILABLE = False

DEFAULT_TIMEOUT = 15

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) '
    'AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/120.0.0.0 Safari/537.36'
)


def _build_headers(user_agent=USER_AGENT):
    return {
        'User-Agent': user_agent,
        'Accept': (
            'text/html,application/xhtml+xml,application/xml;'
            'q=0.9,image/webp,*/*;q=0.8'
        ),
        'Accept-Language': 'en-US,en;q=0.9',
    }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def clean_url(url: str) -> str:
    """Unwrap browser reader-mode URLs to the real HTTP URL inside.

    Edge wraps URLs as: read://https_example.com/?url=<encoded_real_url>
    """
    url = url.strip()
    if url.startswith('read://'):
        parsed = urlparse(url)
        qs = parse_qs(parsed.query)
        if 'url' in qs:
            return unquote(qs['url'][0])
    return url


def _is_cloudflare_challenge(html: str) -> bool:
    """Detect Cloudflare challenge/interstitial pages."""
    indicators = [
        'cf-browser-verification',
        'challenge-platform',
        'Just a moment...',
        'Checking your browser',
        'cf_chl_opt',
    ]
    return any(indicator in html for indicator in indicators)


def fetch_with_cloudscraper(url: str, timeout: int = DEFAULT_TIMEOUT) -> str | None:
    """Fetch HTML using cloudscraper (Cloudflare JS challenge bypass).

    Returns raw HTML string, or None if unavailable or failed.
    """
    if not CLOUDSCRAPER_AVAILABLE:
        return None
    try:
        scraper = _cloudscraper_mod.create_scraper(
            browser={'browser': 'chrome', 'platform': 'windows'},
        )
        response = scraper.get(url, timeout=timeout)
        response.raise_for_status()
        return response.text
    except Exception as e:
        logger.warning('cloudscraper failed for %s: %s', url, e)
        return None


def get_fetcher_capabilities() -> dict:
    """Report which fetch backends are installed."""
    return {'cloudscraper': CLOUDSCRAPER_AVAILABLE}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def fetch_raw_html(url: str, timeout: int = DEFAULT_TIMEOUT, user_agent: str = USER_AGENT) -> str:
    """Fetch the raw HTML of a page.

    Chain: requests → cloudscraper (when layer 1 is blocked or fails)

    Raises:
        FetchError: the URL is not http(s) or every layer failed
    """
    url = clean_url(url)
    scheme = urlparse(url).scheme
    if scheme not in ('http', 'https'):
        raise FetchError(url, f'Unsupported URL scheme: {scheme or "none"}')

    error_detail = None

    # --- Layer 1: requests ---
    try:
        response = requests.get(url, headers=_build_headers(user_agent), timeout=timeout)
        raw_html = response.text

        if _is_cloudflare_challenge(raw_html):
            logger.info('Cloudflare challenge for %s, escalating', url)
            error_detail = 'Blocked by Cloudflare challenge'
        elif response.status_code >= 400:
            logger.info('HTTP %d for %s, escalating', response.status_code, url)
            error_detail = f'HTTP {response.status_code}'
        else:
            return raw_html
    except requests.RequestException as e:
        logger.info('requests failed for %s: %s, escalating', url, e)
        error_detail = str(e)

    # --- Layer 2: cloudscraper ---
    if CLOUDSCRAPER_AVAILABLE:
        raw_html = fetch_with_cloudscraper(url, timeout=timeout)
        if raw_html is not None:
            return raw_html

    logger.warning('All fetch layers failed for %s: %s', url, error_detail)
    raise FetchError(url, error_detail)
