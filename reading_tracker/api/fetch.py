import logging

from flask import Blueprint, current_app, request, jsonify

from reading_tracker.errors import MissingParameterError, TrackerError
from reading_tracker.services import fetcher
from reading_tracker.services.reader import fetch_article

logger = logging.getLogger(__name__)

bp = Blueprint('fetch', __name__, url_prefix='/api')


@bp.route('/fetch-blog', methods=['GET'])
def fetch_blog():
    """Fetch a page and return its extracted article.

    Query params:
        url: page to fetch
    Returns: { title, content, wordCount, readingTime }
    """
    url = request.args.get('url', '').strip()
    if not url:
        raise MissingParameterError('url')

    try:
        article = fetch_article(
            url,
            fetch=configured_fetch,
            words_per_minute=current_app.config['WORDS_PER_MINUTE'],
        )
    except TrackerError:
        raise
    except Exception:
        logger.exception('Unexpected failure fetching %s', url)
        return jsonify({'error': 'Failed to fetch blog content'}), 500

    return jsonify(article.to_dict())


@bp.route('/fetch/capabilities', methods=['GET'])
def fetch_capabilities():
    """Report which fetch backends are available."""
    return jsonify(fetcher.get_fetcher_capabilities())


def configured_fetch(url):
    return fetcher.fetch_raw_html(
        url,
        timeout=current_app.config['FETCH_TIMEOUT'],
        user_agent=current_app.config['FETCH_USER_AGENT'],
    )
