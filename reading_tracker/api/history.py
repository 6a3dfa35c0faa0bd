import logging
import math

from flask import Blueprint, current_app, request, jsonify

from reading_tracker.errors import MissingParameterError, TrackerError
from reading_tracker.extensions import history
from reading_tracker.services.fetcher import clean_url
from reading_tracker.services.progress import Geometry, compute_progress
from reading_tracker.services.reader import open_article
from reading_tracker.api.fetch import configured_fetch

logger = logging.getLogger(__name__)

bp = Blueprint('history', __name__, url_prefix='/api/history')


def _require_url(data):
    value = data.get('url')
    url = clean_url(value) if isinstance(value, str) else ''
    if not url:
        raise MissingParameterError('url')
    return url


@bp.route('', methods=['GET'])
def list_history():
    """List history entries (NO content). Most recently added first."""
    entries = history.store.entries()
    return jsonify({'entries': [e.to_dict(include_content=False) for e in entries]})


@bp.route('/entry', methods=['GET'])
def get_history_entry():
    """Get a single history entry WITH content."""
    url = _require_url(request.args)
    entry = history.store.get(url)
    if not entry:
        return jsonify({'error': 'History entry not found'}), 404

    return jsonify({'entry': entry.to_dict()})


@bp.route('', methods=['POST'])
def open_history_entry():
    """Open a URL for reading.

    A URL already in the history is returned as stored (200), without a
    fetch and without touching its progress. Otherwise the page is fetched,
    extracted and added to the front of the history (201).
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'Request body is required'}), 400

    url = _require_url(data)
    try:
        entry, created = open_article(
            history.session,
            url,
            fetch=configured_fetch,
            words_per_minute=current_app.config['WORDS_PER_MINUTE'],
        )
    except TrackerError:
        raise
    except Exception:
        logger.exception('Unexpected failure opening %s', url)
        return jsonify({'error': 'Failed to fetch blog content'}), 500
    return jsonify({'entry': entry.to_dict()}), 201 if created else 200


@bp.route('/progress', methods=['PATCH'])
def update_progress():
    """Record reading progress for a history entry.

    Accepts either { url, progress } or the raw scroll geometry
    { url, elementTop, elementHeight, viewportHeight, scrollOffset }.
    Only a higher value than the stored one is kept.

    Handles sendBeacon: Content-Type may be text/plain, so parse JSON
    from request.data if needed.
    """
    if request.content_type and 'json' in request.content_type:
        data = request.get_json(silent=True)
    else:
        data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'Request body is required'}), 400

    url = _require_url(data)
    session = history.session

    if 'progress' in data:
        value = _parse_number(data['progress'])
        if value is None:
            return jsonify({'error': 'progress must be a number'}), 400
    else:
        try:
            geometry = Geometry.from_dict(data)
        except KeyError as e:
            raise MissingParameterError(e.args[0])
        except (TypeError, ValueError):
            return jsonify({'error': 'Geometry values must be numbers'}), 400

        sampled = session.sample(url, geometry)
        if sampled is not None:
            current, progress = sampled
            return jsonify({'progress': progress, 'current': current})

        value = compute_progress(
            geometry.element_top,
            geometry.element_height,
            geometry.viewport_height,
            geometry.scroll_offset,
        )

    entry = history.store.record_progress(url, value)
    return jsonify({'progress': entry.progress if entry else None})


@bp.route('/close', methods=['POST'])
def close_session():
    """Close the active reading session, saving its progress."""
    history.session.close()
    return jsonify({'ok': True})


@bp.route('/clear', methods=['DELETE'])
def clear_history():
    """Clear ALL history. Requires ?confirm=true."""
    if request.args.get('confirm', '').lower() != 'true':
        return jsonify({'error': 'Clearing history requires confirm=true'}), 400

    history.session.close()
    history.store.clear()
    return jsonify({'ok': True})


@bp.route('', methods=['DELETE'])
def delete_history_entry():
    """Remove a single history entry. Absent URLs are a no-op."""
    url = _require_url(request.args)
    history.session.close(url)
    removed = history.store.remove(url)
    return jsonify({'ok': True, 'removed': removed})


def _parse_number(value):
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number
