from flask import Blueprint, request, jsonify

from reading_tracker.errors import MissingParameterError
from reading_tracker.services.progress import Geometry, compute_progress

bp = Blueprint('progress', __name__, url_prefix='/api')


@bp.route('/progress', methods=['POST'])
def calculate_progress():
    """Compute a completion percentage from scroll geometry. Stores nothing.

    Accepts: { elementTop, elementHeight, viewportHeight, scrollOffset }
    Returns: { progress }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'Request body is required'}), 400

    try:
        geometry = Geometry.from_dict(data)
    except KeyError as e:
        raise MissingParameterError(e.args[0])
    except (TypeError, ValueError):
        return jsonify({'error': 'Geometry values must be numbers'}), 400

    return jsonify({'progress': compute_progress(
        geometry.element_top,
        geometry.element_height,
        geometry.viewport_height,
        geometry.scroll_offset,
    )})
