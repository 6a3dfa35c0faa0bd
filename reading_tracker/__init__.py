import logging
import os
import sys

from flask import Flask, jsonify
from .extensions import history
from .config import DevConfig, ProdConfig
from .errors import TrackerError


def _configure_logging(app):
    """Set up structured logging for production."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    ))
    level = logging.INFO if not app.debug else logging.DEBUG
    # app.logger is the 'reading_tracker' logger, so service modules
    # (reading_tracker.services.*) propagate into this handler
    app.logger.setLevel(level)
    app.logger.addHandler(handler)


def _register_error_handlers(app):
    @app.errorhandler(TrackerError)
    def handle_tracker_error(e):
        app.logger.warning('%s: %s', type(e).__name__, e.detail)
        return jsonify({'error': e.message}), e.status_code


def create_app(config=None, **overrides):
    app = Flask(__name__, static_folder=None)

    if config is None:
        config = ProdConfig if os.environ.get('FLASK_ENV') == 'production' else DevConfig
    app.config.from_object(config)
    app.config.update(overrides)

    _configure_logging(app)

    history.init_app(app)

    # Enable CORS for the browser front end
    from flask_cors import CORS
    CORS(app)

    # Register blueprints
    from .api import register_blueprints
    register_blueprints(app)

    _register_error_handlers(app)

    # Health check endpoint
    @app.route('/healthz')
    def health_check():
        store = history.store
        body = {'status': 'healthy', 'history_entries': len(store)}
        if store.load_error is not None:
            body['history_load_error'] = str(store.load_error)
        return jsonify(body), 200

    return app
