def register_blueprints(app):
    from reading_tracker.api.fetch import bp as fetch_bp
    from reading_tracker.api.history import bp as history_bp
    from reading_tracker.api.progress import bp as progress_bp

    app.register_blueprint(fetch_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(progress_bp)
