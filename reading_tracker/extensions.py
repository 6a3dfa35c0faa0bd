from flask import current_app

from reading_tracker.services.history_store import HistoryStore, JsonHistoryFile
from reading_tracker.services.progress import ReadingSession


class ReadingHistory:
    """Flask extension owning the HistoryStore and the active ReadingSession.

    Follows the init_app pattern so the blueprints can import a module-level
    instance and resolve the per-app state at request time.
    """

    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        backend = JsonHistoryFile(app.config['HISTORY_PATH'])
        store = HistoryStore.open(
            backend, max_entries=app.config.get('HISTORY_MAX_ENTRIES', 0)
        )
        if store.load_error is not None:
            app.logger.error('History load failed, continuing with empty history')
        app.extensions['reading_history'] = {
            'store': store,
            'session': ReadingSession(store),
        }

    @property
    def store(self) -> HistoryStore:
        return current_app.extensions['reading_history']['store']

    @property
    def session(self) -> ReadingSession:
        return current_app.extensions['reading_history']['session']


history = ReadingHistory()
