import pytest

from reading_tracker import create_app
from reading_tracker.config import TestConfig
from reading_tracker.errors import PersistenceError


ARTICLE_HTML = (
    '<html><head><title>Test Article</title></head><body>'
    '<nav>Home | About</nav>'
    '<article><p>First paragraph of the post.</p>'
    '<p>Second paragraph, a little longer than the first one.</p></article>'
    '<footer>Copyright</footer>'
    '</body></html>'
)


class MemoryBackend:
    """In-memory persistence collaborator that records every save."""

    def __init__(self, entries=None, fail_load=False, fail_save=False):
        self.entries = entries
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.saves = []

    def load_history(self):
        if self.fail_load:
            raise PersistenceError('cannot read history')
        return None if self.entries is None else list(self.entries)

    def save_history(self, entries):
        if self.fail_save:
            raise PersistenceError('disk full')
        self.saves.append([entry.to_dict() for entry in entries])


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def history_path(tmp_path):
    return tmp_path / 'history.json'


@pytest.fixture
def app(history_path):
    """Create a test Flask application backed by a temporary history file."""
    application = create_app(TestConfig, HISTORY_PATH=str(history_path))
    yield application


@pytest.fixture
def client(app):
    with app.test_client() as test_client:
        yield test_client
