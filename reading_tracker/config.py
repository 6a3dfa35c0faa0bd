import os
from dotenv import load_dotenv

from reading_tracker.services.fetcher import USER_AGENT
from reading_tracker.services.history_store import DEFAULT_HISTORY_PATH

load_dotenv()


class Config:
    HISTORY_PATH = os.environ.get('HISTORY_PATH', str(DEFAULT_HISTORY_PATH))
    HISTORY_MAX_ENTRIES = int(os.environ.get('HISTORY_MAX_ENTRIES', '0'))
    WORDS_PER_MINUTE = 200

    # Fetch settings
    FETCH_TIMEOUT = int(os.environ.get('FETCH_TIMEOUT', '15'))
    FETCH_USER_AGENT = USER_AGENT


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    HISTORY_MAX_ENTRIES = 0
