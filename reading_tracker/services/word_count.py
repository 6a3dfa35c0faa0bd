import math

WORDS_PER_MINUTE = 200


def count_words(text: str) -> int:
    """Count whitespace-separated words in plain text."""
    return len(text.split())


def reading_time_minutes(word_count: int, wpm: int = WORDS_PER_MINUTE) -> int:
    """Estimated reading time in minutes, rounded up. No minimum."""
    return math.ceil(word_count / wpm)
