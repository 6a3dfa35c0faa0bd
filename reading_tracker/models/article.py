from dataclasses import dataclass

DEFAULT_TITLE = 'Untitled Blog'


@dataclass(frozen=True)
class ArticleRecord:
    title: str = DEFAULT_TITLE
    content: str = ''
    word_count: int = 0
    reading_time: int = 0

    def to_dict(self):
        return {
            'title': self.title,
            'content': self.content,
            'wordCount': self.word_count,
            'readingTime': self.reading_time,
        }
