from dataclasses import dataclass, field
from datetime import datetime, timezone

from reading_tracker.models.article import ArticleRecord


def utcnow():
    return datetime.now(timezone.utc)


@dataclass
class HistoryEntry:
    url: str
    title: str
    content: str
    word_count: int
    reading_time: int
    progress: float = 0.0
    last_read: datetime = field(default_factory=utcnow)

    @classmethod
    def from_article(cls, url, article: ArticleRecord):
        return cls(
            url=url,
            title=article.title,
            content=article.content,
            word_count=article.word_count,
            reading_time=article.reading_time,
        )

    @classmethod
    def from_dict(cls, data):
        """Build an entry from its persisted form.

        Raises KeyError / TypeError / ValueError on a malformed record.
        """
        last_read = datetime.fromisoformat(data['lastRead'])
        if last_read.tzinfo is None:
            last_read = last_read.replace(tzinfo=timezone.utc)
        progress = float(data['progress'])
        # NaN fails this comparison too
        if not 0.0 <= progress <= 100.0:
            raise ValueError(f'progress out of range: {progress!r}')
        return cls(
            url=str(data['url']),
            title=str(data['title']),
            content=str(data['content']),
            word_count=int(data['wordCount']),
            reading_time=int(data['readingTime']),
            progress=progress,
            last_read=last_read,
        )

    def to_dict(self, include_content=True):
        data = {
            'url': self.url,
            'title': self.title,
            'content': self.content,
            'wordCount': self.word_count,
            'readingTime': self.reading_time,
            'progress': self.progress,
            'lastRead': self.last_read.isoformat(),
        }
        if not include_content:
            del data['content']
        return data

    def to_article(self):
        return ArticleRecord(
            title=self.title,
            content=self.content,
            word_count=self.word_count,
            reading_time=self.reading_time,
        )
