"""Turn raw page markup into an ArticleRecord.

Steps:
  1. parse with BeautifulSoup
  2. strip noise (scripts, navigation, headers/footers, ads, ...)
  3. resolve the title: <title>, then the first <h1>, then a fixed default
  4. pick the content container with an ordered list of rules, first match
     wins; fall back to the whole body
  5. serialize the container block by block so paragraphs survive as
     '\\n'-separated lines

The rules are plain data (CONTENT_RULES) so they can be tested and extended
without touching the control flow.
"""

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import NavigableString, PreformattedString, Tag

from reading_tracker.errors import ExtractionError
from reading_tracker.models.article import ArticleRecord, DEFAULT_TITLE
from .word_count import count_words, reading_time_minutes, WORDS_PER_MINUTE

logger = logging.getLogger(__name__)

NOISE_TAGS = frozenset([
    'script', 'style', 'nav', 'footer', 'header', 'noscript', 'iframe', 'ad',
])

# class/id tokens that mark an element as advertising
AD_MARKERS = frozenset(['ad', 'ads', 'advert', 'advertisement'])

BLOCK_TAGS = frozenset([
    'address', 'article', 'aside', 'blockquote', 'dd', 'details', 'div',
    'dl', 'dt', 'figcaption', 'figure', 'form', 'h1', 'h2', 'h3', 'h4',
    'h5', 'h6', 'hr', 'li', 'main', 'ol', 'p', 'pre', 'section', 'summary',
    'table', 'tbody', 'td', 'tfoot', 'th', 'thead', 'tr', 'ul',
])

# Never part of the readable text, even when falling back to the whole document
SKIP_TAGS = frozenset(['head', 'title', 'meta', 'link', 'template'])

_WHITESPACE_RE = re.compile(r'\s+')
_FLUSH = object()


@dataclass(frozen=True)
class ContentRule:
    """A named CSS selector for a candidate article container."""

    name: str
    selector: str

    def match(self, soup):
        """Return the outermost nodes matching the selector, in document order."""
        nodes = soup.select(self.selector)
        matched = {id(node) for node in nodes}
        return [
            node for node in nodes
            if not any(id(parent) in matched for parent in node.parents)
        ]


CONTENT_RULES = (
    ContentRule('article', 'article'),
    ContentRule('main', 'main'),
    ContentRule('post-content', '.post-content'),
    ContentRule('article-content', '.article-content'),
    ContentRule('content-id', '#content'),
    ContentRule('content-class', '.content'),
)


def _collapse(text):
    return _WHITESPACE_RE.sub(' ', text).strip()


def _is_advertisement(tag):
    if tag.name in NOISE_TAGS:
        return False
    tokens = set(tag.get('class') or [])
    element_id = tag.get('id')
    if element_id:
        tokens.add(element_id)
    return any(token.lower() in AD_MARKERS for token in tokens)


def _is_noise(tag):
    return tag.name in NOISE_TAGS or _is_advertisement(tag)


def _strip_noise(soup):
    removed = 0
    for tag in soup.find_all(_is_noise):
        # already gone with an ancestor that was removed earlier
        if tag.decomposed:
            continue
        tag.decompose()
        removed += 1
    return removed


def _resolve_title(soup):
    for tag in (soup.find('title'), soup.find('h1')):
        if tag is None:
            continue
        text = _collapse(tag.get_text())
        if text:
            return text
    return DEFAULT_TITLE


def _pre_lines(tag):
    """Lines of a <pre> block. Its own newlines and <br> break lines."""
    parts = []
    for node in tag.descendants:
        if isinstance(node, Tag) and node.name == 'br':
            parts.append('\n')
        elif isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
            parts.append(str(node))
    return [line for line in map(_collapse, ''.join(parts).split('\n')) if line]


def serialize_blocks(roots):
    """Render nodes as text, one line per block-level element.

    Whitespace is collapsed inside each line, never across lines, and empty
    lines are dropped.
    """
    lines = []
    buffer = []

    def flush():
        text = _collapse(''.join(buffer))
        if text:
            lines.append(text)
        buffer.clear()

    for root in roots:
        stack = [root]
        while stack:
            item = stack.pop()
            if item is _FLUSH:
                flush()
            elif isinstance(item, Tag):
                if item.name in SKIP_TAGS:
                    continue
                if item.name == 'br':
                    flush()
                    continue
                if item.name == 'pre':
                    flush()
                    lines.extend(_pre_lines(item))
                    continue
                if item.name in BLOCK_TAGS:
                    flush()
                    stack.append(_FLUSH)
                stack.extend(reversed(item.contents))
            elif isinstance(item, NavigableString) and not isinstance(item, PreformattedString):
                buffer.append(str(item))
        flush()

    return lines


def _resolve_content(soup, rules):
    for rule in rules:
        nodes = rule.match(soup)
        if not nodes:
            continue
        lines = serialize_blocks(nodes)
        if lines:
            logger.debug('Content matched rule %r (%d nodes)', rule.name, len(nodes))
            return '\n'.join(lines)
        logger.debug('Rule %r matched but yielded no text, using body', rule.name)
        break

    body = soup.body or soup
    return '\n'.join(serialize_blocks([body]))


def extract(raw_html, rules=CONTENT_RULES, words_per_minute=WORDS_PER_MINUTE) -> ArticleRecord:
    """Extract an ArticleRecord from raw HTML.

    Args:
        raw_html: page markup, as str or bytes
        rules: ordered content rules, first match wins
        words_per_minute: reading speed used for readingTime

    Raises:
        ExtractionError: input is not markup at all
    """
    if not isinstance(raw_html, (str, bytes)):
        raise ExtractionError(f'Expected markup, got {type(raw_html).__name__}')

    try:
        soup = BeautifulSoup(raw_html, 'html.parser')
    except (ParserRejectedMarkup, TypeError) as e:
        raise ExtractionError(f'Could not parse markup: {e}') from e

    _strip_noise(soup)

    title = _resolve_title(soup)
    content = _resolve_content(soup, rules)
    word_count = count_words(content)

    return ArticleRecord(
        title=title,
        content=content,
        word_count=word_count,
        reading_time=reading_time_minutes(word_count, words_per_minute),
    )
