"""Tests for the article extraction heuristic."""

import math

import pytest
from bs4 import BeautifulSoup

from reading_tracker.errors import ExtractionError
from reading_tracker.models.article import ArticleRecord
from reading_tracker.services.extractor import (
    CONTENT_RULES,
    ContentRule,
    extract,
    serialize_blocks,
)


def _words_html(word_count, container='article'):
    words = ' '.join(['word'] * word_count)
    return f'<html><body><{container}><p>{words}</p></{container}></body></html>'


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------

class TestEndToEnd:
    def test_minimal_article(self):
        record = extract('<title>T</title><article>Hello world. This is a test.</article>')
        assert record == ArticleRecord(
            title='T',
            content='Hello world. This is a test.',
            word_count=6,
            reading_time=1,
        )

    def test_accepts_bytes(self):
        record = extract(b'<title>Bytes</title><article><p>Hi there</p></article>')
        assert record.title == 'Bytes'
        assert record.content == 'Hi there'

    def test_to_dict_uses_wire_names(self):
        record = extract('<title>T</title><article>Hello world.</article>')
        assert record.to_dict() == {
            'title': 'T',
            'content': 'Hello world.',
            'wordCount': 2,
            'readingTime': 1,
        }


# ---------------------------------------------------------------------------
# Title resolution
# ---------------------------------------------------------------------------

class TestTitle:
    def test_title_tag_wins_over_h1(self):
        html = '<html><head><title>My Title</title></head><body><h1>Heading</h1></body></html>'
        assert extract(html).title == 'My Title'

    def test_empty_title_falls_back_to_h1(self):
        html = '<html><head><title>  </title></head><body><h1>Heading One</h1><p>x</p></body></html>'
        assert extract(html).title == 'Heading One'

    def test_missing_title_falls_back_to_first_h1(self):
        html = '<body><h1>First</h1><h1>Second</h1></body>'
        assert extract(html).title == 'First'

    def test_empty_title_and_h1_use_default(self):
        html = '<html><head><title></title></head><body><h1></h1><p>Text</p></body></html>'
        assert extract(html).title == 'Untitled Blog'

    def test_title_whitespace_is_collapsed(self):
        html = '<title>\n  My   Spaced\tTitle \n</title>'
        assert extract(html).title == 'My Spaced Title'

    def test_h1_inside_header_is_stripped_first(self):
        html = (
            '<body><header><h1>Site Name</h1></header>'
            '<article><h1>Post Heading</h1><p>Body</p></article></body>'
        )
        assert extract(html).title == 'Post Heading'


# ---------------------------------------------------------------------------
# Content selection
# ---------------------------------------------------------------------------

class TestContentRules:
    def test_rule_order(self):
        assert [rule.name for rule in CONTENT_RULES] == [
            'article', 'main', 'post-content', 'article-content',
            'content-id', 'content-class',
        ]

    def test_article_preferred_over_main(self):
        html = '<main><p>Main text</p><article><p>Article text</p></article></main>'
        assert extract(html).content == 'Article text'

    def test_first_match_is_not_merged_with_later_rules(self):
        html = (
            '<body><main><p>Main body</p></main>'
            '<div class="content"><p>Other block</p></div></body>'
        )
        record = extract(html)
        assert record.content == 'Main body'
        assert 'Other' not in record.content

    def test_post_content_class(self):
        html = '<body><div class="post-content"><p>Post body</p></div><p>Outside</p></body>'
        assert extract(html).content == 'Post body'

    def test_content_id(self):
        html = '<body><div id="content"><p>Id body</p></div><p>Outside</p></body>'
        assert extract(html).content == 'Id body'

    def test_all_nodes_of_winning_rule_are_used(self):
        html = '<article><p>One</p></article><article><p>Two</p></article>'
        assert extract(html).content == 'One\nTwo'

    def test_nested_matches_are_not_duplicated(self):
        html = '<div class="content"><div class="content"><p>Once</p></div></div>'
        record = extract(html)
        assert record.content == 'Once'
        assert record.word_count == 1

    def test_custom_rules(self):
        html = '<body><article><p>Article</p></article><aside class="notes"><p>Notes</p></aside></body>'
        record = extract(html, rules=(ContentRule('notes', '.notes'),))
        assert record.content == 'Notes'

    def test_match_returns_outermost_in_document_order(self):
        soup = BeautifulSoup(
            '<div class="content" id="a"><div class="content" id="b"></div></div>'
            '<div class="content" id="c"></div>',
            'html.parser',
        )
        nodes = ContentRule('content-class', '.content').match(soup)
        assert [node['id'] for node in nodes] == ['a', 'c']


class TestBodyFallback:
    def test_no_selector_match_uses_body(self):
        html = '<html><body><div><p>First</p><p>Second</p></div></body></html>'
        assert extract(html).content == 'First\nSecond'

    def test_no_body_element_uses_document_without_head(self):
        record = extract('<title>Only Title</title><p>Loose text</p>')
        assert record.title == 'Only Title'
        assert record.content == 'Loose text'

    def test_empty_matching_container_falls_back_to_body(self):
        html = '<body><article><img src="x.png"></article><p>Real text</p></body>'
        assert extract(html).content == 'Real text'

    @pytest.mark.parametrize('html', [
        '<div><span>plain</span></div>',
        '<body><section><p>plain</p></section></body>',
        '<table><tr><td>plain</td></tr></table>',
    ])
    def test_never_raises_without_known_selectors(self, html):
        assert extract(html).content == 'plain'


# ---------------------------------------------------------------------------
# Noise stripping
# ---------------------------------------------------------------------------

class TestNoise:
    def test_noise_tags_are_removed(self):
        html = (
            '<body><script>var x = 1;</script><style>p { color: red }</style>'
            '<nav>Menu</nav><header>Masthead</header><footer>Foot</footer>'
            '<noscript>Enable JS</noscript><iframe>frame</iframe><ad>Buy now</ad>'
            '<p>Keep</p></body>'
        )
        assert extract(html).content == 'Keep'

    def test_nested_noise_is_removed_once(self):
        html = '<body><header><nav><ul><li>Menu</li></ul></nav></header><p>Body</p></body>'
        assert extract(html).content == 'Body'

    def test_advertisement_class_and_id(self):
        html = (
            '<article><p>Story</p>'
            '<div class="ad banner">Buy</div>'
            '<div id="Advertisement">Sponsored</div></article>'
        )
        assert extract(html).content == 'Story'

    def test_ad_substring_is_not_advertisement(self):
        html = '<article><p class="shadow">Kept</p><p class="header-ad-free">Also kept</p></article>'
        assert extract(html).content == 'Kept\nAlso kept'

    def test_noise_inside_article_is_removed(self):
        html = '<article><p>Story</p><script>track()</script><nav>Related</nav></article>'
        assert extract(html).content == 'Story'


# ---------------------------------------------------------------------------
# Block-aware serialization
# ---------------------------------------------------------------------------

class TestParagraphs:
    def test_paragraphs_become_lines(self):
        html = '<article><p>First   paragraph\n spans lines.</p><p>Second</p></article>'
        assert extract(html).content == 'First paragraph spans lines.\nSecond'

    def test_br_breaks_lines(self):
        assert extract('<article>Line one<br>Line two</article>').content == 'Line one\nLine two'

    def test_inline_elements_stay_on_one_line(self):
        html = '<article><p>Hello <b>bold</b> and <a href="#">link</a>.</p></article>'
        assert extract(html).content == 'Hello bold and link.'

    def test_list_items_and_headings(self):
        html = '<article><h2>Steps</h2><ul><li>A</li><li>B</li></ul></article>'
        assert extract(html).content == 'Steps\nA\nB'

    def test_pre_keeps_its_line_breaks(self):
        html = '<article><p>Intro</p><pre>line one\nline   two\n\nline three</pre></article>'
        assert extract(html).content.split('\n') == [
            'Intro', 'line one', 'line two', 'line three',
        ]

    def test_pre_with_inline_markup_and_br(self):
        html = '<article><pre><code>def f():\n    return 1</code><br>done</pre></article>'
        assert extract(html).content == 'def f():\nreturn 1\ndone'

    def test_comments_are_ignored(self):
        assert extract('<article><!-- hidden --><p>Shown</p></article>').content == 'Shown'

    def test_split_on_newline_has_no_empty_chunks(self):
        html = '<article><p>One</p>\n\n<div>\n</div><p>Two</p>   <p> </p></article>'
        paragraphs = extract(html).content.split('\n')
        assert paragraphs == ['One', 'Two']

    def test_serialize_blocks_directly(self):
        soup = BeautifulSoup('<div><p>a  b</p>c<div>d</div></div>', 'html.parser')
        assert serialize_blocks([soup.div]) == ['a b', 'c', 'd']


# ---------------------------------------------------------------------------
# Word count and reading time
# ---------------------------------------------------------------------------

class TestCounts:
    @pytest.mark.parametrize('html', [
        '',
        '<html><body></body></html>',
        '<html><head><title></title></head><body><script>x()</script></body></html>',
    ])
    def test_degenerate_record(self, html):
        assert extract(html) == ArticleRecord(
            title='Untitled Blog', content='', word_count=0, reading_time=0,
        )

    @pytest.mark.parametrize('words,minutes', [
        (1, 1), (199, 1), (200, 1), (201, 2), (400, 2), (401, 3),
    ])
    def test_reading_time_rounds_up(self, words, minutes):
        record = extract(_words_html(words))
        assert record.word_count == words
        assert record.reading_time == minutes

    @pytest.mark.parametrize('words', [0, 7, 250, 1000])
    def test_reading_time_formula(self, words):
        record = extract(_words_html(words, container='main'))
        assert record.reading_time == math.ceil(record.word_count / 200)

    def test_custom_words_per_minute(self):
        record = extract(_words_html(150), words_per_minute=100)
        assert record.reading_time == 2


class TestErrors:
    @pytest.mark.parametrize('value', [None, 42, ['<p>x</p>']])
    def test_non_markup_raises(self, value):
        with pytest.raises(ExtractionError):
            extract(value)
