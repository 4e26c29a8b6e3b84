"""Unit tests for core/markdown.py"""

from mdsite.core.markdown import MarkdownRenderer, outline, reading_time


def test_outline_collects_h2_and_h3(sample_tokens):
    assert outline(sample_tokens) == [
        {"level": 2, "text": "Heading 2", "fragment": "heading-2"},
        {"level": 3, "text": "Sub heading", "fragment": "sub-heading"},
    ]


def test_reading_time(parser):
    assert reading_time(parser.parse("")) == 0
    assert reading_time(parser.parse("word " * 10)) == 1
    assert reading_time(parser.parse("word " * 500)) == 3


def test_render_returns_html_outline_and_reading_time():
    rendered = MarkdownRenderer().render("## Title\n\nSome **bold** text.\n")
    assert "<strong>bold</strong>" in rendered["html"]
    assert rendered["outline"][0]["text"] == "Title"
    assert rendered["readingTime"] == 1


def test_renderer_caches_per_content(make_content):
    renderer = MarkdownRenderer()
    content = make_content("guides/intro", {"title": "x"}, body="Hello")
    first = renderer(content)
    assert renderer(content) is first
    assert first["html"] == "<p>Hello</p>\n"
