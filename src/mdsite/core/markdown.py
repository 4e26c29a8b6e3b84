"""Markdown body rendering: HTML, heading outline and reading time"""

import logging
from math import ceil
from threading import Lock
from typing import Any

from markdown_it import MarkdownIt

from mdsite.core.models import Content
from mdsite.core.utils.slug import slugify
from mdsite.core.utils.tokens import count_words, heading_level, inline_text


logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 238
OUTLINE_LEVELS = (2, 3)


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def outline(tokens: list, levels: tuple[int, ...] = OUTLINE_LEVELS) -> list[dict[str, Any]]:
    """Flat list of {level, text, fragment} for headings at the given levels."""
    entries = []
    for i, tok in enumerate(tokens):
        level = heading_level(tok)
        if level not in levels or i + 1 >= len(tokens):
            continue
        text = inline_text(tokens[i + 1])
        entries.append({"level": level, "text": text, "fragment": slugify(text)})
    return entries


def reading_time(tokens: list, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Whole minutes to read; 0 for an empty body."""
    words = count_words(tokens)
    return ceil(words / words_per_minute) if words else 0


class MarkdownRenderer:
    """Renders content bodies once per build; results are reused across scopes.

    Instances are callable so they can be passed as a ContextAssembler body renderer.
    """

    def __init__(self, preset: str = "gfm-like"):
        self.md = _make_parser(preset)
        self._rendered: dict[str, dict[str, Any]] = {}
        self._lock = Lock()

    def render(self, markdown: str) -> dict[str, Any]:
        tokens = self.md.parse(markdown)
        return {
            "html": self.md.renderer.render(tokens, self.md.options, {}),
            "outline": outline(tokens),
            "readingTime": reading_time(tokens),
        }

    def __call__(self, content: Content) -> dict[str, Any]:
        key = f"{content.definition_id}:{content.slug}"
        with self._lock:
            cached = self._rendered.get(key)
        if cached is not None:
            return cached
        rendered = self.render(content.body)
        logger.debug("Rendered body of %s (%d outline entries)", content.slug, len(rendered["outline"]))
        with self._lock:
            self._rendered[key] = rendered
        return rendered
