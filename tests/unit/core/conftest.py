"""Shared fixtures for core unit tests"""

import pytest
from markdown_it import MarkdownIt

from mdsite.core.convert import ContentConverter
from mdsite.core.models import RawContentItem
from mdsite.core.pipeline import Pipeline
from mdsite.core.schema import ContentDefinition
from mdsite.core.utils.slug import path_slug


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

## Heading 2

- item one
- item two

### Sub `heading`

```python
print("hello")
```
"""

DEFINITIONS = [
    {
        "id": "author",
        "paths": ["authors"],
        "properties": {"name": {"type": "string"}, "age": {"type": "int", "required": False}},
        "queries": {
            "posts": {
                "contentType": "guide",
                "filter": {"key": "authors", "operator": "contains", "value": "{{id}}"},
            },
        },
    },
    {
        "id": "category",
        "paths": ["categories"],
        "properties": {"title": {"type": "string"}, "order": {"type": "int"}},
        "relations": {"parent": {"references": "category", "type": "one"}},
        "queries": {
            "guides": {
                "contentType": "guide",
                "filter": {"key": "category", "operator": "equals", "value": "{{id}}"},
            },
        },
    },
    {
        "id": "guide",
        "paths": ["guides"],
        "properties": {
            "title": {"type": "string"},
            "order": {"type": "int", "required": False},
        },
        "relations": {
            "category": {"references": "category", "type": "one"},
            "authors": {"references": "author", "type": "many", "order": {"key": "name"}},
        },
        "local": {
            "prev": {"references": "guide", "foreignKey": "$prev", "order": {"key": "order"}},
            "next": {"references": "guide", "foreignKey": "$next", "order": {"key": "order"}},
            "related": {"references": "guide", "foreignKey": "$same.authors"},
        },
    },
    {"id": "page", "default": True},
]


@pytest.fixture(name="parser")
def parser_fixture():
    return MarkdownIt("gfm-like", options_update={"linkify": False})


@pytest.fixture(name="sample_tokens")
def sample_tokens_fixture(parser):
    return parser.parse(SAMPLE_MD)


@pytest.fixture(name="definitions")
def definitions_fixture():
    return [ContentDefinition.model_validate(d) for d in DEFINITIONS]


@pytest.fixture(name="converter")
def converter_fixture(definitions):
    return ContentConverter(definitions)


@pytest.fixture(name="make_content")
def make_content_fixture(converter):
    """Build a Content from an origin path and front matter via the converter."""
    def _make(origin: str, front_matter: dict = None, body: str = "", last_modified: float = 0.0):
        raw = RawContentItem(
            origin_path=origin,
            slug=path_slug(origin),
            front_matter=front_matter or {},
            body=body,
            last_modified=last_modified,
        )
        return converter.convert(raw)
    return _make


@pytest.fixture(name="authors")
def authors_fixture(make_content):
    """Ten authors, 'Author #1'..'Author #10', in load order."""
    return [make_content(f"authors/author-{i}", {"name": f"Author #{i}"}) for i in range(1, 11)]


@pytest.fixture(name="categories")
def categories_fixture(make_content):
    """Ten categories with order 1..10."""
    return [
        make_content(f"categories/category-{i}", {"title": f"Category #{i}", "order": i})
        for i in range(1, 11)
    ]


@pytest.fixture(name="pipeline")
def pipeline_fixture():
    return Pipeline.model_validate({
        "id": "html",
        "engine": {"id": "json"},
        "output": {"path": "{{slug}}", "file": "index", "ext": "json"},
    })
