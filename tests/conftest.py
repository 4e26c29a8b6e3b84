"""Root test configuration: shared site tree fixture"""

from pathlib import Path

import pytest


AUTHOR_TYPE = """\
id: author
paths: [authors]
properties:
  name: {type: string}
  age: {type: int, required: false}
queries:
  posts:
    contentType: post
    filter: {key: authors, operator: contains, value: "{{id}}"}
    orderBy: [{key: publication, direction: desc}]
"""

CATEGORY_TYPE = """\
id: category
paths: [categories]
properties:
  title: {type: string}
  order: {type: int}
relations:
  parent: {references: category, type: one}
queries:
  posts:
    contentType: post
    filter: {key: category, operator: equals, value: "{{id}}"}
"""

POST_TYPE = """\
id: post
paths: [posts]
properties:
  title: {type: string}
  publication: {type: date, dateFormat: "%Y-%m-%d"}
  featured: {type: bool, required: false, default: false}
relations:
  authors: {references: author, type: many, order: {key: name}}
  category: {references: category, type: one}
local:
  prev: {references: post, foreignKey: $prev, order: {key: publication}}
  next: {references: post, foreignKey: $next, order: {key: publication}}
"""

PAGE_TYPE = """\
id: page
default: true
properties:
  title: {type: string, required: false}
"""

HTML_PIPELINE = """\
id: html
contentTypes:
  exclude: [author]
  filterRules:
    post: {key: publication, operator: lessThanOrEquals, value: "{{date.now}}"}
iterators:
  post.pagination:
    contentType: post
    limit: 2
    orderBy: [{key: publication, direction: desc}]
engine:
  id: jinja
output:
  path: "{{slug}}"
  file: index
  ext: html
"""

API_PIPELINE = """\
id: api
definesType: true
contentTypes:
  include: [post]
queries:
  latest:
    contentType: post
    limit: 1
    orderBy: [{key: publication, direction: desc}]
engine:
  id: json
output:
  path: "api/{{slug}}"
  file: index
  ext: json
"""

CONTENTS = {
    "index.md": "---\ntitle: Home\n---\n\n# Welcome\n",
    "authors/ada.md": "---\nname: Ada\nage: 36\n---\n\nAbout Ada.\n",
    "authors/grace.md": "---\nname: Grace\n---\n\nAbout Grace.\n",
    "categories/guides.md": "---\ntitle: Guides\norder: 1\n---\n",
    "posts/first.md": (
        "---\ntitle: First\npublication: '2024-01-01'\nauthors: [grace, ada]\n"
        "category: guides\ntemplate: post\n---\n\n## Intro\n\nHello world.\n"
    ),
    "posts/second.md": (
        "---\ntitle: Second\npublication: '2024-02-01'\nauthors: [ada]\n"
        "category: guides\n---\n\nSecond post.\n"
    ),
    "posts/third.md": "---\ntitle: Third\npublication: '2024-03-01'\n---\n\nThird post.\n",
    "posts/future.md": "---\ntitle: Future\npublication: '2999-01-01'\n---\n\nNot yet.\n",
    "blog/{{post.pagination}}.md": "---\ntitle: Page {{number}} of {{total}}\n---\n",
}

TEMPLATES = {
    "page.html": (
        "<h1>{{ page.title }}</h1>"
        "{% if iterator %}{% for p in iterator['items'] %}<a>{{ p.title }}</a>{% endfor %}{% endif %}"
    ),
    "post.html": "<h1>{{ page.title }}</h1><time>{{ page.publication | date }}</time>{{ page.contents.html | safe }}",
    "category.html": "<h1>{{ page.title }}</h1>",
}


def write_tree(root: Path, files: dict[str, str]) -> None:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture(name="site_dir")
def site_dir_fixture(tmp_path):
    """A small blog: authors, a category, posts, a paginated index and two pipelines."""
    root = tmp_path / "site"
    write_tree(root / "types", {
        "author.yml": AUTHOR_TYPE,
        "category.yml": CATEGORY_TYPE,
        "post.yml": POST_TYPE,
        "page.yml": PAGE_TYPE,
    })
    write_tree(root / "pipelines", {"html.yml": HTML_PIPELINE, "api.yml": API_PIPELINE})
    write_tree(root / "contents", CONTENTS)
    write_tree(root / "templates", TEMPLATES)
    return root
