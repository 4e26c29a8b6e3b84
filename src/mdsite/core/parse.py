"""File discovery, frontmatter extraction and raw content loading"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from mdsite.core.models import RawContentItem
from mdsite.core.utils.slug import path_slug
from mdsite.errors import Issue, report


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'\A---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)', re.DOTALL | re.MULTILINE)
MD_EXTENSIONS = {'.md', '.mdx', '.markdown'}
INDEX_STEM = 'index'


def _strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with YAML header removed."""
    m = FRONTMATTER_RE.match(text)
    if m:
        try:
            fm = yaml.safe_load(m.group(1)) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[m.end():]
    return {}, text


def discover_files(path: Path) -> list[Path]:
    """Return sorted markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix in MD_EXTENSIONS)


def origin_path(path: Path, content_dir: Path) -> str:
    """Content-relative path without extension; `dir/index.md` maps to `dir`."""
    rel = path.relative_to(content_dir).with_suffix('')
    parts = list(rel.parts)
    if parts and parts[-1] == INDEX_STEM:
        parts.pop()
    return '/'.join(parts)


def parse_file(path: Path, content_dir: Path) -> RawContentItem:
    """Read one markdown file into a RawContentItem."""
    raw = path.read_text(encoding='utf-8')
    frontmatter, body = _strip_frontmatter(raw)
    origin = origin_path(path, content_dir)
    return RawContentItem(
        origin_path=origin,
        slug=path_slug(origin),
        front_matter=frontmatter,
        body=body,
        last_modified=path.stat().st_mtime,
    )


def load_contents(content_dir: Path, issues: list[Issue] | None = None) -> list[RawContentItem]:
    """Parse every markdown file under content_dir, sorted by slug.

    Files with broken front matter are reported and skipped.
    """
    items = []
    for p in discover_files(content_dir):
        try:
            items.append(parse_file(p, content_dir))
        except (ValueError, UnicodeDecodeError) as e:
            report(issues, str(p.relative_to(content_dir)), None, str(e))
    logger.debug("Loaded %d raw content item(s) from %s", len(items), content_dir)
    return sorted(items, key=lambda item: item.slug)
