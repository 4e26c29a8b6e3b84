"""Slug, identifier and permalink derivation for content paths"""

import re


ITERATOR_RE = re.compile(r'\{\{([^{}]+)\}\}')
BRACKET_PREFIX_RE = re.compile(r'^\[[^\]]*\]')


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def strip_brackets(segment: str) -> str:
    """Drop a leading `[...]` ordering prefix from a path segment ('[01]intro' -> 'intro')."""
    return BRACKET_PREFIX_RE.sub('', segment)


def slugify_segment(segment: str) -> str:
    """Slugify one path segment, keeping `{{iterator}}` tokens verbatim."""
    if ITERATOR_RE.fullmatch(segment):
        return segment
    return slugify(strip_brackets(segment))


def path_slug(origin_path: str) -> str:
    """Slug for an origin path: each segment slugified, empty segments dropped."""
    parts = (slugify_segment(p) for p in origin_path.split('/'))
    return '/'.join(p for p in parts if p)


def path_identifier(origin_path: str) -> str:
    """Default content id: last origin path segment without bracket prefix, or 'home'."""
    segments = [s for s in origin_path.split('/') if s]
    if not segments:
        return 'home'
    return strip_brackets(segments[-1])


def permalink(slug: str, base_url: str) -> str:
    """Absolute URL for a slug; directories get a trailing slash, files do not."""
    base = base_url.rstrip('/')
    parts = [p for p in slug.split('/') if p]
    if not parts:
        return base + '/'
    url = '/'.join([base, *parts])
    return url if '.' in parts[-1] else url + '/'


def extract_iterator_id(slug: str) -> str | None:
    """Return `name` from the first `{{name}}` token in a slug, if any."""
    m = ITERATOR_RE.search(slug)
    return m.group(1) if m else None
