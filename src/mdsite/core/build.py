"""Build driver: filter rules, iterator pages, bundles and rendering per pipeline"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Sequence

from mdsite.core.condition import evaluate
from mdsite.core.context import ContextAssembler, ContextCache
from mdsite.core.load import Site
from mdsite.core.markdown import MarkdownRenderer
from mdsite.core.models import Content
from mdsite.core.pipeline import Pipeline
from mdsite.core.query import Direction, Order, Query, run_query
from mdsite.core.render import RenderResult, render_bundles
from mdsite.core.utils.merge import recursively_merged
from mdsite.core.utils.slug import extract_iterator_id, permalink
from mdsite.core.values import Value, ValueKind


logger = logging.getLogger(__name__)

QUERY_ITEM_SCOPE = "list"


@dataclass(frozen=True)
class Destination:
    path: str
    file: str
    ext:  str

    @property
    def relative_path(self) -> Path:
        name = f"{self.file}.{self.ext}" if self.ext else self.file
        return Path(*PurePosixPath(self.path).parts, name) if self.path else Path(name)


@dataclass(frozen=True)
class IteratorPage:
    iterator_id: str
    query:       Query
    current:     int
    total:       int
    limit:       int
    links:       list[dict[str, Any]]


@dataclass(frozen=True)
class ContextBundle:
    content:     Content
    context:     dict[str, Any]
    destination: Destination


# --- content selection ---

def apply_filter_rules(pipeline: Pipeline, contents: Sequence[Content], now: float) -> list[Content]:
    """Keep contents passing their type's filter rule (or the `*` rule)."""
    parameters = {"date.now": Value.timestamp(now)}
    kept = []
    for c in contents:
        rule = pipeline.content_types.filter_rule(c.definition_id)
        if rule is None or evaluate(rule.resolve(parameters), c.query_fields):
            kept.append(c)
    return kept


def _fill(value: Value, number: int, total: int) -> Value:
    if value.kind is not ValueKind.string:
        return value
    return Value.of(value.raw.replace("{{number}}", str(number)).replace("{{total}}", str(total)))


def page_content(content: Content, iterator_id: str, number: int, total: int) -> Content:
    """Copy of an iterator content for page `number`, placeholders substituted."""
    token = "{{" + iterator_id + "}}"
    return replace(
        content,
        id=content.id.replace(token, str(number)),
        slug=content.slug.replace(token, str(number)),
        properties={k: _fill(v, number, total) for k, v in content.properties.items()},
        user_defined={k: _fill(v, number, total) for k, v in content.user_defined.items()},
        is_iterator=True,
    )


def expand_iterators(
    pipeline: Pipeline,
    contents: Sequence[Content],
    base_url: str,
    now: float,
    ) -> list[tuple[Content, Optional[IteratorPage]]]:
    """Pair every content with its iterator page; iterator contents expand to one entry per page."""
    entries: list[tuple[Content, Optional[IteratorPage]]] = []
    for content in contents:
        iterator_id = extract_iterator_id(content.slug)
        if iterator_id is None:
            entries.append((content, None))
            continue
        query = pipeline.iterators.get(iterator_id)
        if query is None:
            logger.debug("Pipeline %s has no iterator %r; skipping %s", pipeline.id, iterator_id, content.slug)
            continue

        limit = pipeline.page_size(iterator_id)
        matched = run_query(query.model_copy(update={"limit": None, "offset": None}), contents, now)
        total = (len(matched) + limit - 1) // limit
        token = "{{" + iterator_id + "}}"
        for number in range(1, total + 1):
            links = [
                {
                    "number": n,
                    "permalink": permalink(content.slug.replace(token, str(n)), base_url),
                    "isCurrent": n == number,
                }
                for n in range(1, total + 1)
            ]
            entries.append((
                page_content(content, iterator_id, number, total),
                IteratorPage(
                    iterator_id=iterator_id,
                    query=query.model_copy(update={"limit": limit, "offset": (number - 1) * limit}),
                    current=number,
                    total=total,
                    limit=limit,
                    links=links,
                ),
            ))
    return entries


def last_update(pipeline: Pipeline, contents: Sequence[Content], now: float) -> float:
    """Newest lastUpdate across the (optionally restricted) content types; `now` when empty."""
    types = list(dict.fromkeys(c.definition_id for c in contents))
    if pipeline.content_types.last_update:
        types = [t for t in types if t in pipeline.content_types.last_update]
    stamps = []
    for t in types:
        query = Query(content_type=t, limit=1, order_by=[Order(key="lastUpdate", direction=Direction.desc)])
        items = run_query(query, contents, now)
        if items:
            stamps.append(items[0].last_modified)
    return max(stamps, default=now)


# --- bundles ---

def destination(pipeline: Pipeline, content: Content, page: Optional[IteratorPage]) -> Destination:
    replacements = {"{{id}}": content.id, "{{slug}}": content.slug}
    if page is not None:
        replacements |= {
            "{{iterator.current}}": str(page.current),
            "{{iterator.total}}": str(page.total),
            "{{iterator.limit}}": str(page.limit),
        }

    def sub(text: str) -> str:
        for token, value in replacements.items():
            text = text.replace(token, value)
        return text

    out = pipeline.output
    return Destination(path=sub(out.path).strip('/'), file=sub(out.file), ext=sub(out.ext))


def site_context(site: Site, now: float, updated: float) -> dict[str, Any]:
    return recursively_merged(site.settings.site, {
        "baseUrl": site.settings.base_url,
        "generatedAt": now,
        "lastUpdate": updated,
    })


def assemble_bundles(
    site: Site,
    pipeline: Pipeline,
    now: float,
    render_body=None,
    workers: Optional[int] = None,
    ) -> list[ContextBundle]:
    """Context bundles for every allowed content of a pipeline, in content order."""
    base_url = site.settings.base_url
    contents = apply_filter_rules(pipeline, site.contents, now)
    render_body = render_body or MarkdownRenderer(site.settings.markdown_preset)
    assembler = ContextAssembler(
        pipeline, contents,
        base_url=base_url, render_body=render_body, cache=ContextCache(), now=now,
    )

    shared = {
        "context": {
            key: [assembler.assemble(c, query.scope or QUERY_ITEM_SCOPE) for c in run_query(query, contents, now)]
            for key, query in pipeline.queries.items()
        },
        "site": site_context(site, now, last_update(pipeline, contents, now)),
    }

    entries = [
        (c, page) for c, page in expand_iterators(pipeline, contents, base_url, now)
        if pipeline.content_types.is_allowed(c.definition_id)
    ]

    def bundle(entry: tuple[Content, Optional[IteratorPage]]) -> ContextBundle:
        content, page = entry
        context: dict[str, Any] = {"page": assembler.full_context(content)}
        if page is not None:
            context["iterator"] = {
                "current": page.current,
                "total": page.total,
                "limit": page.limit,
                "links": page.links,
                "items": [
                    assembler.assemble(c, page.query.scope or QUERY_ITEM_SCOPE)
                    for c in run_query(page.query, contents, now)
                ],
            }
        return ContextBundle(
            content=content,
            context=recursively_merged(context, shared),
            destination=destination(pipeline, content, page),
        )

    workers = workers or site.settings.workers
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            bundles = list(executor.map(bundle, entries))
    else:
        bundles = [bundle(e) for e in entries]
    logger.info("Pipeline %s assembled %d bundle(s) (%d cached context(s))",
                pipeline.id, len(bundles), len(assembler.cache))
    return bundles


def build_pipeline(site: Site, pipeline: Pipeline, now: float, **kwargs) -> list[RenderResult]:
    bundles = assemble_bundles(site, pipeline, now, **kwargs)
    templates_dir = site.settings.site_path("templates_dir")
    return render_bundles(pipeline, bundles, templates_dir, site.issues)


def build_site(site: Site, now: Optional[float] = None, **kwargs) -> dict[str, list[RenderResult]]:
    """Render every pipeline; returns results keyed by pipeline id."""
    now = time.time() if now is None else now
    return {p.id: build_pipeline(site, p, now, **kwargs) for p in site.pipelines}
