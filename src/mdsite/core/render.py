"""Renderers: serialise bundle contexts as JSON or through Jinja2 templates"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from mdsite.core.pipeline import Pipeline
from mdsite.errors import ConfigError, Issue, report


logger = logging.getLogger(__name__)

DEFAULT_DATE_OUTPUT = "%Y-%m-%d"


@dataclass(frozen=True)
class RenderResult:
    path:     Path          # relative to the output directory
    contents: str


def format_date(value: Any, fmt: Optional[str] = None, default: str = DEFAULT_DATE_OUTPUT) -> Any:
    """Format a timestamp (seconds since epoch, UTC); other values pass through."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime(fmt or default)


def select_key_path(context: dict[str, Any], key_path: Optional[str]) -> Any:
    """Dotted lookup into a context ('page.title'); missing segments give None."""
    if not key_path:
        return context
    value: Any = context
    for part in key_path.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def render_json(pipeline: Pipeline, bundles: list) -> list[RenderResult]:
    key_path = pipeline.engine.options.get("keyPath")
    indent = pipeline.engine.options.get("indent", 2)
    return [
        RenderResult(
            path=b.destination.relative_path,
            contents=json.dumps(select_key_path(b.context, key_path), indent=indent, ensure_ascii=False),
        )
        for b in bundles
    ]


def make_environment(templates_dir: Path, date_output: Optional[str] = None) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.filters["date"] = lambda value, fmt=None: format_date(value, fmt, date_output or DEFAULT_DATE_OUTPUT)
    return env


def _template_name(pipeline: Pipeline, bundle) -> str:
    page = bundle.context.get("page", {})
    name = page.get("template") or pipeline.engine.options.get("template")
    if isinstance(name, str) and name:
        return name if '.' in name else f"{name}.{bundle.destination.ext or 'html'}"
    return f"{bundle.content.definition_id}.{bundle.destination.ext or 'html'}"


def render_jinja(
    pipeline: Pipeline,
    bundles: list,
    issues: list[Issue],
    templates_dir: Path,
    ) -> list[RenderResult]:
    if not templates_dir.is_dir():
        raise ConfigError(f"Templates directory not found: {templates_dir}")
    env = make_environment(templates_dir, pipeline.data_types.date.output)
    results = []
    for b in bundles:
        name = _template_name(pipeline, b)
        try:
            template = env.get_template(name)
        except TemplateNotFound:
            report(issues, b.content.slug, "template", f"template {name!r} not found")
            continue
        results.append(RenderResult(path=b.destination.relative_path, contents=template.render(**b.context)))
    return results


def render_bundles(
    pipeline: Pipeline,
    bundles: list,
    templates_dir: Path,
    issues: Optional[list[Issue]] = None,
    ) -> list[RenderResult]:
    """Render context bundles with the pipeline's engine."""
    issues = issues if issues is not None else []
    renderers: dict[str, Callable[[], list[RenderResult]]] = {
        "json":    lambda: render_json(pipeline, bundles),
        "context": lambda: render_json(pipeline, bundles),
        "jinja":   lambda: render_jinja(pipeline, bundles, issues, templates_dir),
    }
    results = renderers[pipeline.engine.id]()
    logger.info("Pipeline %s rendered %d of %d bundle(s) with %s",
                pipeline.id, len(results), len(bundles), pipeline.engine.id)
    return results
