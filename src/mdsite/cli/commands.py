"""CLI command implementations"""

import json
import time
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from mdsite.config import Settings, load_config
from mdsite.core.build import build_site
from mdsite.core.condition import parse_condition
from mdsite.core.export import write_results
from mdsite.core.load import Site, load_site
from mdsite.core.query import Direction, Order, Query, run_query
from mdsite.errors import ConfigError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _site(settings: Settings) -> Site:
    try:
        return load_site(settings)
    except ConfigError as e:
        _fail("Invalid site configuration", e)


def _echo_issues(site: Site) -> None:
    for issue in site.issues:
        typer.echo(f"  warning: {issue}", err=True)


def _parse_order(value: str) -> Order:
    key, _, direction = value.partition(':')
    try:
        return Order(key=key, direction=Direction(direction or 'asc'))
    except ValueError as e:
        _fail(f"Invalid --order-by value {value!r}; expected key or key:asc|desc", e)


def build_cmd(
    site_dir: Annotated[Optional[str], typer.Argument(help="Site root directory")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    base_url: Annotated[Optional[str], typer.Option("--base-url", help="Base URL for permalinks")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Threads used to assemble contexts")] = None,
    ):
    """Render every pipeline and write the results to the output directory."""
    settings = _settings(overrides={
        "site_dir": site_dir, "output_dir": out, "base_url": base_url, "workers": workers,
    })
    site = _site(settings)

    try:
        results = build_site(site, now=time.time())
    except ConfigError as e:
        _fail("Build failed", e)

    output_dir = Path(settings.output_dir)
    total = 0
    for pipeline_id, rendered in results.items():
        try:
            written = write_results(rendered, output_dir)
        except (OSError, ValueError) as e:
            _fail(f"Could not write output for pipeline {pipeline_id}", e)
        for path in written:
            typer.echo(f"  {pipeline_id}: {path}")
        total += len(written)

    _echo_issues(site)
    typer.echo(f"Built {total} file(s) from {len(site.contents)} content item(s) to {output_dir}/")


def check_cmd(
    site_dir: Annotated[Optional[str], typer.Argument(help="Site root directory")] = None,
    ):
    """Load and validate definitions, pipelines and contents without rendering."""
    settings = _settings(overrides={"site_dir": site_dir})
    site = _site(settings)
    _echo_issues(site)
    typer.echo(
        f"{len(site.definitions)} definition(s), {len(site.pipelines)} pipeline(s), "
        f"{len(site.contents)} content item(s), {len(site.issues)} issue(s)"
    )
    if site.issues:
        raise typer.Exit(1)


def query_cmd(
    site_dir: Annotated[str, typer.Argument(help="Site root directory")],
    content_type: Annotated[str, typer.Argument(help="Content type to query")],
    filter_: Annotated[Optional[str], typer.Option("--filter", help="Condition as YAML or JSON")] = None,
    order_by: Annotated[Optional[list[str]], typer.Option("--order-by", help="key or key:desc; repeatable")] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", min=0, help="Max results")] = None,
    offset: Annotated[Optional[int], typer.Option("--offset", min=0, help="Results to skip")] = None,
    ):
    """Run a query against the site contents and print matching items as JSON."""
    settings = _settings(overrides={"site_dir": site_dir})
    site = _site(settings)
    if site.definition(content_type) is None:
        _fail(f"Unknown content type: {content_type}")

    condition = None
    if filter_:
        try:
            condition = parse_condition(yaml.safe_load(filter_))
        except (yaml.YAMLError, ConfigError) as e:
            _fail("Invalid --filter", e)

    query = Query(
        content_type=content_type,
        filter=condition,
        order_by=[_parse_order(o) for o in order_by or []],
        limit=limit,
        offset=offset,
    )
    items = run_query(query, site.contents, time.time())
    typer.echo(json.dumps(
        [{"slug": c.slug, **{k: v.to_python() for k, v in c.query_fields.items()}} for c in items],
        indent=2, ensure_ascii=False,
    ))


def list_cmd(
    site_dir: Annotated[Optional[str], typer.Argument(help="Site root directory")] = None,
    ):
    """List content types and pipelines with their item counts."""
    settings = _settings(overrides={"site_dir": site_dir})
    site = _site(settings)
    if not site.definitions:
        typer.echo("No content types defined.")
        raise typer.Exit(1)
    for d in site.definitions:
        count = sum(1 for c in site.contents if c.definition_id == d.id)
        marker = " (default)" if d.default else ""
        typer.echo(f"{d.id}{marker}: {count}")
    for p in site.pipelines:
        typer.echo(f"pipeline {p.id} -> {p.engine.id}")
