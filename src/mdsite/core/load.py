"""Site loading: content definitions, pipelines and converted contents"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from mdsite.config import Settings
from mdsite.core.convert import ContentConverter
from mdsite.core.models import Content, RawContentItem
from mdsite.core.parse import load_contents
from mdsite.core.pipeline import Pipeline
from mdsite.core.schema import ContentDefinition, validate_definitions
from mdsite.errors import ConfigError, Issue


logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yml', '.yaml')

M = TypeVar("M", bound=BaseModel)


@dataclass
class Site:
    settings:    Settings
    definitions: list[ContentDefinition]
    pipelines:   list[Pipeline]
    raw:         list[RawContentItem]
    contents:    list[Content]
    issues:      list[Issue] = field(default_factory=list)

    def definition(self, content_type: str) -> ContentDefinition | None:
        return next((d for d in self.definitions if d.id == content_type), None)

    def pipeline(self, pipeline_id: str) -> Pipeline | None:
        return next((p for p in self.pipelines if p.id == pipeline_id), None)


def read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding='utf-8'))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_models(directory: Path, model: type[M]) -> list[M]:
    """Validate every YAML file in a directory as `model`; a missing directory yields []."""
    if not directory.is_dir():
        logger.debug("No %s directory at %s", model.__name__, directory)
        return []
    items = []
    for path in sorted(p for p in directory.iterdir() if p.suffix in YAML_SUFFIXES):
        data = read_yaml(path)
        if not isinstance(data, dict):
            raise ConfigError(f"{path.name}: expected a mapping at the top level")
        data.setdefault("id", path.stem)
        try:
            items.append(model.model_validate(data))
        except ValidationError as e:
            raise ConfigError(f"{path.name}: {e}") from e
    return items


def load_definitions(directory: Path) -> list[ContentDefinition]:
    return load_models(directory, ContentDefinition)


def load_pipelines(directory: Path) -> list[Pipeline]:
    pipelines = load_models(directory, Pipeline)
    seen: set[str] = set()
    for p in pipelines:
        if p.id in seen:
            raise ConfigError(f"Duplicate pipeline id: {p.id!r}")
        seen.add(p.id)
    return pipelines


def _check_pipeline_types(pipelines: list[Pipeline], type_ids: set[str]) -> None:
    for p in pipelines:
        queries = {**p.queries, **p.iterators}
        for key, query in queries.items():
            if query.content_type not in type_ids:
                logger.warning("Pipeline %s query %r targets unknown content type %r",
                               p.id, key, query.content_type)


def load_site(settings: Settings) -> Site:
    """Load and convert a whole site. Structural problems raise ConfigError."""
    content_dir = settings.site_path("content_dir")
    if not content_dir.is_dir():
        raise ConfigError(f"Content directory not found: {content_dir}")

    definitions = load_definitions(settings.site_path("types_dir"))
    pipelines = load_pipelines(settings.site_path("pipelines_dir"))
    if not pipelines:
        logger.warning("No pipelines found in %s; nothing will be rendered",
                       settings.site_path("pipelines_dir"))

    # Pipelines with definesType get an empty content type of their own.
    known = {d.id for d in definitions}
    definitions += [ContentDefinition(id=p.id) for p in pipelines if p.defines_type and p.id not in known]
    definitions = validate_definitions(definitions)
    _check_pipeline_types(pipelines, {d.id for d in definitions})

    issues: list[Issue] = []
    raw = load_contents(content_dir, issues)
    contents = ContentConverter(definitions, settings.date_format, issues).convert_all(raw)
    logger.info("Loaded %d content item(s), %d definition(s), %d pipeline(s)",
                len(contents), len(definitions), len(pipelines))
    return Site(
        settings=settings,
        definitions=definitions,
        pipelines=pipelines,
        raw=raw,
        contents=contents,
        issues=issues,
    )
