"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDSITE_"


class Settings(BaseModel):
    app_name:        str = "mdsite"
    site_dir:        str = Field(default=".",         description="Site root holding content, types and pipelines")
    content_dir:     str = Field(default="contents",  description="Markdown sources, relative to site_dir")
    types_dir:       str = Field(default="types",     description="Content definition YAML files, relative to site_dir")
    pipelines_dir:   str = Field(default="pipelines", description="Pipeline YAML files, relative to site_dir")
    templates_dir:   str = Field(default="templates", description="Jinja templates, relative to site_dir")
    output_dir:      str = Field(default="dist",      description="Directory for rendered output files")
    base_url:        str = Field(default="http://localhost:3000", description="Base URL for permalinks")
    date_format:     str | None = Field(default=None, description="strptime format for date properties; ISO 8601 when unset")
    markdown_preset: str = Field(default="gfm-like",  description="MarkdownIt parser preset name")
    workers:         int = Field(default=1, ge=1,     description="Threads used to assemble contexts")
    site:            dict[str, Any] = Field(default_factory=dict, description="Free-form values exposed as the site context")

    def site_path(self, name: str) -> Path:
        """Resolve one of the *_dir settings against site_dir."""
        return Path(self.site_dir) / getattr(self, name)


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if name == "site":
            continue
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
