"""Pipeline declarations: scopes, queries, content type rules, engine and output"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mdsite.core.condition import Condition
from mdsite.core.query import Query
from mdsite.core.scope import DEFAULT_SCOPES, Scope
from mdsite.core.utils.merge import recursively_merged


logger = logging.getLogger(__name__)

ENGINES = ("json", "context", "jinja")
WILDCARD = "*"
DEFAULT_PAGE_SIZE = 10


class ContentTypes(BaseModel):
    """Which content types a pipeline renders and how they are pre-filtered."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    include:      list[str] = Field(default_factory=list)
    exclude:      list[str] = Field(default_factory=list)
    last_update:  list[str] = Field(default_factory=list, alias="lastUpdate")
    filter_rules: dict[str, Condition] = Field(default_factory=dict, alias="filterRules")

    def is_allowed(self, content_type: str) -> bool:
        if content_type in self.exclude:
            return False
        return not self.include or content_type in self.include

    def filter_rule(self, content_type: str) -> Optional[Condition]:
        """Rule for a content type, falling back to the `*` rule."""
        return self.filter_rules.get(content_type, self.filter_rules.get(WILDCARD))


class DateOutput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    output: Optional[str] = None        # strftime format used by renderers


class DataTypes(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    date: DateOutput = Field(default_factory=DateOutput)


class Engine(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id:      str
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def _known_engine(cls, v: str) -> str:
        if v not in ENGINES:
            raise ValueError(f"unknown engine {v!r}; expected one of: {', '.join(ENGINES)}")
        return v


class Output(BaseModel):
    """Output location template; `{{id}}`, `{{slug}}` and `{{iterator.*}}` are substituted."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    file: str
    ext:  str


def merge_scopes(scopes: dict[str, Any]) -> dict[str, Any]:
    """Merge user scopes over the defaults, then each type's scopes over `*`."""
    merged = recursively_merged(DEFAULT_SCOPES, scopes)
    wildcard = merged[WILDCARD]
    return {
        type_id: entries if type_id == WILDCARD else recursively_merged(wildcard, entries)
        for type_id, entries in merged.items()
    }


class Pipeline(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id:            str
    defines_type:  bool = Field(default=False, alias="definesType")
    scopes:        dict[str, dict[str, Scope]] = Field(default_factory=dict)
    queries:       dict[str, Query] = Field(default_factory=dict)
    data_types:    DataTypes = Field(default_factory=DataTypes, alias="dataTypes")
    content_types: ContentTypes = Field(default_factory=ContentTypes, alias="contentTypes")
    iterators:     dict[str, Query] = Field(default_factory=dict)
    engine:        Engine
    output:        Output

    @model_validator(mode="before")
    @classmethod
    def _default_scopes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        scopes = data.get("scopes") or {}
        if not isinstance(scopes, dict) or not all(isinstance(v, dict) for v in scopes.values()):
            return data     # left for field validation to reject
        return {**data, "scopes": merge_scopes(scopes)}

    def get_scopes(self, content_type: str) -> dict[str, Scope]:
        return self.scopes.get(content_type, self.scopes[WILDCARD])

    def get_scope(self, key: str, content_type: str) -> Scope:
        """Named scope for a content type; unknown keys fall back to `detail`."""
        scopes = self.get_scopes(content_type)
        scope = scopes.get(key)
        if scope is None:
            logger.debug("Pipeline %s has no %r scope for %s, using detail", self.id, key, content_type)
            scope = scopes.get("detail", Scope())
        return scope

    def page_size(self, iterator_id: str) -> int:
        query = self.iterators[iterator_id]
        return max(1, query.limit or DEFAULT_PAGE_SIZE)
