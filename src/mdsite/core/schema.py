"""Content definitions: property, relation and local pseudo-relation schemas"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mdsite.core.query import Order, Query
from mdsite.core.values import ValueField
from mdsite.errors import ConfigError


logger = logging.getLogger(__name__)

# Front-matter keys with built-in meaning; never treated as user-defined fields.
SYSTEM_KEYS = ("id", "slug", "type", "lastUpdate")


class PropertyType(str, Enum):
    bool   = "bool"
    int    = "int"
    double = "double"
    string = "string"
    date   = "date"
    array  = "array"


class PropertySchema(BaseModel):
    """Expected front-matter field: type, required flag and default."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    type:        PropertyType
    date_format: Optional[str] = Field(default=None, alias="dateFormat")
    of:          Optional["PropertySchema"] = None     # item schema for arrays
    required:    bool = True
    default:     Optional[ValueField] = None

    @model_validator(mode="after")
    def _check_array(self) -> "PropertySchema":
        if self.type is PropertyType.array and self.of is None:
            raise ValueError("array properties need an 'of' item type")
        return self


class Cardinality(str, Enum):
    one  = "one"
    many = "many"


class RelationSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    references: str
    type:       Cardinality
    order:      Optional[Order] = None
    limit:      Optional[int] = Field(default=None, ge=0)


class LocalRelation(BaseModel):
    """Same-site lookup resolved at render time instead of from a stored key.

    `foreignKey` is either a field name (items of `references` whose field
    points back at this content) or a command: `$prev`, `$next`, `$same.<field>`.
    """
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    references:  str
    foreign_key: str = Field(alias="foreignKey")
    order:       Optional[Order] = None
    limit:       Optional[int] = Field(default=None, ge=0)


class ContentDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id:         str
    paths:      list[str] = Field(default_factory=list)
    default:    bool = False
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    relations:  dict[str, RelationSchema] = Field(default_factory=dict)
    queries:    dict[str, Query] = Field(default_factory=dict)
    local:      dict[str, LocalRelation] = Field(default_factory=dict)


def validate_definitions(definitions: list[ContentDefinition]) -> list[ContentDefinition]:
    """Fail on duplicate ids or multiple defaults; warn on dangling references.

    Returns the definitions sorted by id.
    """
    seen: set[str] = set()
    for d in definitions:
        if d.id in seen:
            raise ConfigError(f"Duplicate content definition id: {d.id!r}")
        seen.add(d.id)

    defaults = [d.id for d in definitions if d.default]
    if len(defaults) > 1:
        raise ConfigError(f"Multiple default content definitions: {', '.join(sorted(defaults))}")

    for d in definitions:
        for key, relation in d.relations.items():
            if relation.references not in seen:
                logger.warning("Relation %s.%s references unknown content type %r",
                               d.id, key, relation.references)
        for key, local in d.local.items():
            if local.references not in seen:
                logger.warning("Local relation %s.%s references unknown content type %r",
                               d.id, key, local.references)
    return sorted(definitions, key=lambda d: d.id)
