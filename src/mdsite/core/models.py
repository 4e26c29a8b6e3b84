"""Raw and converted content records for one build"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from mdsite.core.schema import Cardinality, ContentDefinition
from mdsite.core.values import Value


@dataclass(frozen=True)
class RawContentItem:
    """One discovered source file, front matter split from the body."""
    origin_path:   str              # path under the content dir, no extension ("blog/posts/hello")
    slug:          str              # slug derived from origin_path
    front_matter:  dict[str, Any]
    body:          str              # markdown without front matter
    last_modified: float            # seconds since epoch


@dataclass(frozen=True)
class RelationValue:
    """Foreign keys read from front matter; not yet joined to records."""
    target_type: str
    cardinality: Cardinality
    identifiers: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Content:
    """A converted, typed content item. Immutable for the duration of a build."""
    id:           str
    slug:         str
    definition:   ContentDefinition
    properties:   dict[str, Value]
    relations:    dict[str, RelationValue]
    user_defined: dict[str, Value]
    raw:          RawContentItem
    is_iterator:  bool = False

    @property
    def definition_id(self) -> str:
        return self.definition.id

    @property
    def origin_path(self) -> str:
        return self.raw.origin_path

    @property
    def body(self) -> str:
        return self.raw.body

    @property
    def last_modified(self) -> float:
        return self.raw.last_modified

    @property
    def identifier(self) -> str:
        """Key other items use to reference this one: tail segment of the slug."""
        source = self.slug or self.raw.origin_path
        return source.rstrip("/").split("/")[-1]

    @cached_property
    def query_fields(self) -> dict[str, Value]:
        """Properties plus flattened relation identifiers and system fields."""
        fields = dict(self.properties)
        for key, relation in self.relations.items():
            if relation.cardinality is Cardinality.one:
                fields[key] = Value.of(relation.identifiers[0] if relation.identifiers else [])
            else:
                fields[key] = Value.of(relation.identifiers)
        fields["id"] = Value.of(self.id)
        fields["slug"] = Value.of(self.slug)
        fields["lastUpdate"] = Value.timestamp(self.last_modified)
        fields["iterator"] = Value.of(self.is_iterator)
        return fields
