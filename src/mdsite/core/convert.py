"""Convert raw content items into typed Content records for their definition"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from mdsite.core.models import Content, RawContentItem, RelationValue
from mdsite.core.schema import Cardinality, ContentDefinition, PropertySchema, PropertyType, SYSTEM_KEYS
from mdsite.core.utils.slug import path_identifier, path_slug
from mdsite.core.values import NULL, Value, ValueKind, to_timestamp
from mdsite.errors import Issue, report


logger = logging.getLogger(__name__)

_EXPECTED_KINDS = {
    PropertyType.bool:   ValueKind.bool,
    PropertyType.int:    ValueKind.int,
    PropertyType.double: ValueKind.double,
    PropertyType.string: ValueKind.string,
    PropertyType.array:  ValueKind.array,
}


def parse_date(text: str, fmt: Optional[str] = None) -> Optional[float]:
    """Parse a date string with a strptime format, or ISO 8601 when no format is given."""
    try:
        parsed = datetime.strptime(text, fmt) if fmt else datetime.fromisoformat(text)
    except ValueError:
        return None
    return to_timestamp(parsed)


def _front_matter_string(front_matter: dict[str, Any], key: str) -> Optional[str]:
    value = front_matter.get(key)
    return value if isinstance(value, str) and value else None


class ContentConverter:
    """Turns RawContentItems into Content, recovering from per-item problems.

    Every recovered problem is logged and appended to `issues`.
    """

    def __init__(
        self,
        definitions: list[ContentDefinition],
        date_format: Optional[str] = None,
        issues: Optional[list[Issue]] = None,
        ):
        self.definitions = sorted(definitions, key=lambda d: d.id)
        self.by_id = {d.id: d for d in self.definitions}
        self.date_format = date_format
        self.issues = issues if issues is not None else []

    # --- content type ---

    def resolve_definition(self, raw: RawContentItem) -> Optional[ContentDefinition]:
        """Explicit `type` field, then the longest matching path prefix, then the default type."""
        explicit = _front_matter_string(raw.front_matter, "type")
        if explicit:
            if explicit in self.by_id:
                return self.by_id[explicit]
            report(self.issues, raw.slug, "type", f"unknown content type {explicit!r}")

        best, best_len = None, -1
        for d in self.definitions:
            for p in d.paths:
                prefix = p.strip('/')
                matches = raw.origin_path == prefix or raw.origin_path.startswith(prefix + '/') or not prefix
                if matches and len(prefix) > best_len:
                    best, best_len = d, len(prefix)
        if best is not None:
            return best

        for d in self.definitions:
            if d.default:
                return d
        return None

    # --- properties ---

    def _date(self, value: Value, schema: PropertySchema) -> Optional[float]:
        if value.kind is ValueKind.timestamp:
            return value.raw
        text = value.as_string()
        if text is None:
            return None
        return parse_date(text, schema.date_format or self.date_format)

    def _check_kind(self, key: str, schema: PropertySchema, value: Value, slug: str) -> Value:
        expected = _EXPECTED_KINDS[schema.type]
        if value.kind is expected:
            return value
        if expected is ValueKind.double and value.kind is ValueKind.int:
            return Value.of(float(value.raw))
        report(self.issues, slug, key, f"expected {schema.type.value}, got {value.kind.value}")
        return value

    def convert_property(self, key: str, schema: PropertySchema, raw_value: Any, slug: str) -> Optional[Value]:
        """Typed value for one property, NULL for a missing required one, None to omit."""
        value = schema.default
        if raw_value is not None:
            try:
                value = Value.of(raw_value)
            except TypeError as e:
                report(self.issues, slug, key, str(e))
        if value is None or value.is_null:
            if schema.required:
                report(self.issues, slug, key, "missing required property")
                return NULL
            return None

        if schema.type is PropertyType.date:
            seconds = self._date(value, schema)
            if seconds is None:
                report(self.issues, slug, key, f"invalid date {value.to_python()!r}")
                return None
            return Value.timestamp(seconds)
        return self._check_kind(key, schema, value, slug)

    # --- relations ---

    @staticmethod
    def relation_identifiers(cardinality: Cardinality, raw_value: Any) -> list[str]:
        if cardinality is Cardinality.one:
            return [raw_value] if isinstance(raw_value, str) else []
        if isinstance(raw_value, list) and all(isinstance(v, str) for v in raw_value):
            return list(raw_value)
        return []

    # --- conversion ---

    def convert(self, raw: RawContentItem) -> Optional[Content]:
        definition = self.resolve_definition(raw)
        if definition is None:
            report(self.issues, raw.slug, None, "no matching content type and no default type")
            return None

        fm = raw.front_matter
        content_id = _front_matter_string(fm, "id") or path_identifier(raw.origin_path)
        explicit_slug = _front_matter_string(fm, "slug")
        slug = path_slug(explicit_slug) if explicit_slug else raw.slug

        system_values = {
            "id": content_id,
            "slug": slug,
            "type": definition.id,
            "lastUpdate": Value.timestamp(raw.last_modified),
        }

        properties: dict[str, Value] = {}
        for key, schema in sorted(definition.properties.items()):
            raw_value = system_values[key] if key in system_values else fm.get(key)
            value = self.convert_property(key, schema, raw_value, slug)
            if value is not None:
                properties[key] = value

        relations: dict[str, RelationValue] = {}
        for key, schema in sorted(definition.relations.items()):
            identifiers = self.relation_identifiers(schema.type, fm.get(key))
            if key in fm and not identifiers:
                logger.debug("Relation %s on %s has no usable identifiers", key, slug)
            relations[key] = RelationValue(
                target_type=schema.references,
                cardinality=schema.type,
                identifiers=identifiers,
            )

        claimed = set(SYSTEM_KEYS) | set(definition.properties) | set(definition.relations)
        user_defined: dict[str, Value] = {}
        for key, raw_value in fm.items():
            if key in claimed:
                continue
            try:
                user_defined[str(key)] = Value.of(raw_value)
            except TypeError as e:
                report(self.issues, slug, str(key), str(e))

        logger.debug("Converted %s (type=%s, id=%s)", raw.origin_path, definition.id, content_id)
        return Content(
            id=content_id,
            slug=slug,
            definition=definition,
            properties=properties,
            relations=relations,
            user_defined=user_defined,
            raw=raw,
        )

    def convert_all(self, raws: Iterable[RawContentItem]) -> list[Content]:
        return [c for c in (self.convert(raw) for raw in raws) if c is not None]
