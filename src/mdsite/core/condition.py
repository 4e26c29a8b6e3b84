"""Condition AST, placeholder resolution and evaluation over content fields"""

from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_serializer

from mdsite.core.values import SCALAR_KINDS, Value, ValueField, ValueKind
from mdsite.errors import ConfigError


class Operator(str, Enum):
    equals                 = "equals"
    not_equals             = "notEquals"
    less_than              = "lessThan"
    less_than_or_equals    = "lessThanOrEquals"
    greater_than           = "greaterThan"
    greater_than_or_equals = "greaterThanOrEquals"
    like                   = "like"
    case_insensitive_like  = "caseInsensitiveLike"
    in_                    = "in"
    contains               = "contains"
    matching               = "matching"


class FieldCondition(BaseModel):
    """Compare one content field against a literal value."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    operator: Operator
    value: ValueField

    @field_serializer("operator")
    def _operator_name(self, operator: Operator) -> str:
        return operator.value

    def resolve(self, parameters: Mapping[str, Any]) -> "FieldCondition":
        """Substitute a `{{name}}` literal with parameters[name]; otherwise unchanged."""
        text = self.value.as_string()
        if text is None or len(text) <= 4 or not (text.startswith("{{") and text.endswith("}}")):
            return self
        name = text[2:-2]
        if name not in parameters:
            return self
        return self.model_copy(update={"value": Value.of(parameters[name])})


class AndCondition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    conditions: list["Condition"] = Field(alias="and")

    def resolve(self, parameters: Mapping[str, Any]) -> "AndCondition":
        return self.model_copy(update={"conditions": [c.resolve(parameters) for c in self.conditions]})


class OrCondition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    conditions: list["Condition"] = Field(alias="or")

    def resolve(self, parameters: Mapping[str, Any]) -> "OrCondition":
        return self.model_copy(update={"conditions": [c.resolve(parameters) for c in self.conditions]})


Condition = Union[FieldCondition, AndCondition, OrCondition]

AndCondition.model_rebuild()
OrCondition.model_rebuild()

_condition_adapter = TypeAdapter(Condition)


def parse_condition(data: Any) -> Condition:
    """Decode a condition from raw YAML/JSON data."""
    try:
        return _condition_adapter.validate_python(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid condition: {e}") from e


def dump_condition(condition: Condition) -> dict:
    """Encode a condition back to the YAML shape parse_condition accepts; date literals stay datetimes."""
    return condition.model_dump(mode="python", by_alias=True)


# --- evaluation ---

def equals(a: Value, b: Value) -> bool:
    kind = a.scalar_kind
    if kind is not b.scalar_kind or kind not in (ValueKind.bool, *SCALAR_KINDS):
        return False
    return a.raw == b.raw


def compare(a: Value, b: Value, ascending: bool, inclusive: bool = False) -> bool:
    """Ordered comparison of same-kind Int/Double/String values; False otherwise."""
    kind = a.scalar_kind
    if kind is not b.scalar_kind or kind not in SCALAR_KINDS:
        return False
    x, y = a.raw, b.raw
    if inclusive:
        return x <= y if ascending else x >= y
    return x < y if ascending else x > y


def _like(field: Value, literal: Value, fold: bool) -> bool:
    text, needle = field.as_string(), literal.as_string()
    if text is None or needle is None:
        return False
    if fold:
        return needle.lower() in text.lower()
    return needle in text


def _in(field: Value, literal: Value) -> bool:
    kind = field.scalar_kind
    if kind not in SCALAR_KINDS:
        return False
    items = literal.items_of(kind)
    return items is not None and field.raw in items


def _contains(field: Value, literal: Value) -> bool:
    kind = literal.scalar_kind
    if kind not in SCALAR_KINDS:
        return False
    items = field.items_of(kind)
    return items is not None and literal.raw in items


def _matching(field: Value, literal: Value) -> bool:
    for kind in SCALAR_KINDS:
        ours, theirs = field.items_of(kind), literal.items_of(kind)
        if ours is not None and theirs is not None:
            return bool(set(ours) & set(theirs))
    return False


def evaluate_field(field: Value, operator: Operator, literal: Value) -> bool:
    match operator:
        case Operator.equals:
            return equals(field, literal)
        case Operator.not_equals:
            return not equals(field, literal)
        case Operator.less_than:
            return compare(field, literal, ascending=True)
        case Operator.less_than_or_equals:
            return compare(field, literal, ascending=True, inclusive=True)
        case Operator.greater_than:
            return compare(field, literal, ascending=False)
        case Operator.greater_than_or_equals:
            return compare(field, literal, ascending=False, inclusive=True)
        case Operator.like:
            return _like(field, literal, fold=False)
        case Operator.case_insensitive_like:
            return _like(field, literal, fold=True)
        case Operator.in_:
            return _in(field, literal)
        case Operator.contains:
            return _contains(field, literal)
        case Operator.matching:
            return _matching(field, literal)
    return False


def evaluate(condition: Optional[Condition], fields: Mapping[str, Value]) -> bool:
    """True when `fields` satisfies `condition`; a missing condition keeps everything."""
    if condition is None:
        return True
    if isinstance(condition, FieldCondition):
        field = fields.get(condition.key)
        if field is None:
            return False
        return evaluate_field(field, condition.operator, condition.value)
    if isinstance(condition, AndCondition):
        return all(evaluate(c, fields) for c in condition.conditions)
    if isinstance(condition, OrCondition):
        return any(evaluate(c, fields) for c in condition.conditions)
    return False
