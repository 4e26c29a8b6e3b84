"""Scopes: which context layers and fields an assembled item carries"""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class ContextBit(str, Enum):
    user_defined = "userDefined"
    properties   = "properties"
    contents     = "contents"
    relations    = "relations"
    queries      = "queries"


ALL_BITS = frozenset(ContextBit)

# The named presets currently grant every layer; recursion is bounded by depth instead.
PRESETS: dict[str, frozenset[ContextBit]] = {
    "reference": ALL_BITS,
    "list":      ALL_BITS,
    "detail":    ALL_BITS,
}

_BITS_BY_NAME = {bit.value.lower(): bit for bit in ContextBit}


def parse_context(value: Any) -> frozenset[ContextBit]:
    """Decode one bit/preset name or a list of them (case-insensitive)."""
    names = [value] if isinstance(value, str) else value
    if not isinstance(names, (list, tuple, set, frozenset)):
        raise ValueError(f"scope context must be a name or a list of names, got {type(value).__name__}")
    bits: set[ContextBit] = set()
    for name in names:
        if isinstance(name, ContextBit):
            bits.add(name)
            continue
        if not isinstance(name, str):
            raise ValueError(f"invalid scope context entry: {name!r}")
        key = name.lower()
        if key in PRESETS:
            bits |= PRESETS[key]
        elif key in _BITS_BY_NAME:
            bits.add(_BITS_BY_NAME[key])
        else:
            raise ValueError(f"unknown scope context {name!r}")
    return frozenset(bits)


class Scope(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    context: Annotated[frozenset[ContextBit], BeforeValidator(parse_context)] = ALL_BITS
    fields:  list[str] = Field(default_factory=list)

    def includes(self, bit: ContextBit) -> bool:
        return bit in self.context

    @classmethod
    def properties_only(cls) -> "Scope":
        return cls(context=[ContextBit.properties])


DEFAULT_SCOPES: dict[str, dict[str, Any]] = {
    "*": {
        "reference": {"context": "reference"},
        "list":      {"context": "list"},
        "detail":    {"context": "detail"},
    },
}
