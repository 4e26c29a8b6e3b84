"""Query model and executor: filter, stable multi-key sort, offset/limit"""

from __future__ import annotations

import logging
from enum import Enum
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from mdsite.core.condition import Condition, compare, evaluate
from mdsite.core.values import Value

if TYPE_CHECKING:
    from mdsite.core.models import Content


logger = logging.getLogger(__name__)


class Direction(str, Enum):
    asc  = "asc"
    desc = "desc"


class Order(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    direction: Direction = Direction.asc


class Query(BaseModel):
    """Content-type scoped filter + sort + pagination."""
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    content_type: str = Field(alias="contentType")
    scope:        Optional[str] = None
    limit:        Optional[int] = Field(default=None, ge=0)
    offset:       Optional[int] = Field(default=None, ge=0)
    filter:       Optional[Condition] = None
    order_by:     list[Order] = Field(default_factory=list, alias="orderBy")

    def resolve_filter_parameters(self, parameters: Mapping[str, Any]) -> Query:
        if self.filter is None:
            return self
        return self.model_copy(update={"filter": self.filter.resolve(parameters)})


def _order_key(order: Order):
    ascending = order.direction is Direction.asc

    def less(a: Content, b: Content) -> bool:
        va = a.query_fields.get(order.key)
        vb = b.query_fields.get(order.key)
        if va is None or vb is None:
            logger.debug("Missing order key %r (%s / %s)", order.key, a.slug, b.slug)
            return False
        return compare(va, vb, ascending=ascending)

    def cmp(a: Content, b: Content) -> int:
        if less(a, b):
            return -1
        if less(b, a):
            return 1
        return 0

    return cmp_to_key(cmp)


def sort_contents(contents: Sequence[Content], order_by: Sequence[Order]) -> list[Content]:
    """Stable sort, one pass per key from last to first, so order_by[0] wins.

    Pairs that cannot be compared (missing key, mismatched kinds) keep the
    relative order of the previous pass.
    """
    items = list(contents)
    for order in reversed(order_by):
        items.sort(key=_order_key(order))
    return items


def paginate(contents: list[Content], offset: Optional[int], limit: Optional[int]) -> list[Content]:
    if offset is not None:
        contents = contents[offset:]
    if limit is not None:
        contents = contents[:limit]
    return contents


def run_query(query: Query, contents: Sequence[Content], now: float) -> list[Content]:
    """Run `query` over `contents`; never raises for a malformed filter."""
    resolved = query.resolve_filter_parameters({"date.now": Value.timestamp(now)})
    items = [
        c for c in contents
        if c.definition_id == query.content_type and evaluate(resolved.filter, c.query_fields)
    ]
    items = sort_contents(items, resolved.order_by)
    result = paginate(items, resolved.offset, resolved.limit)
    logger.debug("Query %s matched %d item(s), returning %d", query.content_type, len(items), len(result))
    return result
