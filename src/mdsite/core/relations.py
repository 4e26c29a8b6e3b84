"""Relation resolution: join stored foreign keys and local pseudo-relations"""

import logging
from typing import Optional, Sequence

from mdsite.core.models import Content
from mdsite.core.query import Order, paginate, sort_contents
from mdsite.core.schema import LocalRelation, RelationSchema


logger = logging.getLogger(__name__)


def reference_identifiers(content: Content, key: str) -> list[str]:
    """Identifiers stored under `key`: a declared relation, or a string / string-array field."""
    relation = content.relations.get(key)
    if relation is not None:
        return relation.identifiers
    value = content.query_fields.get(key)
    if value is None:
        return []
    text = value.as_string()
    if text is not None:
        return [text]
    return value.string_items() or []


def resolve_relation(
    content: Content,
    key: str,
    schema: RelationSchema,
    contents: Sequence[Content],
    order: Optional[Order] = None,
    limit: Optional[int] = None,
    ) -> list[Content]:
    """Items of `schema.references` whose identifier is listed in content.relations[key]."""
    relation = content.relations.get(key)
    identifiers = set(relation.identifiers) if relation else set()
    candidates = [
        c for c in contents
        if c.definition_id == schema.references and c.identifier in identifiers
    ]
    order = order or schema.order
    items = sort_contents(candidates, [order] if order else [])
    return paginate(items, None, limit if limit is not None else schema.limit)


def local_view(local: LocalRelation, contents: Sequence[Content]) -> list[Content]:
    """Items of `local.references` sorted by `local.order`: the view resolve_local walks."""
    return sort_contents(
        [c for c in contents if c.definition_id == local.references],
        [local.order] if local.order else [],
    )


def resolve_local(
    content: Content,
    key: str,
    local: LocalRelation,
    contents: Sequence[Content],
    view: Optional[Sequence[Content]] = None,
    ) -> list[Content]:
    """Resolve a `$prev` / `$next` / `$same.<field>` command or a back-reference field.

    `view` is a precomputed `local_view(local, contents)`; it is built here when omitted.
    """
    refs = view if view is not None else local_view(local, contents)

    if not local.foreign_key.startswith("$"):
        matched = [r for r in refs if content.identifier in reference_identifiers(r, local.foreign_key)]
        return paginate(matched, None, local.limit)

    command, _, argument = local.foreign_key[1:].partition(".")
    idx = next(
        (i for i, r in enumerate(refs)
         if r.slug == content.slug and r.definition_id == content.definition_id),
        None,
    )
    if idx is None:
        return []

    if command == "prev":
        return [refs[idx - 1]] if idx > 0 else []
    if command == "next":
        return [refs[idx + 1]] if idx < len(refs) - 1 else []
    if command == "same":
        if not argument:
            return []
        ids = set(reference_identifiers(content, argument))
        matched = [
            r for r in refs
            if r.slug != content.slug and ids & set(reference_identifiers(r, argument))
        ]
        return paginate(matched, None, local.limit)

    logger.warning("Unknown local relation command %r for %s.%s",
                   local.foreign_key, content.definition_id, key)
    return []
